"""Monotonic clocks for trace durations.

Every Logger handle carries its own clock and hands it to the spans it
starts, so a span's duration is always ``clock.monotonic()`` at finish minus
the reading taken at start. Handles derived from one another share the
parent's clock.
"""

from __future__ import annotations

import time
from datetime import timedelta
from typing import Protocol, runtime_checkable


@runtime_checkable
class Clock(Protocol):
    """Anything with a never-decreasing ``monotonic()`` reading in seconds."""

    def monotonic(self) -> float: ...


class SystemClock:
    __slots__ = ()

    def monotonic(self) -> float:
        return time.monotonic()

    def __repr__(self) -> str:
        return "SystemClock()"


SYSTEM_CLOCK = SystemClock()


class ManualClock:
    """Clock that only moves when ``advance`` is called.

    Inject it into a handle to get exact span durations:

        clock = ManualClock()
        log = new_development(clock=clock)
        done = log.trace("resize")
        clock.advance(0.25)
        done()  # duration="250ms"
    """

    __slots__ = ("_reading",)

    def __init__(self, reading: float = 0.0) -> None:
        self._reading = reading

    def monotonic(self) -> float:
        return self._reading

    def advance(self, step: float | timedelta) -> None:
        """Move the clock forward by ``step`` seconds (or a timedelta).

        Raises:
            ValueError: If ``step`` is negative
        """
        seconds = step.total_seconds() if isinstance(step, timedelta) else float(step)
        if seconds < 0:
            raise ValueError(f"clock cannot move backwards (step={seconds})")
        self._reading += seconds

    def __repr__(self) -> str:
        return f"ManualClock({self._reading!r})"
