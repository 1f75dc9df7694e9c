"""Tests for per-handle clocks and the trace durations they drive."""

from collections.abc import Callable
from datetime import timedelta
from typing import Any

import pytest

from rhino_logger.clock import SYSTEM_CLOCK, Clock, ManualClock, SystemClock
from rhino_logger.logger import Logger

Records = Callable[[], list[dict[str, Any]]]


class ScriptedClock:
    """Clock returning a fixed sequence of readings."""

    def __init__(self, *readings: float) -> None:
        self._readings = iter(readings)

    def monotonic(self) -> float:
        return next(self._readings)


class TestManualClock:
    """ManualClock only moves when told to."""

    def test_advance_seconds_and_timedelta(self) -> None:
        clock = ManualClock(10.0)

        clock.advance(0.5)
        clock.advance(timedelta(milliseconds=250))

        assert clock.monotonic() == pytest.approx(10.75)

    def test_rejects_backwards_step(self) -> None:
        clock = ManualClock(3.0)

        with pytest.raises(ValueError, match="backwards"):
            clock.advance(-1)
        assert clock.monotonic() == 3.0

    def test_zero_step_allowed(self) -> None:
        clock = ManualClock()
        clock.advance(0)
        assert clock.monotonic() == 0.0

    def test_repr(self) -> None:
        assert repr(ManualClock(2.5)) == "ManualClock(2.5)"


class TestClockProtocol:
    def test_builtin_clocks_satisfy_protocol(self) -> None:
        assert isinstance(SYSTEM_CLOCK, Clock)
        assert isinstance(ManualClock(), Clock)
        assert isinstance(ScriptedClock(), Clock)

    def test_system_clock_never_decreases(self) -> None:
        clock = SystemClock()
        first = clock.monotonic()
        assert clock.monotonic() >= first


class TestTraceDurations:
    """Span durations are read from the clock of the handle that started them."""

    def test_duration_follows_injected_clock(
        self, make_logger: Callable[..., Logger], console_records: Records
    ) -> None:
        clock = ManualClock(1000.0)
        log = make_logger(clock=clock)

        done = log.trace("resize")
        clock.advance(timedelta(seconds=2, milliseconds=500))
        assert done.elapsed() == timedelta(seconds=2.5)
        done()

        _, finish = console_records()
        assert finish["duration"] == "2.5s"

    def test_handles_keep_separate_clocks(
        self, make_logger: Callable[..., Logger], console_records: Records
    ) -> None:
        fast, slow = ManualClock(), ManualClock()
        fast_log = make_logger(clock=fast)
        slow_log = make_logger(clock=slow)

        fast_span = fast_log.trace("fast")
        slow_span = slow_log.trace("slow")
        fast.advance(0.002)
        slow.advance(3)
        fast_span()
        slow_span()

        durations = {r["function"]: r["duration"] for r in console_records() if "duration" in r}
        assert durations == {"fast": "2ms", "slow": "3s"}

    def test_derived_handles_share_clock(
        self, make_logger: Callable[..., Logger], console_records: Records
    ) -> None:
        clock = ManualClock()
        child = make_logger(clock=clock).with_fields(component="db")

        with child.span("query"):
            clock.advance(0.04)

        _, finish = console_records()
        assert finish["component"] == "db"
        assert finish["duration"] == "40ms"

    def test_custom_clock_readings(
        self, make_logger: Callable[..., Logger], console_records: Records
    ) -> None:
        log = make_logger(clock=ScriptedClock(5.0, 5.125))

        log.trace("scripted")()

        _, finish = console_records()
        assert finish["duration"] == "125ms"

    def test_clock_running_backwards_clamps_to_zero(
        self, make_logger: Callable[..., Logger], console_records: Records
    ) -> None:
        log = make_logger(clock=ScriptedClock(9.0, 4.0))

        log.trace("skewed")()

        _, finish = console_records()
        assert finish["duration"] == "0s"

    def test_system_clock_duration_non_negative(self, make_logger: Callable[..., Logger]) -> None:
        span = make_logger().trace("real")
        assert span.elapsed() >= timedelta(0)
        span()
