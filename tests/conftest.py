"""
Shared pytest fixtures and configuration for rhino_logger tests.

Console sinks resolve ``sys.stdout`` at emit time, so ``capsys`` sees
everything a console-backed logger writes.
"""

from __future__ import annotations

import json
import os
from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Any

import pytest

from rhino_logger import registry
from rhino_logger.clock import ManualClock
from rhino_logger.logger import Logger, new_logger


def pytest_configure(config: Any) -> None:
    """Configure custom pytest markers."""
    config.addinivalue_line("markers", "unit: marks tests as unit tests")
    config.addinivalue_line("markers", "property: marks property-based tests")
    config.addinivalue_line("markers", "integration: marks tests as integration tests")


def parse_records(text: str) -> list[dict[str, Any]]:
    """Parse one JSON record per non-empty line."""
    return [json.loads(line) for line in text.splitlines() if line.strip()]


@pytest.fixture(autouse=True)
def _isolate_globals() -> Iterator[None]:
    """Reset the process-wide logger around every test."""
    registry.reset()
    yield
    registry.reset()


@pytest.fixture
def in_tmp_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Run the test with ``tmp_path`` as the working directory."""
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def console_records(capsys: pytest.CaptureFixture[str]) -> Callable[[], list[dict[str, Any]]]:
    """Return a reader for JSON records written to stdout since the last read."""

    def _read() -> list[dict[str, Any]]:
        return parse_records(capsys.readouterr().out)

    return _read


@pytest.fixture
def file_records() -> Callable[[Path], list[dict[str, Any]]]:
    """Return a reader for JSON records in a log file."""

    def _read(path: Path) -> list[dict[str, Any]]:
        return parse_records(Path(path).read_text(encoding="utf-8"))

    return _read


@pytest.fixture
def manual_clock() -> ManualClock:
    return ManualClock(1000.0)


@pytest.fixture
def exit_codes(monkeypatch: pytest.MonkeyPatch) -> list[int]:
    """Record ``os._exit`` statuses instead of ending the test process."""
    codes: list[int] = []
    monkeypatch.setattr(os, "_exit", codes.append)
    return codes


@pytest.fixture
def make_logger() -> Iterator[Callable[..., Logger]]:
    """Factory for loggers whose sinks are closed at teardown."""
    created: list[Logger] = []

    def _make(*args: Any, **kwargs: Any) -> Logger:
        handle = new_logger(*args, **kwargs)
        created.append(handle)
        return handle

    yield _make

    for handle in created:
        handle.close()
