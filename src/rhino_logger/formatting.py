"""JSON encoding for log records.

One JSON object per line, with a fixed envelope (level, time, message,
caller, stacktrace) followed by the record's structured fields in the order
they were attached.
"""

from __future__ import annotations

import json
import logging
import math
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any

from rhino_logger.constants import (
    CALLER_KEY,
    EXCEPTION_KEY,
    LEVEL_KEY,
    MESSAGE_KEY,
    RESERVED_KEYS,
    STACKTRACE_KEY,
    TIME_KEY,
)

FATAL = logging.CRITICAL

# LogRecord attribute carrying the ordered (key, value) field pairs
FIELDS_ATTR = "rhino_fields"

LEVEL_NAMES: dict[int, str] = {
    logging.DEBUG: "debug",
    logging.INFO: "info",
    logging.WARNING: "warn",
    logging.ERROR: "error",
    FATAL: "fatal",
}

_STACK_HEADER = "Stack (most recent call last):\n"


@dataclass(frozen=True)
class EncoderPreset:
    """Per-environment encoding choices."""

    name: str
    level: int
    uppercase_levels: bool
    encode_duration: Callable[[timedelta], Any]


def format_time(created: float) -> str:
    """Format a record timestamp as ``YYYY-MM-DD HH:MM:SS.mmm±hhmm``.

    A zero UTC offset is written as ``Z``.
    """
    dt = datetime.fromtimestamp(created).astimezone()
    offset = dt.strftime("%z")
    if offset in ("", "+0000", "-0000"):
        offset = "Z"
    return f"{dt.strftime('%Y-%m-%d %H:%M:%S')}.{dt.microsecond // 1000:03d}{offset}"


def _trim(value: float) -> str:
    return f"{value:.9f}".rstrip("0").rstrip(".")


def duration_to_string(duration: timedelta) -> str:
    """Render a duration the way humans read it: ``250ms``, ``1.5s``, ``1m30s``."""
    ns = ((duration.days * 86400 + duration.seconds) * 1_000_000 + duration.microseconds) * 1000
    sign = "-" if ns < 0 else ""
    ns = abs(ns)

    if ns == 0:
        return "0s"
    if ns < 1_000:
        return f"{sign}{ns}ns"
    if ns < 1_000_000:
        return f"{sign}{_trim(ns / 1e3)}µs"
    if ns < 1_000_000_000:
        return f"{sign}{_trim(ns / 1e6)}ms"

    hours, rem = divmod(ns, 3600 * 1_000_000_000)
    minutes, rem = divmod(rem, 60 * 1_000_000_000)
    seconds = _trim(rem / 1e9) if rem else "0"
    if hours:
        return f"{sign}{hours}h{minutes}m{seconds}s"
    if minutes:
        return f"{sign}{minutes}m{seconds}s"
    return f"{sign}{seconds}s"


def duration_to_seconds(duration: timedelta) -> float:
    return duration.total_seconds()


def level_name(levelno: int, uppercase: bool = False) -> str:
    """Map a stdlib level number to its short record name."""
    name = LEVEL_NAMES.get(levelno)
    if name is None:
        name = logging.getLevelName(levelno).lower()
    return name.upper() if uppercase else name


def encode_float(value: float) -> float | str:
    """Return finite floats unchanged and NaN or infinities as "NaN", "+Inf", "-Inf"."""
    if math.isfinite(value):
        return value
    if math.isnan(value):
        return "NaN"
    return "+Inf" if value > 0 else "-Inf"


def caller_path(record: logging.LogRecord) -> str:
    """Return ``parent_dir/file.py:lineno`` for the record's call site."""
    parent = Path(record.pathname).parent.name
    filename = f"{parent}/{record.filename}" if parent else record.filename
    return f"{filename}:{record.lineno}"


class JSONFormatter(logging.Formatter):
    """Formatter writing each record as a single JSON object."""

    def __init__(self, preset: EncoderPreset) -> None:
        super().__init__()
        self.preset = preset

    def encode_value(self, value: Any) -> Any:
        if isinstance(value, float):
            return encode_float(value)
        if isinstance(value, timedelta):
            return self.preset.encode_duration(value)
        if isinstance(value, BaseException):
            return str(value)
        if isinstance(value, (list, tuple)):
            return [self.encode_value(item) for item in value]
        if isinstance(value, dict):
            return {key: self.encode_value(item) for key, item in value.items()}
        return value


    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON.

        Args:
            record: Log record to format

        Returns:
            JSON-formatted log string
        """
        log_entry: dict[str, Any] = {
            LEVEL_KEY: level_name(record.levelno, self.preset.uppercase_levels),
            TIME_KEY: format_time(record.created),
            MESSAGE_KEY: record.getMessage(),
            CALLER_KEY: caller_path(record),
        }

        if record.stack_info:
            stack = record.stack_info
            if stack.startswith(_STACK_HEADER):
                stack = stack[len(_STACK_HEADER):]
            log_entry[STACKTRACE_KEY] = stack

        for key, value in getattr(record, FIELDS_ATTR, ()):
            if key in RESERVED_KEYS:
                key = f"fields.{key}"
            log_entry[key] = self.encode_value(value)

        if record.exc_info:
            log_entry[EXCEPTION_KEY] = self.formatException(record.exc_info)

        return json.dumps(log_entry, ensure_ascii=False, default=str)
