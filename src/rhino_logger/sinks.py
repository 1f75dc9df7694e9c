"""Output sinks: console, plain file, rotating file and tee.

Sinks are ordinary ``logging.Handler`` objects so the stdlib handler lock
serializes writes and ``Handler.handleError`` absorbs write failures.
"""

from __future__ import annotations

import gzip
import logging
import os
import re
import shutil
import sys
import time
from collections.abc import Iterable
from dataclasses import dataclass
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import TextIO

from rhino_logger.constants import MEGABYTE
from rhino_logger.errors import ErrorCode, LogFileError

logger = logging.getLogger(__name__)

_SECONDS_PER_DAY = 24 * 60 * 60


@dataclass(frozen=True)
class RotationPolicy:
    """Rollover and retention settings for a rotating log file.

    Attributes:
        path: Active log file
        max_size_mb: Size in MB that triggers a rollover
        max_backups: Rotated files to keep (0 keeps all)
        max_age_days: Days to keep rotated files (0 disables age pruning)
        compress: Gzip rotated files
    """

    path: str
    max_size_mb: int
    max_backups: int
    max_age_days: int
    compress: bool = False

    @property
    def max_bytes(self) -> int:
        return self.max_size_mb * MEGABYTE


class ConsoleSink(logging.StreamHandler):
    """Stream handler bound to whatever ``sys.stdout`` is at emit time."""

    @property
    def stream(self) -> TextIO:  # type: ignore[override]
        return sys.stdout

    @stream.setter
    def stream(self, value: TextIO) -> None:
        pass


def check_file(path: str | Path) -> None:
    """Make sure ``path`` exists, creating parent directories and an empty file.

    Raises:
        LogFileError: If the directory or file cannot be created
    """
    file_path = Path(path)
    if file_path.exists():
        return

    try:
        file_path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise LogFileError(
            ErrorCode.E201_CREATE_DIRECTORY_FAILED,
            f"Failed to create log directory {file_path.parent}: {e}",
            details={"path": str(file_path.parent)},
        ) from e

    try:
        file_path.touch()
    except OSError as e:
        raise LogFileError(
            ErrorCode.E202_CREATE_FILE_FAILED,
            f"create file failed: {file_path}: {e}",
            details={"path": str(file_path)},
        ) from e


def open_file_sink(path: str | Path) -> logging.FileHandler:
    """Open an append-only file sink, creating the file if absent.

    Raises:
        LogFileError: If the file cannot be created or opened
    """
    check_file(path)
    try:
        return logging.FileHandler(str(path), mode="a", encoding="utf-8")
    except OSError as e:
        raise LogFileError(
            ErrorCode.E203_OPEN_FILE_FAILED,
            f"Failed to open log file {path}: {e}",
            details={"path": str(path)},
        ) from e


def _gzip_rotator(source: str, dest: str) -> None:
    with open(source, "rb") as f_in, gzip.open(dest, "wb") as f_out:
        shutil.copyfileobj(f_in, f_out, 64 * 1024)
    os.remove(source)


class RotatingFileSink(RotatingFileHandler):
    """Size-triggered rotating file with count and age bounded retention.

    Backups are named ``<path>.1``, ``<path>.2``, ... (``.gz`` appended when
    compressed), ``.1`` being the most recent.
    """

    def __init__(self, policy: RotationPolicy) -> None:
        self.policy = policy
        check_file(policy.path)
        try:
            super().__init__(
                filename=policy.path,
                maxBytes=policy.max_bytes,
                backupCount=policy.max_backups,
                encoding="utf-8",
            )
        except OSError as e:
            raise LogFileError(
                ErrorCode.E203_OPEN_FILE_FAILED,
                f"Failed to open log file {policy.path}: {e}",
                details={"path": policy.path},
            ) from e
        if policy.compress:
            self.namer = lambda name: name + ".gz"
            self.rotator = _gzip_rotator
        self._backup_pattern = re.compile(
            re.escape(os.path.basename(self.baseFilename)) + r"\.(\d+)(\.gz)?$"
        )

    def backups(self) -> list[tuple[int, str]]:
        """Return ``(index, path)`` for every rotated file, newest first."""
        directory = os.path.dirname(self.baseFilename)
        found = []
        for entry in os.listdir(directory):
            match = self._backup_pattern.match(entry)
            if match:
                found.append((int(match.group(1)), os.path.join(directory, entry)))
        return sorted(found)

    def doRollover(self) -> None:
        if self.stream:
            self.stream.close()
            self.stream = None  # type: ignore[assignment]

        for index, path in reversed(self.backups()):
            suffix = ".gz" if path.endswith(".gz") else ""
            os.replace(path, f"{self.baseFilename}.{index + 1}{suffix}")

        if os.path.exists(self.baseFilename):
            self.rotate(self.baseFilename, self.rotation_filename(f"{self.baseFilename}.1"))

        self.prune()

        if not self.delay:
            self.stream = self._open()

    def prune(self, now: float | None = None) -> list[str]:
        """Delete backups beyond the count limit or older than the age limit."""
        now = time.time() if now is None else now
        removed = []
        cutoff = now - self.policy.max_age_days * _SECONDS_PER_DAY
        for index, path in self.backups():
            too_many = self.policy.max_backups > 0 and index > self.policy.max_backups
            too_old = self.policy.max_age_days > 0 and os.path.getmtime(path) < cutoff
            if too_many or too_old:
                try:
                    os.remove(path)
                except OSError as e:
                    logger.warning("Failed to remove rotated log %s: %s", path, e)
                    continue
                removed.append(path)
        return removed


class TeeHandler(logging.Handler):
    """Forward every record to each member handler, in order.

    Each member applies its own level, lock and error handling, so a failing
    member never stops the others.
    """

    def __init__(self, members: Iterable[logging.Handler]) -> None:
        super().__init__()
        self.members = tuple(members)

    def handle(self, record: logging.LogRecord) -> bool:
        rv = self.filter(record)
        if rv:
            for member in self.members:
                member.handle(record)
        return bool(rv)

    def emit(self, record: logging.LogRecord) -> None:
        for member in self.members:
            member.emit(record)

    def setFormatter(self, fmt: logging.Formatter | None) -> None:
        super().setFormatter(fmt)
        for member in self.members:
            member.setFormatter(fmt)

    def flush(self) -> None:
        for member in self.members:
            member.flush()

    def close(self) -> None:
        for member in self.members:
            member.close()
        super().close()
