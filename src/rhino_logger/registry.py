"""Process-wide logger registry.

``init`` installs one Logger handle for the whole process; the module-level
delegates forward to it. Run ``init`` once at startup, before any
concurrent logging begins, and ``sync`` once at shutdown.

Using a delegate before ``init`` raises LoggerNotInitializedError.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from threading import Lock
from typing import Any, TypeVar

from rhino_logger.config import LoggerConfig
from rhino_logger.errors import LoggerNotInitializedError
from rhino_logger.formatting import FATAL
from rhino_logger.logger import (
    _STACKLEVEL,
    Logger,
    TraceSpan,
    make_traced,
    new_logger,
)

F = TypeVar("F", bound=Callable[..., Any])

_logger: Logger | None = None
_logger_lock = Lock()


def _require() -> Logger:
    handle = _logger
    if handle is None:
        raise LoggerNotInitializedError()
    return handle


def set_logger(handle: Logger, *, close_previous: bool = True) -> Logger:
    """Install ``handle`` as the process-wide logger.

    The previously installed handle has its sinks closed unless
    ``close_previous`` is False or it shares ``handle``'s engine, so
    re-initializing does not leak open log files.
    """
    global _logger
    with _logger_lock:
        previous, _logger = _logger, handle
    if close_previous and previous is not None and previous.engine is not handle.engine:
        previous.close()
    return handle


def init(
    config: LoggerConfig | None = None,
    *,
    close_previous: bool = True,
    **options: Any,
) -> Logger:
    """Build a logger from ``config`` and/or options and install it.

    On failure the previously installed logger (if any) stays in place and
    keeps its sinks open. On success it is closed as in ``set_logger``.

    Raises:
        ConfigurationError: On invalid options or an unknown environment
        LogFileError: If a log file cannot be created or opened
    """
    return set_logger(new_logger(config, **options), close_previous=close_previous)


def init_development(**overrides: Any) -> Logger:
    return init(LoggerConfig.development(**overrides))


def init_production(**overrides: Any) -> Logger:
    return init(LoggerConfig.production(**overrides))


def get_logger() -> Logger:
    """Return the installed logger.

    Raises:
        LoggerNotInitializedError: If ``init`` has not run
    """
    return _require()


def is_initialized() -> bool:
    return _logger is not None


def reset() -> None:
    """Forget the installed logger without closing its sinks (for tests)."""
    global _logger
    with _logger_lock:
        _logger = None


def with_fields(**fields: Any) -> Logger:
    return _require().with_fields(**fields)


def with_context(ctx: Any = None) -> Logger:
    return _require().with_context(ctx)


def debug(msg: str, /, **fields: Any) -> None:
    _require()._log(logging.DEBUG, msg, fields)


def debug_ctx(ctx: Any, msg: str, /, **fields: Any) -> None:
    _require().with_context(ctx)._log(logging.DEBUG, msg, fields)


def info(msg: str, /, **fields: Any) -> None:
    _require()._log(logging.INFO, msg, fields)


def info_ctx(ctx: Any, msg: str, /, **fields: Any) -> None:
    _require().with_context(ctx)._log(logging.INFO, msg, fields)


def warn(msg: str, /, **fields: Any) -> None:
    _require()._log(logging.WARNING, msg, fields)


def warn_ctx(ctx: Any, msg: str, /, **fields: Any) -> None:
    _require().with_context(ctx)._log(logging.WARNING, msg, fields)


def warning(msg: str, /, **fields: Any) -> None:
    _require()._log(logging.WARNING, msg, fields)


def error(msg: str, err: Any = None, /, **fields: Any) -> None:
    _require()._log(logging.ERROR, msg, fields, err)


def error_ctx(ctx: Any, msg: str, err: Any = None, /, **fields: Any) -> None:
    _require().with_context(ctx)._log(logging.ERROR, msg, fields, err)


def fatal(msg: str, /, **fields: Any) -> None:
    handle = _require()
    handle._log(FATAL, msg, fields)
    handle._terminate()


def fatal_ctx(ctx: Any, msg: str, /, **fields: Any) -> None:
    handle = _require()
    handle.with_context(ctx)._log(FATAL, msg, fields)
    handle._terminate()


def trace(span_name: str, ctx: Any = None) -> TraceSpan:
    return _require()._start_span(span_name, ctx, _STACKLEVEL + 1)


def span(span_name: str, ctx: Any = None) -> TraceSpan:
    return _require()._start_span(span_name, ctx, _STACKLEVEL + 1)


def traced(span_name: str | None = None) -> Callable[[F], F]:
    """Decorator tracing calls through whichever logger is installed at call time."""
    return make_traced(_require, span_name)


def sync() -> None:
    _require().sync()


def close() -> None:
    _require().close()
