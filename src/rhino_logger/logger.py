"""Logger handle: leveled structured emission, field binding, context
propagation and function tracing.

A ``Logger`` is immutable. ``with_fields`` and ``with_context`` return new
handles that share the parent's engine and carry an extended field tuple,
so deriving never affects the parent or its siblings.

Example:
    >>> log = new_development()
    >>> log.info("hello", k="v")
    >>> done = log.trace("load_user", ctx)
    >>> ...
    >>> done()
"""

from __future__ import annotations

import functools
import inspect
import logging
import os
from collections.abc import Callable
from datetime import timedelta
from typing import Any, TypeVar

from rhino_logger.clock import SYSTEM_CLOCK, Clock
from rhino_logger.config import LoggerConfig
from rhino_logger.constants import (
    ERROR_KEY,
    TRACE_DURATION_KEY,
    TRACE_FINISH_MESSAGE,
    TRACE_FUNCTION_KEY,
    TRACE_START_MESSAGE,
)
from rhino_logger.context import ContextKey, extract_fields
from rhino_logger.formatting import FATAL, FIELDS_ATTR
from rhino_logger.pipeline import SinkKind, build

F = TypeVar("F", bound=Callable[..., Any])

Fields = tuple[tuple[str, Any], ...]

# Frames between the user's call and engine.log: user -> public method -> _log
_STACKLEVEL = 3


class TraceSpan:
    """Completion handle returned by ``Logger.trace``.

    Call it (or leave its ``with`` block) to emit the finish record. Only
    the first completion is recorded.
    """

    __slots__ = ("_logger", "_name", "_clock", "_start", "_finished")

    def __init__(self, logger: Logger, name: str, clock: Clock) -> None:
        self._logger = logger
        self._name = name
        self._clock = clock
        self._start = 0.0
        self._finished = False

    @property
    def name(self) -> str:
        return self._name

    @property
    def finished(self) -> bool:
        return self._finished

    def _begin(self, stacklevel: int) -> None:
        self._logger._log(
            logging.DEBUG,
            TRACE_START_MESSAGE,
            {TRACE_FUNCTION_KEY: self._name},
            stacklevel=stacklevel + 1,
        )
        self._start = self._clock.monotonic()

    def elapsed(self) -> timedelta:
        return timedelta(seconds=max(0.0, self._clock.monotonic() - self._start))

    def finish(self, stacklevel: int = _STACKLEVEL) -> None:
        if self._finished:
            return
        self._finished = True
        self._logger._log(
            logging.DEBUG,
            TRACE_FINISH_MESSAGE,
            {TRACE_FUNCTION_KEY: self._name, TRACE_DURATION_KEY: self.elapsed()},
            stacklevel=stacklevel,
        )

    def __call__(self) -> None:
        self.finish(_STACKLEVEL + 1)

    def __enter__(self) -> TraceSpan:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.finish(_STACKLEVEL + 1)


class Logger:
    """Immutable structured logging handle."""

    __slots__ = ("_config", "_engine", "_sink_kind", "_fields", "_context_keys", "_clock")

    def __init__(
        self,
        engine: logging.Logger,
        config: LoggerConfig,
        fields: Fields = (),
        clock: Clock | None = None,
        sink_kind: SinkKind = SinkKind.CONSOLE,
    ) -> None:
        object.__setattr__(self, "_engine", engine)
        object.__setattr__(self, "_config", config)
        object.__setattr__(self, "_sink_kind", sink_kind)
        object.__setattr__(self, "_fields", tuple(fields))
        object.__setattr__(
            self,
            "_context_keys",
            (ContextKey(config.request_key, str), ContextKey(config.user_key, str)),
        )
        object.__setattr__(self, "_clock", SYSTEM_CLOCK if clock is None else clock)

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError(f"{type(self).__name__} is immutable")

    def __delattr__(self, name: str) -> None:
        raise AttributeError(f"{type(self).__name__} is immutable")

    def __repr__(self) -> str:
        return (
            f"Logger(env={self.env!r}, service={self.service_name!r}, "
            f"sink={self._sink_kind.value!r}, fields={len(self._fields)})"
        )

    # ------------------------------------------------------------------ #
    # Configuration accessors                                            #
    # ------------------------------------------------------------------ #

    @property
    def config(self) -> LoggerConfig:
        return self._config

    @property
    def engine(self) -> logging.Logger:
        return self._engine

    @property
    def sink_kind(self) -> SinkKind:
        return self._sink_kind

    @property
    def env(self) -> str:
        return self._config.env

    @property
    def service_name(self) -> str:
        return self._config.service_name

    @property
    def version_name(self) -> str:
        return self._config.version_name

    @property
    def request_key(self) -> str:
        return self._config.request_key

    @property
    def user_key(self) -> str:
        return self._config.user_key

    @property
    def fields(self) -> dict[str, Any]:
        """Bound fields, later bindings overriding earlier ones."""
        return dict(self._fields)

    @property
    def clock(self) -> Clock:
        return self._clock

    # ------------------------------------------------------------------ #
    # Derivation                                                         #
    # ------------------------------------------------------------------ #

    def _derive(self, fields: dict[str, Any]) -> Logger:
        return Logger(
            self._engine,
            self._config,
            self._fields + tuple(fields.items()),
            self._clock,
            self._sink_kind,
        )

    def with_fields(self, /, **fields: Any) -> Logger:
        """Return a child handle with ``fields`` attached to every record."""
        return self._derive(fields)

    def with_context(self, ctx: Any = None) -> Logger:
        """Return a child handle carrying the request and user ids from ``ctx``.

        ``ctx`` is any mapping (typically a RequestContext); None means the
        ambient context. Missing or non-string ids are skipped.
        """
        return self._derive(extract_fields(ctx, self._context_keys))

    # ------------------------------------------------------------------ #
    # Emission                                                           #
    # ------------------------------------------------------------------ #

    def _log(
        self,
        level: int,
        msg: str,
        fields: dict[str, Any],
        err: Any = None,
        stacklevel: int = _STACKLEVEL,
    ) -> None:
        if not self._engine.isEnabledFor(level):
            return

        pairs = self._fields + tuple(fields.items())
        exc_info = None
        if err is not None:
            pairs += ((ERROR_KEY, err),)
            if isinstance(err, BaseException) and err.__traceback__ is not None:
                exc_info = (type(err), err, err.__traceback__)

        self._engine.log(
            level,
            msg,
            exc_info=exc_info,
            stack_info=level >= logging.ERROR,
            stacklevel=stacklevel,
            extra={FIELDS_ATTR: pairs},
        )

    def _terminate(self) -> None:
        # os._exit ends the whole process from any thread and cannot be caught
        self.sync()
        os._exit(1)

    # Fixed parameters are positional-only: every keyword argument is a field.

    def debug(self, msg: str, /, **fields: Any) -> None:
        self._log(logging.DEBUG, msg, fields)

    def debug_ctx(self, ctx: Any, msg: str, /, **fields: Any) -> None:
        self.with_context(ctx)._log(logging.DEBUG, msg, fields)

    def info(self, msg: str, /, **fields: Any) -> None:
        self._log(logging.INFO, msg, fields)

    def info_ctx(self, ctx: Any, msg: str, /, **fields: Any) -> None:
        self.with_context(ctx)._log(logging.INFO, msg, fields)

    def warn(self, msg: str, /, **fields: Any) -> None:
        self._log(logging.WARNING, msg, fields)

    def warn_ctx(self, ctx: Any, msg: str, /, **fields: Any) -> None:
        self.with_context(ctx)._log(logging.WARNING, msg, fields)

    def warning(self, msg: str, /, **fields: Any) -> None:
        """Alias for warn."""
        self._log(logging.WARNING, msg, fields)

    def error(self, msg: str, err: Any = None, /, **fields: Any) -> None:
        """Log at error level, attaching ``err`` as the ``error`` field when given.

        ``err`` is positional: ``log.error("save failed", exc, table="users")``.
        """
        self._log(logging.ERROR, msg, fields, err)

    def error_ctx(self, ctx: Any, msg: str, err: Any = None, /, **fields: Any) -> None:
        self.with_context(ctx)._log(logging.ERROR, msg, fields, err)

    def fatal(self, msg: str, /, **fields: Any) -> None:
        """Log at fatal level, flush every sink, then end the process with status 1.

        Termination goes through ``os._exit``: it is not an exception, so no
        handler, ``finally`` block or calling thread can stop it.
        """
        self._log(FATAL, msg, fields)
        self._terminate()

    def fatal_ctx(self, ctx: Any, msg: str, /, **fields: Any) -> None:
        self.with_context(ctx)._log(FATAL, msg, fields)
        self._terminate()

    # ------------------------------------------------------------------ #
    # Tracing                                                            #
    # ------------------------------------------------------------------ #

    def _start_span(self, span_name: str, ctx: Any, stacklevel: int) -> TraceSpan:
        span = TraceSpan(self.with_context(ctx), span_name, self._clock)
        span._begin(stacklevel)
        return span

    def trace(self, span_name: str, ctx: Any = None) -> TraceSpan:
        """Emit a start record for ``span_name`` and return its completion callable.

        Usage:
            done = log.trace("sync_accounts", ctx)
            try:
                ...
            finally:
                done()
        """
        return self._start_span(span_name, ctx, _STACKLEVEL + 1)

    def span(self, span_name: str, ctx: Any = None) -> TraceSpan:
        """Context-manager form of ``trace``."""
        return self._start_span(span_name, ctx, _STACKLEVEL + 1)

    def traced(self, span_name: str | None = None) -> Callable[[F], F]:
        """Decorator tracing every call of the wrapped function."""
        return make_traced(lambda: self, span_name)

    # ------------------------------------------------------------------ #
    # Lifecycle                                                          #
    # ------------------------------------------------------------------ #

    def sync(self) -> None:
        """Flush every sink. Call before process exit when writing to files."""
        for handler in self._engine.handlers:
            handler.flush()

    def close(self) -> None:
        """Flush and release every sink. Shared by all handles derived from this one."""
        for handler in list(self._engine.handlers):
            handler.close()
            self._engine.removeHandler(handler)


def make_traced(resolve: Callable[[], Logger], span_name: str | None = None) -> Callable[[F], F]:
    """Build a tracing decorator around the handle returned by ``resolve``.

    ``resolve`` runs on every call, so a registry-backed decorator picks up
    the logger installed at call time.
    """

    def decorator(func: F) -> F:
        name = span_name or func.__qualname__

        if inspect.iscoroutinefunction(func):

            @functools.wraps(func)
            async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
                span = resolve()._start_span(name, None, _STACKLEVEL + 1)
                try:
                    return await func(*args, **kwargs)
                finally:
                    span.finish(_STACKLEVEL + 1)

            return async_wrapper  # type: ignore[return-value]

        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            span = resolve()._start_span(name, None, _STACKLEVEL + 1)
            try:
                return func(*args, **kwargs)
            finally:
                span.finish(_STACKLEVEL + 1)

        return wrapper  # type: ignore[return-value]

    return decorator


def new_logger(
    config: LoggerConfig | None = None,
    *,
    clock: Clock | None = None,
    **options: Any,
) -> Logger:
    """Build a logger handle from ``config`` and/or keyword options.

    Raises:
        ConfigurationError: On invalid options or an unknown environment
        LogFileError: If a log file cannot be created or opened
    """
    if config is None:
        config = LoggerConfig.create(**options)
    elif options:
        config = config.with_options(**options)

    pipeline = build(config)
    return Logger(
        pipeline.engine,
        config,
        pipeline.base_fields,
        clock,
        pipeline.sink_kind,
    )


def new_development(*, clock: Clock | None = None, **overrides: Any) -> Logger:
    """Build a handle from the development preset."""
    return new_logger(LoggerConfig.development(**overrides), clock=clock)


def new_production(*, clock: Clock | None = None, **overrides: Any) -> Logger:
    """Build a handle from the production preset."""
    return new_logger(LoggerConfig.production(**overrides), clock=clock)
