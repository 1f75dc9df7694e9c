"""rhino_logger: structured JSON logging for service processes.

Build a handle directly:

    from rhino_logger import new_development
    log = new_development(service_name="billing")
    log.info("started", port=8080)

or install a process-wide logger and use the module-level delegates:

    import rhino_logger
    rhino_logger.init_production()
    rhino_logger.info_ctx(ctx, "charge accepted", amount=42)
    rhino_logger.sync()
"""

from rhino_logger.clock import Clock, ManualClock, SystemClock
from rhino_logger.config import LoggerConfig, load_config
from rhino_logger.constants import (
    DEVELOPMENT,
    PRODUCTION,
    REQUEST_KEY,
    SERVICE_NAME,
    USER_KEY,
    VERSION,
    Environment,
)
from rhino_logger.context import (
    ContextKey,
    RequestContext,
    current_context,
    request_scope,
)
from rhino_logger.errors import (
    ConfigurationError,
    ErrorCode,
    LogFileError,
    LoggerNotInitializedError,
    RhinoLoggerError,
)
from rhino_logger.logger import (
    Logger,
    TraceSpan,
    new_development,
    new_logger,
    new_production,
)
from rhino_logger.pipeline import SinkKind, build, plan_sinks
from rhino_logger.registry import (
    close,
    debug,
    debug_ctx,
    error,
    error_ctx,
    fatal,
    fatal_ctx,
    get_logger,
    info,
    info_ctx,
    init,
    init_development,
    init_production,
    is_initialized,
    reset,
    set_logger,
    span,
    sync,
    trace,
    traced,
    warn,
    warn_ctx,
    warning,
    with_context,
    with_fields,
)
from rhino_logger.sinks import RotationPolicy

__version__ = "1.0.0"

__all__ = [
    "DEVELOPMENT",
    "PRODUCTION",
    "REQUEST_KEY",
    "SERVICE_NAME",
    "USER_KEY",
    "VERSION",
    "Clock",
    "ConfigurationError",
    "ContextKey",
    "Environment",
    "ErrorCode",
    "LogFileError",
    "Logger",
    "LoggerConfig",
    "LoggerNotInitializedError",
    "ManualClock",
    "RequestContext",
    "RhinoLoggerError",
    "RotationPolicy",
    "SinkKind",
    "SystemClock",
    "TraceSpan",
    "build",
    "close",
    "current_context",
    "debug",
    "debug_ctx",
    "error",
    "error_ctx",
    "fatal",
    "fatal_ctx",
    "get_logger",
    "info",
    "info_ctx",
    "init",
    "init_development",
    "init_production",
    "is_initialized",
    "load_config",
    "new_development",
    "new_logger",
    "new_production",
    "plan_sinks",
    "request_scope",
    "reset",
    "set_logger",
    "span",
    "sync",
    "trace",
    "traced",
    "warn",
    "warn_ctx",
    "warning",
    "with_context",
    "with_fields",
]
