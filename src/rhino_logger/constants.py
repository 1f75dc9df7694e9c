"""Shared constants for rhino_logger.

Default identity values, correlation key names and rotation defaults used by
the config presets and the pipeline builder.
"""

from __future__ import annotations

from enum import Enum


class Environment(str, Enum):
    """Runtime environments understood by the pipeline builder."""

    DEVELOPMENT = "development"
    PRODUCTION = "production"


DEVELOPMENT = Environment.DEVELOPMENT.value
PRODUCTION = Environment.PRODUCTION.value

# Correlation keys read from the request context
REQUEST_KEY = "request_id"
USER_KEY = "user_id"

SERVICE_NAME = "rhino_logger"
VERSION = "v1.0.0"

# Output defaults
DEFAULT_ROTATE_PATH = "logs/run.log"
DEFAULT_ROTATE_SIZE_MB = 10
DEFAULT_ROTATE_AGE_DAYS = 7
DEFAULT_ROTATE_BACKUPS = 10

# Production preset rotation
PRODUCTION_ROTATE_AGE_DAYS = 30
PRODUCTION_ROTATE_BACKUPS = 30

# Envelope keys written by the JSON formatter
LEVEL_KEY = "level"
TIME_KEY = "time"
MESSAGE_KEY = "message"
CALLER_KEY = "caller"
STACKTRACE_KEY = "stacktrace"
ERROR_KEY = "error"
EXCEPTION_KEY = "exception"

RESERVED_KEYS = frozenset({LEVEL_KEY, TIME_KEY, MESSAGE_KEY, CALLER_KEY, STACKTRACE_KEY})

# Tracing helper
TRACE_FUNCTION_KEY = "function"
TRACE_DURATION_KEY = "duration"
TRACE_START_MESSAGE = "Starting function"
TRACE_FINISH_MESSAGE = "Finished function"

MEGABYTE = 1024 * 1024
