"""Structured error codes and exceptions for rhino_logger.

Error codes follow the pattern: E{category}{number}
- E1xx: Configuration errors
- E2xx: File / I/O errors
- E3xx: Registry (process-wide logger) errors

Example:
    >>> from rhino_logger.errors import ConfigurationError, ErrorCode
    >>> raise ConfigurationError(
    ...     ErrorCode.E101_INVALID_ENVIRONMENT,
    ...     details={"env": "staging"},
    ... )
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorCode(Enum):
    """Standardized error codes for rhino_logger."""

    # E1xx: Configuration errors
    E100_CONFIG_ERROR = "E100"
    E101_INVALID_ENVIRONMENT = "E101"
    E102_INVALID_OPTION = "E102"
    E103_UNKNOWN_OPTION = "E103"
    E104_INVALID_CONFIG_FILE = "E104"

    # E2xx: File / I/O errors
    E200_FILE_ERROR = "E200"
    E201_CREATE_DIRECTORY_FAILED = "E201"
    E202_CREATE_FILE_FAILED = "E202"
    E203_OPEN_FILE_FAILED = "E203"

    # E3xx: Registry errors
    E300_REGISTRY_ERROR = "E300"
    E301_NOT_INITIALIZED = "E301"


ERROR_MESSAGES: dict[ErrorCode, str] = {
    ErrorCode.E100_CONFIG_ERROR: "Configuration error",
    ErrorCode.E101_INVALID_ENVIRONMENT: "invalid environment, use development or production",
    ErrorCode.E102_INVALID_OPTION: "Invalid logger option value",
    ErrorCode.E103_UNKNOWN_OPTION: "Unknown logger option",
    ErrorCode.E104_INVALID_CONFIG_FILE: "Invalid logger configuration file",
    ErrorCode.E200_FILE_ERROR: "Log file error",
    ErrorCode.E201_CREATE_DIRECTORY_FAILED: "Failed to create log directory",
    ErrorCode.E202_CREATE_FILE_FAILED: "create file failed",
    ErrorCode.E203_OPEN_FILE_FAILED: "Failed to open log file",
    ErrorCode.E300_REGISTRY_ERROR: "Logger registry error",
    ErrorCode.E301_NOT_INITIALIZED: "rhino_logger is not initialized, call init() first",
}


class RhinoLoggerError(Exception):
    """Base exception for rhino_logger errors with structured error codes."""

    def __init__(
        self,
        code: ErrorCode,
        message: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.code = code
        self.message = message or ERROR_MESSAGES.get(code, "Unknown error")
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.message}"

    def to_log_dict(self) -> dict[str, Any]:
        """Flatten the error into fields suitable for a structured record."""
        log_dict: dict[str, Any] = {
            "error_code": self.code.value,
            "error_message": self.message,
        }
        for key, value in self.details.items():
            log_dict[f"detail_{key}"] = value
        return log_dict


class ConfigurationError(RhinoLoggerError, ValueError):
    """Raised when a logger cannot be configured from the given options."""

    def __init__(
        self,
        code: ErrorCode = ErrorCode.E100_CONFIG_ERROR,
        message: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(code, message, details)


class LogFileError(RhinoLoggerError):
    """Raised when a log file or its directory cannot be created or opened."""

    def __init__(
        self,
        code: ErrorCode = ErrorCode.E200_FILE_ERROR,
        message: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(code, message, details)


class LoggerNotInitializedError(RhinoLoggerError, RuntimeError):
    """Raised when a registry delegate is used before ``init``."""

    def __init__(self, message: str | None = None) -> None:
        super().__init__(ErrorCode.E301_NOT_INITIALIZED, message)
