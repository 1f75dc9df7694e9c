"""Logger configuration schema, presets and loaders.

``LoggerConfig`` is an immutable Pydantic model holding every option the
pipeline builder understands. Options are changed by deriving validated
copies (``with_options``), never by mutating a shared object, so the
cross-field rules below are checked before a pipeline is ever assembled.

Configuration can also be read from environment variables
(``LoggerConfig.from_env``) or a YAML file (``load_config``).
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator
from typing_extensions import Self

from rhino_logger.constants import (
    DEFAULT_ROTATE_AGE_DAYS,
    DEFAULT_ROTATE_BACKUPS,
    DEFAULT_ROTATE_PATH,
    DEFAULT_ROTATE_SIZE_MB,
    DEVELOPMENT,
    PRODUCTION,
    PRODUCTION_ROTATE_AGE_DAYS,
    PRODUCTION_ROTATE_BACKUPS,
    REQUEST_KEY,
    SERVICE_NAME,
    USER_KEY,
    VERSION,
)
from rhino_logger.errors import ConfigurationError, ErrorCode

logger = logging.getLogger(__name__)

ENV_PREFIX = "RHINO_LOG_"

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off"})


class LoggerConfig(BaseModel):
    """Options for one logger handle.

    ``rotate_path`` only matters when ``log_to_file`` is set, and the
    ``rotate_*`` sizing options only matter when ``rotate`` is set.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    env: str = Field(
        default=DEVELOPMENT,
        description="Runtime environment: development or production.",
    )
    service_name: str = Field(
        default=SERVICE_NAME,
        description="Service name attached to every record (omitted when empty).",
    )
    version_name: str = Field(
        default=VERSION,
        description="Service version attached to every record (omitted when empty).",
    )
    request_key: str = Field(
        default=REQUEST_KEY,
        min_length=1,
        description="Context key holding the request id.",
    )
    user_key: str = Field(
        default=USER_KEY,
        min_length=1,
        description="Context key holding the user id.",
    )
    log_to_file: bool = Field(
        default=False,
        description="Write records to a file instead of (or besides) the console.",
    )
    rotate: bool = Field(
        default=False,
        description="Use a size/age/count bounded rotating file.",
    )
    rotate_path: str = Field(
        default=DEFAULT_ROTATE_PATH,
        description="Log file location, e.g. ./logs/run.log.",
    )
    rotate_size: int = Field(
        default=DEFAULT_ROTATE_SIZE_MB,
        ge=1,
        description="Maximum file size in MB before rollover.",
    )
    rotate_age: int = Field(
        default=DEFAULT_ROTATE_AGE_DAYS,
        ge=0,
        description="Days to keep rotated files (0 keeps them regardless of age).",
    )
    rotate_backups: int = Field(
        default=DEFAULT_ROTATE_BACKUPS,
        ge=0,
        description="Number of rotated files to keep (0 keeps them all).",
    )
    rotate_compress: bool = Field(
        default=False,
        description="Gzip rotated files.",
    )

    @model_validator(mode="after")
    def validate_file_target(self) -> Self:
        """A file target needs a path."""
        if self.log_to_file and not self.rotate_path.strip():
            raise ValueError("rotate_path is required when log_to_file is enabled")
        return self

    @classmethod
    def create(cls, **options: Any) -> LoggerConfig:
        """Build a config, raising ConfigurationError on invalid options."""
        return _validate(options)

    @classmethod
    def development(cls, **overrides: Any) -> LoggerConfig:
        """Console-only development preset."""
        return _validate({"env": DEVELOPMENT, **overrides})

    @classmethod
    def production(cls, **overrides: Any) -> LoggerConfig:
        """Production preset writing to a rotating ``logs/run.log``."""
        options: dict[str, Any] = {
            "env": PRODUCTION,
            "log_to_file": True,
            "rotate": True,
            "rotate_path": DEFAULT_ROTATE_PATH,
            "rotate_size": DEFAULT_ROTATE_SIZE_MB,
            "rotate_age": PRODUCTION_ROTATE_AGE_DAYS,
            "rotate_backups": PRODUCTION_ROTATE_BACKUPS,
            "rotate_compress": False,
        }
        options.update(overrides)
        return _validate(options)

    @classmethod
    def from_env(
        cls,
        prefix: str = ENV_PREFIX,
        environ: Mapping[str, str] | None = None,
    ) -> LoggerConfig:
        """Read options from ``{prefix}*`` environment variables.

        Unparseable booleans and integers are skipped with a warning so the
        default applies.
        """
        source = os.environ if environ is None else environ
        options: dict[str, Any] = {}

        for name in ("env", "service_name", "version_name", "request_key", "user_key", "rotate_path"):
            value = source.get(f"{prefix}{name.upper()}")
            if value is not None:
                options[name] = value

        flags = {
            "log_to_file": f"{prefix}TO_FILE",
            "rotate": f"{prefix}ROTATE",
            "rotate_compress": f"{prefix}ROTATE_COMPRESS",
        }
        for name, key in flags.items():
            parsed = _get_env_bool(source, key)
            if parsed is not None:
                options[name] = parsed

        for name in ("rotate_size", "rotate_age", "rotate_backups"):
            parsed_int = _get_env_int(source, f"{prefix}{name.upper()}")
            if parsed_int is not None:
                options[name] = parsed_int

        return _validate(options)

    def with_options(self, **changes: Any) -> LoggerConfig:
        """Return a validated copy with ``changes`` applied."""
        return _validate({**self.model_dump(), **changes})


def load_config(path: str | Path) -> LoggerConfig:
    """Load a LoggerConfig from a YAML file.

    The options may sit at the top level or under a ``logger:`` section.

    Raises:
        ConfigurationError: If the file cannot be read, parsed or validated
    """
    config_path = Path(path)
    try:
        with open(config_path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ConfigurationError(
            ErrorCode.E104_INVALID_CONFIG_FILE,
            f"Cannot read logger config {config_path}: {e}",
            details={"path": str(config_path)},
        ) from e
    except yaml.YAMLError as e:
        raise ConfigurationError(
            ErrorCode.E104_INVALID_CONFIG_FILE,
            f"Invalid YAML in logger config {config_path}: {e}",
            details={"path": str(config_path)},
        ) from e

    if data is None:
        data = {}
    if isinstance(data, dict) and isinstance(data.get("logger"), dict):
        data = data["logger"]
    if not isinstance(data, dict):
        raise ConfigurationError(
            ErrorCode.E104_INVALID_CONFIG_FILE,
            f"Logger config {config_path} must contain a mapping",
            details={"path": str(config_path)},
        )

    return _validate(data)


def _validate(options: dict[str, Any]) -> LoggerConfig:
    try:
        return LoggerConfig.model_validate(options)
    except ValidationError as e:
        errors = e.errors()
        unknown = [str(err["loc"][0]) for err in errors if err["type"] == "extra_forbidden" and err["loc"]]
        if unknown:
            raise ConfigurationError(
                ErrorCode.E103_UNKNOWN_OPTION,
                f"Unknown logger option(s): {', '.join(sorted(unknown))}",
                details={"options": sorted(unknown)},
            ) from e
        raise ConfigurationError(
            ErrorCode.E102_INVALID_OPTION,
            f"Invalid logger options: {e}",
            details={"errors": len(errors)},
        ) from e


def _get_env_bool(source: Mapping[str, str], key: str) -> bool | None:
    value = source.get(key)
    if value is None:
        return None
    normalized = value.strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    logger.warning("Invalid boolean for %s=%r; ignoring.", key, value)
    return None


def _get_env_int(source: Mapping[str, str], key: str) -> int | None:
    value = source.get(key)
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        logger.warning("Invalid int for %s=%r; ignoring.", key, value)
        return None
