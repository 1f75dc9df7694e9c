"""Pipeline builder: from a LoggerConfig to an assembled logging engine.

The sink layout is decided by (environment, log_to_file, rotate):

    environment  log_to_file  rotate  sink
    development  False        -       console
    development  True         True    tee(rotating file, console)
    development  True         False   console
    production   False        -       console
    production   True         True    rotating file
    production   True         False   plain append-only file

Every engine encodes JSON, captures the caller and attaches a stack trace to
records at error level and above. Engines are standalone ``logging.Logger``
objects outside the stdlib logger hierarchy, so handles built from
different configs never share handlers.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from rhino_logger.config import LoggerConfig
from rhino_logger.constants import Environment
from rhino_logger.errors import ConfigurationError, ErrorCode
from rhino_logger.formatting import (
    EncoderPreset,
    JSONFormatter,
    duration_to_seconds,
    duration_to_string,
)
from rhino_logger.sinks import (
    ConsoleSink,
    RotatingFileSink,
    RotationPolicy,
    TeeHandler,
    open_file_sink,
)

logger = logging.getLogger(__name__)


class SinkKind(Enum):
    """Sink layouts the builder can assemble."""

    CONSOLE = "console"
    PLAIN_FILE = "plain_file"
    ROTATING_FILE = "rotating_file"
    TEE_ROTATING_FILE_CONSOLE = "tee_rotating_file_console"


ENCODER_PRESETS: dict[Environment, EncoderPreset] = {
    Environment.DEVELOPMENT: EncoderPreset(
        name=Environment.DEVELOPMENT.value,
        level=logging.DEBUG,
        uppercase_levels=True,
        encode_duration=duration_to_string,
    ),
    Environment.PRODUCTION: EncoderPreset(
        name=Environment.PRODUCTION.value,
        level=logging.INFO,
        uppercase_levels=False,
        encode_duration=duration_to_seconds,
    ),
}


@dataclass(frozen=True)
class Pipeline:
    """An assembled engine plus the identity fields every record carries."""

    engine: logging.Logger
    sink_kind: SinkKind
    base_fields: tuple[tuple[str, str], ...]


def parse_environment(env: str) -> Environment:
    """Resolve an environment name.

    Raises:
        ConfigurationError: If ``env`` is not development or production
    """
    try:
        return Environment(env)
    except ValueError as e:
        raise ConfigurationError(
            ErrorCode.E101_INVALID_ENVIRONMENT,
            details={"env": env},
        ) from e


def plan_sinks(config: LoggerConfig) -> SinkKind:
    """Decide the sink layout for ``config`` without touching the filesystem."""
    env = parse_environment(config.env)

    if not config.log_to_file:
        return SinkKind.CONSOLE

    if env is Environment.DEVELOPMENT:
        if config.rotate:
            return SinkKind.TEE_ROTATING_FILE_CONSOLE
        return SinkKind.CONSOLE

    if config.rotate:
        return SinkKind.ROTATING_FILE
    return SinkKind.PLAIN_FILE


def rotation_policy(config: LoggerConfig) -> RotationPolicy:
    return RotationPolicy(
        path=config.rotate_path,
        max_size_mb=config.rotate_size,
        max_backups=config.rotate_backups,
        max_age_days=config.rotate_age,
        compress=config.rotate_compress,
    )


def base_fields(config: LoggerConfig) -> tuple[tuple[str, str], ...]:
    """Identity fields attached to every record: env, service, version."""
    fields = [("env", config.env)]
    if config.service_name:
        fields.append(("service", config.service_name))
    if config.version_name:
        fields.append(("version", config.version_name))
    return tuple(fields)


def _make_handler(kind: SinkKind, config: LoggerConfig) -> logging.Handler:
    if kind is SinkKind.CONSOLE:
        return ConsoleSink()
    if kind is SinkKind.PLAIN_FILE:
        return open_file_sink(config.rotate_path)
    if kind is SinkKind.ROTATING_FILE:
        return RotatingFileSink(rotation_policy(config))
    return TeeHandler([RotatingFileSink(rotation_policy(config)), ConsoleSink()])


def build(config: LoggerConfig) -> Pipeline:
    """Assemble the engine described by ``config``.

    Raises:
        ConfigurationError: If the environment is not recognized
        LogFileError: If a log file or its directory cannot be created or opened
    """
    env = parse_environment(config.env)
    preset = ENCODER_PRESETS[env]
    kind = plan_sinks(config)

    if env is Environment.DEVELOPMENT and config.log_to_file and not config.rotate:
        logger.warning(
            "development environment writes to the console only when rotate is off; "
            "ignoring log file %s",
            config.rotate_path,
        )

    handler = _make_handler(kind, config)
    handler.setFormatter(JSONFormatter(preset))

    engine = logging.Logger(config.service_name or "rhino_logger")
    engine.setLevel(preset.level)
    engine.propagate = False
    engine.addHandler(handler)

    logger.debug("Assembled %s pipeline for env=%s", kind.value, env.value)
    return Pipeline(engine=engine, sink_kind=kind, base_fields=base_fields(config))
