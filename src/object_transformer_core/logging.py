"""Structured logging configuration.

Configures structlog on top of stdlib logging so that log lines emitted by
boto3/botocore and by our own modules share one renderer, one set of
context variables and one output stream (CloudWatch in Lambda, the
terminal for the CLI).
"""

import logging.config
import os
import sys
from collections.abc import Mapping
from enum import Enum
from typing import Any

import structlog
from structlog.contextvars import merge_contextvars
from structlog.dev import ConsoleRenderer, set_exc_info
from structlog.typing import EventDict, WrappedLogger

ENV_PREFIX = "OBJECT_TRANSFORMER_LOGGING_"

_QUIET_PACKAGES = ("botocore", "boto3", "urllib3", "s3transfer")


def _no_op_structlog_processor(
    _logger: WrappedLogger,
    _method_name: str,
    event_dict: EventDict,
) -> EventDict:
    return event_dict


class ConsoleMode(str, Enum):
    """Enum of possible ConsoleMode options."""

    OFF = "off"
    AUTO = "auto"
    FORCE = "force"


class LoggingHandler(str, Enum):
    """Enum of possible LoggingHandler options."""

    TEXT = "console-text"
    JSON = "console-json"


class LoggingLevel(str, Enum):
    """Enum of possible LoggingLevel options."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


def parse_logging_config(environ: Mapping[str, str] | None = None) -> dict[str, Any]:
    """Parse the logging settings from the environment."""
    env = os.environ if environ is None else environ

    logging_level = LoggingLevel(env.get(f"{ENV_PREFIX}LEVEL", "INFO").upper())
    package_log_levels = _parse_package_log_levels(
        env.get(f"{ENV_PREFIX}PACKAGE_LEVELS"),
    )
    for package in _QUIET_PACKAGES:
        package_log_levels.setdefault(package, LoggingLevel.WARNING)

    logging_handler = LoggingHandler(env.get(f"{ENV_PREFIX}HANDLER", "console-text"))
    console_mode = ConsoleMode(env.get(f"{ENV_PREFIX}CONSOLE_COLOR", "auto"))
    return {
        "logging_level": logging_level,
        "package_log_levels": package_log_levels,
        "logging_handler": logging_handler,
        "console_mode": console_mode,
    }


def _console_formatter(console_mode: ConsoleMode) -> str:
    if console_mode == ConsoleMode.FORCE:
        return "console-color"
    if console_mode == ConsoleMode.OFF:
        return "console-no-color"
    isatty = getattr(sys.stdout, "isatty", None)
    return "console-color" if isatty is not None and isatty() else "console-no-color"


def _processor_formatter(
    renderer: Any, pre_chain: list[Any]
) -> dict[str, Any]:
    return {
        "()": structlog.stdlib.ProcessorFormatter,
        "processors": [
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
        "foreign_pre_chain": pre_chain,
    }


def configure_logging(
    logging_level: LoggingLevel,
    package_log_levels: Mapping[str, LoggingLevel],
    logging_handler: LoggingHandler = LoggingHandler.TEXT,
    console_mode: ConsoleMode = ConsoleMode.AUTO,
) -> None:
    """Configure logging using structlog.

    Patches logging to forward all stdlib logging onto structlog.
    """
    timestamper = structlog.processors.TimeStamper(fmt="iso")

    # Applied to records that do not originate from structlog (boto3 etc).
    pre_chain = [
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        timestamper,
    ]

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "console-no-color": _processor_formatter(
                    ConsoleRenderer(colors=False), pre_chain
                ),
                "console-color": _processor_formatter(
                    ConsoleRenderer(colors=True), pre_chain
                ),
                "json": _processor_formatter(
                    structlog.processors.JSONRenderer(), pre_chain
                ),
            },
            "handlers": {
                "console-text": {
                    "level": "DEBUG",
                    "class": "logging.StreamHandler",
                    "formatter": _console_formatter(console_mode),
                },
                "console-json": {
                    "level": "DEBUG",
                    "class": "logging.StreamHandler",
                    "formatter": "json",
                },
            },
            "loggers": {
                pkg: {
                    "handlers": [logging_handler.value],
                    "level": level.value,
                    "propagate": False,
                }
                for pkg, level in package_log_levels.items()
            },
            "root": {
                "handlers": [logging_handler.value],
                "level": logging_level.value,
            },
        },
    )

    structlog.configure(
        processors=[
            merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.PositionalArgumentsFormatter(),
            timestamper,
            structlog.processors.StackInfoRenderer(),
            set_exc_info,
            (
                structlog.processors.dict_tracebacks
                if logging_handler != LoggingHandler.TEXT
                else _no_op_structlog_processor
            ),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def _parse_package_log_levels(
    package_log_levels: dict[str, LoggingLevel] | dict[str, str] | str | None,
) -> dict[str, LoggingLevel]:
    if isinstance(package_log_levels, dict):
        return {
            k: v if isinstance(v, LoggingLevel) else LoggingLevel(v.upper())
            for k, v in package_log_levels.items()
        }
    if isinstance(package_log_levels, str) and ":" in package_log_levels:
        return {
            k.strip(): LoggingLevel(v.strip().upper())
            for k, v in (s.split(":") for s in package_log_levels.split(","))
        }
    if package_log_levels in ("", None):
        return {}

    raise ValueError(  # noqa: TRY003
        f"Cannot parse package log levels: '{package_log_levels}'",
    )


def setup_logging(**overrides: Any) -> None:
    """Set up logging from the environment, letting callers override fields."""
    config = parse_logging_config()
    config.update({k: v for k, v in overrides.items() if v is not None})
    configure_logging(**config)
