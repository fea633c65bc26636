"""Application configuration module (CLI + environment).

Command line flags are mapped onto the same ``OBJECT_TRANSFORMER_*``
variables the Lambda reads, so ``--storage-type file`` and
``OBJECT_TRANSFORMER_STORAGE_TYPE=file`` are equivalent. Flags win over the
process environment.
"""

import os
from collections.abc import Mapping
from typing import Any

import environ

from object_transformer_core.config import (
    DEFAULT_DESTINATION_CONTAINER,
    ENV_PREFIX,
    HandlerConfig,
    StorageConfig,
    load_config,
)
from object_transformer_core.exceptions import ConfigurationError
from object_transformer_core.transforms import DEFAULT_TRANSFORM

TRUE_FLAG_VALUE = "1"


@environ.config(prefix=ENV_PREFIX)
class RunConfig:
    """Configuration for the run command."""

    event_file: str | None = environ.var(
        default=None,
        help="Path to a JSON storage event notification to process",
    )
    destination_container: str = environ.var(
        default=DEFAULT_DESTINATION_CONTAINER,
        help="Container that receives transformed objects",
    )
    transform: str = environ.var(default=DEFAULT_TRANSFORM, help="Transform to apply")
    storage: StorageConfig = environ.group(StorageConfig)
    log_level: str = environ.var(default="INFO", help="Log level")
    dev_mode: bool = environ.bool_var(
        default=False, help="Enable development mode logging"
    )

    def to_handler_config(self) -> HandlerConfig:
        return HandlerConfig(
            destination_container=self.destination_container,
            transform=self.transform,
            storage=self.storage,
        )


@environ.config(prefix=ENV_PREFIX)
class HealthConfig:
    """Configuration for the health check command."""

    port: int = environ.var(default=8080, converter=int, help="Port to bind to")
    host: str = environ.var(default="127.0.0.1", help="Host to bind to")
    destination_container: str = environ.var(
        default=DEFAULT_DESTINATION_CONTAINER,
        help="Container probed by the destination_container check",
    )
    storage: StorageConfig = environ.group(StorageConfig)
    log_level: str = environ.var(default="INFO", help="Log level")
    dev_mode: bool = environ.bool_var(
        default=False, help="Enable development mode logging"
    )


def args_to_environ(
    args: list[str] | None,
    prefix: str = ENV_PREFIX,
    base: Mapping[str, str] | None = None,
) -> dict[str, str]:
    """Overlay ``--flag value`` command line arguments on an environment mapping.

    ``--storage-file-path ./data`` becomes ``OBJECT_TRANSFORMER_STORAGE_FILE_PATH``;
    a flag without a value (``--dev-mode``) is set to a true value.
    """
    env = dict(os.environ if base is None else base)
    args = list(args or [])
    i = 0
    while i < len(args):
        arg = args[i]
        if not arg.startswith("--") or arg == "--":
            raise ConfigurationError(f"Unexpected argument: {arg}", component="cli")

        name, sep, value = arg[2:].partition("=")
        if not sep:
            if i + 1 < len(args) and not args[i + 1].startswith("--"):
                value = args[i + 1]
                i += 1
            else:
                value = TRUE_FLAG_VALUE
        env[f"{prefix}_{name.replace('-', '_')}".upper()] = value
        i += 1
    return env


def args_to_config_class(cls: type, args: list[str] | None) -> Any:
    """Create an environ-config instance from CLI arguments and environment variables."""
    return load_config(cls, args_to_environ(args))


def create_run_config(args: list[str] | None = None) -> RunConfig:
    """Create a RunConfig from command line arguments and environment variables."""
    return args_to_config_class(RunConfig, args)


def create_health_config(args: list[str] | None = None) -> HealthConfig:
    """Create a HealthConfig from command line arguments and environment variables."""
    return args_to_config_class(HealthConfig, args)
