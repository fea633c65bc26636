"""Runtime configuration for the transform handler.

Settings are read from ``OBJECT_TRANSFORMER_*`` environment variables,
e.g. ``OBJECT_TRANSFORMER_DESTINATION_CONTAINER`` or
``OBJECT_TRANSFORMER_STORAGE_TYPE``.
"""

from __future__ import annotations

from collections.abc import Mapping

import environ

from object_transformer_core.exceptions import ConfigurationError
from object_transformer_core.handler import ObjectTransformHandler
from object_transformer_core.storage import ObjectStore, create_object_store
from object_transformer_core.transforms import DEFAULT_TRANSFORM, get_transform

ENV_PREFIX = "OBJECT_TRANSFORMER"

DEFAULT_DESTINATION_CONTAINER = "processed-files"


@environ.config
class StorageConfig:
    """Object store selection and connection settings."""

    type: str = environ.var(default="s3", help="Storage mechanism to use (s3 or file)")
    s3_region: str | None = environ.var(
        default=None, help="S3 region (defaults to the runtime's AWS region)"
    )
    s3_endpoint_url: str | None = environ.var(
        default=None, help="S3 endpoint URL (e.g., LocalStack)"
    )
    aws_profile: str | None = environ.var(
        default=None, help="AWS profile to use for the S3 client"
    )
    file_path: str | None = environ.var(
        default=None, help="Local base directory (when using file storage)"
    )

    def build(self) -> ObjectStore:
        return create_object_store(
            store_type=self.type,
            s3_region=self.s3_region,
            s3_endpoint_url=self.s3_endpoint_url,
            aws_profile=self.aws_profile,
            file_path=self.file_path,
        )


@environ.config(prefix=ENV_PREFIX)
class HandlerConfig:
    """Configuration of the Lambda invocation path."""

    destination_container: str = environ.var(
        default=DEFAULT_DESTINATION_CONTAINER,
        help="Container that receives transformed objects",
    )
    transform: str = environ.var(
        default=DEFAULT_TRANSFORM, help="Transform to apply (uppercase, lowercase, identity)"
    )
    storage: StorageConfig = environ.group(StorageConfig)


def load_config(cls: type, env: Mapping[str, str] | None = None):  # noqa: ANN201
    """Build an environ-config class from ``env`` (the process environment by default)."""
    try:
        if env is None:
            return environ.to_config(cls)
        return environ.to_config(cls, environ=env)
    except environ.MissingEnvValueError as e:
        raise ConfigurationError(
            f"Missing required configuration value: {e}", component=cls.__name__
        ) from e


def load_handler_config(env: Mapping[str, str] | None = None) -> HandlerConfig:
    return load_config(HandlerConfig, env)


def build_handler(
    destination_container: str,
    transform: str,
    storage: StorageConfig,
) -> ObjectTransformHandler:
    """Wire a handler from configuration values."""
    if not destination_container:
        raise ConfigurationError(
            "destination container must not be empty", component="handler"
        )
    return ObjectTransformHandler(
        store=storage.build(),
        destination_container=destination_container,
        transform=get_transform(transform),
    )
