"""Object store adapters.

The handler talks to an :class:`ObjectStore`; the Lambda deployment uses
:class:`S3ObjectStore`, local CLI runs can use :class:`FileObjectStore`.
Store-specific failures are mapped to :class:`FetchError` on reads and
:class:`WriteError` on writes.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Any, Protocol

import boto3
import structlog
from botocore.exceptions import BotoCoreError, ClientError

from object_transformer_core.exceptions import ConfigurationError, FetchError, WriteError

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class ObjectPayload:
    """Raw object content as read from a container."""

    body: bytes
    content_type: str | None = None
    content_encoding: str | None = None


class ObjectStore(Protocol):
    """Minimal read/write interface over an object store."""

    def get_object(self, container: str, key: str) -> ObjectPayload:
        """Read the object at ``(container, key)``."""
        ...

    def put_object(
        self,
        container: str,
        key: str,
        body: bytes,
        content_type: str | None = None,
    ) -> None:
        """Write ``body`` at ``(container, key)``, replacing any existing object."""
        ...

    def check_container(self, container: str) -> bool:
        """Return True if ``container`` exists and is reachable."""
        ...


def _error_code(error: Exception) -> str:
    if isinstance(error, ClientError):
        return str(error.response.get("Error", {}).get("Code", ""))
    return type(error).__name__


class S3ObjectStore:
    """Object store backed by Amazon S3 (or an S3-compatible endpoint)."""

    def __init__(
        self,
        region: str | None = None,
        endpoint_url: str | None = None,
        aws_profile: str | None = None,
        client: Any = None,
    ) -> None:
        """Initialize the store.

        The boto3 client is created on first use and then reused for the
        lifetime of the store, so a warm Lambda worker shares one client
        across invocations.

        Args:
            region: AWS region for the S3 client.
            endpoint_url: Optional endpoint override (e.g. LocalStack).
            aws_profile: Optional named AWS profile.
            client: Pre-built client, mainly for tests.
        """
        self.region = region
        self.endpoint_url = endpoint_url
        self.aws_profile = aws_profile
        self._client = client

    @property
    def client(self) -> Any:
        if self._client is None:
            session = boto3.Session(
                profile_name=self.aws_profile, region_name=self.region
            )
            self._client = session.client("s3", endpoint_url=self.endpoint_url)
            logger.info(
                "S3_CLIENT_CREATED",
                region=self.region,
                endpoint_url=self.endpoint_url,
            )
        return self._client

    def get_object(self, container: str, key: str) -> ObjectPayload:
        try:
            response = self.client.get_object(Bucket=container, Key=key)
            body = response["Body"].read()
        except (ClientError, BotoCoreError) as e:
            raise FetchError(
                f"Failed to fetch s3://{container}/{key} ({_error_code(e)}): {e}",
                container=container,
                key=key,
            ) from e
        return ObjectPayload(
            body=body,
            content_type=response.get("ContentType"),
            content_encoding=response.get("ContentEncoding"),
        )

    def put_object(
        self,
        container: str,
        key: str,
        body: bytes,
        content_type: str | None = None,
    ) -> None:
        params: dict[str, Any] = {"Bucket": container, "Key": key, "Body": body}
        if content_type:
            params["ContentType"] = content_type
        try:
            self.client.put_object(**params)
        except (ClientError, BotoCoreError) as e:
            raise WriteError(
                f"Failed to write s3://{container}/{key} ({_error_code(e)}): {e}",
                container=container,
                key=key,
            ) from e

    def check_container(self, container: str) -> bool:
        try:
            self.client.head_bucket(Bucket=container)
        except (ClientError, BotoCoreError) as e:
            logger.warning(
                "S3_CONTAINER_CHECK_FAILED",
                container=container,
                error_code=_error_code(e),
            )
            return False
        return True


class FileObjectStore:
    """Object store on the local filesystem; a container is a directory."""

    def __init__(self, base_path: str | Path) -> None:
        self.base_path = Path(base_path)

    def _path(self, container: str, key: str) -> Path | None:
        parts = PurePosixPath(key).parts
        if (
            not parts
            or key.startswith("/")
            or key.endswith("/")
            or ".." in parts
            or "/" in container
        ):
            return None
        return self.base_path.joinpath(container, *parts)

    def get_object(self, container: str, key: str) -> ObjectPayload:
        path = self._path(container, key)
        if path is None:
            raise FetchError(f"Invalid object key: {key!r}", container=container, key=key)
        try:
            body = path.read_bytes()
        except OSError as e:
            raise FetchError(
                f"Failed to read {path}: {e}", container=container, key=key
            ) from e
        return ObjectPayload(body=body)

    def put_object(
        self,
        container: str,
        key: str,
        body: bytes,
        content_type: str | None = None,
    ) -> None:
        path = self._path(container, key)
        if path is None:
            raise WriteError(f"Invalid object key: {key!r}", container=container, key=key)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(body)
        except OSError as e:
            raise WriteError(
                f"Failed to write {path}: {e}", container=container, key=key
            ) from e

    def check_container(self, container: str) -> bool:
        return (self.base_path / container).is_dir()


def create_object_store(
    store_type: str | None = None,
    s3_region: str | None = None,
    s3_endpoint_url: str | None = None,
    aws_profile: str | None = None,
    file_path: str | None = None,
) -> ObjectStore:
    """Create an object store for the given storage type (``s3`` or ``file``)."""
    store_type = (store_type or "s3").lower()
    if store_type == "s3":
        return S3ObjectStore(
            region=s3_region, endpoint_url=s3_endpoint_url, aws_profile=aws_profile
        )
    if store_type == "file":
        if not file_path:
            raise ConfigurationError(
                "file storage requires a base path", component="storage"
            )
        return FileObjectStore(file_path)
    raise ConfigurationError(f"Unknown storage type: {store_type}", component="storage")
