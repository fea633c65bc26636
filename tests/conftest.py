"""PyTest configuration and shared test fixtures.

This module provides PyTest configuration, shared fixtures, and test
utilities that are used across multiple test files.
"""

import os
import subprocess
import sys
import tempfile
import time
import uuid
from collections.abc import Callable, Generator
from pathlib import Path
from typing import Any

import pytest

# Ensure `src` is on the import path for local test runs
_PROJECT_ROOT = Path(__file__).resolve().parents[1]
_SRC_PATH = _PROJECT_ROOT / "src"
if str(_SRC_PATH) not in sys.path:
    sys.path.insert(0, str(_SRC_PATH))

from object_transformer_core.exceptions import FetchError, WriteError  # noqa: E402
from object_transformer_core.storage import ObjectPayload  # noqa: E402

# Generate a unique test run ID for this session
TEST_RUN_ID = str(uuid.uuid4())[:8]

LOCALSTACK_IMAGE = "localstack/localstack:3.0"


class InMemoryObjectStore:
    """Dict-backed object store recording every call made to it."""

    def __init__(self, objects: dict[tuple[str, str], bytes] | None = None) -> None:
        self.objects: dict[tuple[str, str], bytes] = dict(objects or {})
        self.content_types: dict[tuple[str, str], str | None] = {}
        self.containers: set[str] = {container for container, _ in self.objects}
        self.calls: list[tuple[str, str, str]] = []
        self.fail_writes = False

    def get_object(self, container: str, key: str) -> ObjectPayload:
        self.calls.append(("get", container, key))
        try:
            return ObjectPayload(
                body=self.objects[(container, key)],
                content_type=self.content_types.get((container, key)),
            )
        except KeyError:
            raise FetchError(
                f"NoSuchKey: {container}/{key}", container=container, key=key
            ) from None

    def put_object(
        self,
        container: str,
        key: str,
        body: bytes,
        content_type: str | None = None,
    ) -> None:
        self.calls.append(("put", container, key))
        if self.fail_writes:
            raise WriteError("AccessDenied", container=container, key=key)
        self.objects[(container, key)] = body
        self.content_types[(container, key)] = content_type
        self.containers.add(container)

    def check_container(self, container: str) -> bool:
        return container in self.containers

    def keys_in(self, container: str) -> list[str]:
        return sorted(key for c, key in self.objects if c == container)


def make_s3_record(
    bucket: str = "incoming-files",
    key: str = "notes.txt",
    size: int | None = 11,
) -> dict[str, Any]:
    """Build one S3 ``ObjectCreated:Put`` event record."""
    obj: dict[str, Any] = {"key": key, "eTag": "0123456789abcdef"}
    if size is not None:
        obj["size"] = size
    return {
        "eventVersion": "2.1",
        "eventSource": "aws:s3",
        "awsRegion": "us-east-1",
        "eventTime": "2025-04-25T19:06:33.703Z",
        "eventName": "ObjectCreated:Put",
        "s3": {
            "s3SchemaVersion": "1.0",
            "bucket": {"name": bucket, "arn": f"arn:aws:s3:::{bucket}"},
            "object": obj,
        },
    }


def make_s3_event(*records: dict[str, Any]) -> dict[str, Any]:
    """Build an S3 notification; defaults to a single ``notes.txt`` record."""
    return {"Records": list(records) if records else [make_s3_record()]}


@pytest.fixture
def temp_dir() -> Generator[str]:
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield temp_dir


@pytest.fixture
def memory_store() -> InMemoryObjectStore:
    """Store pre-loaded with ``incoming-files/notes.txt`` = ``hello world``."""
    store = InMemoryObjectStore({("incoming-files", "notes.txt"): b"hello world"})
    store.containers.add("processed-files")
    return store


@pytest.fixture
def s3_event_factory() -> Callable[..., dict[str, Any]]:
    return make_s3_event


@pytest.fixture
def s3_record_factory() -> Callable[..., dict[str, Any]]:
    return make_s3_record


def docker_available() -> bool:
    """Return True if a Docker daemon answers."""
    try:
        subprocess.run(
            ["docker", "info"], capture_output=True, check=True, timeout=10
        )
    except (OSError, subprocess.SubprocessError):
        return False
    return True


@pytest.fixture(scope="class")
def localstack_container() -> Generator[Any]:
    """Start a LocalStack container for S3 testing."""
    from testcontainers.core.container import (  # type: ignore[import-untyped]
        DockerContainer,
    )
    from testcontainers.core.waiting_utils import (  # type: ignore[import-untyped]
        wait_for_logs,
    )

    container = DockerContainer(LOCALSTACK_IMAGE)
    container.with_env("SERVICES", "s3")
    container.with_env("DEFAULT_REGION", "us-east-1")
    container.with_env("AWS_ACCESS_KEY_ID", "test")
    container.with_env("AWS_SECRET_ACCESS_KEY", "test")
    container.with_exposed_ports(4566)
    # Label for cleanup tracking
    container.with_kwargs(labels={"test-run-id": TEST_RUN_ID})

    try:
        container.start()
        wait_for_logs(container, "Ready.", timeout=60)
        # S3 can lag behind the readiness line
        time.sleep(1)
        yield container
    finally:
        container.stop()


@pytest.fixture
def localstack_endpoint(localstack_container: Any) -> str:
    # Use container host IP for Docker-in-Docker environments
    host_ip = localstack_container.get_container_host_ip()
    return f"http://{host_ip}:{localstack_container.get_exposed_port(4566)}"


@pytest.fixture
def s3_client(localstack_endpoint: str) -> Any:
    """Create S3 client connected to localstack."""
    import boto3

    return boto3.client(
        "s3",
        endpoint_url=localstack_endpoint,
        aws_access_key_id="test",
        aws_secret_access_key="test",
        region_name="us-east-1",
    )


def pytest_configure(config: Any) -> None:
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "localstack: mark test as requiring localstack container"
    )
    config.addinivalue_line("markers", "integration: mark test as integration test")
    config.addinivalue_line("markers", "functional: mark test as functional test")


def pytest_collection_modifyitems(config: Any, items: list[Any]) -> None:
    """Skip localstack tests when Docker is not available."""
    localstack_items = [item for item in items if "localstack" in item.keywords]
    if not localstack_items or docker_available():
        return
    if os.getenv("CI"):
        reason = "Docker/localstack not available in CI environment"
    else:
        reason = "Docker/localstack not available"
    for item in localstack_items:
        item.add_marker(pytest.mark.skip(reason=reason))
