"""Typed model of the storage event notifications that trigger the handler.

S3 delivers object keys URL-encoded with ``+`` standing for a space, so
keys are decoded once here and every consumer works with the real key.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any
from urllib.parse import unquote_plus

from object_transformer_core.exceptions import MalformedEventError


def decode_object_key(raw_key: str) -> str:
    """Decode an object key as delivered in a storage event.

    ``"a+b.txt"`` becomes ``"a b.txt"`` and ``"file%20name.txt"`` becomes
    ``"file name.txt"``. A literal plus arrives as ``%2B``.
    """
    return unquote_plus(raw_key)


@dataclass(frozen=True)
class StorageEventRecord:
    """One object-creation event."""

    container: str
    key: str
    raw_key: str
    size: int | None = None
    event_time: str | None = None
    event_name: str | None = None


@dataclass(frozen=True)
class StorageEventNotification:
    """A notification carrying one or more object-creation events."""

    records: tuple[StorageEventRecord, ...]

    def __len__(self) -> int:
        return len(self.records)


def _require_mapping(value: Any, field: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise MalformedEventError(f"Expected an object at '{field}'", field=field)
    return value


def _require_string(value: Any, field: str) -> str:
    if not isinstance(value, str) or not value:
        raise MalformedEventError(
            f"Expected a non-empty string at '{field}'", field=field
        )
    return value


def _parse_record(record: Any, index: int) -> StorageEventRecord:
    prefix = f"Records[{index}]"
    record = _require_mapping(record, prefix)
    s3 = _require_mapping(record.get("s3"), f"{prefix}.s3")
    bucket = _require_mapping(s3.get("bucket"), f"{prefix}.s3.bucket")
    obj = _require_mapping(s3.get("object"), f"{prefix}.s3.object")

    container = _require_string(bucket.get("name"), f"{prefix}.s3.bucket.name")
    raw_key = _require_string(obj.get("key"), f"{prefix}.s3.object.key")

    size = obj.get("size")
    if size is not None and (isinstance(size, bool) or not isinstance(size, int)):
        raise MalformedEventError(
            f"Expected an integer at '{prefix}.s3.object.size'",
            field=f"{prefix}.s3.object.size",
        )

    return StorageEventRecord(
        container=container,
        key=decode_object_key(raw_key),
        raw_key=raw_key,
        size=size,
        event_time=record.get("eventTime"),
        event_name=record.get("eventName"),
    )


def parse_notification(event: Any) -> StorageEventNotification:
    """Validate a raw S3 event notification and return its typed form.

    Raises:
        MalformedEventError: if the notification or any of its records does
            not carry a bucket name and an object key.
    """
    event = _require_mapping(event, "$")
    records = event.get("Records")
    if not isinstance(records, list):
        raise MalformedEventError("Notification has no 'Records' list", field="Records")
    if not records:
        raise MalformedEventError("Notification has no records", field="Records")

    return StorageEventNotification(
        records=tuple(_parse_record(record, i) for i, record in enumerate(records)),
    )
