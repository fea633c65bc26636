"""Object transform handler.

Reads each object named by a storage event notification, applies a
transform and writes the result under the same key into the destination
container. Any failure is logged with its full detail and surfaced as a
generic :class:`ProcessingError`; retries are left to the invoking
platform's redelivery policy.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from enum import Enum

import structlog

from object_transformer_core.events import StorageEventNotification, StorageEventRecord
from object_transformer_core.exceptions import ProcessingError
from object_transformer_core.observability import log_bind
from object_transformer_core.storage import ObjectStore
from object_transformer_core.transforms import Transform, uppercase_transform

logger = structlog.get_logger(__name__)

SUCCESS_STATUS = "Success"


class TransformState(str, Enum):
    """Lifecycle of a single object transform."""

    IDLE = "idle"
    FETCHING = "fetching"
    TRANSFORMING = "transforming"
    WRITING = "writing"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True)
class InvocationOutcome:
    """Successful result of one invocation."""

    status: str = SUCCESS_STATUS
    processed_keys: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, str]:
        return {"status": self.status}


class ObjectTransformHandler:
    """Applies a transform to every object referenced by a notification."""

    def __init__(
        self,
        store: ObjectStore,
        destination_container: str,
        transform: Transform = uppercase_transform,
    ) -> None:
        """Initialize the handler.

        Args:
            store: Shared object store used for both reads and writes.
            destination_container: Container that receives transformed objects.
            transform: Byte transform applied to each payload.
        """
        self.store = store
        self.destination_container = destination_container
        self.transform = transform

    async def handle(self, notification: StorageEventNotification) -> InvocationOutcome:
        """Process the records of ``notification`` in order.

        Stops at the first failing record and raises :class:`ProcessingError`.
        Records processed before the failure have already been written.
        """
        processed: list[str] = []
        for record in notification.records:
            await self.process_record(record)
            processed.append(record.key)

        logger.info(
            "OBJECT_TRANSFORM_BATCH_COMPLETED",
            records=len(processed),
            destination_container=self.destination_container,
        )
        return InvocationOutcome(status=SUCCESS_STATUS, processed_keys=tuple(processed))

    async def process_record(self, record: StorageEventRecord) -> None:
        """Fetch, transform and store one object."""
        with log_bind(
            source_container=record.container,
            object_key=record.key,
            destination_container=self.destination_container,
        ):
            state = TransformState.IDLE
            logger.info("OBJECT_TRANSFORM_STARTED", size=record.size)
            try:
                state = self._advance(state, TransformState.FETCHING)
                payload = await asyncio.to_thread(
                    self.store.get_object, record.container, record.key
                )

                state = self._advance(state, TransformState.TRANSFORMING)
                body = self.transform(payload.body)

                state = self._advance(state, TransformState.WRITING)
                await asyncio.to_thread(
                    self.store.put_object,
                    self.destination_container,
                    record.key,
                    body,
                    payload.content_type,
                )
            except Exception as e:
                logger.exception(
                    "OBJECT_TRANSFORM_FAILED",
                    state=state.value,
                    error=str(e),
                    error_type=type(e).__name__,
                    error_code=getattr(e, "error_code", None),
                )
                self._advance(state, TransformState.FAILED)
                raise ProcessingError() from e

            self._advance(state, TransformState.SUCCEEDED)
            logger.info(
                "OBJECT_TRANSFORM_COMPLETED",
                bytes_in=len(payload.body),
                bytes_out=len(body),
            )

    @staticmethod
    def _advance(current: TransformState, target: TransformState) -> TransformState:
        logger.debug("OBJECT_TRANSFORM_STATE", previous=current.value, state=target.value)
        return target
