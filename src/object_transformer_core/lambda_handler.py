"""Lambda handler for object-created notifications from the source bucket."""

from __future__ import annotations

import asyncio
from typing import Any

import structlog

from object_transformer_core.config import HandlerConfig, build_handler, load_handler_config
from object_transformer_core.events import parse_notification
from object_transformer_core.exceptions import MalformedEventError
from object_transformer_core.handler import ObjectTransformHandler
from object_transformer_core.logging import setup_logging
from object_transformer_core.observability import log_bind

logger = structlog.get_logger(__name__)


class TransformerLambdaHandler:
    """Lambda handler for the object transformer service.

    Configuration, the object store client and the transform handler are
    built on the first invocation and reused by every later invocation
    served by the same worker.
    """

    def __init__(
        self,
        config: HandlerConfig | None = None,
        handler: ObjectTransformHandler | None = None,
        configure_logging: bool = True,
    ) -> None:
        self.config = config
        self.handler = handler
        self._configure_logging = configure_logging
        self._initialized = handler is not None

    def _initialize(self) -> ObjectTransformHandler:
        if self._initialized and self.handler is not None:
            return self.handler

        if self._configure_logging:
            setup_logging()

        try:
            if self.config is None:
                self.config = load_handler_config()
            self.handler = build_handler(
                destination_container=self.config.destination_container,
                transform=self.config.transform,
                storage=self.config.storage,
            )
        except Exception as e:
            logger.exception("LAMBDA_HANDLER_INIT_FAILED", error=str(e))
            raise

        self._initialized = True
        logger.info(
            "LAMBDA_HANDLER_INITIALIZED",
            destination_container=self.config.destination_container,
            transform=self.config.transform,
            storage_type=self.config.storage.type,
        )
        return self.handler

    async def handle_event(self, event: Any, context: Any) -> dict[str, Any]:
        """Handle one storage event notification.

        Returns ``{"status": "Success"}``. Raises :class:`MalformedEventError`
        for notifications that cannot be parsed and :class:`ProcessingError`
        when an object could not be transformed.
        """
        handler = self._initialize()

        request_id = getattr(context, "aws_request_id", None)
        with log_bind(request_id=request_id):
            logger.info("STORAGE_EVENT_RECEIVED", notification=event)
            try:
                notification = parse_notification(event)
            except MalformedEventError as e:
                logger.error("INVALID_STORAGE_EVENT", error=e.message, field=e.field)
                raise

            outcome = await handler.handle(notification)
            return outcome.to_dict()


_handler = TransformerLambdaHandler()


def lambda_handler(event: dict[str, Any], context: Any) -> dict[str, Any]:
    """AWS Lambda handler entry point."""
    return asyncio.run(_handler.handle_event(event, context))
