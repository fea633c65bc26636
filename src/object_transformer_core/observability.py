"""Context helpers for structured log lines."""

from __future__ import annotations

import time
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import structlog


@contextmanager
def log_bind(**kwargs: Any) -> Iterator[None]:
    """Bind context variables to every log line emitted inside the block."""
    with structlog.contextvars.bound_contextvars(**kwargs):
        yield


@contextmanager
def observe_around(logger: Any, name: str, **kwargs: Any) -> Iterator[None]:
    """Log ``NAME_STARTED`` and ``NAME_COMPLETED``/``NAME_FAILED`` around a block.

    The completion line carries the elapsed time in milliseconds. Exceptions
    are re-raised unchanged.
    """
    logger.debug(f"{name}_STARTED", **kwargs)
    started = time.perf_counter()
    try:
        yield
    except Exception as e:
        logger.warning(
            f"{name}_FAILED",
            duration_ms=round((time.perf_counter() - started) * 1000, 3),
            error=str(e),
            **kwargs,
        )
        raise
    logger.debug(
        f"{name}_COMPLETED",
        duration_ms=round((time.perf_counter() - started) * 1000, 3),
        **kwargs,
    )
