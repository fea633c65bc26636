"""Health check and status endpoints for the object transformer.

This module provides WSGI-based health check endpoints used when the
transformer runs as a long-lived container rather than inside Lambda.
"""

import json
import time
from collections.abc import Callable, Iterable
from typing import Any, Protocol

import structlog

from object_transformer_core.observability import log_bind, observe_around
from object_transformer_core.storage import ObjectStore

logger = structlog.get_logger(__name__)

APP_NAME = "object-transformer"


class StartResponse(Protocol):
    """WSGI start_response callable protocol."""

    def __call__(
        self,
        status: str,
        response_headers: list[tuple[str, str]],
        exc_info: tuple[type[BaseException], BaseException, Any] | None = None,
    ) -> Callable[[bytes], None]:
        """Start response callable."""
        ...


class HealthCheck:
    """Named boolean checks plus uptime reporting."""

    def __init__(self, app_name: str = APP_NAME) -> None:
        self.app_name = app_name
        self.start_time = time.time()
        self.checks: dict[str, Callable[[], bool]] = {}

    def add_check(self, name: str, check_func: Callable[[], bool]) -> None:
        """Register a check that returns True when healthy."""
        self.checks[name] = check_func

    def _run_check(self, name: str, check_func: Callable[[], bool]) -> tuple[bool, str | None]:
        try:
            return bool(check_func()), None
        except Exception as e:
            logger.exception("HEALTH_CHECK_ERROR", check_name=name, error=str(e))
            return False, str(e)

    def is_healthy(self) -> bool:
        """Return True if every registered check passes."""
        for name, check_func in self.checks.items():
            passed, _ = self._run_check(name, check_func)
            if not passed:
                logger.warning("HEALTH_CHECK_FAILED", check_name=name)
                return False
        return True

    def get_status(self) -> dict[str, Any]:
        """Return detailed status including the result of each check."""
        checks: dict[str, dict[str, Any]] = {}
        for name, check_func in self.checks.items():
            passed, error = self._run_check(name, check_func)
            if error is not None:
                checks[name] = {"status": "error", "error": error}
            else:
                checks[name] = {"status": "pass" if passed else "fail", "error": None}

        healthy = all(check["status"] == "pass" for check in checks.values())
        return {
            "app_name": self.app_name,
            "status": "healthy" if healthy else "unhealthy",
            "uptime_seconds": time.time() - self.start_time,
            "timestamp": time.time(),
            "checks": checks,
        }


class SimpleWSGIRouter:
    """Path-based WSGI router for the health endpoints."""

    def __init__(self, health_check: HealthCheck) -> None:
        self.health_check = health_check
        self.routes = {
            "/health": self._health_endpoint,
            "/status": self._status_endpoint,
            "/heartbeat": self._heartbeat_endpoint,
        }

    def __call__(
        self, environ: dict[str, Any], start_response: StartResponse
    ) -> Iterable[bytes]:
        path = environ.get("PATH_INFO", "")
        method = environ.get("REQUEST_METHOD", "GET")

        if method != "GET":
            start_response("405 Method Not Allowed", [("Content-Type", "text/plain")])
            return [b"Method Not Allowed"]

        handler = self.routes.get(path.rstrip("/") or path)
        if handler:
            return handler(start_response)
        start_response("404 Not Found", [("Content-Type", "text/plain")])
        return [b"Not Found"]

    def _health_endpoint(self, start_response: StartResponse) -> Iterable[bytes]:
        with log_bind(endpoint="health"), observe_around(logger, "HEALTH_CHECK"):
            healthy = self.health_check.is_healthy()
            status_code = "200 OK" if healthy else "503 Service Unavailable"
            start_response(status_code, [("Content-Type", "application/json")])
            response = {"status": "healthy" if healthy else "unhealthy"}
            return [json.dumps(response).encode("utf-8")]

    def _status_endpoint(self, start_response: StartResponse) -> Iterable[bytes]:
        with log_bind(endpoint="status"), observe_around(logger, "STATUS_CHECK"):
            status = self.health_check.get_status()
            status_code = (
                "200 OK" if status["status"] == "healthy" else "503 Service Unavailable"
            )
            start_response(status_code, [("Content-Type", "application/json")])
            return [json.dumps(status, indent=2).encode("utf-8")]

    def _heartbeat_endpoint(self, start_response: StartResponse) -> list[bytes]:
        """Lightweight check for load balancers."""
        with log_bind(endpoint="heartbeat"), observe_around(logger, "HEARTBEAT_CHECK"):
            healthy = self.health_check.is_healthy()
            status_code = "200 OK" if healthy else "503 Service Unavailable"
            start_response(status_code, [("Content-Type", "text/plain")])
            return [b"OK" if healthy else b"FAIL"]


def create_health_app(
    app_name: str = APP_NAME,
    store: ObjectStore | None = None,
    destination_container: str | None = None,
) -> SimpleWSGIRouter:
    """Create the health WSGI application.

    When a store and destination container are given, a
    ``destination_container`` check verifies the container is reachable.
    """
    health_check = HealthCheck(app_name)
    health_check.add_check("basic", lambda: True)

    if store is not None and destination_container:
        health_check.add_check(
            "destination_container",
            lambda: store.check_container(destination_container),
        )

    return SimpleWSGIRouter(health_check)
