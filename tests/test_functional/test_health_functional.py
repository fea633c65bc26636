"""Functional tests for health check endpoints.

These tests start the ``health`` command in a subprocess and talk to it
over HTTP.
"""

import os
import subprocess
import sys
import time
from collections.abc import Generator
from pathlib import Path

import pytest
import requests

SRC_PATH = Path(__file__).resolve().parents[2] / "src"
HEALTH_PORT = 8081
BASE_URL = f"http://127.0.0.1:{HEALTH_PORT}"


def _start_health_server(storage_root: Path, port: int) -> subprocess.Popen:
    env = dict(os.environ)
    env["PYTHONPATH"] = os.pathsep.join(filter(None, [str(SRC_PATH), env.get("PYTHONPATH")]))
    return subprocess.Popen(
        [
            sys.executable,
            "-m",
            "object_transformer_app.main",
            "health",
            "--port", str(port),
            "--host", "127.0.0.1",
            "--storage-type", "file",
            "--storage-file-path", str(storage_root),
        ],
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        env=env,
    )


def _wait_until_listening(url: str, timeout: float = 10.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        try:
            requests.get(url, timeout=1)
        except requests.exceptions.ConnectionError:
            time.sleep(0.1)
            continue
        return True
    return False


def _stop(process: subprocess.Popen) -> None:
    process.terminate()
    try:
        process.wait(timeout=5)
    except subprocess.TimeoutExpired:
        process.kill()
        process.wait()


@pytest.mark.functional
class TestHealthFunctional:
    """Functional tests for health check endpoints."""

    @pytest.fixture
    def health_server(self, temp_dir: str) -> Generator[Path]:
        storage_root = Path(temp_dir)
        (storage_root / "processed-files").mkdir()
        process = _start_health_server(storage_root, HEALTH_PORT)
        try:
            if not _wait_until_listening(f"{BASE_URL}/heartbeat"):
                pytest.skip("Health server not accessible")
            yield storage_root
        finally:
            _stop(process)

    def test_health_endpoint(self, health_server: Path) -> None:
        response = requests.get(f"{BASE_URL}/health", timeout=5)

        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}

    def test_status_endpoint(self, health_server: Path) -> None:
        response = requests.get(f"{BASE_URL}/status", timeout=5)

        assert response.status_code == 200
        data = response.json()
        assert data["app_name"] == "object-transformer"
        assert data["checks"]["basic"]["status"] == "pass"
        assert data["checks"]["destination_container"]["status"] == "pass"

    def test_destination_container_missing(self, health_server: Path) -> None:
        (health_server / "processed-files").rmdir()

        response = requests.get(f"{BASE_URL}/health", timeout=5)

        assert response.status_code == 503
        assert response.json() == {"status": "unhealthy"}

    def test_heartbeat_endpoint(self, health_server: Path) -> None:
        response = requests.get(f"{BASE_URL}/heartbeat", timeout=5)

        assert response.status_code == 200
        assert response.text == "OK"

    def test_unknown_endpoint(self, health_server: Path) -> None:
        assert requests.get(f"{BASE_URL}/unknown", timeout=5).status_code == 404

    def test_method_not_allowed(self, health_server: Path) -> None:
        assert requests.post(f"{BASE_URL}/health", timeout=5).status_code == 405
