"""Pytest configuration and shared fixtures for the mdinbox test suite.

This module provides shared fixtures, test configuration, and utilities
that are used across the entire test suite.
"""

import base64
import json
import os
import threading
from datetime import datetime
from typing import Any, Callable

import httpx
import pytest
from hypothesis import Phase, Verbosity, settings

from mdinbox.config import RemoteConfig

# Register custom Hypothesis profiles
settings.register_profile("ci", max_examples=100, verbosity=Verbosity.verbose, deadline=None)
settings.register_profile("dev", max_examples=30, deadline=None)
settings.register_profile(
    "debug", max_examples=10, verbosity=Verbosity.verbose, phases=[Phase.explicit, Phase.reuse, Phase.generate]
)
settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "dev"))


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests - fast, isolated component tests")
    config.addinivalue_line("markers", "integration: Integration tests - component interaction tests")
    config.addinivalue_line("markers", "cli: Tests related to command-line interface")
    config.addinivalue_line("markers", "slow: Slow tests that may take several seconds")
    config.addinivalue_line("markers", "fuzzing: Property-based tests using Hypothesis")


class FakeContentsApi:
    """In-memory stand-in for the repository contents API, served through ``httpx.MockTransport``.

    Files are kept as ``path -> markdown``. ``failing_paths`` answer GETs with
    a 500, and ``put_gate`` (when set) blocks PUT handling until released so
    tests can hold a save in flight.
    """

    def __init__(self, repository: str = "alice/notes") -> None:
        self.repository = repository
        self.files: dict[str, str] = {}
        self.requests: list[httpx.Request] = []
        self.failing_paths: set[str] = set()
        self.put_status = 201
        self.put_message = "Invalid request"
        self.put_gate: threading.Event | None = None
        self.put_started = threading.Event()

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    @property
    def puts(self) -> list[httpx.Request]:
        return [request for request in self.requests if request.method == "PUT"]

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        prefix = f"/repos/{self.repository}/contents"
        path = request.url.path
        if not path.startswith(prefix):
            return httpx.Response(404, json={"message": "Not Found"})
        repo_path = path[len(prefix) :].lstrip("/")

        if request.method == "PUT":
            return self._put(request, repo_path)
        if repo_path in self.failing_paths:
            return httpx.Response(500, json={"message": "Server Error"})
        if repo_path in self.files:
            return httpx.Response(200, json=self._file_body(repo_path))

        prefix_dir = f"{repo_path}/" if repo_path else ""
        names = sorted({p[len(prefix_dir) :] for p in self.files if p.startswith(prefix_dir)})
        if not names:
            return httpx.Response(404, json={"message": "Not Found"})
        listing = [
            {"name": name, "path": f"{prefix_dir}{name}", "type": "dir" if "/" in name else "file"} for name in names
        ]
        return httpx.Response(200, json=listing)

    def _put(self, request: httpx.Request, repo_path: str) -> httpx.Response:
        self.put_started.set()
        if self.put_gate is not None:
            self.put_gate.wait(5)
        if self.put_status >= 300:
            return httpx.Response(self.put_status, json={"message": self.put_message})
        body = json.loads(request.content)
        self.files[repo_path] = base64.b64decode(body["content"]).decode("utf-8")
        return httpx.Response(201, json={"content": {"path": repo_path, "sha": "abc123"}})

    def _file_body(self, repo_path: str) -> dict[str, Any]:
        encoded = base64.encodebytes(self.files[repo_path].encode("utf-8")).decode("ascii")
        return {"name": repo_path.rsplit("/", 1)[-1], "path": repo_path, "type": "file", "content": encoded}


@pytest.fixture
def fake_api() -> FakeContentsApi:
    """Provide an empty fake contents API."""
    return FakeContentsApi()


@pytest.fixture
def remote_config() -> RemoteConfig:
    """Provide a configured remote pointing at the fake API."""
    return RemoteConfig(token="ghp_test_token_1234", repository="alice/notes", api_base="https://api.test")


@pytest.fixture
def fixed_clock() -> Callable[[], datetime]:
    """Provide a clock frozen at 2024-01-02 03:04:05."""
    return lambda: datetime(2024, 1, 2, 3, 4, 5)


@pytest.fixture
def png_bytes() -> bytes:
    """Provide the smallest byte string recognized as PNG."""
    return b"\x89PNG\r\n\x1a\n" + b"\x00" * 16
