"""Shared test fixtures for retoken.

Provides isolated config environments, credential stores, a mock HTTP
server built on :class:`httpx.MockTransport`, and a factory for
:class:`~retoken.client.AsyncClient` instances wired to that server.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, Optional

import httpx
import pytest

from retoken.auth.credential_store import (
    CookieStorage,
    CredentialStore,
    FileStorage,
    MemoryStorage,
)
from retoken.client import AsyncClient
from retoken.models import StorageBackend
from retoken.output import OutputFormat, OutputManager, reset_output, set_output


BASE_URL = "https://api.example.com"


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Install a quiet plain output manager and reset it afterwards."""
    set_output(OutputManager(format=OutputFormat.PLAIN, no_color=True, quiet=True))
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration and data to a temporary directory.

    Sets XDG_CONFIG_HOME and XDG_DATA_HOME to subdirectories of tmp_path
    and clears all RETOKEN_* environment variables.
    """
    monkeypatch.setattr("retoken.config._is_xdg_platform", lambda: True)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))

    for var in [
        "RETOKEN_BASE_URL",
        "RETOKEN_STORAGE_BACKEND",
        "RETOKEN_CREDENTIAL_KEY",
        "RETOKEN_REFRESH_CREDENTIAL_KEY",
        "RETOKEN_REFRESH_URL",
    ]:
        monkeypatch.delenv(var, raising=False)

    return tmp_path


# ---------------------------------------------------------------------------
# Credential stores
# ---------------------------------------------------------------------------


@pytest.fixture
def store(tmp_path: Path) -> CredentialStore:
    """A credential store with all three backends, persisting under tmp_path."""
    return CredentialStore(
        {
            StorageBackend.SESSION: MemoryStorage(),
            StorageBackend.PERSISTENT: FileStorage(tmp_path / "credentials.json"),
            StorageBackend.COOKIE: CookieStorage(),
        }
    )


# ---------------------------------------------------------------------------
# Mock HTTP server
# ---------------------------------------------------------------------------


class MockServer:
    """Routes requests to per-path canned replies and records every request.

    A reply is a ``(status_code, body)`` pair (dict/list bodies are sent as
    JSON, strings as text, ``None`` as empty), or a callable taking the
    :class:`httpx.Request` and returning an :class:`httpx.Response`.
    Replies for a route are consumed in order; the last one repeats once
    the list is exhausted.  A fresh response is built for every request.
    """

    def __init__(self) -> None:
        self.routes: dict[tuple[str, str], list[Any]] = {}
        self.requests: list[httpx.Request] = []
        self.errors: dict[tuple[str, str], Exception] = {}

    def add(self, method: str, path: str, *replies: Any) -> None:
        self.routes[(method.upper(), path)] = list(replies)

    def fail(self, method: str, path: str, exc: Exception) -> None:
        self.errors[(method.upper(), path)] = exc

    def calls(self, path: str, method: Optional[str] = None) -> list[httpx.Request]:
        return [
            r for r in self.requests
            if r.url.path == path and (method is None or r.method == method.upper())
        ]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        key = (request.method, request.url.path)
        if key in self.errors:
            raise self.errors[key]
        replies = self.routes.get(key)
        if not replies:
            return httpx.Response(404, json={"detail": "no route"})
        reply = replies.pop(0) if len(replies) > 1 else replies[0]
        if callable(reply):
            return reply(request)
        status_code, body = reply
        if body is None:
            return httpx.Response(status_code)
        if isinstance(body, str):
            return httpx.Response(status_code, text=body)
        return httpx.Response(status_code, json=body)


class MockedAsyncClient(AsyncClient):
    """An :class:`AsyncClient` whose inner httpx client talks to a :class:`MockServer`."""

    def __init__(self, server: MockServer, interceptors: Any = ()) -> None:
        super().__init__(BASE_URL, interceptors=interceptors)
        self._server = server

    async def __aenter__(self) -> AsyncClient:
        await super().__aenter__()
        await self._client.aclose()
        self._client = httpx.AsyncClient(
            base_url=BASE_URL,
            transport=httpx.MockTransport(self._server.handler),
        )
        return self


@pytest.fixture
def server() -> MockServer:
    return MockServer()


@pytest.fixture
def make_client(server: MockServer) -> Callable[..., AsyncClient]:
    """Return a factory building clients wired to the ``server`` fixture."""

    def _factory(*interceptors: Any) -> AsyncClient:
        return MockedAsyncClient(server, interceptors)

    return _factory


# ---------------------------------------------------------------------------
# CLI runner fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_runner():
    """Typer CLI test runner capturing stdout/stderr."""
    from typer.testing import CliRunner

    return CliRunner()
