"""Request command -- send one HTTP request through the auth interceptor.

Useful for checking a stored credential setup end to end::

    retoken credentials set refresh_token rt-123
    retoken request GET /orders --base-url https://api.example.com

The response body goes to stdout and the status line to stderr.  If the
access credential is rejected, the stored refresh credential is exchanged
and the request replayed once, exactly as it would be inside an
application using :class:`~retoken.client.AsyncClient`.
"""

from __future__ import annotations

import asyncio
import json
from typing import Any, Optional

import httpx
import typer

from retoken.auth import create_auth_interceptor, create_default_store
from retoken.client import AsyncClient
from retoken.config import load_settings
from retoken.exceptions import InvalidUsageError, RetokenError
from retoken.models import Settings
from retoken.output import debug, error, get_output, info


def _parse_body(body: Optional[str]) -> Any:
    """Parse *body* as JSON.

    Raises:
        InvalidUsageError: If *body* is not valid JSON.
    """
    if body is None:
        return None
    try:
        return json.loads(body)
    except json.JSONDecodeError as exc:
        raise InvalidUsageError(f"--json-body is not valid JSON: {exc}") from exc


def _decode_body(response: httpx.Response) -> Any:
    """Return the parsed JSON body, the raw text if it is not JSON, or None if empty."""
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text


async def _send(
    settings: Settings,
    method: str,
    url: str,
    json_body: Any,
    cookie: str,
) -> httpx.Response:
    store = create_default_store(cookie_string=cookie)
    interceptor = create_auth_interceptor(settings.interceptor, store)
    async with AsyncClient(
        settings.base_url or "",
        interceptors=[interceptor],
        request_config=settings.request,
    ) as client:
        return await client.request(method, url, json_body=json_body)


def request_command(
    method: str = typer.Argument(help="HTTP method, e.g. GET."),
    url: str = typer.Argument(help="Path relative to the base URL, or an absolute URL."),
    json_body: Optional[str] = typer.Option(None, "--json-body", "-d", help="JSON request body."),
    base_url: Optional[str] = typer.Option(None, "--base-url", help="Override the configured base URL."),
    cookie: str = typer.Option("", "--cookie", help="Cookie string for the cookie backend."),
) -> None:
    """Send a request with bearer injection and refresh-on-401."""
    try:
        settings = load_settings()
        if base_url:
            settings = settings.model_copy(update={"base_url": base_url})
        debug(
            f"{settings.interceptor.storage_backend.value} storage, "
            f"credential key {settings.interceptor.credential_key!r}, "
            f"base URL {settings.base_url or '(none)'}"
        )
        response = asyncio.run(
            _send(settings, method.upper(), url, _parse_body(json_body), cookie)
        )
    except RetokenError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    info(f"HTTP {response.status_code} {response.reason_phrase or ''}")
    data = _decode_body(response)
    if data is not None:
        get_output().format_response(data)
