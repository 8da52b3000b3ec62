"""Asynchronous HTTP client that runs an interceptor chain around httpx.

This module provides :class:`AsyncClient`, a thin wrapper around
:class:`httpx.AsyncClient` that layers on:

- **Request hooks** -- every registered
  :class:`~retoken.middleware.Interceptor` mutates the
  :class:`~retoken.middleware.RequestContext` before dispatch, in
  registration order.  Hooks may be plain methods or coroutines.
- **Error mapping** -- HTTP 4xx/5xx responses become typed
  :class:`~retoken.exceptions.RequestError` subclasses and transport
  failures become :class:`~retoken.exceptions.ConnectionError_`.
- **Response-error hooks** -- the typed error is offered to each
  interceptor in order.  The first one that returns a response ends the
  chain; one that raises a :class:`~retoken.exceptions.RequestError`
  hands it on to the next.  If nobody recovers, the last error is
  marked ``settled`` and raised to the caller.  Any other exception, and
  any error that was already settled by a nested :meth:`AsyncClient.send`
  (such as a replay), leaves the chain at once, so each hook sees a
  failure at most once.

Interceptors are registered explicitly per client instance with
:meth:`AsyncClient.use`; there is no process-wide registry.
"""

from __future__ import annotations

import inspect
import logging
from typing import Any, Iterable, Optional

import httpx

from retoken.exceptions import (
    AuthError,
    ConnectionError_,
    NotFoundError,
    RequestError,
    ServerError,
)
from retoken.middleware import Interceptor, RequestContext
from retoken.models import RequestConfig

logger = logging.getLogger(__name__)


class AsyncClient:
    """Asynchronous HTTP client with an interceptor chain.

    Must be used as an async context manager so that the underlying
    transport is opened and closed properly.

    Args:
        base_url: Prepended to relative request URLs.
        interceptors: Interceptors to register, in order.
        request_config: Timeout and SSL settings.

    Example::

        async with AsyncClient("https://api.example.com") as client:
            client.use(create_auth_interceptor(config))
            response = await client.get("/orders")
    """

    def __init__(
        self,
        base_url: str = "",
        interceptors: Iterable[Interceptor] = (),
        request_config: Optional[RequestConfig] = None,
    ) -> None:
        self._base_url = base_url
        self._interceptors: list[Interceptor] = list(interceptors)
        self._request_config = request_config or RequestConfig()
        self._client: Optional[httpx.AsyncClient] = None

    # ------------------------------------------------------------------ #
    # Async context manager
    # ------------------------------------------------------------------ #

    async def __aenter__(self) -> AsyncClient:
        config = self._request_config
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            timeout=config.timeout,
            verify=config.verify_ssl,
            follow_redirects=True,
        )
        return self

    async def __aexit__(self, *args: object) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    # ------------------------------------------------------------------ #
    # Middleware
    # ------------------------------------------------------------------ #

    @property
    def interceptors(self) -> list[Interceptor]:
        """A copy of the registered interceptors, in execution order."""
        return list(self._interceptors)

    def use(self, interceptor: Interceptor) -> Interceptor:
        """Append *interceptor* to the chain and return it."""
        self._interceptors.append(interceptor)
        return interceptor

    # ------------------------------------------------------------------ #
    # Public request methods
    # ------------------------------------------------------------------ #

    async def request(
        self,
        method: str,
        url: str,
        params: Optional[dict[str, Any]] = None,
        headers: Optional[dict[str, str]] = None,
        json_body: Optional[Any] = None,
        body: Optional[str] = None,
        data: Optional[dict[str, Any]] = None,
    ) -> httpx.Response:
        """Build a :class:`~retoken.middleware.RequestContext` and :meth:`send` it.

        Args:
            method: HTTP method (GET, POST, PUT, PATCH, DELETE).
            url: URL path appended to ``base_url``, or an absolute URL.
            params: Query parameters.
            headers: Extra request headers.
            json_body: JSON-serialisable body.
            body: Raw string body.
            data: Form-encoded body (``application/x-www-form-urlencoded``).

        Returns:
            The :class:`httpx.Response` from the server (possibly from a
            replay performed by an interceptor).

        Raises:
            AuthError: On 401 / 403 that no interceptor recovered from.
            NotFoundError: On 404.
            ServerError: On 5xx and other 4xx.
            ConnectionError_: On network / timeout errors.
            RefreshFailedError: When an auth interceptor could not refresh.
        """
        context = RequestContext(
            method=method.upper(),
            url=url,
            headers=httpx.Headers({"Accept": "application/json", **(headers or {})}),
            params=dict(params or {}),
            json=json_body,
            content=body,
            data=data,
        )
        return await self.send(context)

    async def send(self, context: RequestContext) -> httpx.Response:
        """Run *context* through request hooks, the network, and error hooks."""
        context = await self._run_request_hooks(context)
        try:
            response = await self._dispatch(context)
        except httpx.TransportError as exc:
            error: RequestError = ConnectionError_(f"Connection failed: {exc}", context=context)
            error.__cause__ = exc
        else:
            if response.status_code < 400:
                return response
            error = _map_response_error(response, context)
        return await self._run_error_hooks(error)

    async def get(self, url: str, **kwargs: Any) -> httpx.Response:
        """Send an async GET request."""
        return await self.request("GET", url, **kwargs)

    async def post(self, url: str, **kwargs: Any) -> httpx.Response:
        """Send an async POST request."""
        return await self.request("POST", url, **kwargs)

    async def put(self, url: str, **kwargs: Any) -> httpx.Response:
        """Send an async PUT request."""
        return await self.request("PUT", url, **kwargs)

    async def patch(self, url: str, **kwargs: Any) -> httpx.Response:
        """Send an async PATCH request."""
        return await self.request("PATCH", url, **kwargs)

    async def delete(self, url: str, **kwargs: Any) -> httpx.Response:
        """Send an async DELETE request."""
        return await self.request("DELETE", url, **kwargs)

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    async def _run_request_hooks(self, context: RequestContext) -> RequestContext:
        for interceptor in self._interceptors:
            result = interceptor.on_request(context)
            if inspect.isawaitable(result):
                result = await result
            context = result
        return context

    async def _run_error_hooks(self, error: RequestError) -> httpx.Response:
        current = error
        for interceptor in self._interceptors:
            try:
                return await interceptor.on_response_error(current, self)
            except RequestError as exc:
                if exc.settled:
                    raise
                current = exc
        current.settled = True
        raise current

    async def _dispatch(self, context: RequestContext) -> httpx.Response:
        if self._client is None:
            raise RuntimeError("Client not initialised -- use as async context manager")

        kwargs: dict[str, Any] = {
            "method": context.method,
            "url": context.url,
            "headers": context.headers,
            "params": context.params,
        }
        if context.data is not None:
            kwargs["data"] = context.data
        elif context.json is not None:
            kwargs["json"] = context.json
        elif context.content is not None:
            kwargs["content"] = context.content

        logger.debug("%s %s", context.method, context.url)
        return await self._client.request(**kwargs)


def _map_response_error(response: httpx.Response, context: RequestContext) -> RequestError:
    """Build a typed exception for an error HTTP status code."""
    status = response.status_code
    try:
        detail = response.json()
        if isinstance(detail, dict):
            msg = detail.get("message") or detail.get("error") or detail.get("detail") or ""
        else:
            msg = str(detail)
    except ValueError:
        msg = response.text[:200] if response.text else ""

    prefix = f"HTTP {status}"
    full_msg = f"{prefix}: {msg}" if msg else prefix

    if status in (401, 403):
        return AuthError(full_msg, context=context, response=response)
    if status == 404:
        return NotFoundError(full_msg, context=context, response=response)
    # 5xx and the remaining 4xx codes
    return ServerError(full_msg, context=context, response=response)
