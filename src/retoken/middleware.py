"""Interceptor contract and the request context threaded through it.

This module provides the two seams between the transport and any auth (or
other) middleware:

* :class:`RequestContext` -- a mutable dataclass describing one outbound
  request.  The same instance is handed to every request hook, dispatched,
  attached to the resulting error on failure, and dispatched again if an
  interceptor decides to replay it.
* :class:`Interceptor` -- the base class for middleware.  Both hooks have
  pass-through defaults so subclasses only override what they need.

Interceptors run in registration order.  See
:meth:`retoken.client.AsyncClient.send` for how the chain is executed.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Awaitable, Optional, Protocol, Union

import httpx

if TYPE_CHECKING:
    from retoken.exceptions import RequestError


@dataclass
class RequestContext:
    """Mutable description of an outbound request.

    Attributes:
        method: HTTP method (e.g. ``"GET"``).
        url: URL as given by the caller, usually a path relative to the
            client's base URL.
        headers: Request headers.  Assignment overwrites any existing
            value for the same (case-insensitive) name.
        params: Query-string parameters.
        json: JSON-serialisable body.
        content: Raw string body.
        data: Form-encoded body.
        retried: Set once an interceptor has replayed this request after a
            credential refresh.  Never reset.
    """

    method: str
    url: str
    headers: httpx.Headers = field(default_factory=httpx.Headers)
    params: dict[str, Any] = field(default_factory=dict)
    json: Any = None
    content: Optional[str] = None
    data: Optional[dict[str, Any]] = None
    retried: bool = False

    def __post_init__(self) -> None:
        if not isinstance(self.headers, httpx.Headers):
            self.headers = httpx.Headers(self.headers)

    @property
    def path(self) -> str:
        """The path component of :attr:`url`."""
        return httpx.URL(self.url).path


class Transport(Protocol):
    """Anything that can dispatch a :class:`RequestContext` through the full chain."""

    async def send(self, context: RequestContext) -> httpx.Response: ...


class Interceptor:
    """Base class for middleware registered on :class:`~retoken.client.AsyncClient`.

    Example::

        class UserAgent(Interceptor):
            def on_request(self, context):
                context.headers["User-Agent"] = "retoken"
                return context
    """

    def on_request(
        self, context: RequestContext
    ) -> Union[RequestContext, Awaitable[RequestContext]]:
        """Mutate an outbound request before dispatch.

        May be a plain method or a coroutine; the transport awaits the
        result when needed.  Returns the context to dispatch.
        """
        return context

    async def on_response_error(
        self, error: RequestError, transport: Transport
    ) -> httpx.Response:
        """Handle a failed request.

        Return a response to recover, or raise to reject.  Raising a
        different :class:`~retoken.exceptions.RequestError` replaces
        *error* for the interceptors that follow; any other exception ends
        the chain and reaches the caller directly.  The default re-raises
        *error* unchanged.

        Args:
            error: The failure, carrying the original
                :class:`RequestContext` as ``error.context``.
            transport: The transport that dispatched the request, used to
                issue new requests or replay the original one.
        """
        raise error
