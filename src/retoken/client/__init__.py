"""HTTP transport for retoken.

Provides :class:`AsyncClient`, a non-blocking client backed by
:class:`httpx.AsyncClient` that runs registered
:class:`~retoken.middleware.Interceptor` hooks around every request.

Example::

    from retoken.client import AsyncClient

    async with AsyncClient("https://api.example.com", interceptors=[auth]) as client:
        resp = await client.get("/orders")
"""

from retoken.client.async_client import AsyncClient

__all__ = ["AsyncClient"]
