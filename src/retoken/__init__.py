"""retoken -- bearer-token middleware for asynchronous httpx pipelines.

This package attaches an access credential to every outgoing request and
recovers from credential expiry by exchanging a stored refresh credential
for a new access credential, then replaying the failed request exactly
once.

Typical usage::

    from retoken import AsyncClient, InterceptorConfig, create_auth_interceptor

    config = InterceptorConfig(storage_backend="persistent", credential_key="access")
    async with AsyncClient("https://api.example.com") as client:
        client.use(create_auth_interceptor(config))
        response = await client.get("/orders")

Modules:
    auth: credential store, refresh client, and the auth interceptor.
    client: the httpx-backed transport that runs the middleware chain.
    middleware: the interceptor contract and :class:`RequestContext`.
    models: Pydantic configuration models.
    config: XDG-aware settings loading and saving.
    exceptions: exception hierarchy with exit-code mapping.
    app: Typer CLI entry point.
"""

__version__ = "0.1.0"

from retoken.auth import (  # noqa: E402
    AuthInterceptor,
    CredentialStore,
    TokenRefreshClient,
    create_auth_interceptor,
    create_default_store,
)
from retoken.client import AsyncClient  # noqa: E402
from retoken.middleware import Interceptor, RequestContext  # noqa: E402
from retoken.models import InterceptorConfig, StorageBackend  # noqa: E402

__all__ = [
    "AsyncClient",
    "AuthInterceptor",
    "CredentialStore",
    "Interceptor",
    "InterceptorConfig",
    "RequestContext",
    "StorageBackend",
    "TokenRefreshClient",
    "__version__",
    "create_auth_interceptor",
    "create_default_store",
]
