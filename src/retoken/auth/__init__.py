"""Credential storage, refresh, and the auth interceptor.

The main entry points are:

- :class:`CredentialStore` -- reads/writes named credentials in the
  ``session``, ``persistent``, or ``cookie`` backend.
- :class:`TokenRefreshClient` -- exchanges a refresh credential for a new
  access credential.
- :class:`AuthInterceptor` -- injects the bearer credential and replays
  requests that failed with ``401`` after a successful refresh.
- :func:`create_auth_interceptor` -- factory wiring the three together.

Typical usage::

    from retoken.auth import create_auth_interceptor

    interceptor = create_auth_interceptor(config)
    client.use(interceptor)
"""

from retoken.auth.credential_store import (
    CookieStorage,
    CredentialBackend,
    CredentialStore,
    FileStorage,
    MemoryStorage,
    create_default_store,
)
from retoken.auth.interceptor import AuthInterceptor, create_auth_interceptor
from retoken.auth.refresh import RefreshExchange, TokenRefreshClient

__all__ = [
    "AuthInterceptor",
    "CookieStorage",
    "CredentialBackend",
    "CredentialStore",
    "FileStorage",
    "MemoryStorage",
    "RefreshExchange",
    "TokenRefreshClient",
    "create_auth_interceptor",
    "create_default_store",
]
