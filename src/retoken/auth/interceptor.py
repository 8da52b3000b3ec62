"""Bearer-credential injection and refresh-and-replay on ``401``.

:class:`AuthInterceptor` implements both hooks of
:class:`~retoken.middleware.Interceptor`:

**Request hook** -- reads the access credential from the configured backend
and key.  When present, sets ``Authorization: Bearer <credential>``
(overwriting any previous value); when absent, sets
``Content-Type: application/json`` instead and leaves ``Authorization``
untouched.

**Response-error hook** -- decides, once per failure, between:

1. ``401`` from the refresh endpoint itself: re-raise the original error.
   This is the loop-guard and applies whatever the retry-marker says.
2. ``401`` on a request not yet retried: mark it retried, then look up the
   refresh credential.  Without one, re-raise the original error.  With
   one, refresh, store the new access credential, and replay the original
   request through the transport, returning whatever that replay yields.
   A failed refresh raises :class:`~retoken.exceptions.RefreshFailedError`.
3. Anything else (already-retried ``401``, other statuses, transport
   failures): re-raise the original error unmodified.

The replay passes through the request hook again, which picks up the
freshly stored credential.  Because the marker is set before the replay, a
second ``401`` on the same request falls into case 3.

Concurrent ``401`` responses each run their own refresh; there is no shared
in-flight refresh.
"""

from __future__ import annotations

import logging
from typing import Optional

import httpx

from retoken.auth.credential_store import CredentialStore, create_default_store
from retoken.auth.refresh import TokenRefreshClient
from retoken.exceptions import RequestError
from retoken.middleware import Interceptor, RequestContext, Transport
from retoken.models import InterceptorConfig

logger = logging.getLogger(__name__)

_UNAUTHORIZED = 401


class AuthInterceptor(Interceptor):
    """Attach bearer credentials and recover from their expiry.

    Args:
        config: Backend and key names.  Frozen for the interceptor's lifetime.
        store: Credential store shared with the rest of the application.
        refresh_client: Performs the credential exchange.  Defaults to a
            :class:`~retoken.auth.refresh.TokenRefreshClient` targeting
            ``config.refresh_url``.
    """

    def __init__(
        self,
        config: InterceptorConfig,
        store: CredentialStore,
        refresh_client: Optional[TokenRefreshClient] = None,
    ) -> None:
        self._config = config
        self._store = store
        self._refresh_client = refresh_client or TokenRefreshClient(config.refresh_url)

    @property
    def config(self) -> InterceptorConfig:
        return self._config

    @property
    def store(self) -> CredentialStore:
        return self._store

    # ------------------------------------------------------------------ #
    # Request hook
    # ------------------------------------------------------------------ #

    async def on_request(self, context: RequestContext) -> RequestContext:
        token = self._store.read(self._config.storage_backend, self._config.credential_key)
        if token:
            context.headers["Authorization"] = f"Bearer {token}"
        else:
            logger.debug("No access credential stored, sending %s %s unauthenticated",
                         context.method, context.url)
            context.headers["Content-Type"] = "application/json"
        return context

    # ------------------------------------------------------------------ #
    # Response-error hook
    # ------------------------------------------------------------------ #

    async def on_response_error(
        self, error: RequestError, transport: Transport
    ) -> httpx.Response:
        context = error.context
        if context is None or error.status_code != _UNAUTHORIZED:
            raise error

        if self._is_refresh_request(context):
            logger.debug("Refresh endpoint answered 401, not attempting another refresh")
            raise error

        if context.retried:
            raise error

        context.retried = True
        refresh_credential = self._store.read(
            self._config.storage_backend, self._config.refresh_credential_key
        )
        if not refresh_credential:
            logger.debug("401 on %s %s and no refresh credential stored",
                         context.method, context.url)
            raise error

        logger.info("Access credential rejected for %s %s, refreshing", context.method, context.url)
        # RefreshFailedError propagates as the rejection.
        new_token = await self._refresh_client.refresh(
            transport, refresh_credential, self._config.refresh_url
        )
        self._store.write(self._config.storage_backend, self._config.credential_key, new_token)

        logger.debug("Replaying %s %s with refreshed credential", context.method, context.url)
        return await transport.send(context)

    def _is_refresh_request(self, context: RequestContext) -> bool:
        """Return True if *context* targets the refresh endpoint.

        Paths must match.  When both URLs are absolute their hosts must
        match too; a relative URL is resolved against the client's base URL,
        which the interceptor does not know, so only its path is compared.
        """
        refresh = httpx.URL(self._config.refresh_url)
        target = httpx.URL(context.url)
        if refresh.is_absolute_url and target.is_absolute_url and refresh.host != target.host:
            return False
        return target.path == refresh.path


def create_auth_interceptor(
    config: InterceptorConfig,
    store: Optional[CredentialStore] = None,
    refresh_client: Optional[TokenRefreshClient] = None,
) -> AuthInterceptor:
    """Create an :class:`AuthInterceptor` ready to register on a client.

    Args:
        config: Interceptor setup options.
        store: Credential store to use.  Defaults to
            :func:`~retoken.auth.credential_store.create_default_store`.
        refresh_client: Custom refresh client.  Defaults to one targeting
            ``config.refresh_url``.

    Example::

        async with AsyncClient("https://api.example.com") as client:
            client.use(create_auth_interceptor(config))
    """
    return AuthInterceptor(config, store or create_default_store(), refresh_client)
