"""Exchange a refresh credential for a new access credential.

:class:`TokenRefreshClient` performs a single ``POST`` to the refresh
endpoint with body ``{"refresh_token": <credential>}`` and expects a ``201``
response carrying ``{"token": <new access credential>}``.

The request goes through the caller's transport, so registered
interceptors see it like any other request.  In particular a ``401`` from
the endpoint reaches the auth interceptor's loop-guard, which rejects it
without attempting a nested refresh.

Every failure -- another status code, a transport error, a body without a
string ``token`` -- collapses into one
:class:`~retoken.exceptions.RefreshFailedError`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

import httpx
from pydantic import ValidationError

from retoken.exceptions import RefreshFailedError, RetokenError
from retoken.middleware import RequestContext, Transport
from retoken.models import DEFAULT_REFRESH_URL, RefreshResponse

logger = logging.getLogger(__name__)

_CREATED = 201


@dataclass(frozen=True)
class RefreshExchange:
    """One refresh attempt: the credential to exchange and where to send it."""

    refresh_credential: str
    endpoint_path: str = DEFAULT_REFRESH_URL

    def to_payload(self) -> dict[str, Any]:
        """Return the JSON body sent to the refresh endpoint."""
        return {"refresh_token": self.refresh_credential}

    def to_context(self) -> RequestContext:
        """Build the request context that performs this exchange."""
        return RequestContext(
            method="POST",
            url=self.endpoint_path,
            json=self.to_payload(),
        )


class TokenRefreshClient:
    """Refresh access credentials against a configurable endpoint.

    Args:
        endpoint_path: Default refresh endpoint used when :meth:`refresh`
            is called without one.
    """

    def __init__(self, endpoint_path: str = DEFAULT_REFRESH_URL) -> None:
        self.endpoint_path = endpoint_path

    async def refresh(
        self,
        transport: Transport,
        refresh_credential: str,
        endpoint_path: Optional[str] = None,
    ) -> str:
        """Exchange *refresh_credential* for a new access credential.

        Makes exactly one attempt; there is no internal retry.

        Args:
            transport: Transport used to dispatch the exchange.
            refresh_credential: The stored refresh credential.
            endpoint_path: Overrides :attr:`endpoint_path` for this call.

        Returns:
            The new access credential.

        Raises:
            RefreshFailedError: For any failure of the exchange.
        """
        exchange = RefreshExchange(
            refresh_credential=refresh_credential,
            endpoint_path=endpoint_path or self.endpoint_path,
        )
        logger.debug("Refreshing access credential via POST %s", exchange.endpoint_path)

        try:
            response = await transport.send(exchange.to_context())
        except (RetokenError, httpx.HTTPError) as exc:
            logger.debug("Refresh request failed: %s", exc)
            raise RefreshFailedError() from exc

        if response.status_code != _CREATED:
            logger.debug("Refresh endpoint answered %d, expected %d", response.status_code, _CREATED)
            raise RefreshFailedError()

        try:
            body = RefreshResponse.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            logger.debug("Refresh response body is malformed: %s", exc)
            raise RefreshFailedError() from exc

        return body.token
