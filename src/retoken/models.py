"""Canonical Pydantic models shared across retoken modules.

**Configuration models** -- serialised as JSON in the user's config
directory by :mod:`retoken.config`:
    :class:`StorageBackend`, :class:`InterceptorConfig`,
    :class:`RequestConfig`, and :class:`Settings`.

**Wire models** -- validate payloads exchanged with the refresh endpoint:
    :class:`RefreshResponse`.

All models use Pydantic v2.  :class:`InterceptorConfig` is frozen: an
interceptor is configured once at setup and never mutated afterwards.
"""

from __future__ import annotations

import enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


DEFAULT_REFRESH_URL = "/auth/token"
DEFAULT_REFRESH_CREDENTIAL_KEY = "refresh_token"


class StorageBackend(str, enum.Enum):
    """Credential storage variants an interceptor can read from and write to.

    ``SESSION`` is ephemeral (lives as long as the process), ``PERSISTENT``
    survives restarts, and ``COOKIE`` reads ``key=value`` pairs out of a
    browser-style cookie string.
    """

    SESSION = "session"
    PERSISTENT = "persistent"
    COOKIE = "cookie"


class InterceptorConfig(BaseModel):
    """Setup options for :class:`~retoken.auth.interceptor.AuthInterceptor`.

    Example::

        InterceptorConfig(storage_backend="persistent", credential_key="access")
    """

    model_config = ConfigDict(frozen=True)

    storage_backend: StorageBackend = Field(
        description="Backend holding both the access and the refresh credential"
    )
    credential_key: str = Field(
        min_length=1,
        description="Name under which the access credential is stored",
    )
    refresh_credential_key: str = Field(
        default=DEFAULT_REFRESH_CREDENTIAL_KEY,
        min_length=1,
        description="Name under which the refresh credential is stored",
    )
    refresh_url: str = Field(
        default=DEFAULT_REFRESH_URL,
        description="Endpoint exchanging a refresh credential for an access credential",
    )


class RequestConfig(BaseModel):
    """Default transport settings applied by :class:`~retoken.client.AsyncClient`."""

    timeout: float = Field(default=30.0, description="Request timeout in seconds")
    verify_ssl: bool = Field(default=True, description="Verify SSL certificates")


class Settings(BaseModel):
    """User-wide settings persisted at ``~/.config/retoken/config.json``.

    Loaded by :func:`~retoken.config.load_settings`; environment variables
    take precedence over values read from disk.
    """

    base_url: Optional[str] = Field(
        default=None, description="Base URL prepended to relative request paths"
    )
    interceptor: InterceptorConfig = Field(
        default_factory=lambda: InterceptorConfig(
            storage_backend=StorageBackend.PERSISTENT,
            credential_key="access_token",
        )
    )
    request: RequestConfig = Field(default_factory=RequestConfig)


class RefreshResponse(BaseModel):
    """Body of a successful ``201`` response from the refresh endpoint."""

    token: str
