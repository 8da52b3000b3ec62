"""Exception hierarchy for retoken.

All exceptions inherit from :class:`RetokenError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`retoken.exit_codes`.
The CLI entry point in :func:`retoken.app.main` catches ``RetokenError``
and exits with the appropriate code.

Subclass hierarchy::

    RetokenError (exit 1)
    +-- ConfigError              (exit 1)
    |   +-- StorageUnavailableError (exit 1)
    +-- InvalidUsageError        (exit 2)
    +-- RefreshFailedError       (exit 3)
    +-- RequestError             (exit 1)
        +-- AuthError            (exit 3)
        +-- NotFoundError        (exit 4)
        +-- ServerError          (exit 5)
        +-- ConnectionError_     (exit 6)

:class:`RequestError` and its subclasses are the "original error" that the
auth interceptor either recovers from or re-raises unmodified; they keep a
reference to the :class:`~retoken.middleware.RequestContext` that failed and
to the :class:`httpx.Response` when one was received.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from retoken.exit_codes import (
    EXIT_AUTH_FAILURE,
    EXIT_CONNECTION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_NOT_FOUND,
    EXIT_SERVER_ERROR,
)

if TYPE_CHECKING:
    import httpx

    from retoken.middleware import RequestContext


class RetokenError(Exception):
    """Base exception for all retoken errors.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class ConfigError(RetokenError):
    """Raised for configuration problems (invalid JSON, unknown backend names)."""

    exit_code = EXIT_GENERIC_FAILURE


class StorageUnavailableError(ConfigError):
    """Raised when a credential backend is not configured or cannot be read.

    This is a fatal setup error: the interceptor never recovers from it and
    it propagates straight to the caller.
    """


class InvalidUsageError(RetokenError):
    """Raised for invalid CLI arguments or missing required parameters."""

    exit_code = EXIT_INVALID_USAGE


class RefreshFailedError(RetokenError):
    """Raised when a refresh credential could not be exchanged for a new access credential.

    Every failure mode of the exchange (non-201 status, transport error,
    malformed body) surfaces as this one type with the same message.
    """

    exit_code = EXIT_AUTH_FAILURE

    def __init__(self, message: str = "Failed to refresh token"):
        super().__init__(message)


class RequestError(RetokenError):
    """A request dispatched through :class:`~retoken.client.AsyncClient` failed.

    Args:
        message: Human-readable error description.
        context: The request context that was dispatched.
        response: The HTTP response, or ``None`` when the transport failed
            before a response was received.

    Attributes:
        settled: Set once the error has been through every response-error
            hook of a client without being recovered.  A settled error
            raised from inside a hook (for example by a replay) is passed
            straight to the caller.
    """

    def __init__(
        self,
        message: str,
        context: Optional[RequestContext] = None,
        response: Optional[httpx.Response] = None,
    ):
        super().__init__(message)
        self.context = context
        self.response = response
        self.settled = False

    @property
    def status_code(self) -> Optional[int]:
        """The HTTP status code, or ``None`` if no response was received."""
        if self.response is None:
            return None
        return self.response.status_code


class AuthError(RequestError):
    """Raised when the API returns HTTP 401 or 403."""

    exit_code = EXIT_AUTH_FAILURE


class NotFoundError(RequestError):
    """Raised when the API returns HTTP 404 (resource not found)."""

    exit_code = EXIT_NOT_FOUND


class ServerError(RequestError):
    """Raised for HTTP 5xx responses and for 4xx codes without a dedicated class."""

    exit_code = EXIT_SERVER_ERROR


class ConnectionError_(RequestError):
    """Raised on network-level failures (timeout, DNS resolution, connection refused).

    Named with a trailing underscore to avoid shadowing the built-in
    ``ConnectionError``.
    """

    exit_code = EXIT_CONNECTION_ERROR
