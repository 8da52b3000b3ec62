"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~retoken.exceptions.RetokenError` subclass.
Shell wrappers can inspect the exit code of ``retoken request`` to tell an
expired session apart from a missing resource without parsing stderr.

Example::

    $ retoken request GET /orders
    $ echo $?
    3   # EXIT_AUTH_FAILURE -- credentials were rejected and could not be refreshed
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments or missing required parameters."""

EXIT_AUTH_FAILURE = 3
"""Authentication failed and the credential could not be refreshed."""

EXIT_NOT_FOUND = 4
"""The requested resource (or stored credential) was not found."""

EXIT_SERVER_ERROR = 5
"""The remote API returned an HTTP 5xx server error."""

EXIT_CONNECTION_ERROR = 6
"""A network-level error occurred (timeout, DNS failure, connection refused)."""
