"""Credential commands -- inspect and seed stored credentials.

Provides the ``retoken credentials`` sub-command group.  The usual first
step is storing the refresh credential so that the auth interceptor can
recover from an expired (or missing) access credential::

    retoken credentials set refresh_token rt-123
    retoken credentials get access_token
    retoken credentials path
"""

from __future__ import annotations

from typing import Optional

import typer

from retoken.auth.credential_store import (
    CookieStorage,
    CredentialStore,
    FileStorage,
    MemoryStorage,
    create_default_store,
)
from retoken.config import load_settings
from retoken.exceptions import RetokenError
from retoken.exit_codes import EXIT_NOT_FOUND
from retoken.models import StorageBackend
from retoken.output import error, get_output, success


credentials_app = typer.Typer(no_args_is_help=True)


def _resolve_backend(backend: Optional[StorageBackend]) -> StorageBackend:
    """Return *backend* or the configured default backend."""
    if backend is not None:
        return backend
    return load_settings().interceptor.storage_backend


@credentials_app.command("set")
def credentials_set(
    key: str = typer.Argument(help="Credential name, e.g. refresh_token."),
    value: str = typer.Argument(help="Credential value."),
    backend: Optional[StorageBackend] = typer.Option(
        None, "--backend", "-b", help="Storage backend (defaults to the configured one)."
    ),
    cookie: str = typer.Option("", "--cookie", help="Cookie string for the cookie backend."),
) -> None:
    """Store a credential.

    The ``session`` backend only lives as long as this process, and the
    ``cookie`` backend only updates the cookie string given with
    ``--cookie`` (the result is printed to stdout).
    """
    cookie_storage = CookieStorage(cookie)
    store = CredentialStore(
        {
            StorageBackend.SESSION: MemoryStorage(),
            StorageBackend.PERSISTENT: FileStorage(),
            StorageBackend.COOKIE: cookie_storage,
        }
    )
    try:
        selected = _resolve_backend(backend)
        store.write(selected, key, value)
    except RetokenError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    if selected == StorageBackend.COOKIE:
        get_output().print_data(cookie_storage.cookie_string)
    success(f'Stored "{key}" in {selected.value} storage.')


@credentials_app.command("get")
def credentials_get(
    key: str = typer.Argument(help="Credential name."),
    backend: Optional[StorageBackend] = typer.Option(
        None, "--backend", "-b", help="Storage backend (defaults to the configured one)."
    ),
    cookie: str = typer.Option("", "--cookie", help="Cookie string for the cookie backend."),
) -> None:
    """Print a stored credential to stdout."""
    try:
        selected = _resolve_backend(backend)
        value = create_default_store(cookie_string=cookie).read(selected, key)
    except RetokenError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    if value is None:
        error(f'No credential "{key}" in {selected.value} storage.')
        raise typer.Exit(code=EXIT_NOT_FOUND)
    get_output().print_data(value)


@credentials_app.command("path")
def credentials_path() -> None:
    """Print the location of the persistent credentials file."""
    get_output().print_data(str(FileStorage().path))
