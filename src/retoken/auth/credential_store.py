"""Credential store adapter over three storage backends.

:class:`CredentialStore` reads and writes named credential strings in one of
the :class:`~retoken.models.StorageBackend` variants.  The storage surfaces
are injected at construction as a mapping of backend to
:class:`CredentialBackend`; :func:`create_default_store` wires the built-in
ones:

- :class:`MemoryStorage` -- ``session``: an in-process dict, gone on exit.
- :class:`FileStorage` -- ``persistent``: a JSON object in
  ``~/.local/share/retoken/credentials.json`` (XDG) or the platform
  equivalent, written atomically with ``0o600`` permissions.
- :class:`CookieStorage` -- ``cookie``: a browser-style ``a=1; b=2`` cookie
  string.

A missing key is never an error; it reads as ``None``.  Asking for a backend
that was not registered, or reading a persistent file that is corrupt,
raises :class:`~retoken.exceptions.StorageUnavailableError`.

See Also:
    :class:`~retoken.auth.interceptor.AuthInterceptor` -- the only writer
    on the request path.
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from collections.abc import Mapping
from pathlib import Path
from typing import Optional

from retoken.config import atomic_write, get_data_dir
from retoken.exceptions import StorageUnavailableError
from retoken.models import StorageBackend

_CREDENTIALS_FILENAME = "credentials.json"


class CredentialBackend(ABC):
    """A key-addressed storage surface for credential strings."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """Return the value stored under *key*, or ``None`` if absent."""
        ...

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Store *value* under *key*, replacing any previous value."""
        ...


class MemoryStorage(CredentialBackend):
    """Ephemeral storage scoped to the current process."""

    def __init__(self, initial: Optional[Mapping[str, str]] = None) -> None:
        self._values: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        self._values[key] = value


def default_credentials_path() -> Path:
    """Return the default location of the persistent credentials file."""
    return get_data_dir() / _CREDENTIALS_FILENAME


class FileStorage(CredentialBackend):
    """Persistent storage backed by a flat JSON object on disk.

    Every :meth:`get` re-reads the file so that values written by another
    process are picked up.  Every :meth:`set` rewrites the whole file
    atomically; concurrent writers follow last-writer-wins.

    Args:
        path: The JSON file to use.  Defaults to
            :func:`default_credentials_path`.

    Example::

        storage = FileStorage(tmp_path / "creds.json")
        storage.set("refresh_token", "rt-123")
        assert storage.get("refresh_token") == "rt-123"
    """

    def __init__(self, path: Optional[Path] = None) -> None:
        self._path = path

    @property
    def path(self) -> Path:
        """The filesystem path of the credentials file."""
        if self._path is None:
            self._path = default_credentials_path()
        return self._path

    def _load(self) -> dict[str, str]:
        path = self.path
        if not path.is_file():
            return {}
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError) as exc:
            raise StorageUnavailableError(
                f"Cannot read credentials file {path}: {exc}"
            ) from exc
        if not isinstance(data, dict):
            raise StorageUnavailableError(
                f"Cannot read credentials file {path}: expected a JSON object"
            )
        return {k: v for k, v in data.items() if isinstance(v, str)}

    def get(self, key: str) -> Optional[str]:
        return self._load().get(key)

    def set(self, key: str, value: str) -> None:
        data = self._load()
        data[key] = value
        text = json.dumps(data, indent=2, sort_keys=True) + "\n"
        atomic_write(self.path, text, mode=0o600)


class CookieStorage(CredentialBackend):
    """Storage over a browser-style cookie string (``a=1; b=2``).

    Lookup follows the ``document.cookie`` convention: the string is
    prefixed with ``"; "`` and split on ``"; <key>="``.  A value is only
    returned when that split yields exactly two parts, so a key that appears
    twice reads as absent.  An empty value also reads as absent.

    Args:
        cookie_string: Initial cookie string.
    """

    def __init__(self, cookie_string: str = "") -> None:
        self.cookie_string = cookie_string

    def get(self, key: str) -> Optional[str]:
        parts = f"; {self.cookie_string}".split(f"; {key}=")
        if len(parts) != 2:
            return None
        value = parts[1].split(";", 1)[0]
        return value or None

    def set(self, key: str, value: str) -> None:
        pairs = [p for p in self.cookie_string.split("; ") if p]
        prefix = f"{key}="
        for i, pair in enumerate(pairs):
            if pair.startswith(prefix):
                pairs[i] = f"{prefix}{value}"
                break
        else:
            pairs.append(f"{prefix}{value}")
        self.cookie_string = "; ".join(pairs)


class CredentialStore:
    """Read/write named credentials across the configured backends.

    Args:
        backends: Storage surface per backend variant.  Variants missing
            from the mapping are treated as unavailable.
    """

    def __init__(self, backends: Mapping[StorageBackend, CredentialBackend]) -> None:
        self._backends = dict(backends)

    def backend(self, backend: StorageBackend) -> CredentialBackend:
        """Return the storage surface registered for *backend*.

        Raises:
            StorageUnavailableError: If nothing is registered for *backend*.
        """
        storage = self._backends.get(StorageBackend(backend))
        if storage is None:
            raise StorageUnavailableError(
                f"No credential storage configured for backend '{StorageBackend(backend).value}'"
            )
        return storage

    def read(self, backend: StorageBackend, key: str) -> Optional[str]:
        """Return the credential stored under *key*, or ``None`` if absent."""
        return self.backend(backend).get(key)

    def write(self, backend: StorageBackend, key: str, value: str) -> None:
        """Store *value* under *key* in *backend*.

        Raises:
            StorageUnavailableError: If the backend is not configured.
            OSError: If the persistent file cannot be written.
        """
        self.backend(backend).set(key, value)


def create_default_store(
    credentials_path: Optional[Path] = None,
    cookie_string: str = "",
) -> CredentialStore:
    """Create a :class:`CredentialStore` with all three built-in backends.

    Args:
        credentials_path: File for the ``persistent`` backend.  Defaults to
            :func:`default_credentials_path`, resolved lazily on first use.
        cookie_string: Initial value of the ``cookie`` backend.
    """
    return CredentialStore(
        {
            StorageBackend.SESSION: MemoryStorage(),
            StorageBackend.PERSISTENT: FileStorage(credentials_path),
            StorageBackend.COOKIE: CookieStorage(cookie_string),
        }
    )
