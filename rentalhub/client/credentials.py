"""
===============================================================================
TARJETA CRC — client/credentials.py
===============================================================================

Responsabilidades:
  - Persistir el ÚNICO estado durable del cliente: un bearer token opaco.
  - Ofrecer implementación en memoria (tests) y en archivo (CLI/desktop).

Colaboradores:
  - client/session_store.py (restore/login/logout/sync_from_storage)
  - client/api_client.py (lee el token para Authorization)

Notas:
  - FileCredentialStore escribe con permisos 0600 y reemplazo atómico.
  - Nunca loguear el token.
===============================================================================
"""

from __future__ import annotations

import os
import threading
from pathlib import Path
from typing import Protocol


class CredentialStore(Protocol):
    def load(self) -> str | None: ...

    def save(self, token: str) -> None: ...

    def clear(self) -> None: ...


class InMemoryCredentialStore:
    def __init__(self, token: str | None = None) -> None:
        self._token = token
        self._lock = threading.Lock()

    def load(self) -> str | None:
        with self._lock:
            return self._token

    def save(self, token: str) -> None:
        with self._lock:
            self._token = token

    def clear(self) -> None:
        with self._lock:
            self._token = None


class FileCredentialStore:
    """Un archivo con el token; otro proceso puede borrarlo o reemplazarlo."""

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self._path = Path(path).expanduser()

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> str | None:
        try:
            token = self._path.read_text(encoding="utf-8").strip()
        except FileNotFoundError:
            return None
        return token or None

    def save(self, token: str) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_name(self._path.name + ".tmp")
        fd = os.open(tmp, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            fh.write(token)
        os.replace(tmp, self._path)

    def clear(self) -> None:
        self._path.unlink(missing_ok=True)
