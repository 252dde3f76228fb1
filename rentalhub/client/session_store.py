"""
===============================================================================
TARJETA CRC — client/session_store.py
===============================================================================

Responsabilidades:
  - Ser la ÚNICA fuente de verdad de la identidad en el proceso cliente.
  - restore/login/logout/expire/refresh con notificación a suscriptores.
  - Descartar resultados de operaciones superadas (contador de generación).

Colaboradores:
  - client.api_client.ApiClient (/auth/login, /auth/me)
  - client.credentials.CredentialStore (token persistido)
  - client.access_gate (lee `session`)
  - client.recovery_flow (auto-login tras reset)

Reglas:
  - `loading` es True desde la construcción hasta que termina un restore.
  - logout() es sincrónico e idempotente.
  - Una operación async solo aplica su resultado si nadie la superó
    (login/logout/expire incrementan la generación).
===============================================================================
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, replace
from datetime import datetime, timedelta, timezone
from typing import Callable

from ..crosscutting.exceptions import AuthenticationError, RentalHubError
from ..crosscutting.logger import logger
from ..identity.users import Identity
from .api_client import ApiClient
from .credentials import CredentialStore


@dataclass(frozen=True)
class Session:
    identity: Identity | None = None
    loading: bool = True
    error: RentalHubError | None = None
    expires_at: datetime | None = None

    @property
    def is_authenticated(self) -> bool:
        return self.identity is not None

    def is_expired(self, now: datetime | None = None) -> bool:
        if self.expires_at is None:
            return False
        return (now or datetime.now(timezone.utc)) >= self.expires_at


Listener = Callable[[Session], None]


class SessionStore:
    def __init__(self, api: ApiClient, credentials: CredentialStore) -> None:
        self._api = api
        self._credentials = credentials
        self._session = Session()
        self._listeners: list[Listener] = []
        self._generation = 0
        self._known_token: str | None = None
        self._ready = asyncio.Event()

    # ------------------------------------------------------------------
    # Estado + suscripciones
    # ------------------------------------------------------------------

    @property
    def session(self) -> Session:
        return self._session

    @property
    def identity(self) -> Identity | None:
        return self._session.identity

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Registra un listener; devuelve la función para desuscribirlo."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _set(self, session: Session) -> None:
        self._session = session
        if session.loading:
            self._ready.clear()
        else:
            self._ready.set()
        for listener in list(self._listeners):
            try:
                listener(session)
            except Exception:
                logger.exception("Listener de sesión falló")

    def _next_generation(self) -> int:
        self._generation += 1
        return self._generation

    def _is_current(self, generation: int) -> bool:
        return generation == self._generation

    async def wait_until_ready(self, timeout: float | None = None) -> Session:
        if timeout is None:
            await self._ready.wait()
        else:
            await asyncio.wait_for(self._ready.wait(), timeout)
        return self._session

    # ------------------------------------------------------------------
    # restore
    # ------------------------------------------------------------------

    def restore(self) -> asyncio.Task[Session]:
        """
        Programa el restore y vuelve enseguida.

        `loading` pasa a True ya; quien necesite el resultado espera el task o
        wait_until_ready().
        """
        generation = self._next_generation()
        self._set(Session(identity=self._session.identity, loading=True))
        return asyncio.get_running_loop().create_task(self._restore(generation))

    async def _restore(self, generation: int) -> Session:
        token = self._credentials.load()
        if not token:
            if self._is_current(generation):
                self._known_token = None
                self._set(Session(loading=False))
            return self._session

        try:
            data = await self._api.get("/auth/me")
        except AuthenticationError as exc:
            if self._is_current(generation):
                logger.info(
                    "Credencial persistida rechazada",
                    extra={"error_code": exc.error_code},
                )
                self._credentials.clear()
                self._known_token = None
                self._set(Session(loading=False, error=exc))
            return self._session
        except RentalHubError as exc:
            # R: El token se conserva; un restore posterior puede funcionar.
            if self._is_current(generation):
                logger.warning("Restore falló", extra={"error_code": exc.error_code})
                self._set(Session(loading=False, error=exc))
            return self._session

        if self._is_current(generation):
            self._known_token = token
            self._set(Session(identity=Identity.from_dict(data), loading=False))
        else:
            logger.info("Restore descartado: superado por otra operación")
        return self._session

    # ------------------------------------------------------------------
    # login / logout / expire
    # ------------------------------------------------------------------

    async def login(self, email: str, password: str) -> Identity | None:
        """
        Devuelve la identidad, o None si un logout/login posterior lo superó.

        Raises:
            InvalidCredentials | AccountInactive | TransportError | ...
        """
        generation = self._next_generation()
        try:
            data = await self._api.post(
                "/auth/login",
                {"email": email, "password": password},
                authenticated=False,
            )
        except RentalHubError as exc:
            if self._is_current(generation):
                # R: Un login fallido no deja viva la credencial anterior.
                self._credentials.clear()
                self._known_token = None
                self._set(Session(loading=False, error=exc))
            raise

        if not self._is_current(generation):
            logger.info("Login descartado: superado por otra operación")
            return None

        token = data["token"]
        identity = Identity.from_dict(data["identity"])
        expires_at = datetime.now(timezone.utc) + timedelta(
            seconds=int(data.get("expires_in") or 0)
        )
        self._credentials.save(token)
        self._known_token = token
        self._set(Session(identity=identity, loading=False, expires_at=expires_at))
        return identity

    def logout(self) -> None:
        self._next_generation()
        self._credentials.clear()
        self._known_token = None
        self._set(Session(loading=False))

    def expire(self, reason: str = "Sesión expirada.") -> None:
        """Expiración forzada (p. ej. un 401 en cualquier llamada autenticada)."""
        self._next_generation()
        self._credentials.clear()
        self._known_token = None
        self._set(Session(loading=False, error=AuthenticationError(reason)))

    def expire_if_due(self, now: datetime | None = None) -> bool:
        if self._session.identity is not None and self._session.is_expired(now):
            self.expire()
            return True
        return False

    # ------------------------------------------------------------------
    # refresh / update / sync
    # ------------------------------------------------------------------

    async def refresh(self) -> Identity | None:
        """Re-valida la credencial actual sin pasar por `loading`."""
        if not self._credentials.load():
            if self._session.identity is not None:
                self.expire()
            return None

        generation = self._next_generation()
        try:
            data = await self._api.get("/auth/me")
        except AuthenticationError as exc:
            if self._is_current(generation):
                self.expire(exc.message)
            raise

        if not self._is_current(generation):
            return self._session.identity
        self._set(
            replace(
                self._session,
                identity=Identity.from_dict(data),
                loading=False,
                error=None,
            )
        )
        return self._session.identity

    def update_identity(self, identity: Identity) -> bool:
        """Edición de perfil / verificación. Ignora ids que no son el actual."""
        current = self._session.identity
        if current is None or current.id != identity.id:
            return False
        self._set(replace(self._session, identity=identity))
        return True

    async def sync_from_storage(self) -> Session:
        """
        Otro proceso borró o reemplazó el token persistido: logout o restore.
        """
        token = self._credentials.load()
        if token == self._known_token:
            return self._session
        if not token:
            self.logout()
            return self._session
        return await self.restore()
