"""
===============================================================================
TARJETA CRC — client/recovery_flow.py
===============================================================================

Responsabilidades:
  - Máquina de estados de recuperación de contraseña:
        Idle -> AwaitingCode -> AwaitingNewCredential -> Completed
  - Completed es terminal: no acepta otro canje hasta abandon() o un
    request_code() nuevo.
  - Validar localmente (confirmación, expiración, código ya usado) antes de
    tocar la red.
  - Ignorar respuestas de pedidos de código superados por uno más nuevo.
  - Opcional: auto-login vía SessionStore tras el reset. Si el login falla,
    el reset sigue completo y el error queda en `state.login_error`.

Colaboradores:
  - client.api_client.ApiClient (/auth/forgot-password, /auth/reset-password)
  - client.session_store.SessionStore (auto-login)

Notas:
  - Independiente de la sesión: funciona sin identidad.
  - La nueva contraseña nunca se guarda en el estado; viaja solo en redeem.
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timedelta, timezone
from enum import Enum

from ..crosscutting.exceptions import (
    CredentialMismatch,
    InvalidOrExpiredCodeError,
    RentalHubError,
    ValidationError,
)
from ..crosscutting.logger import logger
from .api_client import ApiClient
from .session_store import SessionStore


class RecoveryStep(str, Enum):
    IDLE = "idle"
    AWAITING_CODE = "awaiting_code"
    AWAITING_NEW_CREDENTIAL = "awaiting_new_credential"
    COMPLETED = "completed"


@dataclass(frozen=True)
class RecoveryState:
    step: RecoveryStep = RecoveryStep.IDLE
    email: str | None = None
    expires_at: datetime | None = None
    message: str | None = None
    login_error: RentalHubError | None = None


IDLE = RecoveryState()


class RecoveryFlow:
    def __init__(
        self,
        api: ApiClient,
        session_store: SessionStore | None = None,
        *,
        auto_login: bool = False,
    ) -> None:
        self._api = api
        self._store = session_store
        self._auto_login = auto_login and session_store is not None
        self._state = IDLE
        self._generation = 0
        self._consumed: set[tuple[str, str]] = set()

    @property
    def state(self) -> RecoveryState:
        return self._state

    def abandon(self) -> None:
        self._generation += 1
        self._state = IDLE

    async def request_code(self, email: str) -> RecoveryState:
        """
        Pide un código. La respuesta es genérica exista o no la cuenta.
        Un pedido más nuevo invalida el resultado de cualquiera anterior.
        """
        normalized = (email or "").strip().lower()
        if not normalized:
            raise ValidationError("Ingresá tu email.")

        self._generation += 1
        generation = self._generation
        self._state = RecoveryState(step=RecoveryStep.AWAITING_CODE, email=normalized)

        try:
            data = await self._api.post(
                "/auth/forgot-password", {"email": normalized}, authenticated=False
            )
        except RentalHubError:
            if generation == self._generation:
                self._state = IDLE
            raise

        if generation != self._generation:
            logger.info("Respuesta de forgot-password descartada (superada)")
            return self._state

        expires_in = int((data or {}).get("expires_in") or 0)
        self._state = RecoveryState(
            step=RecoveryStep.AWAITING_NEW_CREDENTIAL,
            email=normalized,
            expires_at=(
                datetime.now(timezone.utc) + timedelta(seconds=expires_in)
                if expires_in > 0
                else None
            ),
            message=(data or {}).get("message"),
        )
        return self._state

    def _check_local(
        self, email: str, secret: str, new_password: str, confirmation: str
    ) -> None:
        if self._state.step == RecoveryStep.COMPLETED:
            raise InvalidOrExpiredCodeError(
                "La recuperación ya se completó. Pedí un código nuevo."
            )
        if new_password != confirmation:
            raise CredentialMismatch("La contraseña y su confirmación no coinciden.")
        if (email, secret) in self._consumed:
            raise InvalidOrExpiredCodeError("Ese código ya fue usado.")
        state = self._state
        if (
            state.step == RecoveryStep.AWAITING_NEW_CREDENTIAL
            and state.email == email
            and state.expires_at is not None
            and datetime.now(timezone.utc) >= state.expires_at
        ):
            raise InvalidOrExpiredCodeError("El código expiró. Pedí uno nuevo.")

    async def _submit(
        self,
        email: str,
        secret: str,
        payload: dict[str, str],
        new_password: str,
    ) -> RecoveryState:
        await self._api.post("/auth/reset-password", payload, authenticated=False)

        self._consumed.add((email, secret))
        self._generation += 1
        self._state = RecoveryState(step=RecoveryStep.COMPLETED, email=email)
        logger.info("Recuperación completada")

        if self._auto_login:
            try:
                await self._store.login(email, new_password)
            except RentalHubError as exc:
                # R: La contraseña ya cambió; el fallo del login no deshace el reset.
                logger.warning(
                    "Auto-login tras la recuperación falló",
                    extra={"error_code": exc.error_code},
                )
                self._state = replace(self._state, login_error=exc)
        return self._state

    async def redeem(
        self,
        email: str | None,
        code: str,
        new_password: str,
        confirmation: str,
    ) -> RecoveryState:
        """
        Canjea el OTP y fija la nueva contraseña.

        Raises:
            CredentialMismatch: sin llamada de red.
            InvalidOrExpiredCodeError: rechazado por el servidor, expirado
                localmente o ya usado.
        """
        target = (email or self._state.email or "").strip().lower()
        secret = (code or "").strip()
        self._check_local(target, secret, new_password, confirmation)
        if not target or not secret:
            raise ValidationError("Email y código son obligatorios.")
        return await self._submit(
            target,
            secret,
            {
                "email": target,
                "otp": secret,
                "new_password": new_password,
                "new_password_confirmation": confirmation,
            },
            new_password,
        )

    async def redeem_token(
        self,
        email: str,
        token: str,
        new_password: str,
        confirmation: str,
    ) -> RecoveryState:
        """Variante del link de email (token en lugar de OTP)."""
        target = (email or "").strip().lower()
        secret = (token or "").strip()
        self._check_local(target, secret, new_password, confirmation)
        if not target or not secret:
            raise ValidationError("Email y token son obligatorios.")
        return await self._submit(
            target,
            secret,
            {
                "email": target,
                "token": secret,
                "new_password": new_password,
                "new_password_confirmation": confirmation,
            },
            new_password,
        )
