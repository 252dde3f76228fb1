"""
===============================================================================
USE CASE: Request Password Reset
===============================================================================

Business Goal:
  Emitir un código de recuperación para el email dado. La respuesta es
  SIEMPRE la misma, exista o no la cuenta (no se enumeran cuentas).

Reglas:
  - Un código nuevo revoca todos los anteriores del usuario (el último manda).
  - Se guarda solo el hash (OTP y token de link).
  - Cuentas inactivas no reciben código.
  - Una falla de entrega se loguea y mide, pero no cambia la respuesta.

-------------------------------------------------------------------------------
CRC CARD
-------------------------------------------------------------------------------
Component:
  RequestPasswordResetUseCase

Collaborators:
  - UserRepository, PasswordResetCodeRepository
  - ResetCodeNotifier (outbox / webhook)
  - AuditEventRepository (best-effort)
  - crosscutting.metrics.record_password_reset
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from uuid import uuid4

from ....audit import emit_audit_event
from ....crosscutting.exceptions import TransportError
from ....crosscutting.logger import logger
from ....crosscutting.metrics import record_password_reset
from ....domain.entities import PasswordResetCode, utcnow
from ....domain.repositories import (
    AuditEventRepository,
    PasswordResetCodeRepository,
    UserRepository,
)
from ....domain.services import ResetCodeMessage, ResetCodeNotifier
from .reset_codes import generate_link_token, generate_otp, hash_link_token, hash_secret

GENERIC_ACK = (
    "Si el email está registrado, vas a recibir un código para restablecer "
    "tu contraseña."
)


@dataclass(frozen=True)
class PasswordResetRequestResult:
    message: str
    expires_in: int


class RequestPasswordResetUseCase:
    def __init__(
        self,
        user_repository: UserRepository,
        code_repository: PasswordResetCodeRepository,
        notifier: ResetCodeNotifier,
        audit_repository: AuditEventRepository | None = None,
        *,
        pepper: str,
        ttl_minutes: int = 15,
        code_length: int = 6,
    ):
        self._users = user_repository
        self._codes = code_repository
        self._notifier = notifier
        self._audit_repo = audit_repository
        self._pepper = pepper
        self._ttl = timedelta(minutes=ttl_minutes)
        self._code_length = code_length

    def execute(self, email: str) -> PasswordResetRequestResult:
        result = PasswordResetRequestResult(
            message=GENERIC_ACK, expires_in=int(self._ttl.total_seconds())
        )
        normalized = (email or "").strip().lower()
        user = self._users.get_user_by_email(normalized) if normalized else None
        if user is None or not user.is_active:
            record_password_reset("request", "ignored")
            return result

        now = utcnow()
        otp = generate_otp(self._code_length)
        token = generate_link_token()
        code = PasswordResetCode(
            id=uuid4(),
            user_id=user.id,
            code_hash=hash_secret(self._pepper, user.id, otp),
            token_hash=hash_link_token(self._pepper, token),
            created_at=now,
            expires_at=now + self._ttl,
        )
        self._codes.replace_active_code(code)

        try:
            self._notifier.send_reset_code(
                ResetCodeMessage(
                    email=user.email, code=otp, token=token, expires_at=code.expires_at
                )
            )
        except TransportError:
            logger.exception(
                "No se pudo entregar el código de recuperación",
                extra={"user_id": user.id},
            )
            record_password_reset("request", "delivery_failed")
            return result

        record_password_reset("request", "issued")
        emit_audit_event(
            self._audit_repo,
            action="auth.password_reset.requested",
            actor_id=user.id,
            target_type="user",
            target_id=user.id,
            metadata={"expires_at": code.expires_at},
        )
        return result
