"""
===============================================================================
USE CASE: Reset Password (canje de código + nueva contraseña)
===============================================================================

Business Goal:
  Reemplazar la contraseña si (email, OTP|token) corresponde al código vigente.

Reglas:
  - new_password != confirmation     -> CREDENTIAL_MISMATCH (antes de todo)
  - contraseña débil / sin código    -> VALIDATION_ERROR
  - email desconocido, código usado, reemplazado, vencido o quemado por
    intentos                          -> INVALID_OR_EXPIRED_CODE
  - Un OTP incorrecto suma un intento al código vigente.
  - El canje es único: mark_used() atómico; luego se revocan todos los
    códigos del usuario.

-------------------------------------------------------------------------------
CRC CARD
-------------------------------------------------------------------------------
Component:
  ResetPasswordUseCase

Collaborators:
  - UserRepository, PasswordResetCodeRepository
  - identity.auth_users.hash_password (Argon2)
  - AuditEventRepository (best-effort)
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from ....audit import emit_audit_event
from ....crosscutting.logger import logger
from ....crosscutting.metrics import record_password_reset
from ....domain.entities import PasswordResetCode, utcnow
from ....domain.repositories import (
    AuditEventRepository,
    PasswordResetCodeRepository,
    UserRepository,
)
from ....identity.users import User
from .reset_codes import hash_link_token, hash_secret, secrets_match

MIN_PASSWORD_CHARS = 8


class ResetPasswordErrorCode(str, Enum):
    VALIDATION_ERROR = "VALIDATION_ERROR"
    CREDENTIAL_MISMATCH = "CREDENTIAL_MISMATCH"
    INVALID_OR_EXPIRED_CODE = "INVALID_OR_EXPIRED_CODE"


@dataclass(frozen=True)
class ResetPasswordError:
    code: ResetPasswordErrorCode
    message: str


@dataclass
class ResetPasswordResult:
    user: User | None = None
    error: ResetPasswordError | None = None


@dataclass(frozen=True)
class ResetPasswordInput:
    email: str
    new_password: str
    new_password_confirmation: str
    otp: str | None = None
    token: str | None = None


def _fail(code: ResetPasswordErrorCode, message: str) -> ResetPasswordResult:
    record_password_reset("redeem", code.value.lower())
    return ResetPasswordResult(error=ResetPasswordError(code=code, message=message))


_INVALID_CODE_MESSAGE = "El código es inválido o expiró. Pedí uno nuevo."


class ResetPasswordUseCase:
    def __init__(
        self,
        user_repository: UserRepository,
        code_repository: PasswordResetCodeRepository,
        password_hasher,
        audit_repository: AuditEventRepository | None = None,
        *,
        pepper: str,
        max_attempts: int = 5,
    ):
        self._users = user_repository
        self._codes = code_repository
        self._hash_password = password_hasher
        self._audit_repo = audit_repository
        self._pepper = pepper
        self._max_attempts = max_attempts

    def _resolve_code(
        self, user: User, otp: str | None, token: str | None
    ) -> PasswordResetCode | None:
        now = utcnow()
        if token:
            code = self._codes.get_code_by_token_hash(
                hash_link_token(self._pepper, token)
            )
            if code is None or code.user_id != user.id:
                return None
            return code if code.is_usable(now, self._max_attempts) else None

        code = self._codes.get_latest_code(user.id)
        if code is None or not code.is_usable(now, self._max_attempts):
            return None
        candidate = hash_secret(self._pepper, user.id, otp or "")
        if not secrets_match(code.code_hash, candidate):
            attempts = self._codes.register_failed_attempt(code.id)
            logger.info(
                "OTP incorrecto",
                extra={"user_id": user.id, "attempts": attempts},
            )
            return None
        return code

    def execute(self, input_data: ResetPasswordInput) -> ResetPasswordResult:
        if input_data.new_password != input_data.new_password_confirmation:
            return _fail(
                ResetPasswordErrorCode.CREDENTIAL_MISMATCH,
                "La contraseña y su confirmación no coinciden.",
            )
        if len(input_data.new_password or "") < MIN_PASSWORD_CHARS:
            return _fail(
                ResetPasswordErrorCode.VALIDATION_ERROR,
                f"La contraseña debe tener al menos {MIN_PASSWORD_CHARS} caracteres.",
            )
        otp = (input_data.otp or "").strip()
        token = (input_data.token or "").strip()
        if bool(otp) == bool(token):
            return _fail(
                ResetPasswordErrorCode.VALIDATION_ERROR,
                "Enviá exactamente uno de: otp o token.",
            )

        user = self._users.get_user_by_email((input_data.email or "").strip().lower())
        if user is None or not user.is_active:
            return _fail(
                ResetPasswordErrorCode.INVALID_OR_EXPIRED_CODE, _INVALID_CODE_MESSAGE
            )

        code = self._resolve_code(user, otp or None, token or None)
        now = utcnow()
        if code is None or not self._codes.mark_used(code.id, now):
            return _fail(
                ResetPasswordErrorCode.INVALID_OR_EXPIRED_CODE, _INVALID_CODE_MESSAGE
            )

        new_hash = self._hash_password(input_data.new_password)
        self._users.update_password(user.id, new_hash)
        self._codes.revoke_all_for_user(user.id, now)

        record_password_reset("redeem", "ok")
        logger.info("Contraseña restablecida", extra={"user_id": user.id})
        emit_audit_event(
            self._audit_repo,
            action="auth.password_reset.completed",
            actor_id=user.id,
            target_type="user",
            target_id=user.id,
            metadata={"via": "token" if token else "otp"},
        )
        return ResetPasswordResult(user=user)
