"""
Auth Use Cases

Recuperación de contraseña: emisión de código (OTP + token de link) y canje.
El login en sí vive en identity/auth_users.py.
"""

from .request_password_reset import (
    GENERIC_ACK,
    PasswordResetRequestResult,
    RequestPasswordResetUseCase,
)
from .reset_password import (
    MIN_PASSWORD_CHARS,
    ResetPasswordError,
    ResetPasswordErrorCode,
    ResetPasswordInput,
    ResetPasswordResult,
    ResetPasswordUseCase,
)

__all__ = [
    "GENERIC_ACK",
    "MIN_PASSWORD_CHARS",
    "PasswordResetRequestResult",
    "RequestPasswordResetUseCase",
    "ResetPasswordError",
    "ResetPasswordErrorCode",
    "ResetPasswordInput",
    "ResetPasswordResult",
    "ResetPasswordUseCase",
]
