"""
===============================================================================
TARJETA CRC — error_mapping.py (UseCase Error -> HTTP RFC7807)
===============================================================================

Responsabilidades:
  - Traducir códigos de error de casos de uso a AppHTTPException (RFC7807).
  - Centralizar el mapeo para no duplicarlo en routers.

Reglas:
  - Los use cases devuelven errores tipados (code + message).
  - STALE_STATE e INVALID_TRANSITION son 409 con códigos distintos: el
    cliente re-lee en el primero y muestra el error en el segundo.

Colaboradores:
  - application.usecases (ComplaintErrorCode, ResetPasswordErrorCode)
  - crosscutting.error_responses
===============================================================================
"""

from __future__ import annotations

from ....application.usecases import ComplaintErrorCode, ResetPasswordErrorCode
from ....crosscutting.error_responses import (
    ErrorCode,
    conflict,
    forbidden,
    not_found,
    validation_error,
)


def raise_complaint_error(
    error_code: ComplaintErrorCode,
    message: str,
    complaint_id: int | None = None,
) -> None:
    if error_code == ComplaintErrorCode.FORBIDDEN:
        raise forbidden(message)
    if error_code == ComplaintErrorCode.NOT_FOUND:
        raise not_found("Complaint", str(complaint_id or "unknown"))
    if error_code == ComplaintErrorCode.STALE_STATE:
        raise conflict(message, ErrorCode.STALE_STATE)
    if error_code == ComplaintErrorCode.INVALID_TRANSITION:
        raise conflict(message, ErrorCode.INVALID_TRANSITION)
    # VALIDATION_ERROR y cualquier código nuevo => 422
    raise validation_error(message)


def raise_reset_password_error(error_code: ResetPasswordErrorCode, message: str) -> None:
    if error_code == ResetPasswordErrorCode.CREDENTIAL_MISMATCH:
        raise validation_error(message, code=ErrorCode.CREDENTIAL_MISMATCH)
    if error_code == ResetPasswordErrorCode.INVALID_OR_EXPIRED_CODE:
        raise validation_error(message, code=ErrorCode.INVALID_OR_EXPIRED_CODE)
    raise validation_error(message)
