"""
===============================================================================
TARJETA CRC — rentalhub/api/exception_handlers.py (Manejo Centralizado)
===============================================================================

Responsabilidades:
  - Traducir la taxonomía de errores (crosscutting.exceptions) a RFC7807.
  - Traducir errores de validación de FastAPI a VALIDATION_ERROR.
  - Centralizar logging de errores con request_id + error_id.
  - Evitar filtrar detalles internos en errores no controlados.

Patrones aplicados:
  - Exception Mapping (Presentation Layer).
  - Fail-safe: cualquier excepción no tipada -> INTERNAL_ERROR (con logging).

Colaboradores:
  - crosscutting.error_responses: AppHTTPException, ErrorCode, app_exception_handler
  - crosscutting.exceptions: RentalHubError y derivadas
===============================================================================
"""

from __future__ import annotations

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ..crosscutting.config import get_settings
from ..crosscutting.error_responses import (
    AppHTTPException,
    ErrorCode,
    app_exception_handler,
)
from ..crosscutting.exceptions import (
    AccountInactive,
    AuthenticationError,
    AuthorizationError,
    CredentialMismatch,
    DatabaseError,
    InvalidCredentials,
    InvalidOrExpiredCodeError,
    InvalidTransitionError,
    NotFoundError,
    RentalHubError,
    StaleStateError,
    TransportError,
    ValidationError,
)
from ..crosscutting.logger import logger

# R: Orden importa: subclases antes que su base.
_ERROR_TABLE: tuple[tuple[type[RentalHubError], int, ErrorCode], ...] = (
    (InvalidCredentials, 401, ErrorCode.INVALID_CREDENTIALS),
    (AccountInactive, 403, ErrorCode.ACCOUNT_INACTIVE),
    (AuthenticationError, 401, ErrorCode.UNAUTHORIZED),
    (AuthorizationError, 403, ErrorCode.FORBIDDEN),
    (CredentialMismatch, 422, ErrorCode.CREDENTIAL_MISMATCH),
    (InvalidOrExpiredCodeError, 422, ErrorCode.INVALID_OR_EXPIRED_CODE),
    (ValidationError, 422, ErrorCode.VALIDATION_ERROR),
    (NotFoundError, 404, ErrorCode.NOT_FOUND),
    (StaleStateError, 409, ErrorCode.STALE_STATE),
    (InvalidTransitionError, 409, ErrorCode.INVALID_TRANSITION),
    (DatabaseError, 503, ErrorCode.DATABASE_ERROR),
    (TransportError, 503, ErrorCode.SERVICE_UNAVAILABLE),
)


def _request_id_from(request: Request) -> str | None:
    return getattr(getattr(request, "state", None), "request_id", None)


def resolve_status(exc: RentalHubError) -> tuple[int, ErrorCode]:
    for exc_type, status_code, code in _ERROR_TABLE:
        if isinstance(exc, exc_type):
            return status_code, code
    return 500, ErrorCode.INTERNAL_ERROR


async def rentalhub_error_handler(
    request: Request, exc: RentalHubError
) -> JSONResponse:
    status_code, code = resolve_status(exc)
    request_id = _request_id_from(request)

    log = logger.error if status_code >= 500 else logger.info
    log(
        "Error de aplicación",
        extra={
            "error_code": code.value,
            "error_id": exc.error_id,
            "status": status_code,
            "request_id": request_id,
        },
    )

    errors: list[dict] = [{"error_id": exc.error_id}]
    if isinstance(exc, ValidationError) and exc.errors:
        errors = list(exc.errors) + errors

    headers = {"WWW-Authenticate": "Bearer"} if status_code == 401 else None
    app_exc = AppHTTPException(
        status_code=status_code,
        code=code,
        detail=exc.message if status_code < 500 else "Servicio no disponible.",
        errors=errors,
        headers=headers,
    )
    return await app_exception_handler(request, app_exc)


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """422 VALIDATION_ERROR con loc/msg por campo (sin ctx no serializable)."""
    errors = [
        {
            "loc": [str(part) for part in err.get("loc", ())],
            "msg": err.get("msg", ""),
            "type": err.get("type", ""),
        }
        for err in exc.errors()
    ]
    app_exc = AppHTTPException(
        status_code=422,
        code=ErrorCode.VALIDATION_ERROR,
        detail="Datos de entrada inválidos.",
        errors=errors,
    )
    return await app_exception_handler(request, app_exc)


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Handler defensivo para excepciones no tipadas.

    - Log completo (stacktrace).
    - Respuesta genérica (evita filtrar internos).
    """
    request_id = _request_id_from(request)
    settings = get_settings()

    logger.error(
        "Excepción no controlada",
        exc_info=True,
        extra={"request_id": request_id, "error": str(exc)},
    )

    detail = str(exc) if not settings.is_production() else "Error interno."
    app_exc = AppHTTPException(
        status_code=500,
        code=ErrorCode.INTERNAL_ERROR,
        detail=detail,
        errors=[{"request_id": request_id}],
    )
    return await app_exception_handler(request, app_exc)


def register_exception_handlers(app) -> None:
    """
    Registra handlers en la app FastAPI.

    Importante:
      - Exception genérica se registra al final como fallback.
    """
    app.add_exception_handler(RentalHubError, rentalhub_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(AppHTTPException, app_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)


__all__ = ["register_exception_handlers", "resolve_status"]
