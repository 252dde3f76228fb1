"""
===============================================================================
MÓDULO: Respuestas de error estándar (RFC 7807 / Problem Details)
===============================================================================

Objetivo
--------
Uniformar los errores HTTP para que:
- el cliente (rentalhub.client) reconstruya la excepción por "code"
- el backend correlacione por request_id

-------------------------------------------------------------------------------
CRC (Component Card)
-------------------------------------------------------------------------------
Componente:
  AppHTTPException + handlers

Responsabilidades:
  - Catálogo de códigos (ErrorCode), compartido con el cliente
  - Payload RFC7807 (ErrorDetail)
  - Factories de errores frecuentes
  - Handlers FastAPI que devuelven application/problem+json

Colaboradores:
  - crosscutting/middleware.py (request_id)
  - api/exception_handlers.py
  - client/api_client.py
===============================================================================
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel


class ErrorCode(str, Enum):
    # 4xx
    VALIDATION_ERROR = "VALIDATION_ERROR"
    CREDENTIAL_MISMATCH = "CREDENTIAL_MISMATCH"
    INVALID_OR_EXPIRED_CODE = "INVALID_OR_EXPIRED_CODE"
    UNAUTHORIZED = "UNAUTHORIZED"
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
    ACCOUNT_INACTIVE = "ACCOUNT_INACTIVE"
    FORBIDDEN = "FORBIDDEN"
    NOT_FOUND = "NOT_FOUND"
    STALE_STATE = "STALE_STATE"
    INVALID_TRANSITION = "INVALID_TRANSITION"

    # 5xx
    INTERNAL_ERROR = "INTERNAL_ERROR"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"
    DATABASE_ERROR = "DATABASE_ERROR"


class ErrorDetail(BaseModel):
    """
    Modelo RFC 7807 (Problem Details).

    Campos extra:
    - code: error code estable para clientes
    - errors: lista opcional de detalles (ej: [{"field":"x","msg":"..."}])
    """

    type: str = "about:blank"
    title: str
    status: int
    detail: str
    code: ErrorCode
    instance: str | None = None
    errors: list[dict[str, Any]] | None = None


PROBLEM_JSON_MEDIA_TYPE = "application/problem+json"

_OPENAPI_ERROR_CONTENT = {
    PROBLEM_JSON_MEDIA_TYPE: {"schema": {"$ref": "#/components/schemas/ErrorDetail"}}
}


def _problem(description: str) -> dict[str, Any]:
    return {
        "description": f"{description} (RFC7807)",
        "model": ErrorDetail,
        "content": _OPENAPI_ERROR_CONTENT,
    }


OPENAPI_ERROR_RESPONSES = {
    "401": _problem("Unauthorized"),
    "403": _problem("Forbidden"),
    "404": _problem("Not Found"),
    "409": _problem("Conflict: stale state or invalid transition"),
    "422": _problem("Validation Error"),
    "default": _problem("Error"),
}


class AppHTTPException(HTTPException):
    """
    ----------------------------------------------------------------------------
    CRC (Class Card)
    ----------------------------------------------------------------------------
    Clase:
      AppHTTPException

    Responsabilidades:
      - Adjuntar un ErrorCode estable
      - Transportar errores de validación (errors[])

    Colaboradores:
      - app_exception_handler()
    ----------------------------------------------------------------------------
    """

    def __init__(
        self,
        status_code: int,
        code: ErrorCode,
        detail: str,
        errors: list[dict[str, Any]] | None = None,
        headers: dict[str, str] | None = None,
    ):
        super().__init__(status_code=status_code, detail=detail, headers=headers)
        self.code = code
        self.errors = errors


# ---------------------------------------------------------------------------
# Factories de error (helpers)
# ---------------------------------------------------------------------------
def validation_error(
    detail: str,
    errors: list[dict[str, Any]] | None = None,
    code: ErrorCode = ErrorCode.VALIDATION_ERROR,
) -> AppHTTPException:
    return AppHTTPException(422, code, detail, errors)


def not_found(resource: str, identifier: str) -> AppHTTPException:
    return AppHTTPException(
        404, ErrorCode.NOT_FOUND, f"{resource} '{identifier}' no encontrado"
    )


def conflict(detail: str, code: ErrorCode) -> AppHTTPException:
    return AppHTTPException(409, code, detail)


def unauthorized(
    detail: str = "Autenticación requerida",
    code: ErrorCode = ErrorCode.UNAUTHORIZED,
) -> AppHTTPException:
    return AppHTTPException(
        401, code, detail, headers={"WWW-Authenticate": "Bearer"}
    )


def forbidden(
    detail: str = "Acceso denegado", code: ErrorCode = ErrorCode.FORBIDDEN
) -> AppHTTPException:
    return AppHTTPException(403, code, detail)


def internal_error(detail: str = "Ocurrió un error inesperado") -> AppHTTPException:
    return AppHTTPException(500, ErrorCode.INTERNAL_ERROR, detail)


def database_error(
    detail: str = "Falla en operación de base de datos",
) -> AppHTTPException:
    return AppHTTPException(503, ErrorCode.DATABASE_ERROR, detail)


# ---------------------------------------------------------------------------
# Handlers FastAPI
# ---------------------------------------------------------------------------
def _problem_response(
    request: Request,
    *,
    status: int,
    code: ErrorCode,
    detail: str,
    errors: list[dict[str, Any]] | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    request_id = getattr(getattr(request, "state", None), "request_id", None)
    errors = list(errors or [])
    if request_id:
        errors.append({"request_id": request_id})

    error = ErrorDetail(
        type=f"about:blank/{code.value.lower()}",
        title=code.value.replace("_", " ").title(),
        status=status,
        detail=detail,
        code=code,
        instance=str(request.url),
        errors=errors or None,
    )
    return JSONResponse(
        status_code=status,
        content=error.model_dump(mode="json", exclude_none=True),
        headers=headers,
        media_type=PROBLEM_JSON_MEDIA_TYPE,
    )


async def app_exception_handler(
    request: Request, exc: AppHTTPException
) -> JSONResponse:
    """Handler para AppHTTPException (incluye instance y request_id)."""
    return _problem_response(
        request,
        status=exc.status_code,
        code=exc.code,
        detail=str(exc.detail),
        errors=exc.errors,
        headers=getattr(exc, "headers", None),
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Handler de fallback para excepciones no manejadas.
    (No expone detalles internos al cliente.)
    """
    return _problem_response(
        request,
        status=500,
        code=ErrorCode.INTERNAL_ERROR,
        detail="Ocurrió un error inesperado",
    )
