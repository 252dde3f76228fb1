"""
===============================================================================
MÓDULO: Taxonomía de errores del core (cliente y servidor)
===============================================================================

Objetivo
--------
Una sola jerarquía de excepciones que:
- lleva un error_code estable (igual al "code" del problem+json)
- lleva error_id para correlacionar con logs
- dice explícitamente si el error es reintentable

-------------------------------------------------------------------------------
CRC (Component Card)
-------------------------------------------------------------------------------
Componente:
  RentalHubError + subclases

Responsabilidades:
  - Clasificar fallas: autenticación, autorización, validación, concurrencia,
    transporte, transición inválida, código de recuperación inválido
  - Permitir al cliente reconstruir el error a partir del código HTTP

Colaboradores:
  - api/exception_handlers.py (servidor: error -> RFC7807)
  - client/api_client.py (cliente: RFC7807 -> error)
  - client/session_store.py (AuthenticationError => identity=None)
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from uuid import uuid4


@dataclass(frozen=True)
class ErrorResponse:
    """Estructura mínima para serializar un error interno."""

    error_code: str
    message: str
    error_id: str

    def to_dict(self) -> dict:
        return {
            "error_code": self.error_code,
            "message": self.message,
            "error_id": self.error_id,
        }


class RentalHubError(Exception):
    """
    ----------------------------------------------------------------------------
    CRC (Class Card)
    ----------------------------------------------------------------------------
    Clase:
      RentalHubError

    Responsabilidades:
      - Base de todos los errores del core
      - Proveer error_code + error_id + message + retryable

    Colaboradores:
      - api/exception_handlers.py
      - client/api_client.py
    ----------------------------------------------------------------------------
    """

    error_code: str = "RENTALHUB_ERROR"
    retryable: bool = False

    def __init__(
        self,
        message: str,
        error_id: str | None = None,
        original_error: Exception | None = None,
    ):
        self.message = message
        self.error_id = error_id or str(uuid4())
        self.original_error = original_error
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        return ErrorResponse(
            error_code=self.error_code, message=self.message, error_id=self.error_id
        )


# -----------------------------------------------------------------------------
# Autenticación (recuperable con un nuevo login)
# -----------------------------------------------------------------------------
class AuthenticationError(RentalHubError):
    """Credenciales inválidas o sesión expirada."""

    error_code: str = "UNAUTHORIZED"


class InvalidCredentials(AuthenticationError):
    error_code: str = "INVALID_CREDENTIALS"


class AccountInactive(AuthenticationError):
    error_code: str = "ACCOUNT_INACTIVE"


# -----------------------------------------------------------------------------
# Autorización / validación (no se reintentan)
# -----------------------------------------------------------------------------
class AuthorizationError(RentalHubError):
    """El rol o el estado de verificación no alcanza."""

    error_code: str = "FORBIDDEN"


class ValidationError(RentalHubError):
    """Input mal formado."""

    error_code: str = "VALIDATION_ERROR"

    def __init__(
        self,
        message: str,
        errors: list[dict] | None = None,
        error_id: str | None = None,
    ):
        super().__init__(message, error_id=error_id)
        self.errors = errors or []


class CredentialMismatch(ValidationError):
    """La nueva contraseña y su confirmación no coinciden."""

    error_code: str = "CREDENTIAL_MISMATCH"


class NotFoundError(RentalHubError):
    error_code: str = "NOT_FOUND"


# -----------------------------------------------------------------------------
# Ciclo de vida / concurrencia
# -----------------------------------------------------------------------------
class StaleStateError(RentalHubError):
    """La entidad cambió desde que se leyó (updated_at no coincide)."""

    error_code: str = "STALE_STATE"


class InvalidTransitionError(RentalHubError):
    """Acción no permitida desde el estado actual (permanente para ese input)."""

    error_code: str = "INVALID_TRANSITION"


class InvalidOrExpiredCodeError(RentalHubError):
    """Código de recuperación rechazado: usado, reemplazado o vencido."""

    error_code: str = "INVALID_OR_EXPIRED_CODE"


# -----------------------------------------------------------------------------
# Infraestructura
# -----------------------------------------------------------------------------
class TransportError(RentalHubError):
    """Falla de red o del servidor (5xx)."""

    error_code: str = "TRANSPORT_ERROR"
    retryable: bool = True

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        error_id: str | None = None,
        original_error: Exception | None = None,
    ):
        super().__init__(message, error_id=error_id, original_error=original_error)
        self.status_code = status_code


class DatabaseError(RentalHubError):
    """Errores de DB (conexión, query, timeout, pool)."""

    error_code: str = "DATABASE_ERROR"
