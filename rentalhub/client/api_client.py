"""
===============================================================================
TARJETA CRC — client/api_client.py
===============================================================================

Responsabilidades:
  - Hablar con la API REST (httpx.AsyncClient) con bearer del CredentialStore.
  - Traducir problem+json a la taxonomía de errores (crosscutting.exceptions).
  - Reintentar SOLO lecturas (GET) ante fallas transitorias (tenacity).
  - Propagar X-Request-Id para correlación con los logs del servidor.

Colaboradores:
  - httpx (transporte; en tests ASGITransport o MockTransport)
  - infrastructure.services.retry.create_retry_decorator
  - client.credentials.CredentialStore

Reglas:
  - POST/PATCH nunca se reintentan automáticamente.
  - Red caída o 5xx => TransportError; 4xx => error tipado por `code`.
===============================================================================
"""

from __future__ import annotations

import uuid
from typing import Any, Mapping

import httpx

from ..crosscutting.config import get_settings
from ..crosscutting.exceptions import (
    AccountInactive,
    AuthenticationError,
    AuthorizationError,
    CredentialMismatch,
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
from ..infrastructure.services.retry import create_retry_decorator
from .credentials import CredentialStore

_CODE_TO_ERROR: dict[str, type[RentalHubError]] = {
    "INVALID_CREDENTIALS": InvalidCredentials,
    "ACCOUNT_INACTIVE": AccountInactive,
    "UNAUTHORIZED": AuthenticationError,
    "FORBIDDEN": AuthorizationError,
    "CREDENTIAL_MISMATCH": CredentialMismatch,
    "INVALID_OR_EXPIRED_CODE": InvalidOrExpiredCodeError,
    "VALIDATION_ERROR": ValidationError,
    "NOT_FOUND": NotFoundError,
    "STALE_STATE": StaleStateError,
    "INVALID_TRANSITION": InvalidTransitionError,
}

_STATUS_TO_ERROR: dict[int, type[RentalHubError]] = {
    400: ValidationError,
    401: AuthenticationError,
    403: AuthorizationError,
    404: NotFoundError,
    422: ValidationError,
}


def _problem_body(response: httpx.Response) -> dict[str, Any]:
    try:
        body = response.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


def error_from_response(response: httpx.Response) -> RentalHubError:
    """problem+json -> excepción tipada (por `code`, si no por status)."""
    body = _problem_body(response)
    code = str(body.get("code") or "")
    message = str(body.get("detail") or response.reason_phrase or "Error")
    errors = [e for e in body.get("errors") or [] if isinstance(e, dict)]
    error_id = next((e["error_id"] for e in errors if e.get("error_id")), None)

    if response.status_code >= 500:
        return TransportError(
            message, status_code=response.status_code, error_id=error_id
        )

    error_cls = _CODE_TO_ERROR.get(code) or _STATUS_TO_ERROR.get(response.status_code)
    if error_cls is None:
        return TransportError(
            message, status_code=response.status_code, error_id=error_id
        )
    if issubclass(error_cls, ValidationError):
        field_errors = [
            e for e in errors if "error_id" not in e and "request_id" not in e
        ]
        return error_cls(message, errors=field_errors, error_id=error_id)
    return error_cls(message, error_id=error_id)


class ApiClient:
    def __init__(
        self,
        credentials: CredentialStore,
        *,
        base_url: str | None = None,
        timeout_s: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        max_attempts: int | None = None,
        base_delay: float | None = None,
        max_delay: float | None = None,
    ):
        settings = get_settings()
        self._credentials = credentials
        self._http = httpx.AsyncClient(
            base_url=base_url or settings.api_base_url,
            timeout=timeout_s or settings.api_timeout_seconds,
            transport=transport,
        )
        self._retry = create_retry_decorator(max_attempts, base_delay, max_delay)

    async def __aenter__(self) -> ApiClient:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    def _headers(self, authenticated: bool) -> dict[str, str]:
        headers = {"X-Request-Id": str(uuid.uuid4()), "Accept": "application/json"}
        if authenticated:
            token = self._credentials.load()
            if token:
                headers["Authorization"] = f"Bearer {token}"
        return headers

    async def _send(
        self,
        method: str,
        path: str,
        *,
        json: Mapping[str, Any] | None = None,
        params: Mapping[str, Any] | None = None,
        authenticated: bool = True,
    ) -> Any:
        headers = self._headers(authenticated)
        try:
            response = await self._http.request(
                method, path, json=json, params=params, headers=headers
            )
        except httpx.TransportError as exc:
            raise TransportError(
                f"{method} {path}: {type(exc).__name__}", original_error=exc
            ) from exc
        # R: La cookie de sesión del servidor no es credencial del cliente.
        self._http.cookies.clear()

        if response.is_success:
            if not response.content:
                return None
            return response.json()

        error = error_from_response(response)
        logger.info(
            "API respondió error",
            extra={
                "method": method,
                "path": path,
                "status": response.status_code,
                "error_code": error.error_code,
                "request_id": headers["X-Request-Id"],
            },
        )
        raise error

    async def get(
        self, path: str, *, params: Mapping[str, Any] | None = None
    ) -> Any:
        """GET idempotente: reintenta fallas transitorias."""
        clean = {k: v for k, v in (params or {}).items() if v is not None}
        return await self._retry(self._send)("GET", path, params=clean or None)

    async def post(
        self,
        path: str,
        json: Mapping[str, Any] | None = None,
        *,
        authenticated: bool = True,
    ) -> Any:
        return await self._send("POST", path, json=json, authenticated=authenticated)

    async def patch(self, path: str, json: Mapping[str, Any]) -> Any:
        return await self._send("PATCH", path, json=json)
