"""
===============================================================================
TARJETA CRC — router.py (Router raíz / Composición)
===============================================================================

Responsabilidades:
  - Definir el APIRouter raíz que main.py incluye en la app.
  - Centralizar responses RFC7807 para OpenAPI.
  - Componer routers por bounded context.

Notas:
  - Las rutas se montan sin prefijo de versión: /auth/* y /complaints son el
    contrato que consume el cliente.
===============================================================================
"""

from __future__ import annotations

from fastapi import APIRouter

from ....crosscutting.error_responses import OPENAPI_ERROR_RESPONSES
from .routers.complaints import router as complaints_router


def build_router() -> APIRouter:
    """Construye el router raíz (testeable sin levantar la app)."""
    api_router = APIRouter(responses=OPENAPI_ERROR_RESPONSES)
    api_router.include_router(complaints_router)
    return api_router


router = build_router()

__all__ = ["router", "build_router"]
