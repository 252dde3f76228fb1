"""
===============================================================================
USE CASE RESULTS: Complaints (tipos de resultado + errores)
===============================================================================

Objetivo
--------
Contrato uniforme de salida para los casos de uso de reclamos:
  - éxito: entidad/colección
  - fallo: ComplaintError(code, message)

Los routers traducen ComplaintErrorCode -> RFC7807
(interfaces/api/http/error_mapping.py).

-------------------------------------------------------------------------------
CRC CARD
-------------------------------------------------------------------------------
Component:
    complaint_results (module)

Responsibilities:
    - ComplaintErrorCode: categorías estables de error.
    - ComplaintResult / ComplaintPageResult / ComplaintHistoryResult.

Collaborators:
    - domain.entities.Complaint
    - domain.audit.AuditEvent
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List

from ....domain.audit import AuditEvent
from ....domain.entities import Complaint


class ComplaintErrorCode(str, Enum):
    """
    Códigos:
      - VALIDATION_ERROR: input inválido (título vacío, categoría desconocida...).
      - FORBIDDEN: el rol del actor no habilita la operación.
      - NOT_FOUND: no existe o no es visible para el actor.
      - STALE_STATE: el reclamo cambió desde que el actor lo leyó.
      - INVALID_TRANSITION: la acción no existe desde el estado actual.
    """

    VALIDATION_ERROR = "VALIDATION_ERROR"
    FORBIDDEN = "FORBIDDEN"
    NOT_FOUND = "NOT_FOUND"
    STALE_STATE = "STALE_STATE"
    INVALID_TRANSITION = "INVALID_TRANSITION"


@dataclass(frozen=True)
class ComplaintError:
    code: ComplaintErrorCode
    message: str


@dataclass
class ComplaintResult:
    """Si error is None => complaint presente."""

    complaint: Complaint | None = None
    error: ComplaintError | None = None


@dataclass
class ComplaintPageResult:
    items: List[Complaint] = field(default_factory=list)
    total: int = 0
    page: int = 1
    per_page: int = 15
    error: ComplaintError | None = None


@dataclass
class ComplaintHistoryResult:
    events: List[AuditEvent] = field(default_factory=list)
    error: ComplaintError | None = None


def error_result(code: ComplaintErrorCode, message: str) -> ComplaintResult:
    return ComplaintResult(error=ComplaintError(code=code, message=message))
