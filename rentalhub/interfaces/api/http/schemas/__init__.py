"""
===============================================================================
TARJETA CRC — schemas/__init__.py
===============================================================================

Módulo:
    Paquete de Schemas HTTP (DTOs Pydantic)

Reglas:
    - Schemas NO importan infraestructura ni ejecutan casos de uso.
    - Solo tipos y validación de input/output.
===============================================================================
"""

from .complaints import (
    ComplaintEventRes,
    ComplaintHistoryRes,
    ComplaintRes,
    ComplaintsPageRes,
    SubmitComplaintReq,
    UpdateComplaintReq,
)

__all__ = [
    "ComplaintEventRes",
    "ComplaintHistoryRes",
    "ComplaintRes",
    "ComplaintsPageRes",
    "SubmitComplaintReq",
    "UpdateComplaintReq",
]
