"""
===============================================================================
TARJETA CRC — schemas/complaints.py
===============================================================================

Módulo:
    Schemas HTTP para Reclamos

Responsabilidades:
    - DTOs de request/response para /complaints.
    - Validar forma (longitudes, enums) antes de llegar al caso de uso.
    - Mantener el contrato de listado {data, meta}.

Colaboradores:
    - domain.entities (ComplaintCategory, ComplaintPriority, ComplaintStatus)
    - crosscutting.pagination.Page
===============================================================================
"""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field, field_validator, model_validator

from .....crosscutting.pagination import Page
from .....domain.entities import (
    ComplaintCategory,
    ComplaintPriority,
    ComplaintStatus,
)


# -----------------------------------------------------------------------------
# Requests
# -----------------------------------------------------------------------------
class SubmitComplaintReq(BaseModel):
    """Alta de reclamo. El estado no se acepta: siempre nace `submitted`."""

    category: ComplaintCategory
    title: str = Field(..., min_length=1, max_length=200)
    details: str = Field(..., min_length=1, max_length=5_000)
    subject_user_id: int | None = Field(default=None, ge=1)
    subject_product_id: int | None = Field(default=None, ge=1)
    subject_rental_id: int | None = Field(default=None, ge=1)

    @field_validator("title", "details")
    @classmethod
    def strip_text(cls, v: str) -> str:
        cleaned = v.strip()
        if not cleaned:
            raise ValueError("no puede estar vacío")
        return cleaned


class UpdateComplaintReq(BaseModel):
    """
    PATCH de reclamo: una transición (`action`) o un cambio de prioridad
    (`priority`), nunca ambos en el mismo request.
    """

    action: str | None = Field(default=None, max_length=32)
    notes: str | None = Field(default=None, max_length=5_000)
    handler_id: int | None = Field(default=None, ge=1)
    expected_updated_at: datetime | None = None
    priority: ComplaintPriority | None = None

    @model_validator(mode="after")
    def action_xor_priority(self) -> "UpdateComplaintReq":
        if (self.action is None) == (self.priority is None):
            raise ValueError("Enviá exactamente uno de: action o priority")
        return self


# -----------------------------------------------------------------------------
# Responses
# -----------------------------------------------------------------------------
class ComplaintRes(BaseModel):
    id: int
    complainant_id: int
    category: ComplaintCategory
    title: str
    details: str
    status: ComplaintStatus
    priority: ComplaintPriority
    handler_id: int | None = None
    resolution_notes: str | None = None
    subject_user_id: int | None = None
    subject_product_id: int | None = None
    subject_rental_id: int | None = None
    created_at: datetime
    updated_at: datetime
    closed_at: datetime | None = None


ComplaintsPageRes = Page[ComplaintRes]


class ComplaintEventRes(BaseModel):
    id: UUID
    actor: str
    action: str
    metadata: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime | None = None


class ComplaintHistoryRes(BaseModel):
    complaint_id: int
    events: list[ComplaintEventRes]
