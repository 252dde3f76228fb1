"""
===============================================================================
USE CASE: Submit Complaint
===============================================================================

Business Goal:
  Un usuario ordinario registra un reclamo. El estado SIEMPRE nace en
  `submitted`, sin handler, con id y timestamps asignados por el servidor.

-------------------------------------------------------------------------------
CRC CARD
-------------------------------------------------------------------------------
Component:
  SubmitComplaintUseCase

Responsibilities:
  - Validar rol (ordinario, activo) y campos (categoría, título, detalle).
  - Validar que haya a lo sumo un subject (usuario / producto / alquiler).
  - Persistir y emitir auditoría.

Collaborators:
  - ComplaintRepository
  - AuditEventRepository (best-effort)
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass

from ....audit import emit_audit_event
from ....crosscutting.logger import logger
from ....domain.entities import (
    Complaint,
    ComplaintCategory,
    ComplaintStatus,
    ComplaintSubject,
    SubjectKind,
    utcnow,
)
from ....domain.repositories import AuditEventRepository, ComplaintRepository
from ....identity.users import Identity, UserRole
from .complaint_results import ComplaintErrorCode, ComplaintResult, error_result

MAX_TITLE_CHARS = 200
MAX_DETAILS_CHARS = 5_000


@dataclass(frozen=True)
class SubmitComplaintInput:
    category: str
    title: str
    details: str
    subject_user_id: int | None = None
    subject_product_id: int | None = None
    subject_rental_id: int | None = None


def _subject_from(input_data: SubmitComplaintInput) -> list[ComplaintSubject]:
    refs = (
        (SubjectKind.USER, input_data.subject_user_id),
        (SubjectKind.PRODUCT, input_data.subject_product_id),
        (SubjectKind.RENTAL, input_data.subject_rental_id),
    )
    return [ComplaintSubject(kind=k, ref_id=r) for k, r in refs if r is not None]


class SubmitComplaintUseCase:
    def __init__(
        self,
        repository: ComplaintRepository,
        audit_repository: AuditEventRepository | None = None,
    ):
        self._repo = repository
        self._audit_repo = audit_repository

    def execute(
        self, actor: Identity, input_data: SubmitComplaintInput
    ) -> ComplaintResult:
        if actor.role != UserRole.USER or not actor.active:
            return error_result(
                ComplaintErrorCode.FORBIDDEN,
                "Solo usuarios del marketplace pueden crear reclamos.",
            )

        try:
            category = ComplaintCategory((input_data.category or "").strip())
        except ValueError:
            return error_result(
                ComplaintErrorCode.VALIDATION_ERROR,
                f"Categoría desconocida: {input_data.category!r}",
            )

        title = (input_data.title or "").strip()
        details = (input_data.details or "").strip()
        if not title or not details:
            return error_result(
                ComplaintErrorCode.VALIDATION_ERROR,
                "Título y detalle son obligatorios.",
            )
        if len(title) > MAX_TITLE_CHARS or len(details) > MAX_DETAILS_CHARS:
            return error_result(
                ComplaintErrorCode.VALIDATION_ERROR,
                "Título o detalle exceden el largo permitido.",
            )

        subjects = _subject_from(input_data)
        if len(subjects) > 1:
            return error_result(
                ComplaintErrorCode.VALIDATION_ERROR,
                "Un reclamo referencia a lo sumo un usuario, producto o alquiler.",
            )

        now = utcnow()
        complaint = self._repo.create_complaint(
            Complaint(
                id=0,
                complainant_id=actor.id,
                category=category,
                title=title,
                details=details,
                status=ComplaintStatus.SUBMITTED,
                created_at=now,
                updated_at=now,
                subject=subjects[0] if subjects else None,
            )
        )

        logger.info(
            "Reclamo creado",
            extra={"complaint_id": complaint.id, "category": category.value},
        )
        emit_audit_event(
            self._audit_repo,
            action="complaints.submit",
            actor_id=actor.id,
            target_type="complaint",
            target_id=complaint.id,
            metadata={"status": complaint.status.value, "category": category.value},
        )
        return ComplaintResult(complaint=complaint)
