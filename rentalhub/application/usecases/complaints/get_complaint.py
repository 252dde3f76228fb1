"""
===============================================================================
USE CASE: Get Complaint (+ historial)
===============================================================================

Business Goal:
  - Leer un reclamo: el reclamante solo ve los propios; staff ve cualquiera.
    Un reclamo ajeno se reporta como NOT_FOUND (no se filtra su existencia).
  - Historial (solo staff): eventos de auditoría del reclamo, en orden.

-------------------------------------------------------------------------------
CRC CARD
-------------------------------------------------------------------------------
Components:
  GetComplaintUseCase, GetComplaintHistoryUseCase

Collaborators:
  - ComplaintRepository
  - AuditEventRepository
===============================================================================
"""

from __future__ import annotations

from ....domain.entities import Complaint
from ....domain.repositories import AuditEventRepository, ComplaintRepository
from ....identity.users import Identity
from .complaint_results import (
    ComplaintError,
    ComplaintErrorCode,
    ComplaintHistoryResult,
    ComplaintResult,
    error_result,
)


def load_visible_complaint(
    repository: ComplaintRepository, actor: Identity, complaint_id: int
) -> Complaint | None:
    """Reclamo si existe y el actor puede verlo; None en otro caso."""
    complaint = repository.get_complaint(complaint_id)
    if complaint is None:
        return None
    if actor.is_staff or complaint.is_owned_by(actor.id):
        return complaint
    return None


class GetComplaintUseCase:
    def __init__(self, repository: ComplaintRepository):
        self._repo = repository

    def execute(self, actor: Identity, complaint_id: int) -> ComplaintResult:
        complaint = load_visible_complaint(self._repo, actor, complaint_id)
        if complaint is None:
            return error_result(
                ComplaintErrorCode.NOT_FOUND, "Reclamo no encontrado."
            )
        return ComplaintResult(complaint=complaint)


class GetComplaintHistoryUseCase:
    def __init__(
        self,
        repository: ComplaintRepository,
        audit_repository: AuditEventRepository,
    ):
        self._repo = repository
        self._audit_repo = audit_repository

    def execute(self, actor: Identity, complaint_id: int) -> ComplaintHistoryResult:
        if not actor.is_staff:
            return ComplaintHistoryResult(
                error=ComplaintError(
                    code=ComplaintErrorCode.FORBIDDEN,
                    message="El historial es solo para staff.",
                )
            )
        if self._repo.get_complaint(complaint_id) is None:
            return ComplaintHistoryResult(
                error=ComplaintError(
                    code=ComplaintErrorCode.NOT_FOUND,
                    message="Reclamo no encontrado.",
                )
            )
        events = self._audit_repo.list_events(
            target_type="complaint",
            target_id=complaint_id,
            action_prefix="complaints.",
        )
        return ComplaintHistoryResult(events=events)
