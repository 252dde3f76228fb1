"""
===============================================================================
USE CASE: Transition Complaint (+ prioridad)
===============================================================================

Business Goal:
  Mover un reclamo por la máquina de estados con concurrencia optimista:
  la escritura es un compare-and-swap sobre `updated_at`. Dos revisores que
  leyeron la misma versión no pueden ganar los dos.

Orden de validación (importa):
  1) visibilidad                     -> NOT_FOUND
  2) expected_updated_at vs actual   -> STALE_STATE
  3) arista existente                -> INVALID_TRANSITION
  4) rol del actor                   -> FORBIDDEN
  5) notas / handler                 -> VALIDATION_ERROR
  6) CAS en repositorio              -> STALE_STATE si otro escribió antes

  (2) va antes que (3): quien actúa sobre una versión vieja recibe
  STALE_STATE y re-lee, en lugar de un INVALID_TRANSITION engañoso.

-------------------------------------------------------------------------------
CRC CARD
-------------------------------------------------------------------------------
Components:
  TransitionComplaintUseCase, SetComplaintPriorityUseCase

Collaborators:
  - domain.complaint_lifecycle (única autoridad de transiciones)
  - ComplaintRepository (update_if_unchanged)
  - UserRepository (valida handler_id)
  - AuditEventRepository (best-effort)
  - crosscutting.metrics.record_complaint_transition
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime

from ....audit import emit_audit_event
from ....crosscutting.logger import logger
from ....crosscutting.metrics import record_complaint_transition
from ....domain.complaint_lifecycle import (
    ComplaintAction,
    TransitionCheck,
    apply_transition,
    evaluate_transition,
)
from ....domain.entities import ComplaintPriority, next_timestamp
from ....domain.repositories import (
    AuditEventRepository,
    ComplaintRepository,
    UserRepository,
)
from ....identity.users import Identity
from .complaint_results import ComplaintErrorCode, ComplaintResult, error_result
from .get_complaint import load_visible_complaint

_CHECK_TO_ERROR = {
    TransitionCheck.INVALID_TRANSITION: (
        ComplaintErrorCode.INVALID_TRANSITION,
        "La acción no es válida desde el estado actual.",
    ),
    TransitionCheck.FORBIDDEN: (
        ComplaintErrorCode.FORBIDDEN,
        "El rol del actor no permite esta acción.",
    ),
    TransitionCheck.NOTES_REQUIRED: (
        ComplaintErrorCode.VALIDATION_ERROR,
        "Resolver o rechazar requiere notas de resolución.",
    ),
}


@dataclass(frozen=True)
class TransitionComplaintInput:
    complaint_id: int
    action: str
    notes: str | None = None
    handler_id: int | None = None
    expected_updated_at: datetime | None = None


class TransitionComplaintUseCase:
    def __init__(
        self,
        repository: ComplaintRepository,
        user_repository: UserRepository,
        audit_repository: AuditEventRepository | None = None,
    ):
        self._repo = repository
        self._users = user_repository
        self._audit_repo = audit_repository

    def _reject(
        self, action: str, code: ComplaintErrorCode, message: str
    ) -> ComplaintResult:
        record_complaint_transition(action, code.value.lower())
        return error_result(code, message)

    def execute(
        self, actor: Identity, input_data: TransitionComplaintInput
    ) -> ComplaintResult:
        try:
            action = ComplaintAction(input_data.action)
        except ValueError:
            return self._reject(
                "unknown",
                ComplaintErrorCode.VALIDATION_ERROR,
                f"Acción desconocida: {input_data.action!r}",
            )

        current = load_visible_complaint(self._repo, actor, input_data.complaint_id)
        if current is None:
            return self._reject(
                action.value, ComplaintErrorCode.NOT_FOUND, "Reclamo no encontrado."
            )

        if (
            input_data.expected_updated_at is not None
            and input_data.expected_updated_at != current.updated_at
        ):
            return self._reject(
                action.value,
                ComplaintErrorCode.STALE_STATE,
                "El reclamo cambió desde la última lectura.",
            )

        check = evaluate_transition(current, action, actor, notes=input_data.notes)
        if check != TransitionCheck.ALLOWED:
            code, message = _CHECK_TO_ERROR[check]
            return self._reject(action.value, code, message)

        if input_data.handler_id is not None:
            handler = self._users.get_user_by_id(input_data.handler_id)
            if handler is None or not handler.to_identity().is_staff:
                return self._reject(
                    action.value,
                    ComplaintErrorCode.VALIDATION_ERROR,
                    "handler_id debe ser un miembro activo del staff.",
                )

        updated = apply_transition(
            current,
            action,
            actor,
            notes=input_data.notes,
            handler_id=input_data.handler_id,
        )
        if not self._repo.update_if_unchanged(updated, current.updated_at):
            return self._reject(
                action.value,
                ComplaintErrorCode.STALE_STATE,
                "Otro actor modificó el reclamo en simultáneo.",
            )

        record_complaint_transition(action.value, "ok")
        logger.info(
            "Transición de reclamo",
            extra={
                "complaint_id": updated.id,
                "action": action.value,
                "from_status": current.status.value,
                "to_status": updated.status.value,
            },
        )
        emit_audit_event(
            self._audit_repo,
            action=f"complaints.{action.value}",
            actor_id=actor.id,
            target_type="complaint",
            target_id=updated.id,
            metadata={
                "from": current.status.value,
                "to": updated.status.value,
                "handler_id": updated.handler_id,
            },
        )
        return ComplaintResult(complaint=updated)


class SetComplaintPriorityUseCase:
    """Staff ajusta la prioridad (no es una transición de estado)."""

    def __init__(
        self,
        repository: ComplaintRepository,
        audit_repository: AuditEventRepository | None = None,
    ):
        self._repo = repository
        self._audit_repo = audit_repository

    def execute(
        self,
        actor: Identity,
        complaint_id: int,
        priority: str,
        expected_updated_at: datetime | None = None,
    ) -> ComplaintResult:
        if not actor.is_staff:
            return error_result(
                ComplaintErrorCode.FORBIDDEN, "Solo staff puede priorizar reclamos."
            )
        try:
            new_priority = ComplaintPriority(priority)
        except ValueError:
            return error_result(
                ComplaintErrorCode.VALIDATION_ERROR,
                f"Prioridad desconocida: {priority!r}",
            )

        current = self._repo.get_complaint(complaint_id)
        if current is None:
            return error_result(ComplaintErrorCode.NOT_FOUND, "Reclamo no encontrado.")
        if expected_updated_at is not None and expected_updated_at != current.updated_at:
            return error_result(
                ComplaintErrorCode.STALE_STATE,
                "El reclamo cambió desde la última lectura.",
            )
        if current.status.is_terminal:
            return error_result(
                ComplaintErrorCode.INVALID_TRANSITION,
                "No se puede priorizar un reclamo cerrado o retirado.",
            )
        if current.priority == new_priority:
            return ComplaintResult(complaint=current)

        updated = replace(
            current,
            priority=new_priority,
            updated_at=next_timestamp(current.updated_at),
        )
        if not self._repo.update_if_unchanged(updated, current.updated_at):
            return error_result(
                ComplaintErrorCode.STALE_STATE,
                "Otro actor modificó el reclamo en simultáneo.",
            )

        emit_audit_event(
            self._audit_repo,
            action="complaints.priority",
            actor_id=actor.id,
            target_type="complaint",
            target_id=updated.id,
            metadata={"from": current.priority.value, "to": new_priority.value},
        )
        return ComplaintResult(complaint=updated)
