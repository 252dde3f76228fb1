"""
===============================================================================
TARJETA CRC — domain/complaint_lifecycle.py
===============================================================================

Módulo:
    Máquina de estados de reclamos (tabla de transiciones + política de actor)

Responsabilidades:
    - Ser la ÚNICA autoridad sobre qué transición existe y quién la ejecuta.
    - Evaluar una acción (sin DB, sin red) y devolver una decisión explícita.
    - Aplicar una transición válida produciendo un Complaint nuevo.

Colaboradores:
    - domain.entities.Complaint / ComplaintStatus
    - identity.users.Identity (rol del actor)
    - application/usecases/complaints/transition_complaint.py (servidor)
    - client/complaint_manager.py (pre-validación local)

Reglas:
    - submitted    --withdraw-->     withdrawn     (reclamante)
    - submitted    --begin_review--> under_review  (staff)
    - under_review --withdraw-->     withdrawn     (reclamante)
    - under_review --resolve-->      resolved      (staff, notas + handler)
    - under_review --reject-->       rejected      (staff, notas + handler)
    - resolved/rejected --close-->   closed        (staff)
    - Cualquier otro par (estado, acción) es inválido.
    - Primero se valida que exista la arista; después, quién la ejecuta.
===============================================================================
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from enum import Enum

from ..identity.users import Identity
from .entities import Complaint, ComplaintStatus, next_timestamp


class ComplaintAction(str, Enum):
    BEGIN_REVIEW = "begin_review"
    RESOLVE = "resolve"
    REJECT = "reject"
    WITHDRAW = "withdraw"
    CLOSE = "close"


class Performer(str, Enum):
    COMPLAINANT = "complainant"
    STAFF = "staff"


class TransitionCheck(str, Enum):
    ALLOWED = "allowed"
    INVALID_TRANSITION = "invalid_transition"
    FORBIDDEN = "forbidden"
    NOTES_REQUIRED = "notes_required"


TRANSITIONS: dict[tuple[ComplaintStatus, ComplaintAction], ComplaintStatus] = {
    (ComplaintStatus.SUBMITTED, ComplaintAction.WITHDRAW): ComplaintStatus.WITHDRAWN,
    (ComplaintStatus.SUBMITTED, ComplaintAction.BEGIN_REVIEW): ComplaintStatus.UNDER_REVIEW,
    (ComplaintStatus.UNDER_REVIEW, ComplaintAction.WITHDRAW): ComplaintStatus.WITHDRAWN,
    (ComplaintStatus.UNDER_REVIEW, ComplaintAction.RESOLVE): ComplaintStatus.RESOLVED,
    (ComplaintStatus.UNDER_REVIEW, ComplaintAction.REJECT): ComplaintStatus.REJECTED,
    (ComplaintStatus.RESOLVED, ComplaintAction.CLOSE): ComplaintStatus.CLOSED,
    (ComplaintStatus.REJECTED, ComplaintAction.CLOSE): ComplaintStatus.CLOSED,
}

PERFORMERS: dict[ComplaintAction, Performer] = {
    ComplaintAction.WITHDRAW: Performer.COMPLAINANT,
    ComplaintAction.BEGIN_REVIEW: Performer.STAFF,
    ComplaintAction.RESOLVE: Performer.STAFF,
    ComplaintAction.REJECT: Performer.STAFF,
    ComplaintAction.CLOSE: Performer.STAFF,
}

_NEEDS_NOTES = frozenset({ComplaintAction.RESOLVE, ComplaintAction.REJECT})


def target_status(
    status: ComplaintStatus, action: ComplaintAction
) -> ComplaintStatus | None:
    """Estado destino de la arista (status, action), o None si no existe."""
    return TRANSITIONS.get((status, action))


def is_performer(complaint: Complaint, action: ComplaintAction, actor: Identity) -> bool:
    """¿El actor ocupa el rol que la acción exige sobre este reclamo?"""
    if not actor.active:
        return False
    if PERFORMERS[action] == Performer.STAFF:
        return actor.is_staff
    return complaint.is_owned_by(actor.id)


def evaluate_transition(
    complaint: Complaint,
    action: ComplaintAction,
    actor: Identity,
    *,
    notes: str | None = None,
) -> TransitionCheck:
    """Decide si `actor` puede aplicar `action` sobre `complaint` tal como está."""
    if target_status(complaint.status, action) is None:
        return TransitionCheck.INVALID_TRANSITION
    if not is_performer(complaint, action, actor):
        return TransitionCheck.FORBIDDEN
    if action in _NEEDS_NOTES and not (notes or "").strip():
        return TransitionCheck.NOTES_REQUIRED
    return TransitionCheck.ALLOWED


def allowed_actions(complaint: Complaint, actor: Identity) -> list[ComplaintAction]:
    """Acciones que el actor podría ejecutar ahora (para la UI)."""
    return [
        action
        for action in ComplaintAction
        if target_status(complaint.status, action) is not None
        and is_performer(complaint, action, actor)
    ]


def apply_transition(
    complaint: Complaint,
    action: ComplaintAction,
    actor: Identity,
    *,
    notes: str | None = None,
    handler_id: int | None = None,
    now: datetime | None = None,
) -> Complaint:
    """
    Aplica la transición y devuelve el reclamo nuevo.

    Raises:
        ValueError: si evaluate_transition() no la permite.
    """
    check = evaluate_transition(complaint, action, actor, notes=notes)
    if check != TransitionCheck.ALLOWED:
        raise ValueError(
            f"{action.value} not allowed from {complaint.status.value}: {check.value}"
        )

    updated_at = next_timestamp(complaint.updated_at, now)
    new_status = TRANSITIONS[(complaint.status, action)]
    changes: dict[str, object] = {"status": new_status, "updated_at": updated_at}

    if action == ComplaintAction.BEGIN_REVIEW:
        changes["handler_id"] = handler_id if handler_id is not None else actor.id
    elif action == ComplaintAction.WITHDRAW:
        changes["handler_id"] = None
    elif action in _NEEDS_NOTES:
        changes["handler_id"] = _first_not_none(
            handler_id, complaint.handler_id, actor.id
        )
        changes["resolution_notes"] = (notes or "").strip()
    elif action == ComplaintAction.CLOSE:
        changes["closed_at"] = updated_at

    return replace(complaint, **changes)


def _first_not_none(*values: int | None) -> int | None:
    return next((v for v in values if v is not None), None)
