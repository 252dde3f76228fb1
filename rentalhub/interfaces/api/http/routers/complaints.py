"""
===============================================================================
TARJETA CRC — rentalhub/interfaces/api/http/routers/complaints.py
===============================================================================

Class/Module:
    Complaints Router

Responsibilities:
    - Exponer /complaints (listado, alta, lectura, historial, PATCH).
    - Convertir requests HTTP -> inputs de casos de uso.
    - Traducir ComplaintError -> RFC7807 (error_mapping).
    - Exigir usuario autenticado en el borde; el historial exige rol staff.

Collaborators:
    - rentalhub.application.usecases (complaints)
    - rentalhub.identity.auth_users (require_user, require_roles)
    - rentalhub.container (factories DI)
    - schemas.complaints (DTOs Pydantic)

Patterns:
    - Controller / Router
    - Adapter (HTTP -> UseCase)
===============================================================================
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status

from .....application.usecases import (
    GetComplaintHistoryUseCase,
    GetComplaintUseCase,
    ListComplaintsUseCase,
    SetComplaintPriorityUseCase,
    SubmitComplaintInput,
    SubmitComplaintUseCase,
    TransitionComplaintInput,
    TransitionComplaintUseCase,
)
from .....container import (
    get_complaint_history_use_case,
    get_get_complaint_use_case,
    get_list_complaints_use_case,
    get_set_complaint_priority_use_case,
    get_submit_complaint_use_case,
    get_transition_complaint_use_case,
)
from .....crosscutting.pagination import build_meta
from .....domain.entities import Complaint
from .....identity.auth_users import require_roles, require_user
from .....identity.users import STAFF_ROLES, User
from ..error_mapping import raise_complaint_error
from ..schemas.complaints import (
    ComplaintEventRes,
    ComplaintHistoryRes,
    ComplaintRes,
    ComplaintsPageRes,
    SubmitComplaintReq,
    UpdateComplaintReq,
)

router = APIRouter()


def _to_complaint_res(complaint: Complaint) -> ComplaintRes:
    return ComplaintRes(
        id=complaint.id,
        complainant_id=complaint.complainant_id,
        category=complaint.category,
        title=complaint.title,
        details=complaint.details,
        status=complaint.status,
        priority=complaint.priority,
        handler_id=complaint.handler_id,
        resolution_notes=complaint.resolution_notes,
        created_at=complaint.created_at,
        updated_at=complaint.updated_at,
        closed_at=complaint.closed_at,
        **complaint.subject_fields(),
    )


@router.get("/complaints", response_model=ComplaintsPageRes, tags=["complaints"])
def list_complaints(
    status_filter: str | None = Query(default=None, alias="status"),
    page: int = Query(default=1, ge=1),
    per_page: int | None = Query(default=None, ge=1),
    user: User = Depends(require_user()),
    use_case: ListComplaintsUseCase = Depends(get_list_complaints_use_case),
):
    """Staff ve todos; un usuario ordinario solo los propios."""
    result = use_case.execute(
        user.to_identity(), status=status_filter, page=page, per_page=per_page
    )
    if result.error is not None:
        raise_complaint_error(result.error.code, result.error.message)
    return ComplaintsPageRes(
        data=[_to_complaint_res(c) for c in result.items],
        meta=build_meta(result.total, result.page, result.per_page),
    )


@router.post(
    "/complaints",
    response_model=ComplaintRes,
    status_code=status.HTTP_201_CREATED,
    tags=["complaints"],
)
def submit_complaint(
    req: SubmitComplaintReq,
    user: User = Depends(require_user()),
    use_case: SubmitComplaintUseCase = Depends(get_submit_complaint_use_case),
):
    result = use_case.execute(
        user.to_identity(),
        SubmitComplaintInput(
            category=req.category.value,
            title=req.title,
            details=req.details,
            subject_user_id=req.subject_user_id,
            subject_product_id=req.subject_product_id,
            subject_rental_id=req.subject_rental_id,
        ),
    )
    if result.error is not None:
        raise_complaint_error(result.error.code, result.error.message)
    return _to_complaint_res(result.complaint)


@router.get(
    "/complaints/{complaint_id}", response_model=ComplaintRes, tags=["complaints"]
)
def get_complaint(
    complaint_id: int,
    user: User = Depends(require_user()),
    use_case: GetComplaintUseCase = Depends(get_get_complaint_use_case),
):
    result = use_case.execute(user.to_identity(), complaint_id)
    if result.error is not None:
        raise_complaint_error(result.error.code, result.error.message, complaint_id)
    return _to_complaint_res(result.complaint)


@router.get(
    "/complaints/{complaint_id}/history",
    response_model=ComplaintHistoryRes,
    tags=["complaints"],
)
def get_complaint_history(
    complaint_id: int,
    user: User = Depends(require_roles(*STAFF_ROLES)),
    use_case: GetComplaintHistoryUseCase = Depends(get_complaint_history_use_case),
):
    result = use_case.execute(user.to_identity(), complaint_id)
    if result.error is not None:
        raise_complaint_error(result.error.code, result.error.message, complaint_id)
    return ComplaintHistoryRes(
        complaint_id=complaint_id,
        events=[
            ComplaintEventRes(
                id=e.id,
                actor=e.actor,
                action=e.action,
                metadata=e.metadata,
                created_at=e.created_at,
            )
            for e in result.events
        ],
    )


@router.patch(
    "/complaints/{complaint_id}", response_model=ComplaintRes, tags=["complaints"]
)
def update_complaint(
    complaint_id: int,
    req: UpdateComplaintReq,
    user: User = Depends(require_user()),
    transition: TransitionComplaintUseCase = Depends(
        get_transition_complaint_use_case
    ),
    set_priority: SetComplaintPriorityUseCase = Depends(
        get_set_complaint_priority_use_case
    ),
):
    """
    Transición de estado (action) o prioridad (priority).

    409 STALE_STATE si expected_updated_at no coincide o si otro actor
    escribió primero; 409 INVALID_TRANSITION si la arista no existe.
    """
    actor = user.to_identity()
    if req.priority is not None:
        result = set_priority.execute(
            actor,
            complaint_id,
            req.priority.value,
            expected_updated_at=req.expected_updated_at,
        )
    else:
        result = transition.execute(
            actor,
            TransitionComplaintInput(
                complaint_id=complaint_id,
                action=req.action,
                notes=req.notes,
                handler_id=req.handler_id,
                expected_updated_at=req.expected_updated_at,
            ),
        )
    if result.error is not None:
        raise_complaint_error(result.error.code, result.error.message, complaint_id)
    return _to_complaint_res(result.complaint)
