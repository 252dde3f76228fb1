"""
Complaints Use Cases

Ciclo de vida de reclamos: alta, listado con scoping, lectura, historial,
transiciones con concurrencia optimista y prioridad (staff).
"""

from .complaint_results import (
    ComplaintError,
    ComplaintErrorCode,
    ComplaintHistoryResult,
    ComplaintPageResult,
    ComplaintResult,
)
from .get_complaint import (
    GetComplaintHistoryUseCase,
    GetComplaintUseCase,
    load_visible_complaint,
)
from .list_complaints import ListComplaintsUseCase
from .submit_complaint import SubmitComplaintInput, SubmitComplaintUseCase
from .transition_complaint import (
    SetComplaintPriorityUseCase,
    TransitionComplaintInput,
    TransitionComplaintUseCase,
)

__all__ = [
    "ComplaintError",
    "ComplaintErrorCode",
    "ComplaintHistoryResult",
    "ComplaintPageResult",
    "ComplaintResult",
    "GetComplaintHistoryUseCase",
    "GetComplaintUseCase",
    "ListComplaintsUseCase",
    "SetComplaintPriorityUseCase",
    "SubmitComplaintInput",
    "SubmitComplaintUseCase",
    "TransitionComplaintInput",
    "TransitionComplaintUseCase",
    "load_visible_complaint",
]
