"""
Use Cases Layer (Business Operations)

Structure
---------
usecases/
├── auth/         # Password recovery (request code, redeem code)
└── complaints/   # Complaint lifecycle

Usage
-----
    from rentalhub.application.usecases import TransitionComplaintUseCase
"""

# Auth
from .auth import (
    PasswordResetRequestResult,
    RequestPasswordResetUseCase,
    ResetPasswordErrorCode,
    ResetPasswordInput,
    ResetPasswordResult,
    ResetPasswordUseCase,
)

# Complaints
from .complaints import (
    ComplaintError,
    ComplaintErrorCode,
    ComplaintHistoryResult,
    ComplaintPageResult,
    ComplaintResult,
    GetComplaintHistoryUseCase,
    GetComplaintUseCase,
    ListComplaintsUseCase,
    SetComplaintPriorityUseCase,
    SubmitComplaintInput,
    SubmitComplaintUseCase,
    TransitionComplaintInput,
    TransitionComplaintUseCase,
)

__all__ = [
    # Auth
    "PasswordResetRequestResult",
    "RequestPasswordResetUseCase",
    "ResetPasswordErrorCode",
    "ResetPasswordInput",
    "ResetPasswordResult",
    "ResetPasswordUseCase",
    # Complaints
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
]
