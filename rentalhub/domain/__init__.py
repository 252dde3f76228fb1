"""
===============================================================================
TARJETA CRC — domain/__init__.py
===============================================================================

Módulo:
    Exportaciones de la Capa de Dominio

Responsabilidades:
    - Centralizar exports para imports limpios en application/interfaces/client.

Reglas:
    - Solo re-exporta contratos/entidades del dominio.
    - No importar infraestructura aquí.
===============================================================================
"""

from .audit import AuditEvent
from .complaint_lifecycle import (
    ComplaintAction,
    TransitionCheck,
    allowed_actions,
    apply_transition,
    evaluate_transition,
)
from .entities import (
    Complaint,
    ComplaintCategory,
    ComplaintPriority,
    ComplaintStatus,
    ComplaintSubject,
    PasswordResetCode,
    SubjectKind,
)
from .repositories import (
    AuditEventRepository,
    ComplaintRepository,
    PasswordResetCodeRepository,
    UserRepository,
)
from .services import ResetCodeMessage, ResetCodeNotifier

__all__ = [
    # Entities
    "Complaint",
    "ComplaintCategory",
    "ComplaintPriority",
    "ComplaintStatus",
    "ComplaintSubject",
    "SubjectKind",
    "PasswordResetCode",
    "AuditEvent",
    # Lifecycle
    "ComplaintAction",
    "TransitionCheck",
    "allowed_actions",
    "apply_transition",
    "evaluate_transition",
    # Repository Interfaces (Ports)
    "UserRepository",
    "ComplaintRepository",
    "PasswordResetCodeRepository",
    "AuditEventRepository",
    # Service ports
    "ResetCodeMessage",
    "ResetCodeNotifier",
]
