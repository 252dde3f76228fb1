"""
===============================================================================
TARJETA CRC — domain/entities.py
===============================================================================

Módulo:
    Entidades del Dominio (Complaint, PasswordResetCode)

Responsabilidades:
    - Definir el reclamo y su catálogo cerrado de estados/categorías.
    - Definir el código de recuperación de contraseña (solo hashes).
    - Helpers mínimos para invariantes simples (timestamps monótonos).

Colaboradores:
    - domain.complaint_lifecycle: única autoridad de transiciones.
    - domain.repositories: persisten/recuperan estas entidades.
    - client.complaint_manager: reconstruye Complaint desde JSON.

Principios:
    - Sin dependencias a DB/FastAPI/httpx.
    - Complaint es inmutable: cada transición produce una copia nueva.
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any
from uuid import UUID


def utcnow() -> datetime:
    """Fecha/hora UTC."""
    return datetime.now(timezone.utc)


def next_timestamp(previous: datetime | None, now: datetime | None = None) -> datetime:
    """
    Timestamp estrictamente mayor que `previous`.

    updated_at es la clave de concurrencia optimista: dos escrituras
    sucesivas nunca pueden compartir valor aunque el reloj no avance.
    """
    current = now or utcnow()
    if previous is not None and current <= previous:
        return previous + timedelta(microseconds=1)
    return current


# ---------------------------------------------------------------------------
# Catálogos cerrados
# ---------------------------------------------------------------------------


class ComplaintStatus(str, Enum):
    SUBMITTED = "submitted"
    UNDER_REVIEW = "under_review"
    RESOLVED = "resolved"
    REJECTED = "rejected"
    CLOSED = "closed"
    WITHDRAWN = "withdrawn"

    @property
    def is_terminal(self) -> bool:
        return self in (ComplaintStatus.CLOSED, ComplaintStatus.WITHDRAWN)


class ComplaintCategory(str, Enum):
    USER_BEHAVIOR = "user_behavior"
    ITEM_ISSUE_NOT_CLAIM = "item_issue_not_claim"
    PLATFORM_BUG = "platform_bug"
    SAFETY_CONCERN = "safety_concern"
    OTHER = "other"


class ComplaintPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class SubjectKind(str, Enum):
    USER = "user"
    PRODUCT = "product"
    RENTAL = "rental"


@dataclass(frozen=True, slots=True)
class ComplaintSubject:
    """Contra quién/qué es el reclamo (a lo sumo una referencia)."""

    kind: SubjectKind
    ref_id: int


# ---------------------------------------------------------------------------
# Complaint
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Complaint:
    """
    Reclamo de un usuario del marketplace.

    Invariantes (garantizadas por complaint_lifecycle):
      - handler_id es None en submitted/withdrawn y no-None en resolved/rejected.
      - closed_at se setea exactamente al pasar a closed.
      - complainant_id nunca cambia.
    """

    id: int
    complainant_id: int
    category: ComplaintCategory
    title: str
    details: str
    status: ComplaintStatus
    created_at: datetime
    updated_at: datetime
    subject: ComplaintSubject | None = None
    priority: ComplaintPriority = ComplaintPriority.MEDIUM
    handler_id: int | None = None
    resolution_notes: str | None = None
    closed_at: datetime | None = None

    def is_owned_by(self, user_id: int | None) -> bool:
        return user_id is not None and self.complainant_id == user_id

    def subject_fields(self) -> dict[str, int | None]:
        """Aplana subject a subject_user_id / subject_product_id / subject_rental_id."""
        fields: dict[str, int | None] = {
            f"subject_{kind.value}_id": None for kind in SubjectKind
        }
        if self.subject is not None:
            fields[f"subject_{self.subject.kind.value}_id"] = self.subject.ref_id
        return fields

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "complainant_id": self.complainant_id,
            "category": self.category.value,
            "title": self.title,
            "details": self.details,
            "status": self.status.value,
            "priority": self.priority.value,
            "handler_id": self.handler_id,
            "resolution_notes": self.resolution_notes,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
            "closed_at": self.closed_at.isoformat() if self.closed_at else None,
            **self.subject_fields(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Complaint:
        subject = None
        for kind in SubjectKind:
            ref = data.get(f"subject_{kind.value}_id")
            if ref is not None:
                subject = ComplaintSubject(kind=kind, ref_id=int(ref))
                break
        closed_at = data.get("closed_at")
        return cls(
            id=int(data["id"]),
            complainant_id=int(data["complainant_id"]),
            category=ComplaintCategory(data["category"]),
            title=data["title"],
            details=data["details"],
            status=ComplaintStatus(data["status"]),
            priority=ComplaintPriority(data.get("priority") or "medium"),
            handler_id=data.get("handler_id"),
            resolution_notes=data.get("resolution_notes"),
            created_at=_parse_dt(data["created_at"]),
            updated_at=_parse_dt(data["updated_at"]),
            closed_at=_parse_dt(closed_at) if closed_at else None,
            subject=subject,
        )


def _parse_dt(value: str | datetime) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


# ---------------------------------------------------------------------------
# Password reset
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class PasswordResetCode:
    """
    Código de recuperación emitido para un usuario.

    Solo se guardan hashes (OTP numérico y token de link). Un código deja de
    servir cuando se usa, cuando otro más nuevo lo reemplaza, cuando vence o
    cuando acumula demasiados intentos fallidos.
    """

    id: UUID
    user_id: int
    code_hash: str
    token_hash: str
    created_at: datetime
    expires_at: datetime
    attempts: int = 0
    used_at: datetime | None = None
    revoked_at: datetime | None = None

    def is_usable(self, now: datetime, max_attempts: int) -> bool:
        return (
            self.used_at is None
            and self.revoked_at is None
            and now < self.expires_at
            and self.attempts < max_attempts
        )
