"""
===============================================================================
TARJETA CRC — rentalhub/audit.py (Emisión de eventos de auditoría)
===============================================================================

Responsabilidades:
  - Construir AuditEvent con actor normalizado ("user:<id>" / "system").
  - Sanitizar metadata a tipos JSON.
  - Escritura best-effort: una falla de auditoría no rompe la operación.

Colaboradores:
  - domain.audit.AuditEvent
  - domain.repositories.AuditEventRepository
  - application/usecases/* (reclamos y recuperación de cuenta)
===============================================================================
"""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import uuid4

from .crosscutting.logger import logger
from .domain.audit import AuditEvent
from .domain.entities import utcnow
from .domain.repositories import AuditEventRepository

SYSTEM_ACTOR = "system"


def actor_for(user_id: int | None) -> str:
    return f"user:{user_id}" if user_id is not None else SYSTEM_ACTOR


def _sanitize(value: Any) -> Any:
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict):
        return {str(k): _sanitize(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_sanitize(v) for v in value]
    return str(value)


def emit_audit_event(
    repository: AuditEventRepository | None,
    *,
    action: str,
    actor_id: int | None = None,
    target_type: str | None = None,
    target_id: int | None = None,
    metadata: dict[str, Any] | None = None,
) -> None:
    """
    Emite un evento de auditoría.

    Regla clave:
      - Si repository es None o falla al escribir, NO se lanza excepción
        (se loguea con warning).
    """
    if repository is None:
        return

    event = AuditEvent(
        id=uuid4(),
        actor=actor_for(actor_id),
        action=action,
        target_type=target_type,
        target_id=target_id,
        metadata=_sanitize(metadata or {}),
        created_at=utcnow(),
    )

    try:
        repository.record_event(event)
    except Exception as exc:
        logger.warning(
            "Falló la escritura del evento de auditoría",
            extra={"action": action, "error": str(exc)},
        )
