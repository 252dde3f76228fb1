"""
===============================================================================
TARJETA CRC — domain/audit.py
===============================================================================

Módulo:
    Evento de auditoría

Responsabilidades:
    - Representar "quién hizo qué sobre qué" (reclamos, recuperación de cuenta).
    - Servir como historial de un reclamo (nunca se borran reclamos ni eventos).

Notas:
    - actor es un string ("user:12", "system").
    - metadata es flexible (dict), sin secretos.
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any
from uuid import UUID


@dataclass(slots=True)
class AuditEvent:
    """Evento de auditoría del sistema."""

    id: UUID
    actor: str
    action: str
    target_type: str | None = None
    target_id: int | None = None
    metadata: dict[str, Any] = field(default_factory=dict)
    created_at: datetime | None = None
