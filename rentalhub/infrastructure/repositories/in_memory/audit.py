"""
============================================================
TARJETA CRC — infrastructure/repositories/in_memory/audit.py
============================================================
Class: InMemoryAuditEventRepository

Responsibilities:
  - Guardar eventos de auditoría en memoria (orden de inserción).
  - Filtrar por target y prefijo de acción (historial de reclamos).
============================================================
"""

from __future__ import annotations

from threading import Lock
from typing import List

from ....domain.audit import AuditEvent
from ....domain.repositories import AuditEventRepository


class InMemoryAuditEventRepository(AuditEventRepository):
    def __init__(self) -> None:
        self._lock = Lock()
        self._events: List[AuditEvent] = []

    def record_event(self, event: AuditEvent) -> None:
        with self._lock:
            self._events.append(event)

    def list_events(
        self,
        *,
        target_type: str | None = None,
        target_id: int | None = None,
        action_prefix: str | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[AuditEvent]:
        with self._lock:
            items = [
                e
                for e in self._events
                if (target_type is None or e.target_type == target_type)
                and (target_id is None or e.target_id == target_id)
                and (action_prefix is None or e.action.startswith(action_prefix))
            ]
        return items[offset : offset + limit]
