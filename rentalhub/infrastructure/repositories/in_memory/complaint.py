"""
============================================================
TARJETA CRC — infrastructure/repositories/in_memory/complaint.py
============================================================
Class: InMemoryComplaintRepository

Responsibilities:
  - Almacenar reclamos en memoria (tests / dev sin DB).
  - Asignar ids incrementales como lo haría una secuencia.
  - Implementar el compare-and-swap sobre updated_at bajo lock.
  - Ordering alineado con Postgres: created_at DESC, id DESC.

Collaborators:
  - domain.entities.Complaint, ComplaintStatus
  - domain.repositories.ComplaintRepository

Constraints / Notes:
  - Thread-safe: acceso protegido por Lock.
  - Complaint es inmutable (frozen), no hacen falta copias defensivas.
  - Repo puro: NO aplica visibilidad ni reglas de transición.
============================================================
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from itertools import count
from threading import Lock
from typing import Dict, List, Optional

from ....domain.entities import Complaint, ComplaintStatus
from ....domain.repositories import ComplaintRepository


class InMemoryComplaintRepository(ComplaintRepository):
    """Repositorio in-memory, thread-safe, para reclamos."""

    def __init__(self) -> None:
        self._lock = Lock()
        self._complaints: Dict[int, Complaint] = {}
        self._ids = count(1)

    def _filtered(
        self, complainant_id: int | None, status: ComplaintStatus | None
    ) -> List[Complaint]:
        items = [
            c
            for c in self._complaints.values()
            if (complainant_id is None or c.complainant_id == complainant_id)
            and (status is None or c.status == status)
        ]
        return sorted(items, key=lambda c: (c.created_at, c.id), reverse=True)

    def create_complaint(self, complaint: Complaint) -> Complaint:
        with self._lock:
            stored = replace(complaint, id=next(self._ids))
            self._complaints[stored.id] = stored
            return stored

    def get_complaint(self, complaint_id: int) -> Optional[Complaint]:
        with self._lock:
            return self._complaints.get(complaint_id)

    def list_complaints(
        self,
        *,
        complainant_id: int | None = None,
        status: ComplaintStatus | None = None,
        limit: int = 15,
        offset: int = 0,
    ) -> list[Complaint]:
        with self._lock:
            return self._filtered(complainant_id, status)[offset : offset + limit]

    def count_complaints(
        self,
        *,
        complainant_id: int | None = None,
        status: ComplaintStatus | None = None,
    ) -> int:
        with self._lock:
            return len(self._filtered(complainant_id, status))

    def update_if_unchanged(
        self, complaint: Complaint, expected_updated_at: datetime
    ) -> bool:
        with self._lock:
            current = self._complaints.get(complaint.id)
            if current is None or current.updated_at != expected_updated_at:
                return False
            self._complaints[complaint.id] = complaint
            return True
