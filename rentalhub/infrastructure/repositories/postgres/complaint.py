"""
============================================================
TARJETA CRC — infrastructure/repositories/postgres/complaint.py
============================================================
Class: PostgresComplaintRepository

Responsibilities:
  - Persistir reclamos en la tabla `complaints` (nunca DELETE).
  - Listar/contar con filtros (complainant_id, status) y orden estable.
  - Compare-and-swap: UPDATE ... WHERE id = %s AND updated_at = %s.

Collaborators:
  - PostgresRepositoryBase
  - domain.entities.Complaint / ComplaintStatus / ComplaintSubject

Constraints / Notes:
  - Orden: created_at DESC, id DESC (igual que el repo in-memory).
  - El subject se guarda en tres columnas nullable (a lo sumo una no-null).
============================================================
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from ....crosscutting.exceptions import DatabaseError
from ....domain.entities import (
    Complaint,
    ComplaintCategory,
    ComplaintPriority,
    ComplaintStatus,
    ComplaintSubject,
    SubjectKind,
)
from ....domain.repositories import ComplaintRepository
from ._base import PostgresRepositoryBase

_COLUMNS = (
    "id, complainant_id, category, title, details, status, priority, "
    "subject_user_id, subject_product_id, subject_rental_id, handler_id, "
    "resolution_notes, created_at, updated_at, closed_at"
)
_ORDER_BY = "created_at DESC, id DESC"


def _row_to_complaint(row: tuple) -> Complaint:
    subject = None
    for kind, ref in zip(
        (SubjectKind.USER, SubjectKind.PRODUCT, SubjectKind.RENTAL), row[7:10]
    ):
        if ref is not None:
            subject = ComplaintSubject(kind=kind, ref_id=ref)
            break
    try:
        return Complaint(
            id=row[0],
            complainant_id=row[1],
            category=ComplaintCategory(row[2]),
            title=row[3],
            details=row[4],
            status=ComplaintStatus(row[5]),
            priority=ComplaintPriority(row[6]),
            subject=subject,
            handler_id=row[10],
            resolution_notes=row[11],
            created_at=row[12],
            updated_at=row[13],
            closed_at=row[14],
        )
    except ValueError as exc:
        raise DatabaseError(f"Invalid complaint row in database: {row[0]}") from exc


def _where(
    complainant_id: int | None, status: ComplaintStatus | None
) -> tuple[str, list[object]]:
    clauses: list[str] = []
    params: list[object] = []
    if complainant_id is not None:
        clauses.append("complainant_id = %s")
        params.append(complainant_id)
    if status is not None:
        clauses.append("status = %s")
        params.append(status.value)
    return ("WHERE " + " AND ".join(clauses)) if clauses else "", params


class PostgresComplaintRepository(PostgresRepositoryBase, ComplaintRepository):
    def create_complaint(self, complaint: Complaint) -> Complaint:
        subject = complaint.subject_fields()
        row = self._fetchone(
            query=f"""
                INSERT INTO complaints (
                    complainant_id, category, title, details, status, priority,
                    subject_user_id, subject_product_id, subject_rental_id,
                    handler_id, resolution_notes, created_at, updated_at, closed_at
                )
                VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
                RETURNING {_COLUMNS}
            """,
            params=(
                complaint.complainant_id,
                complaint.category.value,
                complaint.title,
                complaint.details,
                complaint.status.value,
                complaint.priority.value,
                subject["subject_user_id"],
                subject["subject_product_id"],
                subject["subject_rental_id"],
                complaint.handler_id,
                complaint.resolution_notes,
                complaint.created_at,
                complaint.updated_at,
                complaint.closed_at,
            ),
            log_msg="PostgresComplaintRepository: create_complaint failed",
            log_extra={"complainant_id": complaint.complainant_id},
        )
        if not row:
            raise DatabaseError("PostgresComplaintRepository: insert returned no row")
        return _row_to_complaint(row)

    def get_complaint(self, complaint_id: int) -> Optional[Complaint]:
        row = self._fetchone(
            query=f"SELECT {_COLUMNS} FROM complaints WHERE id = %s",
            params=(complaint_id,),
            log_msg="PostgresComplaintRepository: get_complaint failed",
            log_extra={"complaint_id": complaint_id},
        )
        return _row_to_complaint(row) if row else None

    def list_complaints(
        self,
        *,
        complainant_id: int | None = None,
        status: ComplaintStatus | None = None,
        limit: int = 15,
        offset: int = 0,
    ) -> list[Complaint]:
        if limit <= 0:
            return []
        where, params = _where(complainant_id, status)
        rows = self._fetchall(
            query=f"""
                SELECT {_COLUMNS} FROM complaints
                {where}
                ORDER BY {_ORDER_BY}
                LIMIT %s OFFSET %s
            """,
            params=(*params, limit, max(0, offset)),
            log_msg="PostgresComplaintRepository: list_complaints failed",
        )
        return [_row_to_complaint(r) for r in rows]

    def count_complaints(
        self,
        *,
        complainant_id: int | None = None,
        status: ComplaintStatus | None = None,
    ) -> int:
        where, params = _where(complainant_id, status)
        row = self._fetchone(
            query=f"SELECT COUNT(*) FROM complaints {where}",
            params=params,
            log_msg="PostgresComplaintRepository: count_complaints failed",
        )
        return int(row[0]) if row else 0

    def update_if_unchanged(
        self, complaint: Complaint, expected_updated_at: datetime
    ) -> bool:
        updated = self._execute(
            query="""
                UPDATE complaints
                SET status = %s,
                    priority = %s,
                    handler_id = %s,
                    resolution_notes = %s,
                    updated_at = %s,
                    closed_at = %s
                WHERE id = %s AND updated_at = %s
            """,
            params=(
                complaint.status.value,
                complaint.priority.value,
                complaint.handler_id,
                complaint.resolution_notes,
                complaint.updated_at,
                complaint.closed_at,
                complaint.id,
                expected_updated_at,
            ),
            log_msg="PostgresComplaintRepository: update_if_unchanged failed",
            log_extra={"complaint_id": complaint.id},
        )
        return updated == 1
