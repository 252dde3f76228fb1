"""
============================================================
TARJETA CRC — infrastructure/repositories/postgres/audit_event.py
============================================================
Class: PostgresAuditEventRepository

Responsibilities:
  - Insertar eventos de auditoría (append-only).
  - Listar eventos por target (historial de un reclamo) en orden cronológico.

Collaborators:
  - PostgresRepositoryBase
  - psycopg.types.json.Json (JSON seguro hacia PostgreSQL)
  - domain.audit.AuditEvent
============================================================
"""

from __future__ import annotations

from psycopg.types.json import Json

from ....domain.audit import AuditEvent
from ....domain.repositories import AuditEventRepository
from ._base import PostgresRepositoryBase

_COLUMNS = "id, actor, action, target_type, target_id, metadata, created_at"


def _row_to_event(row: tuple) -> AuditEvent:
    return AuditEvent(
        id=row[0],
        actor=row[1],
        action=row[2],
        target_type=row[3],
        target_id=row[4],
        metadata=row[5] or {},
        created_at=row[6],
    )


class PostgresAuditEventRepository(PostgresRepositoryBase, AuditEventRepository):
    def record_event(self, event: AuditEvent) -> None:
        self._execute(
            query="""
                INSERT INTO audit_events
                    (id, actor, action, target_type, target_id, metadata, created_at)
                VALUES (%s, %s, %s, %s, %s, %s, COALESCE(%s, NOW()))
            """,
            params=(
                event.id,
                event.actor,
                event.action,
                event.target_type,
                event.target_id,
                Json(event.metadata or {}),
                event.created_at,
            ),
            log_msg="PostgresAuditEventRepository: record_event failed",
            log_extra={"action": event.action},
        )

    def list_events(
        self,
        *,
        target_type: str | None = None,
        target_id: int | None = None,
        action_prefix: str | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[AuditEvent]:
        clauses: list[str] = []
        params: list[object] = []
        if target_type is not None:
            clauses.append("target_type = %s")
            params.append(target_type)
        if target_id is not None:
            clauses.append("target_id = %s")
            params.append(target_id)
        if action_prefix:
            clauses.append("action LIKE %s")
            params.append(f"{action_prefix}%")
        where = ("WHERE " + " AND ".join(clauses)) if clauses else ""

        rows = self._fetchall(
            query=f"""
                SELECT {_COLUMNS} FROM audit_events
                {where}
                ORDER BY created_at ASC, id ASC
                LIMIT %s OFFSET %s
            """,
            params=(*params, limit, max(0, offset)),
            log_msg="PostgresAuditEventRepository: list_events failed",
        )
        return [_row_to_event(r) for r in rows]
