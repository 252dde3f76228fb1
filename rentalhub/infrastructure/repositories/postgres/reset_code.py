"""
============================================================
TARJETA CRC — infrastructure/repositories/postgres/reset_code.py
============================================================
Class: PostgresPasswordResetCodeRepository

Responsibilities:
  - Persistir códigos de recuperación (hashes) en `password_reset_codes`.
  - Revocar + insertar en una sola transacción (el último código manda).
  - Consumir un código una sola vez (UPDATE condicional).

Collaborators:
  - PostgresRepositoryBase
  - domain.entities.PasswordResetCode
============================================================
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID

from ....domain.entities import PasswordResetCode
from ....domain.repositories import PasswordResetCodeRepository
from ._base import PostgresRepositoryBase

_COLUMNS = (
    "id, user_id, code_hash, token_hash, created_at, expires_at, "
    "attempts, used_at, revoked_at"
)


def _row_to_code(row: tuple) -> PasswordResetCode:
    return PasswordResetCode(
        id=row[0],
        user_id=row[1],
        code_hash=row[2],
        token_hash=row[3],
        created_at=row[4],
        expires_at=row[5],
        attempts=row[6],
        used_at=row[7],
        revoked_at=row[8],
    )


_REVOKE_SQL = """
    UPDATE password_reset_codes
    SET revoked_at = %s
    WHERE user_id = %s AND used_at IS NULL AND revoked_at IS NULL
"""


class PostgresPasswordResetCodeRepository(
    PostgresRepositoryBase, PasswordResetCodeRepository
):
    def replace_active_code(self, code: PasswordResetCode) -> None:
        try:
            with self._get_pool().connection() as conn:
                with conn.transaction():
                    conn.execute(_REVOKE_SQL, (code.created_at, code.user_id))
                    conn.execute(
                        f"""
                        INSERT INTO password_reset_codes ({_COLUMNS})
                        VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s)
                        """,
                        (
                            code.id,
                            code.user_id,
                            code.code_hash,
                            code.token_hash,
                            code.created_at,
                            code.expires_at,
                            code.attempts,
                            code.used_at,
                            code.revoked_at,
                        ),
                    )
        except Exception as exc:
            raise self._fail(
                "PostgresPasswordResetCodeRepository: replace_active_code failed",
                {"user_id": code.user_id},
                exc,
            ) from exc

    def get_latest_code(self, user_id: int) -> Optional[PasswordResetCode]:
        row = self._fetchone(
            query=f"""
                SELECT {_COLUMNS} FROM password_reset_codes
                WHERE user_id = %s
                ORDER BY created_at DESC
                LIMIT 1
            """,
            params=(user_id,),
            log_msg="PostgresPasswordResetCodeRepository: get_latest_code failed",
            log_extra={"user_id": user_id},
        )
        return _row_to_code(row) if row else None

    def get_code_by_token_hash(self, token_hash: str) -> Optional[PasswordResetCode]:
        row = self._fetchone(
            query=f"SELECT {_COLUMNS} FROM password_reset_codes WHERE token_hash = %s",
            params=(token_hash,),
            log_msg="PostgresPasswordResetCodeRepository: get_code_by_token failed",
        )
        return _row_to_code(row) if row else None

    def register_failed_attempt(self, code_id: UUID) -> int:
        row = self._fetchone(
            query="""
                UPDATE password_reset_codes
                SET attempts = attempts + 1
                WHERE id = %s
                RETURNING attempts
            """,
            params=(code_id,),
            log_msg="PostgresPasswordResetCodeRepository: register_attempt failed",
        )
        return int(row[0]) if row else 0

    def mark_used(self, code_id: UUID, used_at: datetime) -> bool:
        updated = self._execute(
            query="""
                UPDATE password_reset_codes
                SET used_at = %s
                WHERE id = %s AND used_at IS NULL AND revoked_at IS NULL
            """,
            params=(used_at, code_id),
            log_msg="PostgresPasswordResetCodeRepository: mark_used failed",
        )
        return updated == 1

    def revoke_all_for_user(self, user_id: int, revoked_at: datetime) -> None:
        self._execute(
            query=_REVOKE_SQL,
            params=(revoked_at, user_id),
            log_msg="PostgresPasswordResetCodeRepository: revoke_all failed",
            log_extra={"user_id": user_id},
        )
