"""
============================================================
TARJETA CRC — infrastructure/repositories/postgres/user.py
============================================================
Class: PostgresUserRepository

Responsibilities:
  - Cargar usuarios para autenticación (por email / por id).
  - Crear usuarios y reemplazar password_hash (recuperación de cuenta).
  - Mapear filas -> User validando UserRole / VerificationState.

Collaborators:
  - PostgresRepositoryBase (ejecución + DatabaseError)
  - identity.users.User / UserRole / VerificationState

Constraints / Notes:
  - Retorna None cuando no existe el recurso.
  - Valores de enum desconocidos en DB -> DatabaseError.
  - Emails se guardan normalizados (lower/trim).
============================================================
"""

from __future__ import annotations

from typing import Optional

from ....crosscutting.exceptions import DatabaseError
from ....domain.repositories import UserRepository
from ....identity.users import User, UserRole, VerificationState
from ._base import PostgresRepositoryBase

_USER_COLUMNS = (
    "id, email, password_hash, role, is_active, verification_state, name, created_at"
)


def _row_to_user(row: tuple) -> User:
    try:
        role = UserRole(row[3])
        verification = VerificationState(row[5])
    except ValueError as exc:
        raise DatabaseError(f"Invalid user row in database: {row[0]}") from exc

    return User(
        id=row[0],
        email=row[1],
        password_hash=row[2],
        role=role,
        is_active=row[4],
        verification_state=verification,
        name=row[6] or "",
        created_at=row[7],
    )


class PostgresUserRepository(PostgresRepositoryBase, UserRepository):
    def get_user_by_email(self, email: str) -> Optional[User]:
        normalized = (email or "").strip().lower()
        row = self._fetchone(
            query=f"SELECT {_USER_COLUMNS} FROM users WHERE email = %s",
            params=(normalized,),
            log_msg="PostgresUserRepository: get_user_by_email failed",
        )
        return _row_to_user(row) if row else None

    def get_user_by_id(self, user_id: int) -> Optional[User]:
        row = self._fetchone(
            query=f"SELECT {_USER_COLUMNS} FROM users WHERE id = %s",
            params=(user_id,),
            log_msg="PostgresUserRepository: get_user_by_id failed",
            log_extra={"user_id": user_id},
        )
        return _row_to_user(row) if row else None

    def create_user(
        self,
        *,
        email: str,
        password_hash: str,
        role: UserRole,
        name: str = "",
        verification_state: VerificationState = VerificationState.UNVERIFIED,
        is_active: bool = True,
    ) -> User:
        normalized = email.strip().lower()
        if self.get_user_by_email(normalized) is not None:
            raise ValueError(f"email already registered: {normalized}")

        row = self._fetchone(
            query=f"""
                INSERT INTO users
                    (email, password_hash, role, is_active, verification_state, name)
                VALUES (%s, %s, %s, %s, %s, %s)
                RETURNING {_USER_COLUMNS}
            """,
            params=(
                normalized,
                password_hash,
                role.value,
                is_active,
                verification_state.value,
                name,
            ),
            log_msg="PostgresUserRepository: create_user failed",
            log_extra={"role": role.value},
        )
        if not row:
            raise DatabaseError("PostgresUserRepository: create_user returned no row")
        return _row_to_user(row)

    def update_password(self, user_id: int, password_hash: str) -> bool:
        updated = self._execute(
            query="UPDATE users SET password_hash = %s WHERE id = %s",
            params=(password_hash, user_id),
            log_msg="PostgresUserRepository: update_password failed",
            log_extra={"user_id": user_id},
        )
        return updated == 1
