"""
============================================================
TARJETA CRC — infrastructure/repositories/in_memory/reset_code.py
============================================================
Class: InMemoryPasswordResetCodeRepository

Responsibilities:
  - Guardar códigos de recuperación (solo hashes) en memoria.
  - Revocar códigos previos al emitir uno nuevo (el último manda).
  - Consumir un código una sola vez (mark_used atómico bajo lock).

Collaborators:
  - domain.entities.PasswordResetCode
  - domain.repositories.PasswordResetCodeRepository
============================================================
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from threading import Lock
from typing import Dict, Optional
from uuid import UUID

from ....domain.entities import PasswordResetCode
from ....domain.repositories import PasswordResetCodeRepository


class InMemoryPasswordResetCodeRepository(PasswordResetCodeRepository):
    def __init__(self) -> None:
        self._lock = Lock()
        self._codes: Dict[UUID, PasswordResetCode] = {}

    def replace_active_code(self, code: PasswordResetCode) -> None:
        with self._lock:
            self._revoke_locked(code.user_id, code.created_at)
            self._codes[code.id] = replace(code)

    def get_latest_code(self, user_id: int) -> Optional[PasswordResetCode]:
        with self._lock:
            codes = [c for c in self._codes.values() if c.user_id == user_id]
            if not codes:
                return None
            return replace(max(codes, key=lambda c: c.created_at))

    def get_code_by_token_hash(self, token_hash: str) -> Optional[PasswordResetCode]:
        with self._lock:
            found = next(
                (c for c in self._codes.values() if c.token_hash == token_hash), None
            )
            return replace(found) if found else None

    def register_failed_attempt(self, code_id: UUID) -> int:
        with self._lock:
            code = self._codes.get(code_id)
            if code is None:
                return 0
            code.attempts += 1
            return code.attempts

    def mark_used(self, code_id: UUID, used_at: datetime) -> bool:
        with self._lock:
            code = self._codes.get(code_id)
            if code is None or code.used_at is not None or code.revoked_at is not None:
                return False
            code.used_at = used_at
            return True

    def revoke_all_for_user(self, user_id: int, revoked_at: datetime) -> None:
        with self._lock:
            self._revoke_locked(user_id, revoked_at)

    def _revoke_locked(self, user_id: int, revoked_at: datetime) -> None:
        for code in self._codes.values():
            if code.user_id == user_id and code.used_at is None and code.revoked_at is None:
                code.revoked_at = revoked_at
