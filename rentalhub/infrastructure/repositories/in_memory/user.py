"""
============================================================
TARJETA CRC — infrastructure/repositories/in_memory/user.py
============================================================
Class: InMemoryUserRepository

Responsibilities:
  - Cuentas de usuario en memoria (tests / dev sin DB).
  - Email único normalizado (lower/trim).

Collaborators:
  - identity.users.User
  - domain.repositories.UserRepository

Notes:
  - add() permite fijar ids explícitos (fixtures de tests y seeds).
============================================================
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timezone
from threading import Lock
from typing import Dict, Optional

from ....domain.repositories import UserRepository
from ....identity.users import User, UserRole, VerificationState


class InMemoryUserRepository(UserRepository):
    def __init__(self) -> None:
        self._lock = Lock()
        self._users: Dict[int, User] = {}
        self._next_id = 1

    def add(self, user: User) -> User:
        """Inserta un User ya construido (respeta su id)."""
        with self._lock:
            self._ensure_email_free(user.email)
            self._users[user.id] = user
            self._next_id = max(self._next_id, user.id + 1)
            return user

    def _ensure_email_free(self, email: str) -> None:
        if any(u.email == email for u in self._users.values()):
            raise ValueError(f"email already registered: {email}")

    def get_user_by_email(self, email: str) -> Optional[User]:
        normalized = (email or "").strip().lower()
        with self._lock:
            return next(
                (u for u in self._users.values() if u.email == normalized), None
            )

    def get_user_by_id(self, user_id: int) -> Optional[User]:
        with self._lock:
            return self._users.get(user_id)

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
        with self._lock:
            self._ensure_email_free(normalized)
            user = User(
                id=self._next_id,
                email=normalized,
                password_hash=password_hash,
                role=role,
                is_active=is_active,
                verification_state=verification_state,
                name=name,
                created_at=datetime.now(timezone.utc),
            )
            self._users[user.id] = user
            self._next_id += 1
            return user

    def update_password(self, user_id: int, password_hash: str) -> bool:
        with self._lock:
            user = self._users.get(user_id)
            if user is None:
                return False
            self._users[user_id] = replace(user, password_hash=password_hash)
            return True
