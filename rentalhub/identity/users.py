"""
===============================================================================
TARJETA CRC — identity/users.py
===============================================================================

Módulo:
    Modelos de Usuario e Identidad

Responsabilidades:
    - Definir roles (ordinario / staff / admin) y estados de verificación.
    - Definir User (registro persistido, con hash) e Identity (vista pública,
      la que viaja al cliente y vive en la Session).
    - Mantener el contrato de datos de auth centralizado y estable.

Colaboradores:
    - identity/auth_users.py: emite/valida JWT a partir de User.
    - client/session_store.py: guarda una Identity por proceso.
    - domain/complaint_lifecycle.py: decide transiciones según el rol.

Notas:
    - Identity nunca lleva password_hash.
    - Si agregás roles, revisá is_staff() y las Capability del gate.
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Any


class UserRole(str, Enum):
    """Roles del marketplace."""

    USER = "user"
    STAFF = "staff"
    ADMIN = "admin"


STAFF_ROLES: frozenset[UserRole] = frozenset({UserRole.STAFF, UserRole.ADMIN})


class VerificationState(str, Enum):
    """Estado de verificación de identidad (documento del usuario)."""

    UNVERIFIED = "unverified"
    PENDING = "pending"
    VERIFIED = "verified"
    REJECTED = "rejected"


@dataclass(frozen=True, slots=True)
class Identity:
    """Parte autenticada: quién es y qué atributos de acceso tiene."""

    id: int
    email: str
    role: UserRole
    verification_state: VerificationState = VerificationState.UNVERIFIED
    active: bool = True
    name: str = ""

    @property
    def is_staff(self) -> bool:
        return self.active and self.role in STAFF_ROLES

    @property
    def is_verified(self) -> bool:
        return self.verification_state == VerificationState.VERIFIED

    def with_verification(self, state: VerificationState) -> Identity:
        return replace(self, verification_state=state)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "email": self.email,
            "name": self.name,
            "role": self.role.value,
            "verification_state": self.verification_state.value,
            "active": self.active,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Identity:
        return cls(
            id=int(data["id"]),
            email=str(data["email"]),
            role=UserRole(data["role"]),
            verification_state=VerificationState(
                data.get("verification_state") or VerificationState.UNVERIFIED
            ),
            active=bool(data.get("active", True)),
            name=str(data.get("name") or ""),
        )


@dataclass(frozen=True, slots=True)
class User:
    """Registro de usuario utilizado por autenticación (JWT)."""

    id: int
    email: str
    password_hash: str
    role: UserRole
    is_active: bool
    verification_state: VerificationState = VerificationState.UNVERIFIED
    name: str = ""
    created_at: datetime | None = None

    def to_identity(self) -> Identity:
        return Identity(
            id=self.id,
            email=self.email,
            role=self.role,
            verification_state=self.verification_state,
            active=self.is_active,
            name=self.name,
        )
