"""
===============================================================================
TASK: Dev Seed Users (local-only)
===============================================================================

Qué es:
    Asegura cuentas de desarrollo (usuario ordinario, staff y admin) para
    probar el ciclo de reclamos sin scripts manuales.

Seguridad:
    - Guard estricto: solo corre con app_env local/development.
    - En producción Settings ya rechaza DEV_SEED_USERS=true.

Patrones:
    - Fail-fast guard
    - Idempotencia (ensure-create, nunca pisa una cuenta existente)

CRC:
    Component: ensure_dev_users
    Collaborators:
      - UserRepository
      - password_hasher (Argon2)
      - Settings
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Final

from ..crosscutting.config import Settings
from ..crosscutting.logger import logger
from ..domain.repositories import UserRepository
from ..identity.users import UserRole, VerificationState

_ALLOWED_ENVS: Final[frozenset[str]] = frozenset({"local", "development", "dev"})


@dataclass(frozen=True, slots=True)
class _SeedAccount:
    email: str
    name: str
    role: UserRole
    verification_state: VerificationState


DEV_ACCOUNTS: Final[tuple[_SeedAccount, ...]] = (
    _SeedAccount("renter@local", "Renter", UserRole.USER, VerificationState.VERIFIED),
    _SeedAccount(
        "newcomer@local", "Newcomer", UserRole.USER, VerificationState.UNVERIFIED
    ),
    _SeedAccount("reviewer@local", "Reviewer", UserRole.STAFF, VerificationState.VERIFIED),
    _SeedAccount("admin@local", "Admin", UserRole.ADMIN, VerificationState.VERIFIED),
)


def _assert_allowed_environment(settings: Settings) -> None:
    env = (settings.app_env or "").strip().lower()
    if env not in _ALLOWED_ENVS:
        raise RuntimeError(
            f"FATAL: DEV_SEED_USERS is enabled but ENV is '{env}'. "
            "Safety guard prevents seeding outside local development."
        )


def ensure_dev_users(
    settings: Settings,
    *,
    user_repo: UserRepository,
    password_hasher: Callable[[str], str],
) -> int:
    """Crea las cuentas de desarrollo faltantes. Devuelve cuántas creó."""
    if not settings.dev_seed_users:
        return 0
    _assert_allowed_environment(settings)

    created = 0
    for account in DEV_ACCOUNTS:
        if user_repo.get_user_by_email(account.email) is not None:
            continue
        user_repo.create_user(
            email=account.email,
            password_hash=password_hasher(settings.dev_seed_password),
            role=account.role,
            name=account.name,
            verification_state=account.verification_state,
        )
        created += 1

    logger.info("Dev seed users ensured", extra={"created": created})
    return created
