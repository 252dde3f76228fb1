"""
===============================================================================
TARJETA CRC — rentalhub/container.py (Composition Root / DI manual)
===============================================================================

Responsabilidades:
  - Componer repositorios, notifier y casos de uso según Settings.
  - Exponer factories para FastAPI (Depends) y scripts.
  - Mantener singletons con lru_cache para recursos compartidos.

Colaboradores:
  - crosscutting.config.get_settings
  - domain.repositories.* / domain.services.* (puertos)
  - infrastructure.* (implementaciones)
  - application.usecases.* (casos de uso)

Reglas runtime:
  - app_env test/ci o DATABASE_URL vacío => repositorios in-memory.
  - RESET_NOTIFIER_WEBHOOK_URL vacío => outbox in-memory (dev/test).

Notas:
  - Este archivo NO contiene lógica de negocio.
  - Este archivo NO debe depender de FastAPI (solo expone factories).
  - identity.auth_users importa este módulo: acá no se importa a nivel módulo.
===============================================================================
"""

from __future__ import annotations

from functools import lru_cache

from .application.usecases import (
    GetComplaintHistoryUseCase,
    GetComplaintUseCase,
    ListComplaintsUseCase,
    RequestPasswordResetUseCase,
    ResetPasswordUseCase,
    SetComplaintPriorityUseCase,
    SubmitComplaintUseCase,
    TransitionComplaintUseCase,
)
from .crosscutting.config import get_settings
from .domain.repositories import (
    AuditEventRepository,
    ComplaintRepository,
    PasswordResetCodeRepository,
    UserRepository,
)
from .domain.services import ResetCodeNotifier
from .infrastructure.notifications import (
    InMemoryResetCodeOutbox,
    WebhookResetCodeNotifier,
)
from .infrastructure.repositories import (
    InMemoryAuditEventRepository,
    InMemoryComplaintRepository,
    InMemoryPasswordResetCodeRepository,
    InMemoryUserRepository,
    PostgresAuditEventRepository,
    PostgresComplaintRepository,
    PostgresPasswordResetCodeRepository,
    PostgresUserRepository,
)

# =============================================================================
# Helpers internos
# =============================================================================


def _use_in_memory() -> bool:
    """
    Regla:
      - app_env ∈ {"test", "testing", "ci"} o sin DATABASE_URL => in-memory.
    """
    settings = get_settings()
    return settings.is_test() or not settings.database_url.strip()


# =============================================================================
# Repositorios (singletons)
# =============================================================================


@lru_cache(maxsize=1)
def get_user_repository() -> UserRepository:
    if _use_in_memory():
        return InMemoryUserRepository()
    return PostgresUserRepository()


@lru_cache(maxsize=1)
def get_complaint_repository() -> ComplaintRepository:
    if _use_in_memory():
        return InMemoryComplaintRepository()
    return PostgresComplaintRepository()


@lru_cache(maxsize=1)
def get_reset_code_repository() -> PasswordResetCodeRepository:
    if _use_in_memory():
        return InMemoryPasswordResetCodeRepository()
    return PostgresPasswordResetCodeRepository()


@lru_cache(maxsize=1)
def get_audit_repository() -> AuditEventRepository:
    if _use_in_memory():
        return InMemoryAuditEventRepository()
    return PostgresAuditEventRepository()


# =============================================================================
# Servicios externos (singletons)
# =============================================================================


@lru_cache(maxsize=1)
def get_reset_code_notifier() -> ResetCodeNotifier:
    """Webhook si está configurado; si no, outbox en memoria."""
    settings = get_settings()
    url = settings.reset_notifier_webhook_url.strip()
    if url:
        return WebhookResetCodeNotifier(url, timeout_s=settings.api_timeout_seconds)
    return InMemoryResetCodeOutbox()


def reset_container() -> None:
    """Vacía los singletons (tests y scripts que cambian Settings)."""
    for factory in (
        get_user_repository,
        get_complaint_repository,
        get_reset_code_repository,
        get_audit_repository,
        get_reset_code_notifier,
    ):
        factory.cache_clear()


# =============================================================================
# Casos de uso (factory por request)
# =============================================================================


def get_submit_complaint_use_case() -> SubmitComplaintUseCase:
    return SubmitComplaintUseCase(
        repository=get_complaint_repository(),
        audit_repository=get_audit_repository(),
    )


def get_list_complaints_use_case() -> ListComplaintsUseCase:
    settings = get_settings()
    return ListComplaintsUseCase(
        repository=get_complaint_repository(),
        default_per_page=settings.default_page_size,
        max_per_page=settings.max_page_size,
    )


def get_get_complaint_use_case() -> GetComplaintUseCase:
    return GetComplaintUseCase(repository=get_complaint_repository())


def get_complaint_history_use_case() -> GetComplaintHistoryUseCase:
    return GetComplaintHistoryUseCase(
        repository=get_complaint_repository(),
        audit_repository=get_audit_repository(),
    )


def get_transition_complaint_use_case() -> TransitionComplaintUseCase:
    return TransitionComplaintUseCase(
        repository=get_complaint_repository(),
        user_repository=get_user_repository(),
        audit_repository=get_audit_repository(),
    )


def get_set_complaint_priority_use_case() -> SetComplaintPriorityUseCase:
    return SetComplaintPriorityUseCase(
        repository=get_complaint_repository(),
        audit_repository=get_audit_repository(),
    )


def get_request_password_reset_use_case() -> RequestPasswordResetUseCase:
    settings = get_settings()
    return RequestPasswordResetUseCase(
        user_repository=get_user_repository(),
        code_repository=get_reset_code_repository(),
        notifier=get_reset_code_notifier(),
        audit_repository=get_audit_repository(),
        pepper=settings.jwt_secret,
        ttl_minutes=settings.reset_code_ttl_minutes,
        code_length=settings.reset_code_length,
    )


def get_reset_password_use_case() -> ResetPasswordUseCase:
    from .identity.auth_users import hash_password

    settings = get_settings()
    return ResetPasswordUseCase(
        user_repository=get_user_repository(),
        code_repository=get_reset_code_repository(),
        password_hasher=hash_password,
        audit_repository=get_audit_repository(),
        pepper=settings.jwt_secret,
        max_attempts=settings.reset_code_max_attempts,
    )
