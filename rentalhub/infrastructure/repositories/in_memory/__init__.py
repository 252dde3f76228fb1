"""In-memory repositories (tests / dev sin base de datos)."""

from .audit import InMemoryAuditEventRepository
from .complaint import InMemoryComplaintRepository
from .reset_code import InMemoryPasswordResetCodeRepository
from .user import InMemoryUserRepository

__all__ = [
    "InMemoryAuditEventRepository",
    "InMemoryComplaintRepository",
    "InMemoryPasswordResetCodeRepository",
    "InMemoryUserRepository",
]
