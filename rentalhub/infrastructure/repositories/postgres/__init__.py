"""Repositorios PostgreSQL (SQL crudo parametrizado sobre psycopg)."""

from .audit_event import PostgresAuditEventRepository
from .complaint import PostgresComplaintRepository
from .reset_code import PostgresPasswordResetCodeRepository
from .user import PostgresUserRepository

__all__ = [
    "PostgresAuditEventRepository",
    "PostgresComplaintRepository",
    "PostgresPasswordResetCodeRepository",
    "PostgresUserRepository",
]
