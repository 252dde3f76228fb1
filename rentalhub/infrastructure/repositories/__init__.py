"""
============================================================
TARJETA CRC
============================================================
Class: rentalhub.infrastructure.repositories (Package exports)

Responsibilities:
- Exponer implementaciones concretas de repositorios (Postgres e InMemory)
  en un único punto de importación.

Collaborators:
- Repositorios Postgres (SQL crudo)
- Repositorios InMemory (testing / dev sin DB)
============================================================
"""

# ---------------------------
# In-memory implementations
# No persisten datos tras reiniciar la app.
# ---------------------------
from .in_memory import (
    InMemoryAuditEventRepository,
    InMemoryComplaintRepository,
    InMemoryPasswordResetCodeRepository,
    InMemoryUserRepository,
)

# ---------------------------
# Postgres implementations
# ---------------------------
from .postgres import (
    PostgresAuditEventRepository,
    PostgresComplaintRepository,
    PostgresPasswordResetCodeRepository,
    PostgresUserRepository,
)

__all__ = [
    # Postgres
    "PostgresAuditEventRepository",
    "PostgresComplaintRepository",
    "PostgresPasswordResetCodeRepository",
    "PostgresUserRepository",
    # In-memory
    "InMemoryAuditEventRepository",
    "InMemoryComplaintRepository",
    "InMemoryPasswordResetCodeRepository",
    "InMemoryUserRepository",
]
