"""
CRC — domain/repositories.py

Name
- Domain Repository Interfaces (Protocols)

Responsibilities
- Define persistence contracts for users, complaints, reset codes and audit.
- Keep application code independent from PostgreSQL / in-memory adapters.
- Make the compare-and-swap contract for complaint updates explicit.

Collaborators
- domain.entities: Complaint, ComplaintStatus, PasswordResetCode
- domain.audit: AuditEvent
- identity.users: User
- infrastructure.repositories: postgres/*, in_memory/* implementations

Constraints
- Pure interfaces only: no side effects, no SQL.
- Implementations MUST match method signatures exactly.
"""

from datetime import datetime
from typing import Optional, Protocol
from uuid import UUID

from ..identity.users import User, UserRole, VerificationState
from .audit import AuditEvent
from .entities import Complaint, ComplaintStatus, PasswordResetCode


class UserRepository(Protocol):
    """R: Interface for user accounts (auth source)."""

    def get_user_by_email(self, email: str) -> Optional[User]:
        """R: Lookup by normalized (lower-case) email."""
        ...

    def get_user_by_id(self, user_id: int) -> Optional[User]:
        ...

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
        """R: Create a user; raises ValueError if the email is taken."""
        ...

    def update_password(self, user_id: int, password_hash: str) -> bool:
        """R: Replace the password hash. Returns False if user not found."""
        ...


class ComplaintRepository(Protocol):
    """
    R: Interface for complaint persistence.

    Complaints are never deleted; updates are compare-and-swap on updated_at.
    """

    def create_complaint(self, complaint: Complaint) -> Complaint:
        """R: Persist a new complaint; the repository assigns the id."""
        ...

    def get_complaint(self, complaint_id: int) -> Optional[Complaint]:
        ...

    def list_complaints(
        self,
        *,
        complainant_id: int | None = None,
        status: ComplaintStatus | None = None,
        limit: int = 15,
        offset: int = 0,
    ) -> list[Complaint]:
        """R: Newest first. complainant_id=None means all complaints."""
        ...

    def count_complaints(
        self,
        *,
        complainant_id: int | None = None,
        status: ComplaintStatus | None = None,
    ) -> int:
        ...

    def update_if_unchanged(
        self, complaint: Complaint, expected_updated_at: datetime
    ) -> bool:
        """
        R: Atomically store `complaint` only if the persisted updated_at still
        equals `expected_updated_at`. Returns False when another writer won.
        """
        ...


class PasswordResetCodeRepository(Protocol):
    """R: Interface for password reset codes (hashes only)."""

    def replace_active_code(self, code: PasswordResetCode) -> None:
        """R: Revoke every usable code of code.user_id, then store `code`."""
        ...

    def get_latest_code(self, user_id: int) -> Optional[PasswordResetCode]:
        """R: Most recently created code for the user (usable or not)."""
        ...

    def get_code_by_token_hash(self, token_hash: str) -> Optional[PasswordResetCode]:
        ...

    def register_failed_attempt(self, code_id: UUID) -> int:
        """R: Increment attempts and return the new count."""
        ...

    def mark_used(self, code_id: UUID, used_at: datetime) -> bool:
        """R: Consume the code once. Returns False if it was already used/revoked."""
        ...

    def revoke_all_for_user(self, user_id: int, revoked_at: datetime) -> None:
        ...


class AuditEventRepository(Protocol):
    """R: Interface for audit event persistence."""

    def record_event(self, event: AuditEvent) -> None:
        """R: Persist an audit event."""
        ...

    def list_events(
        self,
        *,
        target_type: str | None = None,
        target_id: int | None = None,
        action_prefix: str | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[AuditEvent]:
        """R: Fetch audit events, oldest first, with optional filters."""
        ...
