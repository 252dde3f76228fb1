"""
============================================================
TARJETA CRC (Class / Responsibilities / Collaborators)
============================================================
Class: 001_foundation (Alembic Migration)

Responsibilities:
  - Crear el esquema base: users, complaints, password_reset_codes y
    audit_events.
  - Definir constraints e índices según las queries de los repositorios.

Collaborators:
  - PostgreSQL 14+
  - infrastructure/repositories/postgres/* (usan este esquema como contrato)

Policy:
  - Migración BASELINE. Toda evolución posterior va en 002+.
  - Convención de nombres:
      pk_<tabla> / uq_<tabla>_<col> / ix_<tabla>_<col> / fk_<tabla>_<col>__<ref>
  - Enums como strings + CHECK (evita acople a tipos enum de la DB).
============================================================
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "001_foundation"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamp(name: str, nullable: bool = False) -> sa.Column:
    if nullable:
        return sa.Column(name, sa.DateTime(timezone=True), nullable=True)
    return sa.Column(
        name,
        sa.DateTime(timezone=True),
        server_default=sa.text("now()"),
        nullable=False,
    )


def upgrade() -> None:
    # =========================================================
    # 1) IDENTITY (users)
    # =========================================================
    op.create_table(
        "users",
        sa.Column("id", sa.BigInteger, sa.Identity(), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("password_hash", sa.Text, nullable=False),
        sa.Column(
            "role", sa.String(20), nullable=False, server_default=sa.text("'user'")
        ),
        sa.Column(
            "is_active", sa.Boolean, nullable=False, server_default=sa.text("true")
        ),
        sa.Column(
            "verification_state",
            sa.String(20),
            nullable=False,
            server_default=sa.text("'unverified'"),
        ),
        sa.Column("name", sa.String(255), nullable=False, server_default=sa.text("''")),
        _timestamp("created_at"),
        sa.PrimaryKeyConstraint("id", name="pk_users"),
        sa.CheckConstraint(
            "role IN ('user','staff','admin')", name="ck_users_role"
        ),
        sa.CheckConstraint(
            "verification_state IN ('unverified','pending','verified','rejected')",
            name="ck_users_verification_state",
        ),
    )
    # Lookup por email normalizado (login / forgot-password).
    op.execute("CREATE UNIQUE INDEX uq_users_lower_email ON users (lower(email))")

    # =========================================================
    # 2) COMPLAINTS
    # =========================================================
    op.create_table(
        "complaints",
        sa.Column("id", sa.BigInteger, sa.Identity(), nullable=False),
        sa.Column("complainant_id", sa.BigInteger, nullable=False),
        sa.Column("category", sa.String(40), nullable=False),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("details", sa.Text, nullable=False),
        sa.Column(
            "status",
            sa.String(20),
            nullable=False,
            server_default=sa.text("'submitted'"),
        ),
        sa.Column(
            "priority",
            sa.String(20),
            nullable=False,
            server_default=sa.text("'medium'"),
        ),
        # A lo sumo un sujeto (usuario, producto o alquiler).
        sa.Column("subject_user_id", sa.BigInteger, nullable=True),
        sa.Column("subject_product_id", sa.BigInteger, nullable=True),
        sa.Column("subject_rental_id", sa.BigInteger, nullable=True),
        sa.Column("handler_id", sa.BigInteger, nullable=True),
        sa.Column("resolution_notes", sa.Text, nullable=True),
        _timestamp("created_at"),
        # updated_at es la versión para la concurrencia optimista.
        _timestamp("updated_at"),
        _timestamp("closed_at", nullable=True),
        sa.PrimaryKeyConstraint("id", name="pk_complaints"),
        sa.ForeignKeyConstraint(
            ["complainant_id"],
            ["users.id"],
            name="fk_complaints_complainant_id__users",
        ),
        sa.ForeignKeyConstraint(
            ["handler_id"],
            ["users.id"],
            name="fk_complaints_handler_id__users",
            ondelete="SET NULL",
        ),
        sa.CheckConstraint(
            "status IN ('submitted','under_review','resolved','rejected',"
            "'closed','withdrawn')",
            name="ck_complaints_status",
        ),
        sa.CheckConstraint(
            "category IN ('user_behavior','item_issue_not_claim','platform_bug',"
            "'safety_concern','other')",
            name="ck_complaints_category",
        ),
        sa.CheckConstraint(
            "priority IN ('low','medium','high','urgent')",
            name="ck_complaints_priority",
        ),
        sa.CheckConstraint(
            "num_nonnulls(subject_user_id, subject_product_id, subject_rental_id)"
            " <= 1",
            name="ck_complaints_single_subject",
        ),
    )
    # Listado propio (complainant) y cola de staff (status), ambos por fecha.
    op.create_index(
        "ix_complaints_complainant_id",
        "complaints",
        ["complainant_id", "created_at"],
    )
    op.create_index("ix_complaints_status", "complaints", ["status", "created_at"])

    # =========================================================
    # 3) PASSWORD RESET CODES
    # =========================================================
    op.create_table(
        "password_reset_codes",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("user_id", sa.BigInteger, nullable=False),
        sa.Column("code_hash", sa.String(128), nullable=False),
        sa.Column("token_hash", sa.String(128), nullable=False),
        _timestamp("created_at"),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column(
            "attempts", sa.Integer, nullable=False, server_default=sa.text("0")
        ),
        _timestamp("used_at", nullable=True),
        _timestamp("revoked_at", nullable=True),
        sa.PrimaryKeyConstraint("id", name="pk_password_reset_codes"),
        sa.ForeignKeyConstraint(
            ["user_id"],
            ["users.id"],
            name="fk_password_reset_codes_user_id__users",
            ondelete="CASCADE",
        ),
    )
    op.create_index(
        "ix_password_reset_codes_user_id",
        "password_reset_codes",
        ["user_id", "created_at"],
    )
    op.create_index(
        "uq_password_reset_codes_token_hash",
        "password_reset_codes",
        ["token_hash"],
        unique=True,
    )

    # =========================================================
    # 4) AUDIT
    # =========================================================
    op.create_table(
        "audit_events",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("actor", sa.String(255), nullable=False),
        sa.Column("action", sa.String(100), nullable=False),
        sa.Column("target_type", sa.String(50), nullable=True),
        sa.Column("target_id", sa.BigInteger, nullable=True),
        sa.Column(
            "metadata",
            postgresql.JSONB,
            nullable=False,
            server_default=sa.text("'{}'::jsonb"),
        ),
        _timestamp("created_at"),
        sa.PrimaryKeyConstraint("id", name="pk_audit_events"),
    )
    # Historial de un reclamo: target_type + target_id ordenado por fecha.
    op.create_index(
        "ix_audit_events_target",
        "audit_events",
        ["target_type", "target_id", "created_at"],
    )
    op.create_index("ix_audit_events_action", "audit_events", ["action"])


def downgrade() -> None:
    raise NotImplementedError("001_foundation es baseline: downgrade no soportado.")
