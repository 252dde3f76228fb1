"""
Name: Integration Test DB Setup

Responsibilities:
  - Run Alembic migrations once per test session
  - Open the psycopg pool against the test database
  - Truncate marketplace tables between tests

Notes:
  - Only runs when RUN_INTEGRATION=1
  - The root conftest moves DATABASE_URL to TEST_DATABASE_URL so unit tests
    stay in memory; this module reads it back for Alembic and the pool
"""

from __future__ import annotations

import os
from pathlib import Path

import pytest
from alembic import command
from alembic.config import Config

from rentalhub.infrastructure.db.pool import close_pool, init_pool

DB_USER = os.getenv("POSTGRES_USER", "postgres")
DB_PASSWORD = os.getenv("POSTGRES_PASSWORD", "postgres")
DB_HOST = os.getenv("POSTGRES_HOST", "localhost")
DB_PORT = os.getenv("POSTGRES_HOST_PORT", "5432")
DB_NAME = os.getenv("POSTGRES_DB", "rentalhub")
DEFAULT_DATABASE_URL = (
    f"postgresql://{DB_USER}:{DB_PASSWORD}@{DB_HOST}:{DB_PORT}/{DB_NAME}"
)

REPO_ROOT = Path(__file__).resolve().parents[2]


def _run_migrations(database_url: str) -> None:
    config = Config(str(REPO_ROOT / "alembic.ini"))
    config.set_main_option("script_location", str(REPO_ROOT / "alembic"))
    previous = os.environ.get("DATABASE_URL")
    os.environ["DATABASE_URL"] = database_url
    try:
        command.upgrade(config, "head")
    finally:
        if previous is None:
            os.environ.pop("DATABASE_URL", None)
        else:
            os.environ["DATABASE_URL"] = previous


@pytest.fixture(scope="session")
def database_url() -> str:
    if os.getenv("RUN_INTEGRATION") != "1":
        pytest.skip("Set RUN_INTEGRATION=1 to run integration tests")
    return os.getenv("TEST_DATABASE_URL") or DEFAULT_DATABASE_URL


@pytest.fixture(scope="session")
def db_pool(database_url):
    _run_migrations(database_url)
    pool = init_pool(database_url=database_url, min_size=1, max_size=4)
    yield pool
    close_pool()


@pytest.fixture
def pg_pool(db_pool):
    """R: Empty marketplace tables for every test that touches PostgreSQL."""
    with db_pool.connection() as conn:
        conn.execute(
            "TRUNCATE audit_events, password_reset_codes, complaints, users "
            "RESTART IDENTITY CASCADE"
        )
    return db_pool
