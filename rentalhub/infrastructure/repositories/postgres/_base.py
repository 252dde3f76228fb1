"""
============================================================
TARJETA CRC — infrastructure/repositories/postgres/_base.py
============================================================
Class: PostgresRepositoryBase

Responsibilities:
  - Centralizar ejecución de SQL parametrizado contra el pool.
  - Envolver cualquier falla en DatabaseError con logging estructurado.

Collaborators:
  - psycopg_pool.ConnectionPool (inyectable, o el global)
  - crosscutting.exceptions.DatabaseError
  - crosscutting.logger

Notes:
  - pool.connection() hace commit al salir del with sin excepción.
============================================================
"""

from __future__ import annotations

from typing import Iterable

from psycopg_pool import ConnectionPool

from ....crosscutting.exceptions import DatabaseError
from ....crosscutting.logger import logger


class PostgresRepositoryBase:
    def __init__(self, pool: ConnectionPool | None = None) -> None:
        # Pool inyectable (para tests); si es None se usa el global.
        self._pool = pool

    def _get_pool(self) -> ConnectionPool:
        if self._pool is not None:
            return self._pool
        from ...db.pool import get_pool

        return get_pool()

    def _fail(self, log_msg: str, log_extra: dict[str, object], exc: Exception):
        logger.exception(log_msg, extra={**log_extra, "error": str(exc)})
        return DatabaseError(f"{log_msg}: {exc}", original_error=exc)

    def _fetchone(
        self,
        *,
        query: str,
        params: Iterable[object] = (),
        log_msg: str,
        log_extra: dict[str, object] | None = None,
    ) -> tuple | None:
        try:
            with self._get_pool().connection() as conn:
                return conn.execute(query, tuple(params)).fetchone()
        except Exception as exc:
            raise self._fail(log_msg, log_extra or {}, exc) from exc

    def _fetchall(
        self,
        *,
        query: str,
        params: Iterable[object] = (),
        log_msg: str,
        log_extra: dict[str, object] | None = None,
    ) -> list[tuple]:
        try:
            with self._get_pool().connection() as conn:
                return conn.execute(query, tuple(params)).fetchall()
        except Exception as exc:
            raise self._fail(log_msg, log_extra or {}, exc) from exc

    def _execute(
        self,
        *,
        query: str,
        params: Iterable[object] = (),
        log_msg: str,
        log_extra: dict[str, object] | None = None,
    ) -> int:
        """Ejecuta un INSERT/UPDATE y devuelve rowcount."""
        try:
            with self._get_pool().connection() as conn:
                return conn.execute(query, tuple(params)).rowcount
        except Exception as exc:
            raise self._fail(log_msg, log_extra or {}, exc) from exc
