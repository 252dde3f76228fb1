"""
===============================================================================
MÓDULO: Logger estructurado (JSON) con contexto de request
===============================================================================

Objetivo
--------
Un único logger para servidor y cliente que:
- emite JSON parseable
- se correlaciona por request_id
- nunca deja pasar passwords, tokens ni códigos de recuperación

-------------------------------------------------------------------------------
CRC (Component Card)
-------------------------------------------------------------------------------
Componente:
  JSONFormatter + setup_logger()

Responsabilidades:
  - Formatear LogRecord como JSON
  - Enriquecer con request_id / method / path (ContextVars)
  - Redactar campos sensibles

Colaboradores:
  - rentalhub/context.py
  - crosscutting/config.py (log_level, log_json)
===============================================================================
"""

from __future__ import annotations

import json
import logging
import os
import sys
import traceback
from datetime import datetime, timezone
from typing import Any

# Atributos propios de LogRecord: no se copian como "extra".
_RESERVED_ATTRS: frozenset[str] = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None)).keys()
) | {"message", "taskName"}


class _Redactor:
    """
    ----------------------------------------------------------------------------
    CRC (Class Card)
    ----------------------------------------------------------------------------
    Clase:
      _Redactor

    Responsabilidades:
      - Ocultar valores cuyo nombre de campo sugiere un secreto
      - Limitar profundidad y largo para que un payload no infle el log

    Colaboradores:
      - JSONFormatter
    ----------------------------------------------------------------------------
    """

    SENSITIVE_KEYS = frozenset(
        {
            "password",
            "new_password",
            "new_password_confirmation",
            "password_hash",
            "secret",
            "jwt_secret",
            "token",
            "access_token",
            "authorization",
            "otp",
            "code",
            "reset_code",
            "credential",
            "cookie",
        }
    )

    def __init__(self, max_str: int = 4_000, max_depth: int = 4):
        self._max_str = max_str
        self._max_depth = max_depth

    def sanitize(self, value: Any, *, depth: int = 0, key: str | None = None) -> Any:
        if key is not None and key.lower() in self.SENSITIVE_KEYS:
            return "***"
        if depth > self._max_depth:
            return "<depth>"

        if isinstance(value, str):
            return value if len(value) <= self._max_str else value[: self._max_str] + "…"
        if isinstance(value, (bytes, bytearray)):
            return f"<{len(value)} bytes>"
        if isinstance(value, dict):
            return {
                str(k): self.sanitize(v, depth=depth + 1, key=str(k))
                for k, v in value.items()
            }
        if isinstance(value, (list, tuple, set)):
            return [self.sanitize(v, depth=depth + 1) for v in value]
        if value is None or isinstance(value, (bool, int, float)):
            return value
        return str(value)


class JSONFormatter(logging.Formatter):
    """
    ----------------------------------------------------------------------------
    CRC (Class Card)
    ----------------------------------------------------------------------------
    Clase:
      JSONFormatter

    Responsabilidades:
      - LogRecord -> una línea JSON
      - Adjuntar contexto del request y stacktrace si hay excepción

    Colaboradores:
      - rentalhub/context.get_context_dict()
      - _Redactor
    ----------------------------------------------------------------------------
    """

    def __init__(self):
        super().__init__()
        self._redactor = _Redactor()

    def format(self, record: logging.LogRecord) -> str:
        from ..context import get_context_dict

        payload: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "line": record.lineno,
            "pid": os.getpid(),
        }
        payload.update(get_context_dict())

        for k, v in record.__dict__.items():
            if k in _RESERVED_ATTRS:
                continue
            payload[k] = self._redactor.sanitize(v, key=k)

        if record.exc_info and record.exc_info[0] is not None:
            payload["exception"] = {
                "type": record.exc_info[0].__name__,
                "message": str(record.exc_info[1]),
                "stacktrace": traceback.format_exception(*record.exc_info),
            }

        return json.dumps(
            payload, ensure_ascii=False, default=str, separators=(",", ":")
        )


def setup_logger(name: str = "rentalhub") -> logging.Logger:
    """
    Crea y configura el logger global.

    - No duplica handlers si el módulo se reimporta
    - Toma nivel y formato de Settings
    """
    from .config import get_settings

    settings = get_settings()
    log = logging.getLogger(name)
    log.setLevel(getattr(logging, settings.log_level, logging.INFO))

    if not log.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(
            JSONFormatter()
            if settings.log_json
            else logging.Formatter("%(levelname)s %(name)s %(message)s")
        )
        log.addHandler(handler)

    return log


# Instancia global (import-friendly)
logger = setup_logger()
