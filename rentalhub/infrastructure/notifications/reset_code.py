"""
===============================================================================
TARJETA CRC — infrastructure/notifications/reset_code.py
===============================================================================

Componentes:
  - InMemoryResetCodeOutbox: guarda los mensajes (tests / dev).
  - WebhookResetCodeNotifier: entrega el código a un relay de email (httpx).

Responsabilidades:
  - Implementar el puerto ResetCodeNotifier.
  - Nunca loguear el código ni el token.

Colaboradores:
  - domain.services.ResetCodeMessage / ResetCodeNotifier
  - httpx (POST JSON al relay)
  - crosscutting.exceptions.TransportError
===============================================================================
"""

from __future__ import annotations

from threading import Lock

import httpx

from ...crosscutting.exceptions import TransportError
from ...crosscutting.logger import logger
from ...domain.services import ResetCodeMessage, ResetCodeNotifier


class InMemoryResetCodeOutbox(ResetCodeNotifier):
    """Outbox en memoria: permite a tests/dev leer el último código enviado."""

    def __init__(self) -> None:
        self._lock = Lock()
        self._messages: list[ResetCodeMessage] = []

    def send_reset_code(self, message: ResetCodeMessage) -> None:
        with self._lock:
            self._messages.append(message)
        logger.info(
            "Código de recuperación encolado (outbox)",
            extra={"expires_at": message.expires_at.isoformat()},
        )

    def messages_for(self, email: str) -> list[ResetCodeMessage]:
        normalized = email.strip().lower()
        with self._lock:
            return [m for m in self._messages if m.email == normalized]

    def latest_for(self, email: str) -> ResetCodeMessage | None:
        messages = self.messages_for(email)
        return messages[-1] if messages else None


class WebhookResetCodeNotifier(ResetCodeNotifier):
    """Entrega el código a un relay HTTP (el relay arma y envía el email)."""

    def __init__(self, url: str, *, timeout_s: float = 10.0):
        if not url:
            raise ValueError("url is required for WebhookResetCodeNotifier")
        self._url = url
        self._timeout = timeout_s

    def send_reset_code(self, message: ResetCodeMessage) -> None:
        payload = {
            "template": "password_reset",
            "to": message.email,
            "otp": message.code,
            "token": message.token,
            "expires_at": message.expires_at.isoformat(),
        }
        try:
            response = httpx.post(self._url, json=payload, timeout=self._timeout)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise TransportError(
                "El relay de email rechazó el mensaje",
                status_code=exc.response.status_code,
                original_error=exc,
            ) from exc
        except httpx.HTTPError as exc:
            raise TransportError(
                "No se pudo contactar al relay de email", original_error=exc
            ) from exc
