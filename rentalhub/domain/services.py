"""
===============================================================================
TARJETA CRC — domain/services.py
===============================================================================

Módulo:
    Puertos de Servicios Externos (Protocols)

Responsabilidades:
    - Contrato para entregar códigos de recuperación (email/SMS/outbox).
    - Proteger a application del proveedor de mensajería.

Colaboradores:
    - infrastructure/notifications/*: implementaciones concretas.
    - application/usecases/auth/request_password_reset.py

Reglas:
    - SOLO interfaces.
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Protocol


@dataclass(frozen=True, slots=True)
class ResetCodeMessage:
    """Lo que se le entrega al usuario: OTP numérico y token para el link."""

    email: str
    code: str
    token: str
    expires_at: datetime


class ResetCodeNotifier(Protocol):
    """Contrato para entregar un código de recuperación."""

    def send_reset_code(self, message: ResetCodeMessage) -> None:
        ...
