"""
===============================================================================
MÓDULO: Generación y hash de códigos de recuperación
===============================================================================

Responsabilidades:
  - Generar OTP numérico (secrets) y token URL-safe para el link de email.
  - Hashear con HMAC-SHA256 ligado al usuario (nunca se guarda el valor).
  - Comparar en tiempo constante.

Colaboradores:
  - request_password_reset.py / reset_password.py
===============================================================================
"""

from __future__ import annotations

import hashlib
import hmac
import secrets
import string


def generate_otp(length: int) -> str:
    return "".join(secrets.choice(string.digits) for _ in range(length))


def generate_link_token() -> str:
    return secrets.token_urlsafe(32)


def hash_secret(pepper: str, user_id: int, value: str) -> str:
    message = f"{user_id}:{value.strip()}".encode("utf-8")
    return hmac.new(pepper.encode("utf-8"), message, hashlib.sha256).hexdigest()


def hash_link_token(pepper: str, token: str) -> str:
    """El token se busca sin conocer al usuario: hash sin user_id."""
    message = f"link:{token.strip()}".encode("utf-8")
    return hmac.new(pepper.encode("utf-8"), message, hashlib.sha256).hexdigest()


def secrets_match(expected_hash: str, candidate_hash: str) -> bool:
    return hmac.compare_digest(expected_hash, candidate_hash)
