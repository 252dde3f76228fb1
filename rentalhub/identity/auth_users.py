"""
===============================================================================
TARJETA CRC — identity/auth_users.py
===============================================================================

Módulo:
    Autenticación de Usuarios (JWT)

Responsabilidades:
    - Hashear/verificar passwords (Argon2).
    - Emitir y validar JWT de acceso (HS256, claims mínimos).
    - Resolver el usuario actual (token -> user_id -> repo).
    - Exponer dependencias FastAPI (require_user, require_roles).
    - Extraer token desde Authorization: Bearer o cookie.

Colaboradores:
    - crosscutting.config.get_settings: secreto, TTL, cookie.
    - crosscutting.exceptions: InvalidCredentials / AccountInactive /
      AuthenticationError / AuthorizationError (el mapeo HTTP vive en
      api/exception_handlers.py).
    - container.get_user_repository: fuente de usuarios.
    - identity.users: User / UserRole.

Decisiones de diseño:
    - La criptografía vive acá (borde de identidad), NO en dominio.
    - No se diferencia "no existe" de "password incorrecto".
    - Un usuario inactivo con password correcto recibe AccountInactive.
    - No loguear secretos ni tokens.
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable

import jwt
from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError, VerifyMismatchError
from fastapi import Header, Request

from ..container import get_user_repository
from ..context import set_actor
from ..crosscutting.config import get_settings
from ..crosscutting.exceptions import (
    AccountInactive,
    AuthenticationError,
    AuthorizationError,
    InvalidCredentials,
)
from ..crosscutting.logger import logger
from .users import User, UserRole

# ---------------------------------------------------------------------------
# Constantes (evitan strings mágicos)
# ---------------------------------------------------------------------------

JWT_ALGORITHM: str = "HS256"

CLAIM_SUB: str = "sub"
CLAIM_EMAIL: str = "email"
CLAIM_ROLE: str = "role"
CLAIM_IAT: str = "iat"
CLAIM_EXP: str = "exp"
CLAIM_TYP: str = "typ"

TOKEN_TYPE_ACCESS: str = "access"

_password_hasher = PasswordHasher()


@dataclass(frozen=True, slots=True)
class AuthSettings:
    """Settings de auth (snapshot)."""

    jwt_secret: str
    jwt_access_ttl_minutes: int
    jwt_cookie_name: str
    jwt_cookie_secure: bool


@dataclass(frozen=True, slots=True)
class TokenPayload:
    """Payload mínimo que esperamos de un access token."""

    user_id: int
    email: str
    role: UserRole


def get_auth_settings() -> AuthSettings:
    s = get_settings()
    return AuthSettings(
        jwt_secret=s.jwt_secret,
        jwt_access_ttl_minutes=s.jwt_access_ttl_minutes,
        jwt_cookie_name=s.jwt_cookie_name,
        jwt_cookie_secure=s.jwt_cookie_secure,
    )


# ---------------------------------------------------------------------------
# Passwords (Argon2)
# ---------------------------------------------------------------------------


def hash_password(password: str) -> str:
    return _password_hasher.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return _password_hasher.verify(password_hash, password)
    except (VerifyMismatchError, VerificationError, InvalidHashError):
        return False


def authenticate_user(email: str, password: str) -> User:
    """Valida credenciales y retorna el usuario.

    Raises:
        InvalidCredentials: email desconocido o password incorrecto.
        AccountInactive: credenciales correctas pero cuenta desactivada.
    """
    normalized_email = (email or "").strip().lower()
    user = None
    if normalized_email:
        user = get_user_repository().get_user_by_email(normalized_email)

    if user is None or not verify_password(password or "", user.password_hash):
        raise InvalidCredentials("Email o contraseña incorrectos.")

    if not user.is_active:
        logger.warning("Auth falló: usuario inactivo", extra={"user_id": user.id})
        raise AccountInactive("La cuenta está desactivada.")

    return user


# ---------------------------------------------------------------------------
# Tokens JWT (emitir / decodificar)
# ---------------------------------------------------------------------------


def create_access_token(
    user: User, settings: AuthSettings | None = None
) -> tuple[str, int]:
    """Crea un JWT de acceso firmado. Retorna (token, expires_in_seconds)."""
    auth_settings = settings or get_auth_settings()

    now = datetime.now(timezone.utc)
    expires_in = int(auth_settings.jwt_access_ttl_minutes * 60)

    payload: dict[str, object] = {
        CLAIM_SUB: str(user.id),
        CLAIM_EMAIL: user.email,
        CLAIM_ROLE: user.role.value,
        CLAIM_IAT: int(now.timestamp()),
        CLAIM_EXP: int((now + timedelta(seconds=expires_in)).timestamp()),
        CLAIM_TYP: TOKEN_TYPE_ACCESS,
    }

    token = jwt.encode(payload, auth_settings.jwt_secret, algorithm=JWT_ALGORITHM)
    return token, expires_in


def decode_access_token(
    token: str, settings: AuthSettings | None = None
) -> TokenPayload:
    """Decodifica y valida un JWT de acceso.

    Raises:
        AuthenticationError: expirado, firma inválida o claims incompletos.
    """
    auth_settings = settings or get_auth_settings()

    try:
        payload = jwt.decode(
            token,
            auth_settings.jwt_secret,
            algorithms=[JWT_ALGORITHM],
            options={"require": [CLAIM_SUB, CLAIM_EMAIL, CLAIM_ROLE, CLAIM_EXP]},
        )
    except jwt.ExpiredSignatureError as exc:
        raise AuthenticationError("Sesión expirada.") from exc
    except jwt.InvalidTokenError as exc:
        raise AuthenticationError("Token inválido.") from exc

    if payload.get(CLAIM_TYP, TOKEN_TYPE_ACCESS) != TOKEN_TYPE_ACCESS:
        raise AuthenticationError("Tipo de token inválido.")

    try:
        return TokenPayload(
            user_id=int(payload[CLAIM_SUB]),
            email=str(payload[CLAIM_EMAIL]),
            role=UserRole(str(payload[CLAIM_ROLE])),
        )
    except ValueError as exc:
        raise AuthenticationError("Token inválido.") from exc


def get_current_user(token: str) -> User:
    """Resuelve el usuario actual a partir del access token.

    El rol se relee del repositorio: un cambio de rol aplica en el próximo
    request aunque el token siga vigente.
    """
    payload = decode_access_token(token)
    user = get_user_repository().get_user_by_id(payload.user_id)
    if user is None:
        raise AuthenticationError("Token inválido.")
    if not user.is_active:
        raise AccountInactive("La cuenta está desactivada.")
    return user


# ---------------------------------------------------------------------------
# Extracción de token (header/cookie)
# ---------------------------------------------------------------------------


def _extract_bearer_token(authorization: str | None) -> str | None:
    if not authorization:
        return None
    parts = authorization.strip().split(" ", 1)
    if len(parts) != 2 or parts[0].lower() != "bearer":
        return None
    return parts[1].strip() or None


def extract_access_token(request: Request, authorization: str | None) -> str | None:
    """Resuelve token desde Authorization o cookie."""
    token = _extract_bearer_token(authorization)
    if token:
        return token
    return request.cookies.get(get_auth_settings().jwt_cookie_name)


# ---------------------------------------------------------------------------
# Dependencias FastAPI
# ---------------------------------------------------------------------------


def require_user() -> Callable:
    """Dependency FastAPI: requiere usuario autenticado por JWT."""

    async def dependency(
        request: Request,
        authorization: str | None = Header(None, alias="Authorization"),
    ) -> User:
        token = extract_access_token(request, authorization)
        if not token:
            raise AuthenticationError("Falta token Bearer.")

        user = get_current_user(token)
        request.state.user = user
        set_actor(user.id)
        return user

    return dependency


def require_roles(*roles: UserRole | str) -> Callable:
    """Dependency FastAPI: requiere alguno de los roles dados."""
    allowed = frozenset(UserRole(r) for r in roles)

    async def dependency(
        request: Request,
        authorization: str | None = Header(None, alias="Authorization"),
    ) -> User:
        user = await require_user()(request, authorization)
        if user.role not in allowed:
            raise AuthorizationError("Rol insuficiente.")
        return user

    return dependency
