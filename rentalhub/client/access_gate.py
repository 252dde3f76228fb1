"""
===============================================================================
TARJETA CRC — client/access_gate.py
===============================================================================

Responsabilidades:
  - Decidir, para cada navegación/acción, Allow | RedirectToLogin |
    RedirectForbidden | Pending a partir de la Session y una Capability.
  - Resolver la Capability de una ruta (tabla de rutas del marketplace).
  - authorize(): versión "excepción" para acciones (espera readiness).

Colaboradores:
  - client.session_store.SessionStore / Session
  - identity.users (Identity, UserRole, STAFF_ROLES)

Invariantes:
  - loading => Pending (nunca Allow ni redirect mientras carga).
  - identity None => nunca Allow.
  - Una identidad inactiva nunca obtiene Allow.
  - Rutas desconocidas exigen sesión (fail-closed).
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from fnmatch import fnmatchcase
from urllib.parse import quote

from ..crosscutting.exceptions import AuthenticationError, AuthorizationError
from ..identity.users import STAFF_ROLES, Identity, UserRole
from .session_store import Session, SessionStore

LOGIN_PATH = "/login"
FORBIDDEN_PATH = "/forbidden"


class GateDecision(str, Enum):
    ALLOW = "allow"
    REDIRECT_TO_LOGIN = "redirect_to_login"
    REDIRECT_FORBIDDEN = "redirect_forbidden"
    PENDING = "pending"


@dataclass(frozen=True)
class Capability:
    """Requisito de acceso. roles=None significa cualquier rol autenticado."""

    name: str
    roles: frozenset[UserRole] | None = None
    require_verified: bool = False

    def verified(self) -> Capability:
        return replace(self, name=f"{self.name}+verified", require_verified=True)

    def permits(self, identity: Identity) -> bool:
        if not identity.active:
            return False
        if self.roles is not None and identity.role not in self.roles:
            return False
        if self.require_verified and not identity.is_verified:
            return False
        return True


AUTHENTICATED = Capability("authenticated")
ORDINARY = Capability("ordinary", frozenset({UserRole.USER}))
STAFF = Capability("staff", STAFF_ROLES)
ADMIN = Capability("admin", frozenset({UserRole.ADMIN}))

# (patrón fnmatch, capability | None=pública). Primer match gana.
ROUTE_TABLE: tuple[tuple[str, Capability | None], ...] = (
    ("/", None),
    ("/login", None),
    ("/register", None),
    ("/forgot-password", None),
    ("/reset-password", None),
    ("/reset-password/*", None),
    ("/products*", None),
    ("/search*", None),
    ("/pages/*", None),
    ("/faq", None),
    ("/contact-us", None),
    ("/forbidden", None),
    ("/admin", STAFF),
    ("/admin/*", STAFF),
    ("/profile", AUTHENTICATED),
    ("/profile/*", AUTHENTICATED),
    ("/my-complaints", AUTHENTICATED),
    ("/complaints", AUTHENTICATED),
    ("/complaints/new", ORDINARY),
    ("/complaints/*", AUTHENTICATED),
    ("/my-rentals*", AUTHENTICATED),
    ("/owner/*", AUTHENTICATED),
    ("/renter/*", AUTHENTICATED),
    ("/rentals/*/checkout", ORDINARY.verified()),
    ("/rentals/*", AUTHENTICATED),
    ("/chat*", AUTHENTICATED),
    ("/claims*", AUTHENTICATED),
)


def capability_for_path(path: str) -> Capability | None:
    """Capability requerida por la ruta; None si es pública."""
    clean = (path or "/").split("?", 1)[0].split("#", 1)[0]
    if len(clean) > 1:
        clean = clean.rstrip("/")
    for pattern, capability in ROUTE_TABLE:
        if fnmatchcase(clean, pattern):
            return capability
    return AUTHENTICATED


def check(capability: Capability | None, session: Session) -> GateDecision:
    if session.loading:
        return GateDecision.PENDING
    if capability is None:
        return GateDecision.ALLOW
    if session.identity is None:
        return GateDecision.REDIRECT_TO_LOGIN
    if not capability.permits(session.identity):
        return GateDecision.REDIRECT_FORBIDDEN
    return GateDecision.ALLOW


def redirect_target(decision: GateDecision, path: str) -> str | None:
    if decision == GateDecision.REDIRECT_TO_LOGIN:
        return f"{LOGIN_PATH}?next={quote(path or '/', safe='/')}"
    if decision == GateDecision.REDIRECT_FORBIDDEN:
        return FORBIDDEN_PATH
    return None


class AccessGate:
    def __init__(self, store: SessionStore) -> None:
        self._store = store

    def check(self, capability: Capability | None) -> GateDecision:
        self._store.expire_if_due()
        return check(capability, self._store.session)

    def check_route(self, path: str) -> GateDecision:
        return self.check(capability_for_path(path))

    async def authorize(
        self, capability: Capability = AUTHENTICATED, timeout: float | None = None
    ) -> Identity:
        """
        Espera el fin de `loading` y devuelve la identidad habilitada.

        Raises:
            AuthenticationError: sin sesión.
            AuthorizationError: la identidad no cumple la capability.
        """
        await self._store.wait_until_ready(timeout)
        decision = self.check(capability)
        if decision == GateDecision.REDIRECT_TO_LOGIN:
            raise AuthenticationError("Iniciá sesión para continuar.")
        if decision == GateDecision.REDIRECT_FORBIDDEN:
            raise AuthorizationError(f"Requiere capacidad '{capability.name}'.")
        identity = self._store.identity
        if identity is None:
            raise AuthenticationError("Iniciá sesión para continuar.")
        return identity
