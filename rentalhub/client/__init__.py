"""
===============================================================================
CLIENT CORE (Public API / Exports)
===============================================================================

Componentes del lado cliente, de la hoja hacia arriba:
  - SessionStore: identidad actual + loading/error, con suscripciones.
  - RecoveryFlow: recuperación de contraseña en dos pasos.
  - AccessGate: Allow | RedirectToLogin | RedirectForbidden | Pending.
  - ComplaintManager: reclamos con concurrencia optimista.

Uso típico:

    credentials = FileCredentialStore(settings.credential_path)
    api = ApiClient(credentials)
    store = SessionStore(api, credentials)
    store.restore()
    gate = AccessGate(store)
    complaints = ComplaintManager(api, gate, store)
===============================================================================
"""

from .access_gate import (
    ADMIN,
    AUTHENTICATED,
    ORDINARY,
    STAFF,
    AccessGate,
    Capability,
    GateDecision,
    capability_for_path,
    check,
    redirect_target,
)
from .api_client import ApiClient, error_from_response
from .complaint_manager import ComplaintManager, ComplaintPage
from .credentials import CredentialStore, FileCredentialStore, InMemoryCredentialStore
from .recovery_flow import RecoveryFlow, RecoveryState, RecoveryStep
from .session_store import Session, SessionStore

__all__ = [
    "ADMIN",
    "AUTHENTICATED",
    "ORDINARY",
    "STAFF",
    "AccessGate",
    "ApiClient",
    "Capability",
    "ComplaintManager",
    "ComplaintPage",
    "CredentialStore",
    "FileCredentialStore",
    "GateDecision",
    "InMemoryCredentialStore",
    "RecoveryFlow",
    "RecoveryState",
    "RecoveryStep",
    "Session",
    "SessionStore",
    "capability_for_path",
    "check",
    "error_from_response",
    "redirect_target",
]
