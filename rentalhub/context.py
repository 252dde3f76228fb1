"""
===============================================================================
TARJETA CRC — rentalhub/context.py (Contexto por request)
===============================================================================

Responsabilidades:
  - Mantener contexto request-scoped con ContextVars (async-safe).
  - Correlacionar logs sin pasar parámetros por todo el stack.

Colaboradores:
  - crosscutting.middleware: setea request_id/method/path.
  - crosscutting.logger: lee get_context_dict().
  - client.api_client: propaga el request_id saliente como X-Request-Id.

Restricciones:
  - Solo strings; "" significa "no disponible".
===============================================================================
"""

from __future__ import annotations

from contextvars import ContextVar

request_id_var: ContextVar[str] = ContextVar("request_id", default="")
http_method_var: ContextVar[str] = ContextVar("http_method", default="")
http_path_var: ContextVar[str] = ContextVar("http_path", default="")
actor_id_var: ContextVar[str] = ContextVar("actor_id", default="")

_CONTEXT_VARS: tuple[tuple[str, ContextVar[str]], ...] = (
    ("request_id", request_id_var),
    ("method", http_method_var),
    ("path", http_path_var),
    ("actor_id", actor_id_var),
)


def set_request_context(
    *, request_id: str = "", method: str = "", path: str = ""
) -> None:
    """Setea el contexto mínimo del request."""
    request_id_var.set(request_id or "")
    http_method_var.set(method or "")
    http_path_var.set(path or "")


def set_actor(actor_id: int | str | None) -> None:
    """Registra quién actúa (id de usuario) una vez resuelta la autenticación."""
    actor_id_var.set("" if actor_id is None else str(actor_id))


def get_context_dict() -> dict[str, str]:
    """Contexto actual como dict, omitiendo claves vacías."""
    return {key: val for key, var in _CONTEXT_VARS if (val := var.get())}


def clear_context() -> None:
    """Limpia el contexto al final del request (evita filtraciones entre requests)."""
    for _, var in _CONTEXT_VARS:
        var.set("")
