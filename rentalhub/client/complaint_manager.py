"""
===============================================================================
TARJETA CRC — client/complaint_manager.py
===============================================================================

Responsabilidades:
  - Operaciones de reclamos del lado cliente: alta, listado, lectura,
    historial, transiciones y prioridad.
  - Validar localmente con la MISMA tabla de transiciones que el servidor
    (domain.complaint_lifecycle) antes de tocar la red.
  - Concurrencia optimista: toda escritura viaja con expected_updated_at.
  - Orden por reclamo: un asyncio.Lock por id serializa las escrituras del
    mismo caller sobre el mismo reclamo; se descarta al quedar libre.

Colaboradores:
  - client.access_gate.AccessGate (authorize por capability)
  - client.session_store.SessionStore (expire ante 401)
  - client.api_client.ApiClient
  - domain.complaint_lifecycle / domain.entities

Notas:
  - El listado de un usuario ordinario se filtra también acá: el servidor ya
    lo restringe, pero un reclamo ajeno nunca debe llegar a la UI.
===============================================================================
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Awaitable, TypeVar

from ..crosscutting.exceptions import (
    AuthenticationError,
    AuthorizationError,
    InvalidTransitionError,
    ValidationError,
)
from ..crosscutting.logger import logger
from ..crosscutting.pagination import PageMeta
from ..domain.complaint_lifecycle import (
    ComplaintAction,
    TransitionCheck,
    evaluate_transition,
)
from ..domain.entities import Complaint, ComplaintCategory, ComplaintPriority
from .access_gate import AUTHENTICATED, ORDINARY, STAFF, AccessGate
from .api_client import ApiClient
from .session_store import SessionStore

T = TypeVar("T")


@dataclass
class ComplaintPage:
    items: list[Complaint] = field(default_factory=list)
    meta: PageMeta | None = None


class ComplaintManager:
    def __init__(self, api: ApiClient, gate: AccessGate, store: SessionStore) -> None:
        self._api = api
        self._gate = gate
        self._store = store
        self._locks: dict[int, asyncio.Lock] = {}
        self._lock_users: dict[int, int] = {}

    @asynccontextmanager
    async def _serialized(self, complaint_id: int) -> AsyncIterator[None]:
        lock = self._locks.setdefault(complaint_id, asyncio.Lock())
        self._lock_users[complaint_id] = self._lock_users.get(complaint_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            # R: El último en soltar (sin nadie esperando) descarta el lock.
            self._lock_users[complaint_id] -= 1
            if not self._lock_users[complaint_id]:
                del self._lock_users[complaint_id]
                del self._locks[complaint_id]

    async def _call(self, awaitable: Awaitable[T]) -> T:
        """Un 401 en cualquier llamada autenticada expira la sesión."""
        try:
            return await awaitable
        except AuthenticationError as exc:
            self._store.expire(exc.message)
            raise

    # ------------------------------------------------------------------
    # Lecturas
    # ------------------------------------------------------------------

    async def list_complaints(
        self,
        *,
        status: str | None = None,
        page: int = 1,
        per_page: int | None = None,
    ) -> ComplaintPage:
        identity = await self._gate.authorize(AUTHENTICATED)
        data = await self._call(
            self._api.get(
                "/complaints",
                params={"status": status, "page": page, "per_page": per_page},
            )
        )
        items = [Complaint.from_dict(item) for item in data["data"]]
        if not identity.is_staff:
            own = [c for c in items if c.complainant_id == identity.id]
            if len(own) != len(items):
                logger.warning(
                    "Listado con reclamos ajenos descartados",
                    extra={"dropped": len(items) - len(own)},
                )
            items = own
        return ComplaintPage(items=items, meta=PageMeta(**data["meta"]))

    async def get(self, complaint_id: int) -> Complaint:
        await self._gate.authorize(AUTHENTICATED)
        data = await self._call(self._api.get(f"/complaints/{complaint_id}"))
        return Complaint.from_dict(data)

    async def history(self, complaint_id: int) -> list[dict[str, Any]]:
        await self._gate.authorize(STAFF)
        data = await self._call(self._api.get(f"/complaints/{complaint_id}/history"))
        return list(data["events"])

    # ------------------------------------------------------------------
    # Escrituras (nunca se reintentan)
    # ------------------------------------------------------------------

    async def submit(
        self,
        category: str,
        title: str,
        details: str,
        *,
        subject_user_id: int | None = None,
        subject_product_id: int | None = None,
        subject_rental_id: int | None = None,
    ) -> Complaint:
        await self._gate.authorize(ORDINARY)

        errors: list[dict[str, str]] = []
        if category not in {c.value for c in ComplaintCategory}:
            errors.append({"field": "category", "msg": "categoría desconocida"})
        if not (title or "").strip():
            errors.append({"field": "title", "msg": "obligatorio"})
        if not (details or "").strip():
            errors.append({"field": "details", "msg": "obligatorio"})
        subjects = [
            s for s in (subject_user_id, subject_product_id, subject_rental_id) if s
        ]
        if len(subjects) > 1:
            errors.append({"field": "subject", "msg": "a lo sumo un sujeto"})
        if errors:
            raise ValidationError("Datos del reclamo inválidos.", errors=errors)

        payload: dict[str, Any] = {
            "category": category,
            "title": title.strip(),
            "details": details.strip(),
            "subject_user_id": subject_user_id,
            "subject_product_id": subject_product_id,
            "subject_rental_id": subject_rental_id,
        }
        data = await self._call(self._api.post("/complaints", payload))
        return Complaint.from_dict(data)

    async def transition(
        self,
        complaint: Complaint,
        action: ComplaintAction | str,
        *,
        notes: str | None = None,
        handler_id: int | None = None,
    ) -> Complaint:
        """
        Aplica una acción sobre la versión `complaint` que el caller leyó.

        Raises:
            InvalidTransitionError | AuthorizationError | ValidationError: local.
            StaleStateError: otro actor escribió primero (re-leer con get()).
        """
        identity = await self._gate.authorize(AUTHENTICATED)
        try:
            action = ComplaintAction(action)
        except ValueError as exc:
            raise ValidationError(f"Acción desconocida: {action!r}") from exc

        check = evaluate_transition(complaint, action, identity, notes=notes)
        if check == TransitionCheck.INVALID_TRANSITION:
            raise InvalidTransitionError(
                f"'{action.value}' no es válida desde '{complaint.status.value}'."
            )
        if check == TransitionCheck.FORBIDDEN:
            raise AuthorizationError(f"Tu rol no permite '{action.value}'.")
        if check == TransitionCheck.NOTES_REQUIRED:
            raise ValidationError("Resolver o rechazar requiere notas.")

        payload: dict[str, Any] = {
            "action": action.value,
            "expected_updated_at": complaint.updated_at.isoformat(),
        }
        if notes is not None:
            payload["notes"] = notes
        if handler_id is not None:
            payload["handler_id"] = handler_id

        async with self._serialized(complaint.id):
            data = await self._call(
                self._api.patch(f"/complaints/{complaint.id}", payload)
            )
        return Complaint.from_dict(data)

    async def withdraw(self, complaint: Complaint) -> Complaint:
        return await self.transition(complaint, ComplaintAction.WITHDRAW)

    async def begin_review(self, complaint: Complaint) -> Complaint:
        return await self.transition(complaint, ComplaintAction.BEGIN_REVIEW)

    async def resolve(
        self, complaint: Complaint, notes: str, handler_id: int | None = None
    ) -> Complaint:
        return await self.transition(
            complaint, ComplaintAction.RESOLVE, notes=notes, handler_id=handler_id
        )

    async def reject(
        self, complaint: Complaint, notes: str, handler_id: int | None = None
    ) -> Complaint:
        return await self.transition(
            complaint, ComplaintAction.REJECT, notes=notes, handler_id=handler_id
        )

    async def close(self, complaint: Complaint) -> Complaint:
        return await self.transition(complaint, ComplaintAction.CLOSE)

    async def set_priority(
        self, complaint: Complaint, priority: ComplaintPriority | str
    ) -> Complaint:
        await self._gate.authorize(STAFF)
        try:
            priority = ComplaintPriority(priority)
        except ValueError as exc:
            raise ValidationError(f"Prioridad desconocida: {priority!r}") from exc
        if complaint.status.is_terminal:
            raise InvalidTransitionError("El reclamo ya está cerrado.")

        async with self._serialized(complaint.id):
            data = await self._call(
                self._api.patch(
                    f"/complaints/{complaint.id}",
                    {
                        "priority": priority.value,
                        "expected_updated_at": complaint.updated_at.isoformat(),
                    },
                )
            )
        return Complaint.from_dict(data)
