"""
===============================================================================
USE CASE: List Complaints
===============================================================================

Business Goal:
  Listado paginado con scoping forzado:
    - staff/admin: todos los reclamos (filtro opcional por estado)
    - usuario ordinario: SOLO los propios (complainant_id = actor.id)

  El scoping no es un parámetro del caller: un filtro "olvidado" no puede
  filtrar reclamos ajenos.

-------------------------------------------------------------------------------
CRC CARD
-------------------------------------------------------------------------------
Component:
  ListComplaintsUseCase

Collaborators:
  - ComplaintRepository
  - crosscutting.pagination.page_window
===============================================================================
"""

from __future__ import annotations

from ....crosscutting.pagination import page_window
from ....domain.entities import ComplaintStatus
from ....domain.repositories import ComplaintRepository
from ....identity.users import Identity
from .complaint_results import (
    ComplaintError,
    ComplaintErrorCode,
    ComplaintPageResult,
)


class ListComplaintsUseCase:
    def __init__(
        self,
        repository: ComplaintRepository,
        *,
        default_per_page: int = 15,
        max_per_page: int = 100,
    ):
        self._repo = repository
        self._default_per_page = default_per_page
        self._max_per_page = max_per_page

    def execute(
        self,
        actor: Identity,
        *,
        status: str | None = None,
        page: int = 1,
        per_page: int | None = None,
    ) -> ComplaintPageResult:
        status_filter: ComplaintStatus | None = None
        if status:
            try:
                status_filter = ComplaintStatus(status)
            except ValueError:
                return ComplaintPageResult(
                    error=ComplaintError(
                        code=ComplaintErrorCode.VALIDATION_ERROR,
                        message=f"Estado desconocido: {status!r}",
                    )
                )

        page, per_page, offset = page_window(
            page, per_page or self._default_per_page, self._max_per_page
        )
        complainant_id = None if actor.is_staff else actor.id

        items = self._repo.list_complaints(
            complainant_id=complainant_id,
            status=status_filter,
            limit=per_page,
            offset=offset,
        )
        total = self._repo.count_complaints(
            complainant_id=complainant_id, status=status_filter
        )
        return ComplaintPageResult(
            items=items, total=total, page=page, per_page=per_page
        )
