"""
===============================================================================
MÓDULO: Paginación por número de página
===============================================================================

Objetivo
--------
El listado de reclamos usa el contrato {data, meta} del marketplace:
meta = {total, current_page, per_page, last_page}.

-------------------------------------------------------------------------------
CRC (Component Card)
-------------------------------------------------------------------------------
Componente:
  PageMeta + Page[T] + page_window()

Responsabilidades:
  - Normalizar page/per_page
  - Calcular offset y last_page
===============================================================================
"""

from __future__ import annotations

import math
from typing import Generic, List, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class PageMeta(BaseModel):
    total: int = Field(description="Total de items que cumplen el filtro")
    current_page: int = Field(description="Página actual (1-based)")
    per_page: int = Field(description="Items por página")
    last_page: int = Field(description="Última página (>= 1)")


class Page(BaseModel, Generic[T]):
    data: List[T] = Field(description="Items de la página actual")
    meta: PageMeta = Field(description="Metadatos de paginación")


def page_window(page: int, per_page: int, max_per_page: int) -> tuple[int, int, int]:
    """
    Normaliza (page, per_page) y devuelve (page, per_page, offset).

    page < 1 se trata como 1; per_page se acota a [1, max_per_page].
    """
    page = max(1, int(page))
    per_page = min(max(1, int(per_page)), max_per_page)
    return page, per_page, (page - 1) * per_page


def build_meta(total: int, page: int, per_page: int) -> PageMeta:
    return PageMeta(
        total=total,
        current_page=page,
        per_page=per_page,
        last_page=max(1, math.ceil(total / per_page)),
    )
