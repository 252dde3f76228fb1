"""rentalhub.infrastructure.services.retry

Name: Retry Helper with Exponential Backoff + Jitter

Qué es
------
Resiliencia para lecturas idempotentes del cliente contra la API:
  - Clasificación de errores: **transient** (reintentar) vs **permanent** (fail-fast)
  - Decorator de `tenacity` con **exponential backoff + jitter**
  - Logging estructurado de cada reintento

CRC (Component Card)
--------------------
Component: retry helper
Responsibilities:
  - Decidir qué errores son reintentables
  - Proveer un decorator estándar (sirve para funciones sync y async)
  - Loguear intentos
Collaborators:
  - tenacity (motor de retry)
  - crosscutting.config.get_settings (attempts/delays)
  - client.api_client (solo envuelve GETs)
Constraints:
  - Reintentar SOLO TransportError transitorios (red caída, 408/429/5xx)
  - Nunca envolver escrituras no idempotentes (submit, transiciones)
"""

from __future__ import annotations

from typing import Callable, Optional, TypeVar

from tenacity import (
    RetryCallState,
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential_jitter,
)

from ...crosscutting.config import get_settings
from ...crosscutting.exceptions import TransportError
from ...crosscutting.logger import logger

T = TypeVar("T")


# R: HTTP status codes que indican fallas transitorias (reintentables)
TRANSIENT_HTTP_CODES: frozenset[int] = frozenset({408, 429, 500, 502, 503, 504})


def is_transient_error(exception: BaseException) -> bool:
    """R: Solo TransportError; sin status (red) o con status transitorio."""
    if not isinstance(exception, TransportError):
        return False
    return exception.status_code is None or exception.status_code in TRANSIENT_HTTP_CODES


def _log_retry(retry_state: RetryCallState) -> None:
    """R: Loguea cada intento antes de dormir (before_sleep)."""
    fn_name = getattr(retry_state.fn, "__name__", "unknown")
    wait_time = retry_state.next_action.sleep if retry_state.next_action else 0

    exc: Optional[BaseException] = None
    if retry_state.outcome is not None:
        exc = retry_state.outcome.exception()

    logger.warning(
        "Reintentando lectura",
        extra={
            "function": fn_name,
            "attempt": retry_state.attempt_number,
            "wait_seconds": round(float(wait_time), 2),
            "error": str(exc) if exc else None,
            "error_type": type(exc).__name__ if exc else None,
        },
    )


def create_retry_decorator(
    max_attempts: int | None = None,
    base_delay: float | None = None,
    max_delay: float | None = None,
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """R: Crea un decorator `tenacity` con exponential backoff + jitter.

    Config:
      - stop: `stop_after_attempt(max_attempts)`
      - wait: `wait_exponential_jitter(initial=base_delay, max=max_delay)`
      - retry: solo si `is_transient_error(exception)`
      - reraise: True (propaga la última excepción)
    """
    settings = get_settings()

    _max_attempts = (
        settings.retry_max_attempts if max_attempts is None else max_attempts
    )
    _base_delay = (
        settings.retry_base_delay_seconds if base_delay is None else float(base_delay)
    )
    _max_delay = (
        settings.retry_max_delay_seconds if max_delay is None else float(max_delay)
    )

    if _max_attempts <= 0:
        raise ValueError("max_attempts must be > 0")
    if _base_delay < 0:
        raise ValueError("base_delay must be >= 0")
    if _max_delay < 0:
        raise ValueError("max_delay must be >= 0")

    return retry(
        stop=stop_after_attempt(_max_attempts),
        wait=wait_exponential_jitter(
            initial=_base_delay, max=_max_delay, jitter=_base_delay
        ),
        retry=retry_if_exception(is_transient_error),
        before_sleep=_log_retry,
        reraise=True,
    )

