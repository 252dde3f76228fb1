"""
===============================================================================
ARCHIVO: crosscutting/metrics.py
===============================================================================

CRC CARD (Módulo)
-------------------------------------------------------------------------------
Nombre:
    Métricas (Prometheus)

Responsabilidades:
    - Definir contadores/histogramas en un registry propio.
    - Proveer funciones pequeñas para registrar eventos de auth y reclamos.
    - Cuidar cardinalidad (NO user_id, NO ids de reclamo, NO emails).
    - Generar la respuesta de /metrics.

Colaboradores:
    - crosscutting.middleware: latencia y conteo HTTP.
    - application/usecases: resultados de login, recuperación y transiciones.
===============================================================================
"""

from __future__ import annotations

import re

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

_registry = CollectorRegistry()

# ------------------------
# HTTP
# ------------------------
_requests_total = Counter(
    "rentalhub_requests_total",
    "Total de requests HTTP",
    ["endpoint", "method", "status"],
    registry=_registry,
)

_request_latency = Histogram(
    "rentalhub_request_latency_seconds",
    "Latencia de requests HTTP (segundos)",
    ["endpoint", "method"],
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0),
    registry=_registry,
)

# ------------------------
# Auth
# ------------------------
_login_attempts_total = Counter(
    "rentalhub_login_attempts_total",
    "Intentos de login por resultado",
    ["outcome"],
    registry=_registry,
)

_password_reset_total = Counter(
    "rentalhub_password_reset_total",
    "Eventos del flujo de recuperación (request/redeem) por resultado",
    ["stage", "outcome"],
    registry=_registry,
)

# ------------------------
# Reclamos
# ------------------------
_complaint_transitions_total = Counter(
    "rentalhub_complaint_transitions_total",
    "Transiciones de reclamos por acción y resultado",
    ["action", "outcome"],
    registry=_registry,
)


def record_request_metrics(
    endpoint: str,
    method: str,
    status_code: int,
    latency_seconds: float,
) -> None:
    """Registra métricas HTTP.

    - endpoint se normaliza para no explotar cardinalidad.
    - status se agrupa por 2xx/4xx/5xx.
    """
    normalized = _normalize_endpoint(endpoint)
    _requests_total.labels(
        endpoint=normalized, method=method, status=_status_bucket(status_code)
    ).inc()
    _request_latency.labels(endpoint=normalized, method=method).observe(
        latency_seconds
    )


def record_login_attempt(outcome: str) -> None:
    _login_attempts_total.labels(outcome=outcome).inc()


def record_password_reset(stage: str, outcome: str) -> None:
    _password_reset_total.labels(stage=stage, outcome=outcome).inc()


def record_complaint_transition(action: str, outcome: str) -> None:
    _complaint_transitions_total.labels(action=action, outcome=outcome).inc()


# -----------------------------------------------------------------------------
# Helpers internos
# -----------------------------------------------------------------------------


def _normalize_endpoint(path: str) -> str:
    """Reemplaza IDs numéricos y tokens de reset por placeholders."""
    path = re.sub(r"/reset-password/[^/]+", "/reset-password/{token}", path)
    return re.sub(r"/\d+", "/{id}", path)


def _status_bucket(code: int) -> str:
    """Agrupa status code para baja cardinalidad."""
    if 200 <= code < 300:
        return "2xx"
    if 300 <= code < 400:
        return "3xx"
    if 400 <= code < 500:
        return "4xx"
    if 500 <= code < 600:
        return "5xx"
    return "other"


def get_metrics_response() -> tuple[bytes, str]:
    """Genera el body y content-type para /metrics."""
    return generate_latest(_registry), CONTENT_TYPE_LATEST
