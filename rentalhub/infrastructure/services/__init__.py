"""Servicios de infraestructura (resiliencia)."""

from .retry import create_retry_decorator, is_transient_error

__all__ = ["create_retry_decorator", "is_transient_error"]
