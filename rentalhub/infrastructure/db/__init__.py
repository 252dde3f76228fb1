"""Infraestructura: pool PostgreSQL."""

from .pool import close_pool, get_pool, init_pool, is_pool_initialized, ping

__all__ = ["close_pool", "get_pool", "init_pool", "is_pool_initialized", "ping"]
