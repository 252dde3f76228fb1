"""Adaptadores de infraestructura (repositorios, DB, notificaciones, retry)."""
