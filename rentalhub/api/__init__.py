"""Capa de presentación: app FastAPI, rutas de auth y manejo de errores."""
