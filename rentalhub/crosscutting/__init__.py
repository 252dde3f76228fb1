"""Utilidades transversales (config, logging, errores, métricas)."""
