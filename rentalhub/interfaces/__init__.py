"""Capa de interfaces (adaptadores de entrada)."""
