"""Interfaces de entrada: API HTTP."""
