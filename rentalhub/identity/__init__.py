"""Identidad: usuarios, roles y autenticación JWT."""
