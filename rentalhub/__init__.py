"""
RentalHub access-control core.

Sesión, gate de acceso, recuperación de cuenta y ciclo de vida de reclamos
(cliente async + API FastAPI que aplica las mismas reglas del lado servidor).
"""

__version__ = "0.1.0"
