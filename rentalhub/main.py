"""
Name: ASGI Entrypoint (rentalhub.main)

Re-exports the FastAPI app so servers import `rentalhub.main:app`.
No configuration or IO lives here.
"""

from rentalhub.api.main import app, create_app

__all__ = ["app", "create_app"]
