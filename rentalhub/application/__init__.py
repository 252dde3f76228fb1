"""
===============================================================================
APPLICATION LAYER (Public API / Exports)
===============================================================================

Expone:
  - ensure_dev_users: seed de cuentas para desarrollo local.

Nota:
  - Los casos de uso se importan desde `usecases/`.
===============================================================================
"""

from .dev_seed import DEV_ACCOUNTS, ensure_dev_users

__all__ = ["DEV_ACCOUNTS", "ensure_dev_users"]
