"""Adaptadores de entrega de códigos de recuperación."""

from .reset_code import InMemoryResetCodeOutbox, WebhookResetCodeNotifier

__all__ = ["InMemoryResetCodeOutbox", "WebhookResetCodeNotifier"]
