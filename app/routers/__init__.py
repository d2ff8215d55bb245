"""Routers package for the recurring message service."""

from .recurring_messages import router as recurring_messages_router

__all__ = ["recurring_messages_router"]
