# src/waitlist_gate/api/v1/__init__.py
"""Version 1 API endpoints."""

from .endpoints import (
    auth_router,
    system_router,
    waitlist_router,
    wallet_router,
)

__all__ = [
    "auth_router",
    "system_router",
    "waitlist_router",
    "wallet_router",
]
