# src/waitlist_gate/api/v1/endpoints/__init__.py
"""API endpoint modules for version 1."""

from .auth import router as auth_router
from .system import router as system_router
from .waitlist import router as waitlist_router
from .wallet import router as wallet_router

__all__ = [
    "auth_router",
    "system_router",
    "waitlist_router",
    "wallet_router",
]
