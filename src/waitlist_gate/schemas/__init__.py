# src/waitlist_gate/schemas/__init__.py
"""
Pydantic schemas for API request/response models.

These schemas define the structure of API data for serialization and validation.
"""

from .auth import AuthInitiateResponse, HealthResponse
from .waitlist import (
    CountResponse,
    WaitlistResponse,
    WaitlistUser,
    WalletSaveRequest,
    WalletSaveResponse,
)

__all__ = [
    "AuthInitiateResponse", "HealthResponse",
    "CountResponse", "WaitlistResponse", "WaitlistUser",
    "WalletSaveRequest", "WalletSaveResponse",
]
