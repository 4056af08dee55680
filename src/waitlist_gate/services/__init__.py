# src/waitlist_gate/services/__init__.py
"""Business logic services for the Waitlist Gate application."""

from .identity_provider import IdentityProviderClient, ProviderProfile
from .oauth_flow import CallbackOutcome, OAuthFlow
from .oauth_state import MemoryAttemptStore, RedisAttemptStore
from .waitlist import WaitlistStore

__all__ = [
    "IdentityProviderClient",
    "ProviderProfile",
    "CallbackOutcome",
    "OAuthFlow",
    "MemoryAttemptStore",
    "RedisAttemptStore",
    "WaitlistStore",
]
