# src/waitlist_gate/models/__init__.py
"""SQLAlchemy models for the Waitlist Gate application."""

from .waitlist import WaitlistEntry

__all__ = ["WaitlistEntry"]
