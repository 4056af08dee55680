"""Waitlist Gate: X sign-in, waitlist persistence and wallet attach."""

__version__ = "0.1.0"
