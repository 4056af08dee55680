"""HTTP API for the Waitlist Gate service."""
