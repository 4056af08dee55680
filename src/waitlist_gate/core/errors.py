"""Exception hierarchy shared by the services and the HTTP layer.

Each error carries the HTTP status it maps to and a short, client-safe
message. Internal details travel on the exception itself (and its
``__cause__``) and are only ever written to the server log.
"""

from __future__ import annotations

from fastapi import status


class WaitlistGateError(RuntimeError):
    """Base exception for all expected service failures."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Internal server error"

    def __init__(self, message: str | None = None, *, public_message: str | None = None) -> None:
        super().__init__(message or self.default_message)
        self.public_message = public_message or self.default_message


class ConfigurationError(WaitlistGateError):
    """Raised when a required server secret or setting is missing."""

    default_message = "Server configuration error"


class ValidationError(WaitlistGateError):
    """Raised when a client request is missing required fields."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Missing required fields"


class FormatError(ValidationError):
    """Raised when a client-supplied value does not match its fixed format."""

    default_message = "Invalid wallet address format"


class NotFoundError(WaitlistGateError):
    """Raised when a lookup by a secondary key matches nothing."""

    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Waitlist entry not found"


class StorageError(WaitlistGateError):
    """Raised for any persistence fault in the waitlist store."""

    default_message = "Storage error"


class ProviderError(WaitlistGateError):
    """Base exception raised for identity provider failures.

    Attributes:
        status: HTTP status returned by the provider, if a response was received
        body: Raw provider response body kept for server-side diagnostics
    """

    status_code = status.HTTP_502_BAD_GATEWAY
    default_message = "Identity provider error"

    def __init__(
        self,
        message: str | None = None,
        *,
        status: int | None = None,
        body: str | None = None,
    ) -> None:
        super().__init__(message)
        self.status = status
        self.body = body


class TokenExchangeError(ProviderError):
    """Raised when the provider rejects the authorization code exchange."""

    default_message = "Token exchange failed"


class ProfileFetchError(ProviderError):
    """Raised when the provider's current-user endpoint cannot be read."""

    default_message = "Failed to fetch user profile"
