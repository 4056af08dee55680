"""X (Twitter) OAuth 2.0 client.

This module provides the IdentityProviderClient class that handles every
outbound call made during sign-in:

- Building the provider authorization URL (optionally with a PKCE challenge)
- Exchanging an authorization code for an access token
- Fetching the authenticated account's profile

The client keeps no token or profile between calls; the OAuth flow threads
values from one step to the next.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any
from urllib.parse import quote, urlencode

import httpx

from waitlist_gate.core.errors import (
    ConfigurationError,
    ProfileFetchError,
    TokenExchangeError,
)
from waitlist_gate.core.settings import Settings

# Configure logger for this module
logger = logging.getLogger(__name__)

# Truncate provider bodies kept on exceptions and in the log
MAX_DIAGNOSTIC_BODY = 2048


@dataclass(frozen=True)
class ProviderConfig:
    """Immutable configuration for identity provider operations."""

    client_id: str | None
    client_secret: str | None
    authorize_url: str
    token_url: str
    user_url: str
    scopes: str
    timeout_seconds: float


@dataclass(frozen=True)
class ProviderProfile:
    """Authenticated account as reported by the provider."""

    identity_id: str
    handle: str
    display_name: str


def load_provider_config(settings: Settings) -> ProviderConfig:
    """Build configuration object from application settings."""

    return ProviderConfig(
        client_id=settings.twitter_client_id or None,
        client_secret=settings.twitter_client_secret or None,
        authorize_url=settings.twitter_authorize_url,
        token_url=settings.twitter_token_url,
        user_url=settings.twitter_user_url,
        scopes=settings.twitter_scopes,
        timeout_seconds=float(settings.provider_http_timeout_seconds),
    )


def _diagnostic_body(response: httpx.Response) -> str:
    try:
        return response.text[:MAX_DIAGNOSTIC_BODY]
    except Exception:  # pragma: no cover - undecodable body
        return "<unreadable response body>"


class IdentityProviderClient:
    """HTTP client wrapper for the provider's OAuth 2.0 endpoints."""

    def __init__(
        self,
        config: ProviderConfig,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        self._client_lock = asyncio.Lock()

    async def _ensure_client(self) -> httpx.AsyncClient:
        async with self._client_lock:
            if self._client is None:
                self._client = httpx.AsyncClient(
                    timeout=httpx.Timeout(self.config.timeout_seconds),
                    transport=self._transport,
                )
        return self._client

    async def close(self) -> None:
        """Release pooled connections."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    def _require_client_id(self) -> str:
        if not self.config.client_id:
            raise ConfigurationError(
                "TWITTER_CLIENT_ID is not configured",
                public_message="Server configuration error - missing client ID",
            )
        return self.config.client_id

    def build_authorization_url(
        self,
        callback_url: str,
        state: str,
        *,
        code_challenge: str | None = None,
    ) -> str:
        """Return the provider authorization URL for one sign-in attempt.

        Args:
            callback_url: Redirect URI registered with the provider
            state: Opaque CSRF token round-tripped by the provider
            code_challenge: S256 PKCE challenge, when PKCE is enabled

        Returns:
            Fully encoded authorization URL

        Raises:
            ConfigurationError: If the client id is not configured
        """
        params = {
            "response_type": "code",
            "client_id": self._require_client_id(),
            "redirect_uri": callback_url,
            "scope": self.config.scopes,
            "state": state,
        }
        if code_challenge:
            params["code_challenge"] = code_challenge
            params["code_challenge_method"] = "S256"
        return f"{self.config.authorize_url}?{urlencode(params, quote_via=quote)}"

    async def exchange_code_for_token(
        self,
        code: str,
        callback_url: str,
        *,
        code_verifier: str | None = None,
    ) -> str:
        """Exchange an authorization code for an access token.

        Raises:
            ConfigurationError: If client credentials are not configured
            TokenExchangeError: If the provider rejects the exchange or is unreachable
        """
        client_id = self._require_client_id()
        if not self.config.client_secret:
            raise ConfigurationError("TWITTER_CLIENT_SECRET is not configured")

        form = {
            "code": code,
            "grant_type": "authorization_code",
            "redirect_uri": callback_url,
        }
        if code_verifier:
            form["code_verifier"] = code_verifier

        client = await self._ensure_client()
        try:
            response = await client.post(
                self.config.token_url,
                data=form,
                auth=httpx.BasicAuth(client_id, self.config.client_secret),
            )
        except httpx.TimeoutException as exc:
            raise TokenExchangeError(f"Token exchange timed out: {exc}") from exc
        except httpx.HTTPError as exc:
            raise TokenExchangeError(f"Token exchange request failed: {exc}") from exc

        if not response.is_success:
            body = _diagnostic_body(response)
            raise TokenExchangeError(
                f"Provider responded with {response.status_code} to token exchange",
                status=response.status_code,
                body=body,
            )

        payload = self._json(response, TokenExchangeError)
        access_token = payload.get("access_token")
        if not isinstance(access_token, str) or not access_token:
            raise TokenExchangeError(
                "Token response did not include an access token",
                status=response.status_code,
                body=_diagnostic_body(response),
            )
        return access_token

    async def fetch_profile(self, access_token: str) -> ProviderProfile:
        """Fetch the account that authorized ``access_token``.

        Raises:
            ProfileFetchError: On a non-success status, transport failure or malformed payload
        """
        client = await self._ensure_client()
        try:
            response = await client.get(
                self.config.user_url,
                headers={"Authorization": f"Bearer {access_token}"},
            )
        except httpx.TimeoutException as exc:
            raise ProfileFetchError(f"Profile fetch timed out: {exc}") from exc
        except httpx.HTTPError as exc:
            raise ProfileFetchError(f"Profile fetch request failed: {exc}") from exc

        if not response.is_success:
            raise ProfileFetchError(
                f"Provider responded with {response.status_code} to profile fetch",
                status=response.status_code,
                body=_diagnostic_body(response),
            )

        payload = self._json(response, ProfileFetchError)
        user = payload.get("data")
        if not isinstance(user, dict) or not user.get("id") or not user.get("username"):
            raise ProfileFetchError(
                "Profile response is missing the account id or username",
                status=response.status_code,
                body=_diagnostic_body(response),
            )

        handle = str(user["username"])
        return ProviderProfile(
            identity_id=str(user["id"]),
            handle=handle,
            display_name=str(user.get("name") or handle),
        )

    @staticmethod
    def _json(
        response: httpx.Response,
        error_type: type[TokenExchangeError] | type[ProfileFetchError],
    ) -> dict[str, Any]:
        try:
            payload = response.json()
        except ValueError as exc:
            raise error_type(
                "Provider returned a non-JSON body",
                status=response.status_code,
                body=_diagnostic_body(response),
            ) from exc
        if not isinstance(payload, dict):
            raise error_type(
                "Provider returned an unexpected JSON document",
                status=response.status_code,
                body=_diagnostic_body(response),
            )
        return payload
