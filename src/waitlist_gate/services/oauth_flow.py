"""OAuth sign-in flow.

The :class:`OAuthFlow` drives one sign-in from the authorization URL to the
final redirect::

    INITIATED -> CODE_RECEIVED -> TOKEN_EXCHANGED -> PROFILE_FETCHED
              -> PERSISTED -> COMPLETED

Any step may end in ``ERRORED``. The callback never raises: every path
produces a :class:`CallbackOutcome` that the HTTP layer turns into a
redirect to the front end.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from urllib.parse import quote, urlencode

from waitlist_gate.core.errors import ProfileFetchError, TokenExchangeError
from waitlist_gate.services.identity_provider import IdentityProviderClient
from waitlist_gate.services.oauth_state import AuthorizationAttemptStore, new_attempt
from waitlist_gate.services.waitlist import WaitlistStore

# Configure logger for this module
logger = logging.getLogger(__name__)


class FlowState(Enum):
    """Steps of a single sign-in."""

    INITIATED = "initiated"
    CODE_RECEIVED = "code_received"
    TOKEN_EXCHANGED = "token_exchanged"
    PROFILE_FETCHED = "profile_fetched"
    PERSISTED = "persisted"
    COMPLETED = "completed"
    ERRORED = "errored"


class CallbackError(str, Enum):
    """Reason codes carried by the ``error`` redirect parameter."""

    ACCESS_DENIED = "access_denied"
    NO_CODE = "no_code"
    INVALID_STATE = "invalid_state"
    TOKEN_EXCHANGE_FAILED = "token_exchange_failed"
    USER_FETCH_FAILED = "user_fetch_failed"
    AUTH_FAILED = "auth_failed"


@dataclass(frozen=True)
class FlowOptions:
    """Capabilities toggled by configuration."""

    callback_url: str
    verify_state: bool = True
    pkce_enabled: bool = False


@dataclass(frozen=True)
class CallbackOutcome:
    """Terminal result of a callback."""

    state: FlowState
    error: CallbackError | None = None
    handle: str | None = None
    display_name: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.state is FlowState.COMPLETED

    def query_params(self) -> dict[str, str]:
        if self.succeeded:
            return {
                "success": "true",
                "username": self.handle or "",
                "displayName": self.display_name or self.handle or "",
            }
        reason = self.error or CallbackError.AUTH_FAILED
        return {"error": reason.value}

    def redirect_url(self, base: str = "/") -> str:
        """Return the front-end URL that reports this outcome."""
        return f"{base}?{urlencode(self.query_params(), quote_via=quote)}"

    @classmethod
    def failed(cls, reason: CallbackError) -> CallbackOutcome:
        return cls(state=FlowState.ERRORED, error=reason)


class OAuthFlow:
    """Ties the provider client, the attempt store and the waitlist together."""

    def __init__(
        self,
        provider: IdentityProviderClient,
        attempts: AuthorizationAttemptStore,
        store: WaitlistStore,
        options: FlowOptions,
    ) -> None:
        self.provider = provider
        self.attempts = attempts
        self.store = store
        self.options = options

    async def initiate(self) -> str:
        """Start a sign-in and return the provider authorization URL.

        Raises:
            ConfigurationError: If the provider client id is not configured
        """
        attempt = new_attempt(pkce=self.options.pkce_enabled)
        auth_url = self.provider.build_authorization_url(
            self.options.callback_url,
            attempt.state,
            code_challenge=attempt.code_challenge,
        )
        await self.attempts.save(attempt)
        return auth_url

    async def handle_callback(
        self,
        code: str | None,
        state: str | None,
        *,
        provider_error: str | None = None,
    ) -> CallbackOutcome:
        """Complete a sign-in from the provider's redirect parameters."""
        if provider_error:
            logger.info("Provider reported authorization error: %s", provider_error)
            return CallbackOutcome.failed(CallbackError.ACCESS_DENIED)
        if not code:
            return CallbackOutcome.failed(CallbackError.NO_CODE)

        reached = FlowState.CODE_RECEIVED
        try:
            code_verifier: str | None = None
            if self.options.verify_state:
                attempt = (await self.attempts.consume(state)) if state else None
                if attempt is None:
                    logger.warning("Rejected OAuth callback with unknown or expired state")
                    return CallbackOutcome.failed(CallbackError.INVALID_STATE)
                code_verifier = attempt.code_verifier

            access_token = await self.provider.exchange_code_for_token(
                code,
                self.options.callback_url,
                code_verifier=code_verifier,
            )
            reached = FlowState.TOKEN_EXCHANGED

            profile = await self.provider.fetch_profile(access_token)
            reached = FlowState.PROFILE_FETCHED

            self.store.upsert_by_identity(profile.identity_id, profile.handle, profile.display_name)
            reached = FlowState.PERSISTED
        except TokenExchangeError as exc:
            logger.warning(
                "Token exchange failed (status=%s): %s body=%s", exc.status, exc, exc.body
            )
            return CallbackOutcome.failed(CallbackError.TOKEN_EXCHANGE_FAILED)
        except ProfileFetchError as exc:
            logger.warning(
                "Failed to fetch user data (status=%s): %s body=%s", exc.status, exc, exc.body
            )
            return CallbackOutcome.failed(CallbackError.USER_FETCH_FAILED)
        except Exception:
            logger.exception("OAuth callback failed after reaching %s", reached.value)
            return CallbackOutcome.failed(CallbackError.AUTH_FAILED)

        logger.info("User added to waitlist: @%s", profile.handle)
        return CallbackOutcome(
            state=FlowState.COMPLETED,
            handle=profile.handle,
            display_name=profile.display_name,
        )
