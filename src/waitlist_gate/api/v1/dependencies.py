"""Shared API dependencies.

Long-lived collaborators (settings, provider client, attempt store) are
created once by the application factory and read from ``app.state``;
request-scoped ones are built per request on top of them.
"""

from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from waitlist_gate.core.settings import Settings
from waitlist_gate.db.session import get_db
from waitlist_gate.services.identity_provider import IdentityProviderClient
from waitlist_gate.services.oauth_flow import FlowOptions, OAuthFlow
from waitlist_gate.services.oauth_state import AuthorizationAttemptStore
from waitlist_gate.services.waitlist import WaitlistStore

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_provider_client(request: Request) -> IdentityProviderClient:
    return request.app.state.provider_client


def get_attempt_store(request: Request) -> AuthorizationAttemptStore:
    return request.app.state.attempt_store


SettingsDep = Annotated[Settings, Depends(get_settings)]


def get_waitlist_store(db: SessionDep) -> WaitlistStore:
    """Return a waitlist store bound to the request's session."""
    return WaitlistStore(db)


WaitlistStoreDep = Annotated[WaitlistStore, Depends(get_waitlist_store)]


def get_oauth_flow(
    settings: SettingsDep,
    provider: Annotated[IdentityProviderClient, Depends(get_provider_client)],
    attempts: Annotated[AuthorizationAttemptStore, Depends(get_attempt_store)],
    store: WaitlistStoreDep,
) -> OAuthFlow:
    """Assemble the OAuth flow for one request."""
    return OAuthFlow(
        provider,
        attempts,
        store,
        FlowOptions(
            callback_url=settings.callback_url,
            verify_state=settings.oauth_verify_state,
            pkce_enabled=settings.oauth_pkce_enabled,
        ),
    )


OAuthFlowDep = Annotated[OAuthFlow, Depends(get_oauth_flow)]
