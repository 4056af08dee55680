# src/waitlist_gate/api/v1/endpoints/auth.py
"""OAuth sign-in endpoints."""

from __future__ import annotations

from fastapi import APIRouter, status
from fastapi.responses import RedirectResponse

from waitlist_gate.api.v1.dependencies import OAuthFlowDep, SettingsDep
from waitlist_gate.schemas.auth import AuthInitiateResponse

router = APIRouter(prefix="/auth", tags=["authentication"])


@router.get(
    "/initiate",
    summary="Start an X sign-in",
    response_model=AuthInitiateResponse,
)
async def initiate_auth(flow: OAuthFlowDep) -> AuthInitiateResponse:
    """Return the provider authorization URL for a new sign-in attempt."""
    return AuthInitiateResponse(authUrl=await flow.initiate())


@router.get(
    "/callback",
    summary="Provider redirect target",
    response_class=RedirectResponse,
    status_code=status.HTTP_302_FOUND,
)
async def auth_callback(
    flow: OAuthFlowDep,
    settings: SettingsDep,
    code: str | None = None,
    state: str | None = None,
    error: str | None = None,
) -> RedirectResponse:
    """Finish the sign-in and send the browser back to the front end.

    Always answers with a redirect; failures are reported through the
    ``error`` query parameter.
    """
    outcome = await flow.handle_callback(code, state, provider_error=error)
    return RedirectResponse(
        outcome.redirect_url(settings.frontend_path),
        status_code=status.HTTP_302_FOUND,
    )
