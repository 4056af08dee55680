"""Liveness endpoint."""

from __future__ import annotations

from fastapi import APIRouter

from waitlist_gate.db.time import utcnow
from waitlist_gate.schemas.auth import HealthResponse

router = APIRouter(tags=["system"])


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Health check endpoint to verify the service is running."""
    return HealthResponse(status="ok", timestamp=utcnow().isoformat().replace("+00:00", "Z"))
