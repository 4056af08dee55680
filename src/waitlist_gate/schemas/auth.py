"""Authentication and system Pydantic schemas."""

from pydantic import BaseModel, Field


class AuthInitiateResponse(BaseModel):
    """Authorization URL the browser should be sent to."""

    authUrl: str = Field(..., description="Provider authorization URL for this attempt")


class HealthResponse(BaseModel):
    status: str = "ok"
    timestamp: str
