"""Waitlist and wallet Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class CountResponse(BaseModel):
    """Number of visitors on the waitlist."""

    count: int = Field(..., ge=0)


class WaitlistUser(BaseModel):
    """Public view of a waitlist entry."""

    twitter_username: str
    twitter_display_name: str | None = None
    wallet_address: str | None = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class WaitlistResponse(BaseModel):
    """All waitlist entries, newest first."""

    users: list[WaitlistUser]


class WalletSaveRequest(BaseModel):
    """Body of a wallet attach request.

    Both fields are optional at the schema level so that missing values are
    reported with the service's own 400 response.
    """

    twitter_username: str | None = Field(None, description="Waitlist handle to update")
    wallet_address: str | None = Field(None, description="0x-prefixed 40 hex digit address")


class WalletSaveResponse(BaseModel):
    success: bool = True
