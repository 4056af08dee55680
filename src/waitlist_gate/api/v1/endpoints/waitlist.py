# src/waitlist_gate/api/v1/endpoints/waitlist.py
"""Waitlist read endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, status

from waitlist_gate.api.v1.dependencies import WaitlistStoreDep
from waitlist_gate.core.errors import StorageError
from waitlist_gate.schemas.waitlist import CountResponse, WaitlistResponse, WaitlistUser

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/waitlist", tags=["waitlist"])


@router.get("/count", response_model=CountResponse)
async def get_waitlist_count(store: WaitlistStoreDep) -> CountResponse:
    """Return the number of visitors on the waitlist."""
    try:
        total = store.count()
    except StorageError as err:
        logger.error("Error getting count: %s", err)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to get count",
        ) from err
    return CountResponse(count=total)


@router.get("/all", response_model=WaitlistResponse)
async def get_waitlist(store: WaitlistStoreDep) -> WaitlistResponse:
    """Return every waitlist entry, newest first."""
    try:
        users = [
            WaitlistUser(
                twitter_username=entry.handle,
                twitter_display_name=entry.display_name,
                wallet_address=entry.wallet_address,
                created_at=entry.created_at,
            )
            for entry in store.list_all()
        ]
    except StorageError as err:
        logger.error("Error getting waitlist: %s", err)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to get waitlist",
        ) from err
    return WaitlistResponse(users=users)
