# src/waitlist_gate/api/v1/endpoints/wallet.py
"""Wallet attach endpoint."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, status

from waitlist_gate.api.v1.dependencies import SettingsDep, WaitlistStoreDep
from waitlist_gate.core.errors import NotFoundError, StorageError
from waitlist_gate.schemas.waitlist import WalletSaveRequest, WalletSaveResponse
from waitlist_gate.services.wallet import attach_wallet

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/wallet", tags=["wallet"])


@router.post("/save", response_model=WalletSaveResponse)
async def save_wallet(
    payload: WalletSaveRequest,
    store: WaitlistStoreDep,
    settings: SettingsDep,
) -> WalletSaveResponse:
    """Attach a wallet address to an existing waitlist entry."""
    try:
        result = attach_wallet(store, payload.twitter_username, payload.wallet_address)
    except StorageError as err:
        logger.error("Error saving wallet: %s", err)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to save wallet address",
        ) from err

    if not result.matched and settings.wallet_require_existing_entry:
        raise NotFoundError(f"No waitlist entry for @{result.handle}")
    return WalletSaveResponse(success=True)
