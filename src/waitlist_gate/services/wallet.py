"""Wallet attach operation."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from waitlist_gate.core.errors import FormatError, ValidationError
from waitlist_gate.services.waitlist import WaitlistStore

logger = logging.getLogger(__name__)

WALLET_ADDRESS_PATTERN = re.compile(r"^0x[a-fA-F0-9]{40}$")


@dataclass(frozen=True)
class WalletAttachResult:
    """Outcome of a validated wallet write."""

    handle: str
    wallet_address: str
    matched: bool


def validate_wallet_address(wallet_address: str) -> str:
    """Return ``wallet_address`` unchanged if it is a 0x-prefixed 40-hex-digit address.

    Raises:
        FormatError: If the address does not match the fixed format
    """
    if not WALLET_ADDRESS_PATTERN.fullmatch(wallet_address):
        raise FormatError(f"Rejected wallet address {wallet_address[:64]!r}")
    return wallet_address


def attach_wallet(
    store: WaitlistStore,
    handle: str | None,
    wallet_address: str | None,
) -> WalletAttachResult:
    """Validate the input and store the wallet address on the entry for ``handle``.

    Validation happens before the store is touched. A handle without an
    entry is reported through ``matched=False``; callers decide whether that
    is an error.

    Raises:
        ValidationError: If either field is missing or blank
        FormatError: If the wallet address is malformed
        StorageError: If the write fails
    """
    if not handle or not handle.strip() or not wallet_address:
        raise ValidationError("Wallet attach requires a username and a wallet address")

    handle = handle.strip()
    validate_wallet_address(wallet_address)

    affected = store.update_wallet_by_handle(handle, wallet_address)
    if affected:
        logger.info("Wallet saved for @%s: %s", handle, wallet_address)
    else:
        logger.info("No waitlist entry for @%s; wallet not saved", handle)
    return WalletAttachResult(handle=handle, wallet_address=wallet_address, matched=affected > 0)
