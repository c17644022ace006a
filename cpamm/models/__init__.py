"""Identifier types, event records and API models."""

from cpamm.models.events import (
    Approval,
    Burn,
    Deposit,
    Event,
    Mint,
    PairCreated,
    Swap,
    Sync,
    Transfer,
    Withdrawal,
)
from cpamm.models.types import Address, Uint256, normalize_address, sort_tokens

__all__ = [
    "Address",
    "Uint256",
    "normalize_address",
    "sort_tokens",
    "Event",
    "Transfer",
    "Approval",
    "Mint",
    "Burn",
    "Swap",
    "Sync",
    "PairCreated",
    "Deposit",
    "Withdrawal",
]
