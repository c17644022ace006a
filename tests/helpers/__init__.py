"""Test helpers module for shared test utilities.

This module consolidates common test utilities to reduce duplication:
- constants: Seeded accounts and common amounts
- factories: Token, pair and liquidity factories, plus callee test contracts
"""

from tests.helpers.constants import (
    ALICE,
    BOB,
    CAROL,
    DEADLINE,
    E18,
    FEE_RECIPIENT,
    FEE_SETTER,
    MINIMUM_LIQUIDITY,
    TOKEN_SUPPLY,
)
from tests.helpers.factories import (
    FlashBorrower,
    ReentrantBorrower,
    RejectingToken,
    add_liquidity,
    flash_repayment,
    make_pair,
    make_token,
    pair_tokens,
)

__all__ = [
    # Constants
    "ALICE",
    "BOB",
    "CAROL",
    "FEE_SETTER",
    "FEE_RECIPIENT",
    "E18",
    "TOKEN_SUPPLY",
    "MINIMUM_LIQUIDITY",
    "DEADLINE",
    # Factories
    "make_token",
    "make_pair",
    "pair_tokens",
    "add_liquidity",
    "flash_repayment",
    # Test contracts
    "FlashBorrower",
    "ReentrantBorrower",
    "RejectingToken",
]
