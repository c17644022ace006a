"""Fungible-asset ledgers: plain, claim-token and wrapped native."""

from cpamm.tokens.claim_token import ClaimToken
from cpamm.tokens.erc20 import ERC20
from cpamm.tokens.signing import Account, Signature
from cpamm.tokens.wrapped_native import WrappedNative

__all__ = [
    "ERC20",
    "ClaimToken",
    "WrappedNative",
    "Account",
    "Signature",
]
