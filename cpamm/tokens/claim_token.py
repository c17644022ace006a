"""Claim-token ledger: liquidity-provider shares of one pair."""

from __future__ import annotations

from typing import ClassVar

from cpamm.chain import Chain
from cpamm.constants import (
    CHAIN_ID,
    CLAIM_TOKEN_DECIMALS,
    CLAIM_TOKEN_NAME,
    CLAIM_TOKEN_SYMBOL,
    ZERO_ADDRESS,
)
from cpamm.errors import Expired, InvalidSignature
from cpamm.models.types import normalize_address
from cpamm.tokens.erc20 import ERC20
from cpamm.tokens.signing import domain_separator, permit_digest, recover_signer


class ClaimToken(ERC20):
    """ERC-20 ledger of a pair's liquidity shares, with signed approvals.

    Name, symbol and 18 decimals are fixed regardless of the underlying
    assets. Minting and burning are private to the owning pair (``_mint`` /
    ``_burn``); there is no public entry point for either.
    """

    _immutable_fields: ClassVar[frozenset[str]] = ERC20._immutable_fields | {"domain_separator"}
    _keyed_fields: ClassVar[frozenset[str]] = ERC20._keyed_fields | {"nonces"}

    def __init__(self, chain: Chain, address: str | None = None) -> None:
        super().__init__(
            chain,
            name=CLAIM_TOKEN_NAME,
            symbol=CLAIM_TOKEN_SYMBOL,
            decimals=CLAIM_TOKEN_DECIMALS,
            address=address,
        )
        self.nonces: dict[str, int] = {}
        self.domain_separator = domain_separator(CLAIM_TOKEN_NAME, self.address, CHAIN_ID)

    def nonce_of(self, owner: str) -> int:
        return self.nonces.get(normalize_address(owner), 0)

    def permit_digest(self, owner: str, spender: str, value: int, deadline: int) -> bytes:
        """Digest ``owner`` must sign to approve ``spender`` at the current nonce."""
        return permit_digest(
            self.domain_separator, owner, spender, value, self.nonce_of(owner), deadline
        )

    def permit(
        self,
        owner: str,
        spender: str,
        value: int,
        deadline: int,
        v: int,
        r: int,
        s: int,
    ) -> None:
        """Approve ``spender`` using ``owner``'s off-chain signature.

        Consumes one nonce of ``owner``, so each signature is usable once.

        Raises:
            Expired: If ``deadline`` is before the current block timestamp
            InvalidSignature: If the signature does not recover to ``owner``
        """
        if deadline < self.chain.timestamp:
            raise Expired(f"Permit deadline {deadline} < {self.chain.timestamp}")
        owner = normalize_address(owner)
        digest = self.permit_digest(owner, spender, value, deadline)
        with self.chain.atomic():
            signer = recover_signer(digest, v, r, s)
            if signer == ZERO_ADDRESS or signer != owner:
                raise InvalidSignature(f"Signer {signer} is not owner {owner}")
            self._set_entry("nonces", owner, self.nonce_of(owner) + 1)
            self._approve(owner, spender, value)


__all__ = ["ClaimToken"]
