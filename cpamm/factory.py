"""Pair registry.

The Factory deploys one Pair per unordered asset pair and indexes it under
the canonical (token0, token1) key, so a lookup in either order resolves to
the same instance. It also holds the protocol-fee recipient toggle.
"""

from __future__ import annotations

import structlog

from cpamm.addressing import pair_address
from cpamm.chain import Chain, Contract
from cpamm.constants import CREATE_PAIR_GAS_COST, ZERO_ADDRESS
from cpamm.errors import Forbidden, PairExists, PairNotFound
from cpamm.models.events import PairCreated
from cpamm.models.types import normalize_address, sort_tokens
from cpamm.pair import Pair

logger = structlog.get_logger()


class Factory(Contract):
    """Registry of pairs.

    Stores pair addresses only; the Pair instances themselves live in the
    chain, so registry state can be journaled and restored independently.

    Args:
        chain: Hosting chain
        fee_to_setter: Account allowed to change the protocol-fee recipient
        fee_to: Initial protocol-fee recipient (zero address disables the fee)
    """

    def __init__(
        self,
        chain: Chain,
        fee_to_setter: str,
        fee_to: str = ZERO_ADDRESS,
        address: str | None = None,
    ) -> None:
        super().__init__(chain, address)
        self.fee_to = normalize_address(fee_to)
        self.fee_to_setter = normalize_address(fee_to_setter)
        self.pairs: dict[tuple[str, str], str] = {}
        self.all_pairs: list[str] = []

    # --- Views ---

    @property
    def all_pairs_length(self) -> int:
        return len(self.all_pairs)

    def get_pair(self, token_a: str, token_b: str) -> str | None:
        """Address of the pair for an unordered asset pair (order independent)."""
        return self.pairs.get(sort_tokens(token_a, token_b))

    def pair(self, token_a: str, token_b: str) -> Pair:
        """The Pair instance for an unordered asset pair.

        Raises:
            PairNotFound: If no pair exists for these assets
        """
        address = self.get_pair(token_a, token_b)
        if address is None:
            raise PairNotFound(f"No pair for {token_a} / {token_b}")
        return self.chain.contract_at(address, Pair)  # type: ignore[no-any-return]

    def iter_pairs(self) -> list[Pair]:
        return [self.chain.contract_at(address, Pair) for address in self.all_pairs]

    # --- Mutations ---

    def create_pair(self, token_a: str, token_b: str) -> Pair:
        """Deploy the pair for an unordered asset pair.

        Raises:
            IdenticalAddresses: If both identifiers are the same asset
            ZeroAddress: If one identifier is the zero address
            PairExists: If a pair already exists for these assets
        """
        token0, token1 = sort_tokens(token_a, token_b)
        if (token0, token1) in self.pairs:
            raise PairExists(f"Pair exists for {token0} / {token1}")

        with self.chain.atomic():
            self.chain.charge(CREATE_PAIR_GAS_COST)
            self._touch()
            pair = Pair(self.chain, self.address, pair_address(self.address, token0, token1))
            pair.initialize(self.address, token0, token1)
            self.pairs[(token0, token1)] = pair.address
            self.all_pairs.append(pair.address)
            self.chain.emit(
                PairCreated(self.address, token0, token1, pair.address, len(self.all_pairs))
            )

        logger.debug(
            "pair_created",
            token0=token0,
            token1=token1,
            pair=pair.address,
            index=len(self.all_pairs),
        )
        return pair

    def set_fee_to(self, sender: str, fee_to: str) -> None:
        """Enable (non-zero) or disable (zero) protocol fee collection.

        Raises:
            Forbidden: If ``sender`` is not the fee-to setter
        """
        if normalize_address(sender) != self.fee_to_setter:
            raise Forbidden("Only the fee-to setter may change fee_to")
        with self.chain.atomic():
            self._touch()
            self.fee_to = normalize_address(fee_to)
        logger.debug("fee_to_changed", factory=self.address, fee_to=self.fee_to)

    def set_fee_to_setter(self, sender: str, fee_to_setter: str) -> None:
        if normalize_address(sender) != self.fee_to_setter:
            raise Forbidden("Only the fee-to setter may hand over the role")
        with self.chain.atomic():
            self._touch()
            self.fee_to_setter = normalize_address(fee_to_setter)


__all__ = ["Factory"]
