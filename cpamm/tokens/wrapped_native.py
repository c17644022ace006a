"""Wrapped native asset: an ERC-20 backed one-to-one by native balance."""

from __future__ import annotations

from cpamm.chain import Chain
from cpamm.models.events import Deposit, Withdrawal
from cpamm.models.types import normalize_address
from cpamm.tokens.erc20 import ERC20


class WrappedNative(ERC20):
    """Holds native balance and issues an equal amount of ledger units."""

    def __init__(self, chain: Chain, address: str | None = None) -> None:
        super().__init__(chain, name="Wrapped Ether", symbol="WETH", decimals=18, address=address)

    def deposit(self, sender: str, value: int) -> None:
        """Wrap ``value`` of ``sender``'s native balance."""
        with self.chain.atomic():
            self.chain.transfer_native(sender, self.address, value)
            self._mint(sender, value)
            self.chain.emit(Deposit(self.address, normalize_address(sender), value))

    def withdraw(self, sender: str, value: int) -> None:
        """Unwrap ``value`` back to ``sender``'s native balance."""
        with self.chain.atomic():
            self._burn(sender, value)
            self.chain.transfer_native(self.address, sender, value)
            self.chain.emit(Withdrawal(self.address, normalize_address(sender), value))


__all__ = ["WrappedNative"]
