"""Fungible-asset ledger.

In-memory ERC-20 style ledger: balances, transfers, approvals. Callers
identify themselves explicitly (``sender``/``owner``/``spender`` arguments);
contracts pass their own address when they move assets they custody.
"""

from __future__ import annotations

from typing import ClassVar

from cpamm.chain import Chain, Contract
from cpamm.constants import TRANSFER_GAS_COST, UINT256_MAX, ZERO_ADDRESS
from cpamm.errors import Forbidden, InsufficientAllowance, InsufficientBalance
from cpamm.models.events import Approval, Transfer
from cpamm.models.types import normalize_address
from cpamm.safe_int import S


class ERC20(Contract):
    """Fungible-asset ledger deployed on a Chain.

    Args:
        chain: Hosting chain
        name: Display name
        symbol: Ticker
        decimals: Display precision (informational only)
        initial_supply: Units minted to ``holder`` at deployment
        holder: Recipient of the initial supply
        address: Fixed deployment address (default: next derived address)
    """

    _keyed_fields: ClassVar[frozenset[str]] = frozenset({"balances", "allowances"})

    def __init__(
        self,
        chain: Chain,
        name: str,
        symbol: str,
        decimals: int = 18,
        initial_supply: int = 0,
        holder: str | None = None,
        address: str | None = None,
    ) -> None:
        super().__init__(chain, address)
        self.name = name
        self.symbol = symbol
        self.decimals = decimals
        self.total_supply = 0
        self.balances: dict[str, int] = {}
        self.allowances: dict[tuple[str, str], int] = {}
        if initial_supply:
            if holder is None:
                raise ValueError("initial_supply requires a holder")
            with chain.atomic():
                self._mint(holder, initial_supply)

    # --- Views ---

    def balance_of(self, account: str) -> int:
        return self.balances.get(normalize_address(account), 0)

    def allowance(self, owner: str, spender: str) -> int:
        return self.allowances.get((normalize_address(owner), normalize_address(spender)), 0)

    # --- Internal mutations (callers hold an atomic scope) ---

    def _mint(self, to: str, value: int) -> None:
        value = S(value).to_uint256()
        self._touch()
        to = normalize_address(to)
        self.total_supply = (S(self.total_supply) + S(value)).to_uint256()
        self._set_entry("balances", to, (S(self.balance_of(to)) + S(value)).to_uint256())
        self.chain.emit(Transfer(self.address, ZERO_ADDRESS, to, value))

    def _burn(self, src: str, value: int) -> None:
        value = S(value).to_uint256()
        self._touch()
        src = normalize_address(src)
        balance = self.balance_of(src)
        if balance < value:
            raise InsufficientBalance(f"{self.symbol}: burn {value} > balance {balance}")
        self._set_entry("balances", src, balance - value)
        self.total_supply = (S(self.total_supply) - S(value)).value
        self.chain.emit(Transfer(self.address, src, ZERO_ADDRESS, value))

    def _approve(self, owner: str, spender: str, value: int) -> None:
        owner = normalize_address(owner)
        spender = normalize_address(spender)
        self._set_entry("allowances", (owner, spender), S(value).to_uint256())
        self.chain.emit(Approval(self.address, owner, spender, value))

    def _transfer(self, src: str, to: str, value: int) -> None:
        value = S(value).to_uint256()
        src = normalize_address(src)
        to = normalize_address(to)
        if src == ZERO_ADDRESS:
            raise Forbidden(f"{self.symbol}: transfer from the zero address")
        self.chain.charge(TRANSFER_GAS_COST)
        balance = self.balance_of(src)
        if balance < value:
            raise InsufficientBalance(f"{self.symbol}: transfer {value} > balance {balance}")
        self._set_entry("balances", src, balance - value)
        self._set_entry("balances", to, (S(self.balance_of(to)) + S(value)).to_uint256())
        self.chain.emit(Transfer(self.address, src, to, value))

    # --- External interface ---

    def approve(self, owner: str, spender: str, value: int) -> bool:
        if normalize_address(owner) == ZERO_ADDRESS:
            raise Forbidden(f"{self.symbol}: approve from the zero address")
        with self.chain.atomic():
            self._approve(owner, spender, value)
        return True

    def transfer(self, sender: str, to: str, value: int) -> bool:
        """Move ``value`` from ``sender`` to ``to``.

        Raises:
            InsufficientBalance: If sender holds less than value
            Forbidden: If sender is the zero address
            Overflow: If value is negative
        """
        with self.chain.atomic():
            self._transfer(sender, to, value)
        return True

    def transfer_from(self, spender: str, owner: str, to: str, value: int) -> bool:
        """Move ``value`` from ``owner`` to ``to`` using ``spender``'s allowance.

        An allowance of 2**256 - 1 is treated as infinite and never decremented.

        Raises:
            InsufficientAllowance: If the allowance is below value
            Overflow: If value is negative
        """
        value = S(value).to_uint256()
        with self.chain.atomic():
            current = self.allowance(owner, spender)
            if current != UINT256_MAX:
                if current < value:
                    raise InsufficientAllowance(
                        f"{self.symbol}: allowance {current} < {value}"
                    )
                key = (normalize_address(owner), normalize_address(spender))
                self._set_entry("allowances", key, current - value)
            self._transfer(owner, to, value)
        return True


__all__ = ["ERC20"]
