"""Deadline-checked convenience layer over pairs.

The Router pulls assets from the caller with ``transfer_from`` (the caller
approves the router first), sizes deposits at the current reserve ratio,
chains swaps across several pairs, and wraps or unwraps the native asset.
Every entry point is one atomic transaction: a slippage or deadline failure
in any hop unwinds all hops.

Native value sent with a call is modelled by the ``value`` argument and is
moved from the caller to the router at entry, unused value is refunded.
"""

from __future__ import annotations

from typing import ClassVar

import structlog

from cpamm.amm.calculator import ConstantProductCalculator
from cpamm.chain import Chain, Contract
from cpamm.constants import UINT256_MAX
from cpamm.errors import (
    ExcessiveInputAmount,
    Expired,
    InsufficientAAmount,
    InsufficientBAmount,
    InsufficientOutputAmount,
    InvalidPath,
)
from cpamm.factory import Factory
from cpamm.models.types import normalize_address, sort_tokens
from cpamm.pair import Pair
from cpamm.routing import library
from cpamm.tokens.erc20 import ERC20
from cpamm.tokens.wrapped_native import WrappedNative

logger = structlog.get_logger()


class Router(Contract):
    """Liquidity and swap entry points for end users.

    Args:
        chain: Hosting chain
        factory: Pair registry
        weth: Wrapped native asset used for native-denominated routes
    """

    _immutable_fields: ClassVar[frozenset[str]] = Contract._immutable_fields | {
        "factory",
        "weth",
        "calculator",
    }

    def __init__(
        self,
        chain: Chain,
        factory: Factory,
        weth: WrappedNative,
        address: str | None = None,
    ) -> None:
        super().__init__(chain, address)
        self.factory = factory.address
        self.weth = weth.address
        self.calculator = ConstantProductCalculator.from_config(chain.config)

    # --- Helpers ---

    def _ensure(self, deadline: int) -> None:
        if self.chain.timestamp > deadline:
            raise Expired(f"Deadline {deadline} passed (now {self.chain.timestamp})")

    def _registry(self) -> Factory:
        return self.chain.contract_at(self.factory, Factory)  # type: ignore[no-any-return]

    def _token(self, address: str) -> ERC20:
        return self.chain.contract_at(address, ERC20)  # type: ignore[no-any-return]

    def _wrapped(self) -> WrappedNative:
        return self.chain.contract_at(self.weth, WrappedNative)  # type: ignore[no-any-return]

    def _pair(self, token_a: str, token_b: str) -> Pair:
        return library.get_pair(self.chain, self.factory, token_a, token_b)

    def _receive_native(self, sender: str, value: int) -> None:
        if value:
            self.chain.transfer_native(sender, self.address, value)

    def _add_liquidity(
        self,
        token_a: str,
        token_b: str,
        amount_a_desired: int,
        amount_b_desired: int,
        amount_a_min: int,
        amount_b_min: int,
    ) -> tuple[int, int]:
        """Amounts to deposit: the desired amounts, trimmed to the reserve ratio."""
        registry = self._registry()
        if registry.get_pair(token_a, token_b) is None:
            registry.create_pair(token_a, token_b)
        reserve_a, reserve_b = library.get_reserves(self.chain, self.factory, token_a, token_b)
        if reserve_a == 0 and reserve_b == 0:
            return amount_a_desired, amount_b_desired

        amount_b_optimal = self.calculator.quote(amount_a_desired, reserve_a, reserve_b)
        if amount_b_optimal <= amount_b_desired:
            if amount_b_optimal < amount_b_min:
                raise InsufficientBAmount(f"{amount_b_optimal} < minimum {amount_b_min}")
            return amount_a_desired, amount_b_optimal

        amount_a_optimal = self.calculator.quote(amount_b_desired, reserve_b, reserve_a)
        if amount_a_optimal < amount_a_min:
            raise InsufficientAAmount(f"{amount_a_optimal} < minimum {amount_a_min}")
        return amount_a_optimal, amount_b_desired

    def _swap(self, amounts: list[int], path: list[str], to: str) -> None:
        """Execute precomputed hops; assets for hop 0 are already in the first pair."""
        for i, (token_in, token_out) in enumerate(zip(path, path[1:])):
            token0, _ = sort_tokens(token_in, token_out)
            amount_out = amounts[i + 1]
            if normalize_address(token_in) == token0:
                amount0_out, amount1_out = 0, amount_out
            else:
                amount0_out, amount1_out = amount_out, 0
            if i < len(path) - 2:
                recipient = library.pair_for(self.factory, token_out, path[i + 2])
            else:
                recipient = to
            self._pair(token_in, token_out).swap(
                amount0_out, amount1_out, recipient, sender=self.address
            )

    # --- Liquidity ---

    def add_liquidity(
        self,
        sender: str,
        token_a: str,
        token_b: str,
        amount_a_desired: int,
        amount_b_desired: int,
        amount_a_min: int,
        amount_b_min: int,
        to: str,
        deadline: int,
    ) -> tuple[int, int, int]:
        """Deposit both assets, creating the pair if needed.

        Returns:
            (amount_a, amount_b, liquidity)
        """
        self._ensure(deadline)
        with self.chain.atomic():
            amount_a, amount_b = self._add_liquidity(
                token_a, token_b, amount_a_desired, amount_b_desired, amount_a_min, amount_b_min
            )
            pair = self._pair(token_a, token_b)
            self._token(token_a).transfer_from(self.address, sender, pair.address, amount_a)
            self._token(token_b).transfer_from(self.address, sender, pair.address, amount_b)
            liquidity = pair.mint(to, sender=self.address)
        logger.debug(
            "router_add_liquidity",
            pair=pair.address,
            amount_a=amount_a,
            amount_b=amount_b,
            liquidity=liquidity,
        )
        return amount_a, amount_b, liquidity

    def add_liquidity_native(
        self,
        sender: str,
        token: str,
        amount_token_desired: int,
        amount_token_min: int,
        amount_native_min: int,
        to: str,
        deadline: int,
        value: int,
    ) -> tuple[int, int, int]:
        """Deposit an asset and native value; unused native value is refunded.

        Returns:
            (amount_token, amount_native, liquidity)
        """
        self._ensure(deadline)
        with self.chain.atomic():
            self._receive_native(sender, value)
            amount_token, amount_native = self._add_liquidity(
                token, self.weth, amount_token_desired, value, amount_token_min, amount_native_min
            )
            pair = self._pair(token, self.weth)
            self._token(token).transfer_from(self.address, sender, pair.address, amount_token)
            weth = self._wrapped()
            weth.deposit(self.address, amount_native)
            weth.transfer(self.address, pair.address, amount_native)
            liquidity = pair.mint(to, sender=self.address)
            if value > amount_native:
                self.chain.transfer_native(self.address, sender, value - amount_native)
        return amount_token, amount_native, liquidity

    def remove_liquidity(
        self,
        sender: str,
        token_a: str,
        token_b: str,
        liquidity: int,
        amount_a_min: int,
        amount_b_min: int,
        to: str,
        deadline: int,
    ) -> tuple[int, int]:
        """Burn claim tokens (approved to the router) for both assets.

        Returns:
            (amount_a, amount_b)
        """
        self._ensure(deadline)
        with self.chain.atomic():
            pair = self._pair(token_a, token_b)
            pair.transfer_from(self.address, sender, pair.address, liquidity)
            amount0, amount1 = pair.burn(to, sender=self.address)
            token0, _ = sort_tokens(token_a, token_b)
            if normalize_address(token_a) == token0:
                amount_a, amount_b = amount0, amount1
            else:
                amount_a, amount_b = amount1, amount0
            if amount_a < amount_a_min:
                raise InsufficientAAmount(f"{amount_a} < minimum {amount_a_min}")
            if amount_b < amount_b_min:
                raise InsufficientBAmount(f"{amount_b} < minimum {amount_b_min}")
        logger.debug(
            "router_remove_liquidity",
            pair=pair.address,
            liquidity=liquidity,
            amount_a=amount_a,
            amount_b=amount_b,
        )
        return amount_a, amount_b

    def remove_liquidity_native(
        self,
        sender: str,
        token: str,
        liquidity: int,
        amount_token_min: int,
        amount_native_min: int,
        to: str,
        deadline: int,
    ) -> tuple[int, int]:
        """Burn claim tokens of a token/WETH pair, paying the WETH side as native."""
        with self.chain.atomic():
            amount_token, amount_native = self.remove_liquidity(
                sender,
                token,
                self.weth,
                liquidity,
                amount_token_min,
                amount_native_min,
                self.address,
                deadline,
            )
            self._token(token).transfer(self.address, to, amount_token)
            self._wrapped().withdraw(self.address, amount_native)
            self.chain.transfer_native(self.address, to, amount_native)
        return amount_token, amount_native

    def remove_liquidity_with_permit(
        self,
        sender: str,
        token_a: str,
        token_b: str,
        liquidity: int,
        amount_a_min: int,
        amount_b_min: int,
        to: str,
        deadline: int,
        approve_max: bool,
        v: int,
        r: int,
        s: int,
    ) -> tuple[int, int]:
        """remove_liquidity, approving the router with ``sender``'s signature first."""
        with self.chain.atomic():
            pair = self._pair(token_a, token_b)
            value = UINT256_MAX if approve_max else liquidity
            pair.permit(sender, self.address, value, deadline, v, r, s)
            return self.remove_liquidity(
                sender, token_a, token_b, liquidity, amount_a_min, amount_b_min, to, deadline
            )

    # --- Swaps ---

    def swap_exact_tokens_for_tokens(
        self,
        sender: str,
        amount_in: int,
        amount_out_min: int,
        path: list[str],
        to: str,
        deadline: int,
    ) -> list[int]:
        """Sell exactly ``amount_in`` of path[0] for at least ``amount_out_min`` of path[-1]."""
        self._ensure(deadline)
        with self.chain.atomic():
            amounts = library.get_amounts_out(
                self.chain, self.factory, amount_in, path, self.calculator
            )
            if amounts[-1] < amount_out_min:
                raise InsufficientOutputAmount(f"{amounts[-1]} < minimum {amount_out_min}")
            first = library.pair_for(self.factory, path[0], path[1])
            self._token(path[0]).transfer_from(self.address, sender, first, amounts[0])
            self._swap(amounts, path, to)
        logger.debug("router_swap", path=path, amounts=amounts, to=to)
        return amounts

    def swap_tokens_for_exact_tokens(
        self,
        sender: str,
        amount_out: int,
        amount_in_max: int,
        path: list[str],
        to: str,
        deadline: int,
    ) -> list[int]:
        """Buy exactly ``amount_out`` of path[-1] for at most ``amount_in_max`` of path[0]."""
        self._ensure(deadline)
        with self.chain.atomic():
            amounts = library.get_amounts_in(
                self.chain, self.factory, amount_out, path, self.calculator
            )
            if amounts[0] > amount_in_max:
                raise ExcessiveInputAmount(f"{amounts[0]} > maximum {amount_in_max}")
            first = library.pair_for(self.factory, path[0], path[1])
            self._token(path[0]).transfer_from(self.address, sender, first, amounts[0])
            self._swap(amounts, path, to)
        logger.debug("router_swap", path=path, amounts=amounts, to=to)
        return amounts

    def swap_exact_native_for_tokens(
        self,
        sender: str,
        amount_out_min: int,
        path: list[str],
        to: str,
        deadline: int,
        value: int,
    ) -> list[int]:
        self._ensure(deadline)
        if normalize_address(path[0]) != self.weth:
            raise InvalidPath("Path must start with the wrapped native asset")
        with self.chain.atomic():
            self._receive_native(sender, value)
            amounts = library.get_amounts_out(
                self.chain, self.factory, value, path, self.calculator
            )
            if amounts[-1] < amount_out_min:
                raise InsufficientOutputAmount(f"{amounts[-1]} < minimum {amount_out_min}")
            weth = self._wrapped()
            weth.deposit(self.address, amounts[0])
            first = library.pair_for(self.factory, path[0], path[1])
            weth.transfer(self.address, first, amounts[0])
            self._swap(amounts, path, to)
        return amounts

    def swap_tokens_for_exact_native(
        self,
        sender: str,
        amount_out: int,
        amount_in_max: int,
        path: list[str],
        to: str,
        deadline: int,
    ) -> list[int]:
        self._ensure(deadline)
        if normalize_address(path[-1]) != self.weth:
            raise InvalidPath("Path must end with the wrapped native asset")
        with self.chain.atomic():
            amounts = library.get_amounts_in(
                self.chain, self.factory, amount_out, path, self.calculator
            )
            if amounts[0] > amount_in_max:
                raise ExcessiveInputAmount(f"{amounts[0]} > maximum {amount_in_max}")
            first = library.pair_for(self.factory, path[0], path[1])
            self._token(path[0]).transfer_from(self.address, sender, first, amounts[0])
            self._swap(amounts, path, self.address)
            self._wrapped().withdraw(self.address, amounts[-1])
            self.chain.transfer_native(self.address, to, amounts[-1])
        return amounts

    def swap_exact_tokens_for_native(
        self,
        sender: str,
        amount_in: int,
        amount_out_min: int,
        path: list[str],
        to: str,
        deadline: int,
    ) -> list[int]:
        self._ensure(deadline)
        if normalize_address(path[-1]) != self.weth:
            raise InvalidPath("Path must end with the wrapped native asset")
        with self.chain.atomic():
            amounts = library.get_amounts_out(
                self.chain, self.factory, amount_in, path, self.calculator
            )
            if amounts[-1] < amount_out_min:
                raise InsufficientOutputAmount(f"{amounts[-1]} < minimum {amount_out_min}")
            first = library.pair_for(self.factory, path[0], path[1])
            self._token(path[0]).transfer_from(self.address, sender, first, amounts[0])
            self._swap(amounts, path, self.address)
            self._wrapped().withdraw(self.address, amounts[-1])
            self.chain.transfer_native(self.address, to, amounts[-1])
        return amounts

    def swap_native_for_exact_tokens(
        self,
        sender: str,
        amount_out: int,
        path: list[str],
        to: str,
        deadline: int,
        value: int,
    ) -> list[int]:
        self._ensure(deadline)
        if normalize_address(path[0]) != self.weth:
            raise InvalidPath("Path must start with the wrapped native asset")
        with self.chain.atomic():
            amounts = library.get_amounts_in(
                self.chain, self.factory, amount_out, path, self.calculator
            )
            if amounts[0] > value:
                raise ExcessiveInputAmount(f"{amounts[0]} > value sent {value}")
            self._receive_native(sender, value)
            weth = self._wrapped()
            weth.deposit(self.address, amounts[0])
            first = library.pair_for(self.factory, path[0], path[1])
            weth.transfer(self.address, first, amounts[0])
            self._swap(amounts, path, to)
            if value > amounts[0]:
                self.chain.transfer_native(self.address, sender, value - amounts[0])
        return amounts

    # --- Quotes ---

    def quote(self, amount_a: int, reserve_a: int, reserve_b: int) -> int:
        return self.calculator.quote(amount_a, reserve_a, reserve_b)

    def get_amount_out(self, amount_in: int, reserve_in: int, reserve_out: int) -> int:
        return self.calculator.get_amount_out(amount_in, reserve_in, reserve_out)

    def get_amount_in(self, amount_out: int, reserve_in: int, reserve_out: int) -> int:
        return self.calculator.get_amount_in(amount_out, reserve_in, reserve_out)

    def get_amounts_out(self, amount_in: int, path: list[str]) -> list[int]:
        return library.get_amounts_out(self.chain, self.factory, amount_in, path, self.calculator)

    def get_amounts_in(self, amount_out: int, path: list[str]) -> list[int]:
        return library.get_amounts_in(self.chain, self.factory, amount_out, path, self.calculator)


__all__ = ["Router"]
