"""Reserve & invariant engine of a two-asset constant-product pair.

A Pair owns the two reserves, the claim-token supply (it is its own
ClaimToken ledger) and the time-weighted price accumulators. Assets are
moved in by plain transfers before calling mint/swap; the pair observes them
as the difference between its ledger balance and its recorded reserve.

Every state-changing entry point runs inside ``chain.atomic()`` and holds the
pair lock, so a failure anywhere (including inside a flash-swap callback)
unwinds every effect, optimistic transfers included.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from typing import ClassVar

import structlog

from cpamm.amm.calculator import ConstantProductCalculator
from cpamm.callee import FlashSwapCallee
from cpamm.chain import Chain
from cpamm.constants import (
    BALANCE_READ_GAS_COST,
    CALLBACK_GAS_COST,
    DEAD_ADDRESS,
    PAIR_UPDATE_GAS_COST,
    PRICE_ACCUMULATOR_BITS,
    ZERO_ADDRESS,
)
from cpamm.errors import (
    AMMError,
    Forbidden,
    InsufficientInputAmount,
    InsufficientLiquidity,
    InsufficientLiquidityBurned,
    InsufficientLiquidityMinted,
    InsufficientOutputAmount,
    InvalidRecipient,
    InvariantViolation,
    OutOfGas,
    Reentrancy,
    TransferFailed,
)
from cpamm.math import uq112x112
from cpamm.models.events import Burn, Mint, Swap, Sync
from cpamm.models.types import normalize_address
from cpamm.safe_int import S
from cpamm.tokens.claim_token import ClaimToken
from cpamm.tokens.erc20 import ERC20

logger = structlog.get_logger()


class Pair(ClaimToken):
    """Constant-product pair for one canonically ordered asset pair.

    Created by the registry with zeroed state, then bound to its assets
    with ``initialize``.
    """

    _immutable_fields: ClassVar[frozenset[str]] = ClaimToken._immutable_fields | {
        "factory",
        "config",
        "calculator",
    }

    def __init__(self, chain: Chain, factory: str, address: str | None = None) -> None:
        super().__init__(chain, address)
        self.factory = normalize_address(factory)
        self.config = chain.config
        self.calculator = ConstantProductCalculator.from_config(chain.config)
        self.token0 = ZERO_ADDRESS
        self.token1 = ZERO_ADDRESS
        self.reserve0 = 0
        self.reserve1 = 0
        self.block_timestamp_last = 0
        self.price0_cumulative_last = 0
        self.price1_cumulative_last = 0
        self.k_last = 0
        self.unlocked = True

    def initialize(self, sender: str, token0: str, token1: str) -> None:
        """Bind the pair to its assets. Only the registry may call this.

        Raises:
            Forbidden: If ``sender`` is not the registry
        """
        if normalize_address(sender) != self.factory:
            raise Forbidden("Only the registry initializes pairs")
        with self.chain.atomic():
            self._touch()
            self.token0 = normalize_address(token0)
            self.token1 = normalize_address(token1)

    # --- Views ---

    def get_reserves(self) -> tuple[int, int, int]:
        """Return (reserve0, reserve1, block_timestamp_last)."""
        return self.reserve0, self.reserve1, self.block_timestamp_last

    # --- Internals ---

    @contextmanager
    def _lock(self) -> Iterator[None]:
        """Hold the pair lock for the duration of a reserve-mutating operation.

        Raises:
            Reentrancy: If the lock is already held
        """
        if not self.unlocked:
            raise Reentrancy(f"Pair {self.address} is locked")
        self._touch()
        self.unlocked = False
        try:
            yield
        finally:
            self.unlocked = True

    def _asset(self, token: str) -> ERC20:
        return self.chain.contract_at(token, ERC20)  # type: ignore[no-any-return]

    def _balance(self, token: str) -> int:
        self.chain.charge(BALANCE_READ_GAS_COST)
        return self._asset(token).balance_of(self.address)

    def _safe_transfer(self, token: str, to: str, value: int) -> None:
        """Transfer an asset out of custody.

        Raises:
            TransferFailed: If the asset ledger rejects the transfer
        """
        try:
            ok = self._asset(token).transfer(self.address, to, value)
        except OutOfGas:
            raise
        except AMMError as err:
            raise TransferFailed(f"Transfer of {value} {token} to {to}: {err.detail}") from err
        if ok is False:
            raise TransferFailed(f"Transfer of {value} {token} to {to} returned false")

    def _fee_to(self) -> str:
        return self.chain.contract_at(self.factory).fee_to  # type: ignore[no-any-return]

    def _update(self, balance0: int, balance1: int, reserve0: int, reserve1: int) -> None:
        """Write new reserves, accumulating prices over the old ones first.

        Raises:
            Overflow: If a balance does not fit the 112-bit reserve width
        """
        new_reserve0 = S(balance0).to_uint112()
        new_reserve1 = S(balance1).to_uint112()
        self.chain.charge(PAIR_UPDATE_GAS_COST)

        block_timestamp = self.chain.block_timestamp_32
        time_elapsed = S(block_timestamp).wrapping_sub(self.block_timestamp_last, 32)
        if time_elapsed > 0 and reserve0 != 0 and reserve1 != 0:
            # wraparound is intended; readers subtract in the same width
            price0 = uq112x112.uqdiv(uq112x112.encode(reserve1), reserve0)
            price1 = uq112x112.uqdiv(uq112x112.encode(reserve0), reserve1)
            self.price0_cumulative_last = (
                S(self.price0_cumulative_last)
                .wrapping_add(S(price0) * time_elapsed, PRICE_ACCUMULATOR_BITS)
                .value
            )
            self.price1_cumulative_last = (
                S(self.price1_cumulative_last)
                .wrapping_add(S(price1) * time_elapsed, PRICE_ACCUMULATOR_BITS)
                .value
            )

        self.reserve0 = new_reserve0
        self.reserve1 = new_reserve1
        self.block_timestamp_last = block_timestamp
        self.chain.emit(Sync(self.address, new_reserve0, new_reserve1))

    def _mint_fee(self, reserve0: int, reserve1: int) -> bool:
        """Mint the protocol's share of sqrt(k) growth since the last liquidity event.

        Returns:
            True if protocol fee collection is enabled
        """
        fee_to = self._fee_to()
        fee_on = fee_to != ZERO_ADDRESS
        if fee_on:
            if self.k_last != 0:
                root_k = (S(reserve0) * S(reserve1)).isqrt()
                root_k_last = S(self.k_last).isqrt()
                if root_k > root_k_last:
                    numerator = S(self.total_supply) * (root_k - root_k_last)
                    denominator = root_k * self.config.protocol_fee_divisor + root_k_last
                    liquidity = numerator // denominator
                    if liquidity > 0:
                        self._mint(fee_to, liquidity.value)
                        logger.debug(
                            "protocol_fee_minted",
                            pair=self.address,
                            fee_to=fee_to,
                            liquidity=liquidity.value,
                        )
        elif self.k_last != 0:
            self.k_last = 0
        return fee_on

    # --- Reserve-mutating operations ---

    def mint(self, to: str, sender: str | None = None) -> int:
        """Issue claim tokens for assets already transferred into the pair.

        First deposit: isqrt(amount0 * amount1) - MINIMUM_LIQUIDITY, with
        MINIMUM_LIQUIDITY locked at the dead address forever.
        Later deposits: the smaller of the two proportional shares; any
        excess of the other asset is donated to existing holders.

        Args:
            to: Recipient of the claim tokens
            sender: Caller, recorded on the Mint event (default: ``to``)

        Returns:
            Claim tokens issued to ``to``

        Raises:
            InsufficientLiquidityMinted: If the issued amount is not positive
            Overflow: If new balances exceed the reserve width
        """
        with self.chain.atomic(), self._lock():
            reserve0, reserve1 = self.reserve0, self.reserve1
            balance0 = self._balance(self.token0)
            balance1 = self._balance(self.token1)
            amount0 = (S(balance0) - S(reserve0)).value
            amount1 = (S(balance1) - S(reserve1)).value

            fee_on = self._mint_fee(reserve0, reserve1)
            total_supply = self.total_supply
            minimum_liquidity = self.config.minimum_liquidity
            if total_supply == 0:
                root = (S(amount0) * S(amount1)).isqrt()
                if root <= minimum_liquidity:
                    raise InsufficientLiquidityMinted(
                        f"sqrt({amount0} * {amount1}) = {root} <= {minimum_liquidity}"
                    )
                liquidity = (root - minimum_liquidity).value
                self._mint(DEAD_ADDRESS, minimum_liquidity)
            else:
                liquidity = (
                    (S(amount0) * S(total_supply) // S(reserve0))
                    .min(S(amount1) * S(total_supply) // S(reserve1))
                    .value
                )
            if liquidity <= 0:
                raise InsufficientLiquidityMinted(
                    f"Deposit of ({amount0}, {amount1}) issues no claim tokens"
                )
            self._mint(to, liquidity)

            self._update(balance0, balance1, reserve0, reserve1)
            if fee_on:
                self.k_last = self.reserve0 * self.reserve1
            self.chain.emit(
                Mint(self.address, normalize_address(sender or to), amount0, amount1)
            )

        logger.debug(
            "pair_mint",
            pair=self.address,
            to=to,
            amount0=amount0,
            amount1=amount1,
            liquidity=liquidity,
        )
        return liquidity

    def burn(self, to: str, sender: str | None = None) -> tuple[int, int]:
        """Redeem the claim tokens held by the pair itself, pro rata.

        Args:
            to: Recipient of both assets
            sender: Caller, recorded on the Burn event (default: ``to``)

        Returns:
            (amount0, amount1) sent to ``to``, each rounded down

        Raises:
            InsufficientLiquidityBurned: If either amount would be zero
        """
        with self.chain.atomic(), self._lock():
            reserve0, reserve1 = self.reserve0, self.reserve1
            token0, token1 = self.token0, self.token1
            liquidity = self.balance_of(self.address)

            fee_on = self._mint_fee(reserve0, reserve1)
            total_supply = self.total_supply
            if total_supply == 0:
                raise InsufficientLiquidityBurned("Pair has no claim-token supply")
            amount0 = (S(liquidity) * S(reserve0) // S(total_supply)).value
            amount1 = (S(liquidity) * S(reserve1) // S(total_supply)).value
            if amount0 == 0 or amount1 == 0:
                raise InsufficientLiquidityBurned(
                    f"Burning {liquidity} of {total_supply} returns ({amount0}, {amount1})"
                )
            self._burn(self.address, liquidity)
            self._safe_transfer(token0, to, amount0)
            self._safe_transfer(token1, to, amount1)

            balance0 = self._balance(token0)
            balance1 = self._balance(token1)
            self._update(balance0, balance1, reserve0, reserve1)
            if fee_on:
                self.k_last = self.reserve0 * self.reserve1
            self.chain.emit(
                Burn(
                    self.address,
                    normalize_address(sender or to),
                    amount0,
                    amount1,
                    normalize_address(to),
                )
            )

        logger.debug(
            "pair_burn",
            pair=self.address,
            to=to,
            liquidity=liquidity,
            amount0=amount0,
            amount1=amount1,
        )
        return amount0, amount1

    def swap(
        self,
        amount0_out: int,
        amount1_out: int,
        to: str,
        data: bytes = b"",
        sender: str | None = None,
    ) -> tuple[int, int]:
        """Send outputs optimistically, then verify the fee-adjusted invariant.

        The optimistic transfer, the optional flash-swap callback and the
        verification form one atomic scope: if verification fails, the
        transfer and everything the callback did are unwound.

        Args:
            amount0_out: token0 to send to ``to``
            amount1_out: token1 to send to ``to``
            to: Recipient (and flash-swap callee when ``data`` is non-empty)
            data: Callback payload; empty for a plain swap
            sender: Caller, forwarded to the callee and recorded on the event

        Returns:
            (amount0_in, amount1_in) observed after the callback

        Raises:
            InsufficientOutputAmount: If both outputs are zero or either is negative
            InsufficientLiquidity: If an output is not below its reserve
            InvalidRecipient: If ``to`` is one of the pair's assets, or
                ``data`` is set and ``to`` is not a flash-swap callee
            InsufficientInputAmount: If nothing was paid in
            InvariantViolation: If the fee-adjusted product decreased
        """
        if amount0_out < 0 or amount1_out < 0:
            raise InsufficientOutputAmount(f"Negative output ({amount0_out}, {amount1_out})")
        if amount0_out == 0 and amount1_out == 0:
            raise InsufficientOutputAmount("Swap requests no output")
        to = normalize_address(to)
        sender = normalize_address(sender or to)

        with self.chain.atomic(), self._lock():
            reserve0, reserve1 = self.reserve0, self.reserve1
            if amount0_out >= reserve0 or amount1_out >= reserve1:
                raise InsufficientLiquidity(
                    f"Outputs ({amount0_out}, {amount1_out}) vs reserves ({reserve0}, {reserve1})"
                )
            if to in (self.token0, self.token1):
                raise InvalidRecipient(f"Swap recipient {to} is one of the pair's assets")

            self._optimistic_transfer(to, amount0_out, amount1_out)
            if data:
                self._invoke_callee(to, sender, amount0_out, amount1_out, data)
            balance0, balance1, amount0_in, amount1_in = self._verify_invariant(
                reserve0, reserve1, amount0_out, amount1_out
            )

            self._update(balance0, balance1, reserve0, reserve1)
            self.chain.emit(
                Swap(self.address, sender, amount0_in, amount1_in, amount0_out, amount1_out, to)
            )

        logger.debug(
            "pair_swap",
            pair=self.address,
            to=to,
            amount0_in=amount0_in,
            amount1_in=amount1_in,
            amount0_out=amount0_out,
            amount1_out=amount1_out,
            flash=bool(data),
        )
        return amount0_in, amount1_in

    def _optimistic_transfer(self, to: str, amount0_out: int, amount1_out: int) -> None:
        if amount0_out > 0:
            self._safe_transfer(self.token0, to, amount0_out)
        if amount1_out > 0:
            self._safe_transfer(self.token1, to, amount1_out)

    def _invoke_callee(
        self, to: str, sender: str, amount0_out: int, amount1_out: int, data: bytes
    ) -> None:
        callee = self.chain.get_contract(to)
        if not isinstance(callee, FlashSwapCallee):
            raise InvalidRecipient(f"{to} cannot receive flash-swap callbacks")
        self.chain.charge(CALLBACK_GAS_COST)
        callee.on_flash_swap(sender, amount0_out, amount1_out, data)

    def _verify_invariant(
        self, reserve0: int, reserve1: int, amount0_out: int, amount1_out: int
    ) -> tuple[int, int, int, int]:
        """Observe inputs and check balance0' * balance1' >= reserve0 * reserve1.

        Returns:
            (balance0, balance1, amount0_in, amount1_in)
        """
        balance0 = self._balance(self.token0)
        balance1 = self._balance(self.token1)
        remaining0 = reserve0 - amount0_out
        remaining1 = reserve1 - amount1_out
        amount0_in = balance0 - remaining0 if balance0 > remaining0 else 0
        amount1_in = balance1 - remaining1 if balance1 > remaining1 else 0
        if amount0_in == 0 and amount1_in == 0:
            raise InsufficientInputAmount("No input observed on either side")

        adjusted0 = S(self.calculator.adjusted_balance(balance0, amount0_in))
        adjusted1 = S(self.calculator.adjusted_balance(balance1, amount1_in))
        scale = S(self.calculator.fee_denominator) * S(self.calculator.fee_denominator)
        if adjusted0 * adjusted1 < S(reserve0) * S(reserve1) * scale:
            raise InvariantViolation(
                f"Adjusted balances ({adjusted0}, {adjusted1}) below reserves "
                f"({reserve0}, {reserve1})"
            )
        return balance0, balance1, amount0_in, amount1_in

    def skim(self, to: str) -> tuple[int, int]:
        """Send any balance above the recorded reserves to ``to``."""
        with self.chain.atomic(), self._lock():
            token0, token1 = self.token0, self.token1
            excess0 = (S(self._balance(token0)) - S(self.reserve0)).value
            excess1 = (S(self._balance(token1)) - S(self.reserve1)).value
            self._safe_transfer(token0, to, excess0)
            self._safe_transfer(token1, to, excess1)
        logger.debug("pair_skim", pair=self.address, to=to, amount0=excess0, amount1=excess1)
        return excess0, excess1

    def sync(self) -> None:
        """Force recorded reserves to match ledger balances."""
        with self.chain.atomic(), self._lock():
            self._update(
                self._balance(self.token0),
                self._balance(self.token1),
                self.reserve0,
                self.reserve1,
            )
        logger.debug("pair_sync", pair=self.address, reserve0=self.reserve0, reserve1=self.reserve1)


__all__ = ["Pair"]
