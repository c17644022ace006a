"""Fee-rate calculator for constant-product pairs.

Pairs use the constant product formula: x * y = k
with a proportional fee (0.3% by default) taken from input amounts.
All functions are pure: no state, exact integer arithmetic.
"""

from __future__ import annotations

from dataclasses import dataclass

from cpamm.config import DEFAULT_CONFIG, AMMConfig
from cpamm.errors import (
    InsufficientAAmount,
    InsufficientInputAmount,
    InsufficientLiquidity,
    InsufficientOutputAmount,
)
from cpamm.safe_int import S


@dataclass(frozen=True)
class ConstantProductCalculator:
    """Constant-product swap math.

    Formula: amount_out = (amount_in * 997 * reserve_out) / (reserve_in * 1000 + amount_in * 997)

    The 997/1000 factor accounts for the 0.3% fee; both numbers come from
    the configured fee numerator and denominator.
    """

    fee_numerator: int = DEFAULT_CONFIG.fee_numerator
    fee_denominator: int = DEFAULT_CONFIG.fee_denominator

    @classmethod
    def from_config(cls, config: AMMConfig) -> ConstantProductCalculator:
        return cls(fee_numerator=config.fee_numerator, fee_denominator=config.fee_denominator)

    @property
    def fee_multiplier(self) -> int:
        """Share of the input that counts toward the invariant.

        For 3/1000 (0.3%), this returns 997.
        """
        return self.fee_denominator - self.fee_numerator

    def quote(self, amount_a: int, reserve_a: int, reserve_b: int) -> int:
        """Equivalent amount of the other asset at the current reserve ratio.

        No fee is applied; this sizes liquidity deposits, not swaps.

        Raises:
            InsufficientAAmount: If amount_a is zero
            InsufficientLiquidity: If either reserve is zero
        """
        if amount_a <= 0:
            raise InsufficientAAmount("quote amount must be positive")
        if reserve_a <= 0 or reserve_b <= 0:
            raise InsufficientLiquidity("quote against an empty pair")
        return (S(amount_a) * S(reserve_b) // S(reserve_a)).value

    def get_amount_out(self, amount_in: int, reserve_in: int, reserve_out: int) -> int:
        """Maximum output for an exact input.

        Formula: amount_out = (in * fee * res_out) / (res_in * denom + in * fee)

        Args:
            amount_in: Input token amount
            reserve_in: Reserve of input token in pair
            reserve_out: Reserve of output token in pair

        Returns:
            Output token amount, rounded down

        Raises:
            InsufficientInputAmount: If amount_in is zero
            InsufficientLiquidity: If either reserve is zero
        """
        if amount_in <= 0:
            raise InsufficientInputAmount("amount_in must be positive")
        if reserve_in <= 0 or reserve_out <= 0:
            raise InsufficientLiquidity("swap against an empty pair")

        amount_in_with_fee = S(amount_in) * S(self.fee_multiplier)
        numerator = amount_in_with_fee * S(reserve_out)
        denominator = S(reserve_in) * S(self.fee_denominator) + amount_in_with_fee

        return (numerator // denominator).value

    def get_amount_in(self, amount_out: int, reserve_in: int, reserve_out: int) -> int:
        """Minimum input for an exact output.

        Formula: amount_in = (res_in * out * denom) / ((res_out - out) * fee) + 1

        Rounds up (by always adding one), so the resulting swap is guaranteed
        to pass the pair's invariant check.

        Raises:
            InsufficientOutputAmount: If amount_out is zero
            InsufficientLiquidity: If either reserve is zero or
                amount_out would drain the output reserve
        """
        if amount_out <= 0:
            raise InsufficientOutputAmount("amount_out must be positive")
        if reserve_in <= 0 or reserve_out <= 0:
            raise InsufficientLiquidity("swap against an empty pair")
        if amount_out >= reserve_out:
            raise InsufficientLiquidity(
                f"amount_out ({amount_out}) >= reserve_out ({reserve_out})"
            )

        numerator = S(reserve_in) * S(amount_out) * S(self.fee_denominator)
        denominator = (S(reserve_out) - S(amount_out)) * S(self.fee_multiplier)

        return ((numerator // denominator) + S(1)).value

    def adjusted_balance(self, balance: int, amount_in: int) -> int:
        """Balance scaled by the fee denominator with the fee on amount_in removed.

        The pair requires adjusted0 * adjusted1 >= reserve0 * reserve1 * denom**2.
        """
        return (S(balance) * S(self.fee_denominator) - S(amount_in) * S(self.fee_numerator)).value


# Singleton instance with the default 0.3% fee
default_calculator = ConstantProductCalculator()


__all__ = [
    "ConstantProductCalculator",
    "default_calculator",
]
