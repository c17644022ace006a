"""Runtime configuration for the AMM engine."""

from dataclasses import dataclass

from cpamm.constants import (
    DEFAULT_GAS_LIMIT,
    FEE_DENOMINATOR,
    FEE_NUMERATOR,
    MINIMUM_LIQUIDITY,
    PROTOCOL_FEE_DIVISOR,
)


@dataclass(frozen=True)
class AMMConfig:
    """Centralized configuration for pairs and the execution environment.

    Every pair deployed on a Chain reads its parameters from the chain's
    config, so all pairs of one deployment share the same fee schedule.

    Attributes:
        fee_numerator: Part of each input retained as swap fee (default: 3)
        fee_denominator: Fee scale (default: 1000, i.e. 0.3%)
        protocol_fee_divisor: sqrt(k) growth share minted to fee_to is
            1 / (divisor + 1) (default: 5, one sixth)
        minimum_liquidity: Claim tokens locked on the first deposit
        gas_limit: Cost budget of one outermost transaction
    """

    fee_numerator: int = FEE_NUMERATOR
    fee_denominator: int = FEE_DENOMINATOR
    protocol_fee_divisor: int = PROTOCOL_FEE_DIVISOR
    minimum_liquidity: int = MINIMUM_LIQUIDITY
    gas_limit: int = DEFAULT_GAS_LIMIT

    def __post_init__(self) -> None:
        if self.fee_denominator <= 0:
            raise ValueError(f"fee_denominator must be positive: {self.fee_denominator}")
        if not (0 <= self.fee_numerator < self.fee_denominator):
            raise ValueError(
                f"fee_numerator must be in [0, {self.fee_denominator}): {self.fee_numerator}"
            )
        if self.protocol_fee_divisor <= 0:
            raise ValueError(f"protocol_fee_divisor must be positive: {self.protocol_fee_divisor}")
        if self.minimum_liquidity < 0:
            raise ValueError(f"minimum_liquidity must be non-negative: {self.minimum_liquidity}")

    @property
    def fee_multiplier(self) -> int:
        """Share of the input that counts toward the invariant (997 by default)."""
        return self.fee_denominator - self.fee_numerator


# Default configuration instance
DEFAULT_CONFIG = AMMConfig()
