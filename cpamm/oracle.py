"""Time-weighted average price consumers of a pair's accumulators.

Averages are always computed from two readings as
(cumulative(t2) - cumulative(t1)) / (t2 - t1), with the subtraction done in
the accumulator's own width so a wraparound between readings is harmless.
"""

from __future__ import annotations

from dataclasses import dataclass

import structlog

from cpamm.constants import PRICE_ACCUMULATOR_BITS
from cpamm.errors import InvalidPath, PeriodNotElapsed
from cpamm.math import uq112x112
from cpamm.models.types import normalize_address
from cpamm.pair import Pair
from cpamm.safe_int import S

logger = structlog.get_logger()


def current_cumulative_prices(pair: Pair) -> tuple[int, int, int]:
    """Cumulative prices as of the current block, without writing to the pair.

    If time has passed since the pair's last update, the missing interval is
    added counterfactually at the current reserves.

    Returns:
        (price0_cumulative, price1_cumulative, block_timestamp_32)
    """
    block_timestamp = pair.chain.block_timestamp_32
    price0_cumulative = pair.price0_cumulative_last
    price1_cumulative = pair.price1_cumulative_last

    reserve0, reserve1, block_timestamp_last = pair.get_reserves()
    if block_timestamp_last != block_timestamp and reserve0 != 0 and reserve1 != 0:
        time_elapsed = S(block_timestamp).wrapping_sub(block_timestamp_last, 32)
        price0 = uq112x112.uqdiv(uq112x112.encode(reserve1), reserve0)
        price1 = uq112x112.uqdiv(uq112x112.encode(reserve0), reserve1)
        price0_cumulative = (
            S(price0_cumulative)
            .wrapping_add(S(price0) * time_elapsed, PRICE_ACCUMULATOR_BITS)
            .value
        )
        price1_cumulative = (
            S(price1_cumulative)
            .wrapping_add(S(price1) * time_elapsed, PRICE_ACCUMULATOR_BITS)
            .value
        )
    return price0_cumulative, price1_cumulative, block_timestamp


def average_price(cumulative_start: int, cumulative_end: int, time_elapsed: int) -> int:
    """Time-weighted average UQ112x112 price between two readings.

    Raises:
        DivisionByZero: If no time elapsed
    """
    delta = S(cumulative_end).wrapping_sub(cumulative_start, PRICE_ACCUMULATOR_BITS)
    return (delta // time_elapsed).value


@dataclass
class _Observation:
    timestamp: int
    price0_cumulative: int
    price1_cumulative: int


class FixedWindowOracle:
    """Average price of one pair over a fixed window, refreshed by update().

    Args:
        pair: Pair to observe (must already hold reserves)
        period: Minimum seconds between updates
    """

    def __init__(self, pair: Pair, period: int) -> None:
        if period <= 0:
            raise ValueError(f"period must be positive: {period}")
        reserve0, reserve1, _ = pair.get_reserves()
        if reserve0 == 0 or reserve1 == 0:
            raise ValueError(f"Pair {pair.address} has no reserves to observe")
        self.pair = pair
        self.period = period
        self.token0 = pair.token0
        self.token1 = pair.token1
        self._last = _Observation(
            timestamp=pair.block_timestamp_last,
            price0_cumulative=pair.price0_cumulative_last,
            price1_cumulative=pair.price1_cumulative_last,
        )
        self.price0_average = 0
        self.price1_average = 0

    @property
    def block_timestamp_last(self) -> int:
        return self._last.timestamp

    def update(self) -> None:
        """Roll the window forward.

        Raises:
            PeriodNotElapsed: If less than ``period`` seconds passed since the last update
        """
        price0_cumulative, price1_cumulative, block_timestamp = current_cumulative_prices(
            self.pair
        )
        time_elapsed = S(block_timestamp).wrapping_sub(self._last.timestamp, 32).value
        if time_elapsed < self.period:
            raise PeriodNotElapsed(f"{time_elapsed}s elapsed, window is {self.period}s")

        self.price0_average = average_price(
            self._last.price0_cumulative, price0_cumulative, time_elapsed
        )
        self.price1_average = average_price(
            self._last.price1_cumulative, price1_cumulative, time_elapsed
        )
        self._last = _Observation(block_timestamp, price0_cumulative, price1_cumulative)
        logger.debug(
            "oracle_updated",
            pair=self.pair.address,
            price0_average=uq112x112.to_float(self.price0_average),
            price1_average=uq112x112.to_float(self.price1_average),
            window=time_elapsed,
        )

    def consult(self, token: str, amount_in: int) -> int:
        """Value of ``amount_in`` of ``token`` in the other asset at the window average.

        Raises:
            InvalidPath: If ``token`` is not one of the pair's assets
        """
        token = normalize_address(token)
        if token == self.token0:
            average = self.price0_average
        elif token == self.token1:
            average = self.price1_average
        else:
            raise InvalidPath(f"Token {token} not in pair {self.pair.address}")
        return uq112x112.decode144(uq112x112.mul(average, amount_in))


__all__ = ["current_cumulative_prices", "average_price", "FixedWindowOracle"]
