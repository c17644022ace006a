"""Tests for time-weighted average price consumers."""

import pytest

from cpamm.errors import InvalidPath, PeriodNotElapsed
from cpamm.math import uq112x112
from cpamm.oracle import FixedWindowOracle, average_price, current_cumulative_prices
from tests.helpers import ALICE, E18, add_liquidity

PERIOD = 24 * 60 * 60


@pytest.fixture
def funded_pair(pair_setup):
    """Pair holding 5 token0 against 10 token1, so token0 is worth 2 token1."""
    pair, token0, token1 = pair_setup
    add_liquidity(pair, ALICE.address, 5 * E18, 10 * E18)
    return pair, token0, token1


class TestCurrentCumulativePrices:
    def test_same_block_reads_stored_values(self, chain, funded_pair):
        pair, _, _ = funded_pair
        assert current_cumulative_prices(pair) == (0, 0, chain.block_timestamp_32)

    def test_counterfactual_interval_is_added(self, chain, funded_pair):
        pair, _, _ = funded_pair
        chain.advance_time(10)

        price0, price1, timestamp = current_cumulative_prices(pair)

        assert price0 == 2 * uq112x112.Q112 * 10
        assert price1 == uq112x112.Q112 // 2 * 10
        assert timestamp == chain.block_timestamp_32
        # Reading does not write to the pair
        assert pair.price0_cumulative_last == 0


class TestAveragePrice:
    def test_average_across_accumulator_wrap(self):
        start = 2**224 - uq112x112.Q112
        end = uq112x112.Q112 * 2
        assert average_price(start, end, 3) == uq112x112.Q112


class TestFixedWindowOracle:
    def test_update_before_period_rejected(self, chain, funded_pair):
        pair, _, _ = funded_pair
        oracle = FixedWindowOracle(pair, PERIOD)
        chain.advance_time(PERIOD - 1)
        with pytest.raises(PeriodNotElapsed):
            oracle.update()

    def test_consult_after_window(self, chain, funded_pair):
        pair, token0, token1 = funded_pair
        oracle = FixedWindowOracle(pair, PERIOD)
        chain.advance_time(PERIOD)

        oracle.update()

        assert oracle.block_timestamp_last == chain.block_timestamp_32
        assert oracle.consult(token0.address, 1 * E18) == 2 * E18
        assert oracle.consult(token1.address, 1 * E18) == E18 // 2

    def test_average_is_time_weighted(self, chain, funded_pair):
        pair, token0, token1 = funded_pair
        oracle = FixedWindowOracle(pair, PERIOD)
        chain.advance_time(PERIOD // 2)
        # Double token1's reserve halfway through: price0 moves from 2 to 4
        token1.transfer(ALICE.address, pair.address, 10 * E18)
        pair.sync()
        chain.advance_time(PERIOD // 2)

        oracle.update()

        assert oracle.consult(token0.address, 1 * E18) == 3 * E18

    def test_window_spanning_timestamp_wrap(self, chain, pair_setup):
        pair, token0, _ = pair_setup
        chain.set_timestamp(2**32 - 100)
        add_liquidity(pair, ALICE.address, 5 * E18, 10 * E18)
        oracle = FixedWindowOracle(pair, PERIOD)
        chain.advance_time(PERIOD)

        oracle.update()

        assert oracle.block_timestamp_last == PERIOD - 100
        assert oracle.consult(token0.address, 1 * E18) == 2 * E18

    def test_consult_unknown_token(self, funded_pair, token_a):
        pair, _, _ = funded_pair
        oracle = FixedWindowOracle(pair, PERIOD)
        with pytest.raises(InvalidPath):
            oracle.consult(token_a.address, 1)

    @pytest.mark.parametrize("period", [0, -1])
    def test_period_must_be_positive(self, funded_pair, period):
        pair, _, _ = funded_pair
        with pytest.raises(ValueError, match="period"):
            FixedWindowOracle(pair, period)

    def test_empty_pair_rejected(self, pair_setup):
        pair, _, _ = pair_setup
        with pytest.raises(ValueError, match="no reserves"):
            FixedWindowOracle(pair, PERIOD)
