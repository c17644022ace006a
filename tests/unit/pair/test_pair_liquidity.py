"""Tests for pair mint, burn, skim and sync."""

import pytest

from cpamm.constants import DEAD_ADDRESS, UINT112_MAX
from cpamm.errors import (
    Forbidden,
    InsufficientLiquidityBurned,
    InsufficientLiquidityMinted,
    Overflow,
)
from cpamm.models.events import Burn, Mint, Sync
from tests.helpers import (
    ALICE,
    BOB,
    E18,
    MINIMUM_LIQUIDITY,
    TOKEN_SUPPLY,
    add_liquidity,
    make_pair,
)


class TestMint:
    """Tests for claim-token issuance."""

    def test_first_mint(self, chain, pair_setup):
        """sqrt(1 * 4) = 2 units, minus the locked minimum."""
        pair, token0, token1 = pair_setup
        liquidity = add_liquidity(pair, ALICE.address, 1 * E18, 4 * E18)

        assert liquidity == 2 * E18 - MINIMUM_LIQUIDITY
        assert pair.total_supply == 2 * E18
        assert pair.balance_of(ALICE.address) == 2 * E18 - MINIMUM_LIQUIDITY
        assert pair.balance_of(DEAD_ADDRESS) == MINIMUM_LIQUIDITY
        assert token0.balance_of(pair.address) == 1 * E18
        assert token1.balance_of(pair.address) == 4 * E18
        assert pair.get_reserves() == (1 * E18, 4 * E18, chain.block_timestamp_32)

        assert chain.events_of(Sync, pair.address)[-1] == Sync(pair.address, 1 * E18, 4 * E18)
        assert chain.events_of(Mint, pair.address)[-1] == Mint(
            pair.address, ALICE.address, 1 * E18, 4 * E18
        )

    def test_first_mint_at_minimum_raises(self, pair_setup):
        """sqrt(1000 * 1000) = 1000 is not above the locked minimum."""
        pair, token0, token1 = pair_setup
        with pytest.raises(InsufficientLiquidityMinted):
            add_liquidity(pair, ALICE.address, 1000, 1000)
        assert pair.total_supply == 0
        assert token0.balance_of(pair.address) == 0

    def test_first_mint_just_above_minimum(self, pair_setup):
        pair, _, _ = pair_setup
        assert add_liquidity(pair, ALICE.address, 1001, 1001) == 1

    def test_subsequent_mint_takes_smaller_share(self, pair_setup):
        """Excess of one side is donated to existing holders."""
        pair, _, _ = pair_setup
        add_liquidity(pair, ALICE.address, 1 * E18, 4 * E18)
        supply = pair.total_supply

        liquidity = add_liquidity(pair, ALICE.address, 1 * E18, 8 * E18)

        assert liquidity == supply  # limited by token0: 1/1 of supply
        assert pair.get_reserves()[:2] == (2 * E18, 12 * E18)

    def test_mint_without_deposit_raises(self, pair_setup):
        pair, _, _ = pair_setup
        add_liquidity(pair, ALICE.address, 1 * E18, 1 * E18)
        with pytest.raises(InsufficientLiquidityMinted):
            pair.mint(ALICE.address)

    def test_mint_over_reserve_width_raises(self, deployment):
        """A balance above 2**112 - 1 cannot be recorded as a reserve."""
        pair, token0, token1 = make_pair(deployment, ALICE.address, supply=2**113)
        with pytest.raises(Overflow):
            add_liquidity(pair, ALICE.address, UINT112_MAX + 1, E18)
        assert pair.total_supply == 0
        assert pair.get_reserves()[:2] == (0, 0)
        assert token0.balance_of(ALICE.address) == 2**113

    def test_mint_at_reserve_width_limit(self, deployment):
        pair, _, _ = make_pair(deployment, ALICE.address, supply=2**113)
        add_liquidity(pair, ALICE.address, UINT112_MAX, UINT112_MAX)
        assert pair.get_reserves()[:2] == (UINT112_MAX, UINT112_MAX)


class TestBurn:
    """Tests for claim-token redemption."""

    def test_burn_everything(self, chain, pair_setup):
        pair, token0, token1 = pair_setup
        liquidity = add_liquidity(pair, ALICE.address, 3 * E18, 3 * E18)
        assert liquidity == 3 * E18 - MINIMUM_LIQUIDITY

        pair.transfer(ALICE.address, pair.address, liquidity)
        amount0, amount1 = pair.burn(ALICE.address)

        assert (amount0, amount1) == (3 * E18 - MINIMUM_LIQUIDITY, 3 * E18 - MINIMUM_LIQUIDITY)
        assert pair.balance_of(ALICE.address) == 0
        assert pair.total_supply == MINIMUM_LIQUIDITY
        assert token0.balance_of(pair.address) == MINIMUM_LIQUIDITY
        assert token1.balance_of(pair.address) == MINIMUM_LIQUIDITY
        assert token0.balance_of(ALICE.address) == TOKEN_SUPPLY - MINIMUM_LIQUIDITY
        assert pair.get_reserves()[:2] == (MINIMUM_LIQUIDITY, MINIMUM_LIQUIDITY)
        assert chain.events_of(Burn, pair.address)[-1] == Burn(
            pair.address, ALICE.address, amount0, amount1, ALICE.address
        )

    def test_burn_nothing_raises(self, pair_setup):
        pair, _, _ = pair_setup
        add_liquidity(pair, ALICE.address, 3 * E18, 3 * E18)
        with pytest.raises(InsufficientLiquidityBurned):
            pair.burn(ALICE.address)

    def test_burn_on_empty_pair_raises(self, pair_setup):
        pair, _, _ = pair_setup
        with pytest.raises(InsufficientLiquidityBurned):
            pair.burn(ALICE.address)

    def test_burn_is_pro_rata_to_reserves(self, pair_setup):
        pair, _, _ = pair_setup
        add_liquidity(pair, ALICE.address, 2 * E18, 8 * E18)
        supply = pair.total_supply  # 4 * E18
        pair.transfer(ALICE.address, pair.address, supply // 4)
        assert pair.burn(BOB.address) == (E18 // 2, 2 * E18)


class TestMinimumLiquidity:
    """The first deposit's locked claim tokens can never move."""

    def test_locked_tokens_cannot_be_transferred(self, pair_setup):
        pair, _, _ = pair_setup
        add_liquidity(pair, ALICE.address, 3 * E18, 3 * E18)
        with pytest.raises(Forbidden):
            pair.transfer(DEAD_ADDRESS, ALICE.address, MINIMUM_LIQUIDITY)
        with pytest.raises(Forbidden):
            pair.approve(DEAD_ADDRESS, ALICE.address, MINIMUM_LIQUIDITY)
        assert pair.balance_of(DEAD_ADDRESS) == MINIMUM_LIQUIDITY

    def test_locked_tokens_cannot_be_pulled_with_negative_amount(self, pair_setup):
        pair, _, _ = pair_setup
        add_liquidity(pair, ALICE.address, 3 * E18, 3 * E18)
        with pytest.raises(Overflow):
            pair.transfer(BOB.address, DEAD_ADDRESS, -MINIMUM_LIQUIDITY)
        assert pair.balance_of(DEAD_ADDRESS) == MINIMUM_LIQUIDITY
        assert pair.balance_of(BOB.address) == 0

    def test_locked_tokens_survive_full_exit(self, pair_setup):
        pair, _, _ = pair_setup
        liquidity = add_liquidity(pair, ALICE.address, 3 * E18, 3 * E18)
        pair.transfer(ALICE.address, pair.address, liquidity)
        pair.burn(ALICE.address)

        assert pair.total_supply == MINIMUM_LIQUIDITY
        reserve0, reserve1, _ = pair.get_reserves()
        assert reserve0 > 0 and reserve1 > 0

    def test_pair_can_be_refilled_after_full_exit(self, pair_setup):
        pair, _, _ = pair_setup
        liquidity = add_liquidity(pair, ALICE.address, 3 * E18, 3 * E18)
        pair.transfer(ALICE.address, pair.address, liquidity)
        pair.burn(ALICE.address)

        # Supply 1000 over reserves (1000, 1000): one claim token per unit
        assert add_liquidity(pair, ALICE.address, 5000, 5000) == 5000


class TestRoundTrip:
    def test_second_provider_round_trip_loses_only_truncation(self, pair_setup):
        pair, token0, token1 = pair_setup
        add_liquidity(pair, ALICE.address, 7 * E18 + 3, 11 * E18 + 5)
        reserve0, reserve1, _ = pair.get_reserves()

        deposit0 = 123_456_789_123
        deposit1 = deposit0 * reserve1 // reserve0
        token0.transfer(ALICE.address, BOB.address, deposit0)
        token1.transfer(ALICE.address, BOB.address, deposit1)

        liquidity = add_liquidity(pair, BOB.address, deposit0, deposit1)
        pair.transfer(BOB.address, pair.address, liquidity)
        amount0, amount1 = pair.burn(BOB.address)

        assert amount0 <= deposit0 and amount1 <= deposit1
        assert deposit0 - amount0 <= 2
        assert deposit1 - amount1 <= 2


class TestSkimSync:
    def test_skim_sends_excess(self, pair_setup):
        pair, token0, token1 = pair_setup
        add_liquidity(pair, ALICE.address, 1 * E18, 1 * E18)
        token0.transfer(ALICE.address, pair.address, 500)

        assert pair.skim(BOB.address) == (500, 0)
        assert token0.balance_of(BOB.address) == 500
        assert pair.get_reserves()[:2] == (1 * E18, 1 * E18)

    def test_sync_adopts_balances(self, chain, pair_setup):
        pair, token0, _ = pair_setup
        add_liquidity(pair, ALICE.address, 1 * E18, 1 * E18)
        token0.transfer(ALICE.address, pair.address, 500)

        pair.sync()

        assert pair.get_reserves()[:2] == (1 * E18 + 500, 1 * E18)
        assert chain.events_of(Sync, pair.address)[-1].reserve0 == 1 * E18 + 500

    def test_sync_over_reserve_width_raises(self, deployment):
        pair, token0, _ = make_pair(deployment, ALICE.address, supply=2**113)
        add_liquidity(pair, ALICE.address, E18, E18)
        token0.transfer(ALICE.address, pair.address, UINT112_MAX)
        with pytest.raises(Overflow):
            pair.sync()
        assert pair.unlocked
        # skim recovers the stuck balance
        pair.skim(ALICE.address)
        pair.sync()
        assert pair.get_reserves()[:2] == (E18, E18)


class TestInitialize:
    def test_only_registry_may_initialize(self, pair_setup):
        pair, token0, token1 = pair_setup
        with pytest.raises(Forbidden):
            pair.initialize(ALICE.address, token1.address, token0.address)
        assert (pair.token0, pair.token1) == (token0.address, token1.address)

    def test_lock_is_released_after_failure(self, pair_setup):
        pair, _, _ = pair_setup
        with pytest.raises(InsufficientLiquidityMinted):
            pair.mint(ALICE.address)
        assert pair.unlocked
