"""Tests for flash swaps: optimistic transfer, callback, then verification."""

import pytest

from cpamm.callee import FlashSwapCallee
from cpamm.errors import InsufficientBalance, InvalidRecipient, InvariantViolation, Reentrancy
from cpamm.models.events import Swap
from tests.helpers import (
    ALICE,
    E18,
    FlashBorrower,
    ReentrantBorrower,
    add_liquidity,
    flash_repayment,
)


@pytest.fixture
def funded_pair(pair_setup):
    pair, token0, token1 = pair_setup
    add_liquidity(pair, ALICE.address, 5 * E18, 10 * E18)
    return pair, token0, token1


def snapshot(chain, pair, token0, token1, borrower):
    return (
        pair.get_reserves(),
        pair.total_supply,
        token0.balance_of(pair.address),
        token1.balance_of(pair.address),
        token0.balance_of(borrower.address),
        token1.balance_of(borrower.address),
        len(chain.events),
    )


class TestFlashSwap:
    def test_callee_protocol(self, chain):
        assert isinstance(FlashBorrower(chain), FlashSwapCallee)

    def test_borrow_and_repay_same_asset(self, chain, funded_pair):
        pair, token0, _ = funded_pair
        borrowed = 1 * E18
        repayment = flash_repayment(borrowed)
        borrower = FlashBorrower(chain, repay0=repayment)
        token0.transfer(ALICE.address, borrower.address, repayment - borrowed)

        amounts_in = pair.swap(
            borrowed, 0, borrower.address, data=pair.address.encode(), sender=ALICE.address
        )

        assert amounts_in == (repayment, 0)
        assert borrower.calls == [(ALICE.address, borrowed, 0, pair.address.encode())]
        assert token0.balance_of(borrower.address) == 0
        assert pair.get_reserves()[:2] == (5 * E18 - borrowed + repayment, 10 * E18)
        assert chain.events_of(Swap, pair.address)[-1].amount0_in == repayment

    def test_borrow_one_asset_repay_the_other(self, chain, funded_pair):
        """Equivalent to a plain swap paid for after delivery."""
        pair, _, token1 = funded_pair
        borrowed = 453305446940074565
        borrower = FlashBorrower(chain, repay1=1 * E18)
        token1.transfer(ALICE.address, borrower.address, 1 * E18)

        pair.swap(borrowed, 0, borrower.address, data=pair.address.encode())

        assert pair.get_reserves()[:2] == (5 * E18 - borrowed, 11 * E18)

    def test_short_repayment_unwinds_everything(self, chain, funded_pair):
        """Atomicity: reserves, supply and both parties' balances are untouched."""
        pair, token0, token1 = funded_pair
        borrowed = 1 * E18
        borrower = FlashBorrower(chain, repay0=flash_repayment(borrowed) - 1)
        token0.transfer(ALICE.address, borrower.address, 10**16)
        before = snapshot(chain, pair, token0, token1, borrower)

        with pytest.raises(InvariantViolation):
            pair.swap(borrowed, 0, borrower.address, data=pair.address.encode())

        assert snapshot(chain, pair, token0, token1, borrower) == before
        assert borrower.calls == []
        assert pair.unlocked

    def test_no_repayment(self, chain, funded_pair):
        pair, token0, token1 = funded_pair
        borrower = FlashBorrower(chain)
        before = snapshot(chain, pair, token0, token1, borrower)

        with pytest.raises(InvariantViolation):
            pair.swap(0, 1 * E18, borrower.address, data=pair.address.encode())

        assert snapshot(chain, pair, token0, token1, borrower) == before

    def test_callback_failure_propagates_and_unwinds(self, chain, funded_pair):
        """Callee tries to repay more than it holds."""
        pair, token0, token1 = funded_pair
        borrower = FlashBorrower(chain, repay1=20 * E18)
        before = snapshot(chain, pair, token0, token1, borrower)

        with pytest.raises(InsufficientBalance):
            pair.swap(0, 1 * E18, borrower.address, data=pair.address.encode())

        assert snapshot(chain, pair, token0, token1, borrower) == before

    def test_reentry_into_paying_pair_is_rejected(self, chain, funded_pair):
        pair, token0, token1 = funded_pair
        borrower = ReentrantBorrower(chain)

        with pytest.raises(Reentrancy):
            pair.swap(0, 1 * E18, borrower.address, data=pair.address.encode())

        assert pair.unlocked
        assert token1.balance_of(borrower.address) == 0
        # The pair is usable again afterwards
        pair.sync()

    def test_data_to_non_callee_is_rejected(self, funded_pair):
        pair, token0, _ = funded_pair
        token0.transfer(ALICE.address, pair.address, 1 * E18)
        with pytest.raises(InvalidRecipient):
            pair.swap(0, 1, ALICE.address, data=b"\x01")

    def test_empty_data_skips_callback(self, chain, funded_pair):
        pair, token0, _ = funded_pair
        borrower = FlashBorrower(chain)
        token0.transfer(ALICE.address, pair.address, 1 * E18)

        pair.swap(0, 1, borrower.address)

        assert borrower.calls == []
