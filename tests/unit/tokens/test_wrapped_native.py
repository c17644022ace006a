"""Tests for the wrapped native asset."""

import pytest

from cpamm.errors import InsufficientBalance
from cpamm.models.events import Deposit, Withdrawal
from tests.helpers import ALICE, E18


class TestWrappedNative:
    def test_deposit_wraps_one_to_one(self, chain, weth):
        chain.fund(ALICE.address, 3 * E18)
        weth.deposit(ALICE.address, 2 * E18)

        assert weth.balance_of(ALICE.address) == 2 * E18
        assert weth.total_supply == 2 * E18
        assert chain.native_balance(ALICE.address) == 1 * E18
        assert chain.native_balance(weth.address) == 2 * E18
        assert chain.events_of(Deposit, weth.address)[-1].value == 2 * E18

    def test_withdraw_unwraps(self, chain, weth):
        chain.fund(ALICE.address, 1 * E18)
        weth.deposit(ALICE.address, 1 * E18)
        weth.withdraw(ALICE.address, 4 * 10**17)

        assert weth.balance_of(ALICE.address) == 6 * 10**17
        assert chain.native_balance(ALICE.address) == 4 * 10**17
        assert chain.events_of(Withdrawal, weth.address)[-1].value == 4 * 10**17

    def test_deposit_without_native_balance_raises(self, chain, weth):
        with pytest.raises(InsufficientBalance):
            weth.deposit(ALICE.address, 1)
        assert weth.total_supply == 0

    def test_withdraw_more_than_wrapped_raises(self, chain, weth):
        chain.fund(ALICE.address, 10)
        weth.deposit(ALICE.address, 10)
        with pytest.raises(InsufficientBalance):
            weth.withdraw(ALICE.address, 11)
        assert chain.native_balance(ALICE.address) == 0
