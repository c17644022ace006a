"""Pytest configuration and fixtures."""

import pytest

from cpamm.chain import Chain
from cpamm.deployment import Deployment, deploy
from cpamm.factory import Factory
from cpamm.pair import Pair
from cpamm.routing.router import Router
from cpamm.tokens.erc20 import ERC20
from cpamm.tokens.wrapped_native import WrappedNative
from tests.helpers import ALICE, FEE_SETTER, make_pair, make_token


@pytest.fixture
def chain() -> Chain:
    """Fresh chain at timestamp 1 with the default configuration."""
    return Chain()


@pytest.fixture
def deployment(chain: Chain) -> Deployment:
    """Registry, wrapped native asset and router, fee collection off."""
    return deploy(fee_to_setter=FEE_SETTER.address, chain=chain)


@pytest.fixture
def factory(deployment: Deployment) -> Factory:
    return deployment.factory


@pytest.fixture
def router(deployment: Deployment) -> Router:
    return deployment.router


@pytest.fixture
def weth(deployment: Deployment) -> WrappedNative:
    return deployment.weth


@pytest.fixture
def token_a(chain: Chain) -> ERC20:
    """Asset with its whole supply held by ALICE."""
    return make_token(chain, ALICE.address, symbol="AAA")


@pytest.fixture
def token_b(chain: Chain) -> ERC20:
    return make_token(chain, ALICE.address, symbol="BBB")


@pytest.fixture
def token_c(chain: Chain) -> ERC20:
    return make_token(chain, ALICE.address, symbol="CCC")


@pytest.fixture
def pair_setup(deployment: Deployment) -> tuple[Pair, ERC20, ERC20]:
    """Empty pair of two fresh assets held by ALICE, as (pair, token0, token1)."""
    return make_pair(deployment, ALICE.address)
