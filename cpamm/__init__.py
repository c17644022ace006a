"""Constant-product AMM engine: pairs, registry, router and price oracles."""

__version__ = "0.1.0"

from cpamm.chain import Chain, Contract
from cpamm.config import DEFAULT_CONFIG, AMMConfig
from cpamm.deployment import Deployment, deploy
from cpamm.factory import Factory
from cpamm.pair import Pair
from cpamm.routing.router import Router

__all__ = [
    "AMMConfig",
    "DEFAULT_CONFIG",
    "Chain",
    "Contract",
    "Deployment",
    "deploy",
    "Factory",
    "Pair",
    "Router",
    "__version__",
]
