"""Bundle of the contracts that make up one exchange deployment."""

from __future__ import annotations

from dataclasses import dataclass

import structlog

from cpamm.chain import Chain
from cpamm.config import DEFAULT_CONFIG, AMMConfig
from cpamm.constants import ZERO_ADDRESS
from cpamm.factory import Factory
from cpamm.routing.router import Router
from cpamm.tokens.wrapped_native import WrappedNative

logger = structlog.get_logger()


@dataclass
class Deployment:
    chain: Chain
    factory: Factory
    weth: WrappedNative
    router: Router


def deploy(
    fee_to_setter: str,
    fee_to: str = ZERO_ADDRESS,
    chain: Chain | None = None,
    config: AMMConfig = DEFAULT_CONFIG,
) -> Deployment:
    """Deploy registry, wrapped native asset and router on a (new) chain."""
    if chain is None:
        chain = Chain(config)
    with chain.atomic():
        factory = Factory(chain, fee_to_setter=fee_to_setter, fee_to=fee_to)
        weth = WrappedNative(chain)
        router = Router(chain, factory, weth)
    logger.debug(
        "exchange_deployed",
        factory=factory.address,
        weth=weth.address,
        router=router.address,
    )
    return Deployment(chain=chain, factory=factory, weth=weth, router=router)


__all__ = ["Deployment", "deploy"]
