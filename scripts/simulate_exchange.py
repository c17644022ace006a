#!/usr/bin/env python3
"""Simulate trading on a single pair and report fees and oracle readings.

Deploys a fresh exchange, seeds one pair, then lets a trader swap random
amounts in random directions at a fixed cadence. At the end it prints the
pair state, the time-weighted average price over the run, the protocol
fee accrued and the cost units consumed.

Run with: python scripts/simulate_exchange.py --swaps 200 --fee-on -v
"""

from __future__ import annotations

import argparse
import random
import sys
from pathlib import Path

import structlog

# Add project root to path for imports
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from cpamm.constants import UINT256_MAX  # noqa: E402
from cpamm.deployment import deploy  # noqa: E402
from cpamm.math import uq112x112  # noqa: E402
from cpamm.oracle import FixedWindowOracle  # noqa: E402
from cpamm.tokens.erc20 import ERC20  # noqa: E402
from cpamm.tokens.signing import Account  # noqa: E402

logger = structlog.get_logger()

E18 = 10**18
DEADLINE = 2**64

PROVIDER = Account.from_seed("provider")
TRADER = Account.from_seed("trader")
ADMIN = Account.from_seed("admin")
TREASURY = Account.from_seed("treasury")


def simulate(swaps: int, interval: int, fee_on: bool, seed: int) -> None:
    rng = random.Random(seed)
    exchange = deploy(ADMIN.address)
    chain, router = exchange.chain, exchange.router
    if fee_on:
        exchange.factory.set_fee_to(ADMIN.address, TREASURY.address)

    base = ERC20(chain, "Base", "BASE", initial_supply=1_000_000 * E18, holder=PROVIDER.address)
    quote = ERC20(chain, "Quote", "QUOTE", initial_supply=1_000_000 * E18, holder=PROVIDER.address)
    for token in (base, quote):
        token.transfer(PROVIDER.address, TRADER.address, 100_000 * E18)
        token.approve(PROVIDER.address, router.address, UINT256_MAX)
        token.approve(TRADER.address, router.address, UINT256_MAX)

    router.add_liquidity(
        PROVIDER.address,
        base.address,
        quote.address,
        10_000 * E18,
        20_000 * E18,
        0,
        0,
        PROVIDER.address,
        DEADLINE,
    )
    pair = exchange.factory.pair(base.address, quote.address)
    oracle = FixedWindowOracle(pair, period=interval)

    total_gas = 0
    for i in range(swaps):
        chain.advance_time(interval)
        path = [base.address, quote.address]
        if rng.random() < 0.5:
            path.reverse()
        amount_in = rng.randint(1, 500) * E18
        amounts = router.swap_exact_tokens_for_tokens(
            TRADER.address, amount_in, 0, path, TRADER.address, DEADLINE
        )
        total_gas += chain.gas_used
        logger.debug("swap", index=i, amount_in=amount_in, amount_out=amounts[-1])
    chain.advance_time(interval)
    oracle.update()

    reserve0, reserve1, _ = pair.get_reserves()
    base_is_token0 = pair.token0 == base.address
    base_average = oracle.consult(base.address, E18)

    print("Exchange simulation")
    print("=" * 60)
    print(f"Swaps:               {swaps} every {interval}s")
    print(f"Reserves:            {reserve0} / {reserve1}")
    spot = uq112x112.to_float(uq112x112.uqdiv(uq112x112.encode(reserve1), reserve0))
    if not base_is_token0:
        spot = 1 / spot
    print(f"Spot price (QUOTE):  {spot:.6f}")
    print(f"TWAP over the run:   {base_average / E18:.6f}")
    print(f"Claim supply:        {pair.total_supply}")
    print(f"Protocol fee shares: {pair.balance_of(TREASURY.address)} (settled on next mint/burn)")
    print(f"Cost units per swap: {total_gas // max(swaps, 1)}")


def main() -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Simulate random trading against one pair",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--swaps", type=int, default=100, help="Number of swaps to run")
    parser.add_argument("--interval", type=int, default=12, help="Seconds between swaps")
    parser.add_argument("--seed", type=int, default=0, help="Random seed")
    parser.add_argument("--fee-on", action="store_true", help="Enable protocol fee collection")
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Log every swap",
    )

    args = parser.parse_args()

    # Configure logging
    import logging

    log_level = logging.DEBUG if args.verbose else logging.WARNING
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
    )

    simulate(args.swaps, args.interval, args.fee_on, args.seed)
    return 0


if __name__ == "__main__":
    sys.exit(main())
