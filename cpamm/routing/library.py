"""Stateless helpers for routing through pairs.

Pair addresses are derived, not looked up, so quoting never depends on
registry state beyond the pairs' own reserves.
"""

from __future__ import annotations

from cpamm.addressing import pair_address
from cpamm.amm.calculator import ConstantProductCalculator, default_calculator
from cpamm.chain import Chain
from cpamm.errors import InvalidPath, PairNotFound
from cpamm.models.types import normalize_address, sort_tokens
from cpamm.pair import Pair

__all__ = [
    "sort_tokens",
    "pair_for",
    "get_pair",
    "get_reserves",
    "get_amounts_out",
    "get_amounts_in",
]


def pair_for(factory: str, token_a: str, token_b: str) -> str:
    """Address of the pair for two assets, without any lookup."""
    return pair_address(factory, token_a, token_b)


def get_pair(chain: Chain, factory: str, token_a: str, token_b: str) -> Pair:
    """Resolve the deployed pair for two assets.

    Raises:
        PairNotFound: If the pair has not been created
    """
    contract = chain.get_contract(pair_for(factory, token_a, token_b))
    if not isinstance(contract, Pair):
        raise PairNotFound(f"No pair for {token_a} / {token_b}")
    return contract


def get_reserves(chain: Chain, factory: str, token_a: str, token_b: str) -> tuple[int, int]:
    """Reserves ordered as (reserve_a, reserve_b)."""
    token0, _ = sort_tokens(token_a, token_b)
    reserve0, reserve1, _ = get_pair(chain, factory, token_a, token_b).get_reserves()
    if normalize_address(token_a) == token0:
        return reserve0, reserve1
    return reserve1, reserve0


def _check_path(path: list[str]) -> None:
    if len(path) < 2:
        raise InvalidPath(f"Path needs at least two assets, got {len(path)}")


def get_amounts_out(
    chain: Chain,
    factory: str,
    amount_in: int,
    path: list[str],
    calculator: ConstantProductCalculator = default_calculator,
) -> list[int]:
    """Chained exact-input amounts along ``path``.

    Returns:
        amounts[0] == amount_in, amounts[i + 1] is the output of hop i

    Raises:
        InvalidPath: If the path has fewer than two assets
        PairNotFound: If a hop has no pair
    """
    _check_path(path)
    amounts = [amount_in]
    for token_in, token_out in zip(path, path[1:]):
        reserve_in, reserve_out = get_reserves(chain, factory, token_in, token_out)
        amounts.append(calculator.get_amount_out(amounts[-1], reserve_in, reserve_out))
    return amounts


def get_amounts_in(
    chain: Chain,
    factory: str,
    amount_out: int,
    path: list[str],
    calculator: ConstantProductCalculator = default_calculator,
) -> list[int]:
    """Chained exact-output amounts along ``path``, computed backwards.

    Returns:
        amounts[-1] == amount_out, amounts[i] is the input needed at hop i
    """
    _check_path(path)
    amounts = [amount_out]
    for token_in, token_out in zip(reversed(path[:-1]), reversed(path[1:])):
        reserve_in, reserve_out = get_reserves(chain, factory, token_in, token_out)
        amounts.insert(0, calculator.get_amount_in(amounts[0], reserve_in, reserve_out))
    return amounts
