"""Read-only API endpoints over an exchange deployment."""

import os

import structlog
from fastapi import APIRouter, Depends, HTTPException

from cpamm.constants import ZERO_ADDRESS
from cpamm.deployment import Deployment, deploy
from cpamm.errors import AMMError, PairNotFound
from cpamm.models.api import PairList, PairState, QuoteRequest, QuoteResponse
from cpamm.models.types import is_valid_address
from cpamm.pair import Pair
from cpamm.routing import library

logger = structlog.get_logger()

router = APIRouter()

# Fee-to setter of the deployment served when none is injected
DEFAULT_FEE_TO_SETTER = os.environ.get("CPAMM_FEE_TO_SETTER", ZERO_ADDRESS)

_default_deployment: Deployment | None = None


def get_deployment() -> Deployment:
    """Dependency provider for the deployment being served.

    Override this in tests to inject a populated deployment:
        app.dependency_overrides[get_deployment] = lambda: deployment

    Returns:
        The deployment to read from.
    """
    global _default_deployment
    if _default_deployment is None:
        _default_deployment = deploy(fee_to_setter=DEFAULT_FEE_TO_SETTER)
    return _default_deployment


def _pair_state(pair: Pair) -> PairState:
    reserve0, reserve1, block_timestamp_last = pair.get_reserves()
    return PairState(
        address=pair.address,
        token0=pair.token0,
        token1=pair.token1,
        reserve0=reserve0,
        reserve1=reserve1,
        block_timestamp_last=block_timestamp_last,
        price0_cumulative_last=pair.price0_cumulative_last,
        price1_cumulative_last=pair.price1_cumulative_last,
        total_supply=pair.total_supply,
        k_last=pair.k_last,
    )


@router.get("/pairs")
def list_pairs(deployment: Deployment = Depends(get_deployment)) -> PairList:
    """All pairs in registry order."""
    pairs = [_pair_state(pair) for pair in deployment.factory.iter_pairs()]
    return PairList(pairs=pairs, count=len(pairs))


@router.get("/pairs/{token_a}/{token_b}")
def get_pair(
    token_a: str,
    token_b: str,
    deployment: Deployment = Depends(get_deployment),
) -> PairState:
    """State of the pair for two assets, in either order.

    Error Handling:
        - Malformed identifier: 422
        - Identical assets: 400 with the engine's error code
        - No such pair: 404
    """
    for token in (token_a, token_b):
        if not is_valid_address(token):
            raise HTTPException(status_code=422, detail=f"Invalid asset identifier: {token}")
    try:
        pair = deployment.factory.pair(token_a, token_b)
    except PairNotFound as err:
        raise HTTPException(status_code=404, detail=err.detail) from err
    except AMMError as err:
        logger.warning("pair_lookup_rejected", code=err.code, detail=err.detail)
        detail = {"code": err.code, "detail": err.detail}
        raise HTTPException(status_code=400, detail=detail) from err
    return _pair_state(pair)


@router.post("/quote")
def quote(request: QuoteRequest, deployment: Deployment = Depends(get_deployment)) -> QuoteResponse:
    """Amounts along a path for an exact input or an exact output.

    Error Handling:
        - Invalid request schema: 422 (Pydantic)
        - Missing pair on the path: 404
        - Quote rejected by the engine (e.g. output >= reserve): 400
    """
    amount = int(request.amount)
    calculator = deployment.router.calculator
    try:
        if request.kind == "exactIn":
            amounts = library.get_amounts_out(
                deployment.chain, deployment.factory.address, amount, request.path, calculator
            )
        else:
            amounts = library.get_amounts_in(
                deployment.chain, deployment.factory.address, amount, request.path, calculator
            )
    except PairNotFound as err:
        raise HTTPException(status_code=404, detail=err.detail) from err
    except AMMError as err:
        logger.warning("quote_rejected", code=err.code, detail=err.detail, path=request.path)
        detail = {"code": err.code, "detail": err.detail}
        raise HTTPException(status_code=400, detail=detail) from err

    return QuoteResponse(
        path=request.path,
        amounts=amounts,
        amount_in=amounts[0],
        amount_out=amounts[-1],
    )
