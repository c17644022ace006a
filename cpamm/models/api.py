"""Pydantic models for the read-only HTTP API."""

from typing import Literal

from pydantic import BaseModel, Field, model_validator

from cpamm.models.types import Address, Uint256


class PairState(BaseModel):
    """Snapshot of one pair's reserves and accumulators."""

    address: Address
    token0: Address
    token1: Address
    reserve0: Uint256
    reserve1: Uint256
    block_timestamp_last: int = Field(alias="blockTimestampLast")
    price0_cumulative_last: Uint256 = Field(alias="price0CumulativeLast")
    price1_cumulative_last: Uint256 = Field(alias="price1CumulativeLast")
    total_supply: Uint256 = Field(alias="totalSupply")
    k_last: Uint256 = Field(alias="kLast")

    model_config = {"populate_by_name": True}


class PairList(BaseModel):
    pairs: list[PairState]
    count: int


class QuoteRequest(BaseModel):
    """Quote along a path, for an exact input or an exact output."""

    path: list[Address] = Field(min_length=2)
    kind: Literal["exactIn", "exactOut"] = "exactIn"
    amount: Uint256

    @model_validator(mode="after")
    def _positive_amount(self) -> "QuoteRequest":
        if int(self.amount) == 0:
            raise ValueError("amount must be positive")
        return self


class QuoteResponse(BaseModel):
    path: list[Address]
    amounts: list[Uint256]
    amount_in: Uint256 = Field(alias="amountIn")
    amount_out: Uint256 = Field(alias="amountOut")

    model_config = {"populate_by_name": True}


class ErrorResponse(BaseModel):
    code: str
    detail: str


__all__ = ["PairState", "PairList", "QuoteRequest", "QuoteResponse", "ErrorResponse"]
