"""Shared type definitions for asset and account identifiers.

These types are used across the engine, the router and the API models.
"""

from typing import Annotated, Any

from pydantic import BeforeValidator, Field

from cpamm.constants import UINT256_MAX, ZERO_ADDRESS
from cpamm.errors import IdenticalAddresses, ZeroAddress


def validate_uint256(value: Any) -> str:
    """Validate that a value is a valid uint256 decimal string.

    Args:
        value: Value to validate (string or int)

    Returns:
        Valid uint256 as decimal string

    Raises:
        ValueError: If value is not a valid non-negative integer within uint256 range
    """
    if isinstance(value, int) and not isinstance(value, bool):
        int_value = value
    elif isinstance(value, str):
        try:
            int_value = int(value)
        except ValueError as err:
            raise ValueError(f"Uint256 must be a decimal integer string: '{value}'") from err
    else:
        raise ValueError(f"Uint256 must be string or int, got {type(value).__name__}")

    if int_value < 0:
        raise ValueError(f"Uint256 cannot be negative: {value}")
    if int_value > UINT256_MAX:
        raise ValueError(f"Uint256 overflow: {value} > 2^256-1")

    return str(int_value)


# 20-byte hex identifier (assets, pairs and accounts share one namespace)
Address = Annotated[str, Field(pattern=r"^0x[a-fA-F0-9]{40}$")]

# 256-bit unsigned integer as decimal string (validated)
Uint256 = Annotated[
    str,
    BeforeValidator(validate_uint256),
    Field(description="256-bit unsigned integer as decimal string"),
]


def normalize_address(address: str, *, validate: bool = False) -> str:
    """Normalize an address to lowercase with 0x prefix.

    Args:
        address: An address (with or without 0x prefix)
        validate: If True, raises ValueError for malformed addresses

    Returns:
        Lowercase address with 0x prefix
    """
    addr = address.lower()
    if not addr.startswith("0x"):
        addr = "0x" + addr

    if validate and not is_valid_address(addr):
        raise ValueError(f"Invalid address: {address}")

    return addr


def is_valid_address(address: str) -> bool:
    """Check if a string is a well-formed 20-byte hex address."""
    if not isinstance(address, str):
        return False
    if not address.startswith("0x"):
        return False
    if len(address) != 42:
        return False
    try:
        int(address, 16)
        return True
    except ValueError:
        return False


def address_to_bytes(address: str) -> bytes:
    return bytes.fromhex(normalize_address(address)[2:])


def sort_tokens(token_a: str, token_b: str) -> tuple[str, str]:
    """Return two asset identifiers in canonical order (token0 < token1).

    Ordering is lexicographic on the normalized identifier, which for
    fixed-width lowercase hex equals numeric order of the address bytes.

    Raises:
        IdenticalAddresses: If both identifiers are the same asset
        ZeroAddress: If the lower identifier is the zero address
    """
    a = normalize_address(token_a)
    b = normalize_address(token_b)
    if a == b:
        raise IdenticalAddresses(f"Identical assets: {a}")
    token0, token1 = (a, b) if a < b else (b, a)
    if token0 == ZERO_ADDRESS:
        raise ZeroAddress("Asset identifier is the zero address")
    return token0, token1
