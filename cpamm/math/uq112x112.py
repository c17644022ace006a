"""UQ112x112 binary fixed-point numbers.

A UQ112x112 value is an unsigned integer scaled by 2**112: 112 integer bits
and 112 fractional bits, 224 bits in total. Pair prices are stored in this
format before being multiplied by elapsed time into the accumulators.

Range: [0, 2**112 - 1]
Resolution: 1 / 2**112
"""

from __future__ import annotations

from cpamm.constants import Q112
from cpamm.safe_int import S

__all__ = ["Q112", "encode", "uqdiv", "mul", "decode", "decode144", "to_float"]


def encode(y: int) -> int:
    """Encode a uint112 as a UQ112x112.

    Raises:
        Overflow: If y does not fit in 112 bits
    """
    return (S(S(y).to_uint112()) * Q112).to_uint(224)


def uqdiv(x: int, y: int) -> int:
    """Divide a UQ112x112 by a uint112, returning a UQ112x112.

    Truncates toward zero.

    Raises:
        DivisionByZero: If y is zero
    """
    return (S(x) // S(S(y).to_uint112())).to_uint(224)


def mul(x: int, y: int) -> int:
    """Multiply a UQ112x112 by a uint, returning a UQ144x112.

    Raises:
        Overflow: If the product does not fit in 256 bits
    """
    return (S(x) * S(y)).to_uint256()


def decode(x: int) -> int:
    """Integer part of a UQ112x112, rounded down."""
    return x >> 112


def decode144(x: int) -> int:
    """Integer part of a UQ144x112, rounded down."""
    return x >> 112


def to_float(x: int) -> float:
    """Approximate value for display only, never for arithmetic."""
    return x / Q112
