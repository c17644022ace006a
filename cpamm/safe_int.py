"""Safe integer wrapper for arithmetic on reserves, balances and supplies.

This module provides SafeInt, a lightweight wrapper that makes arithmetic
operations safe by default:
- Division by zero raises DivisionByZero
- Subtraction underflow raises Underflow
- Fixed-width storage overflow is caught on conversion (to_uint)

Price accumulators are the one place where overflow is part of the design;
they use wrapping_add/wrapping_sub instead of the checked operators.

Usage pattern:
    from cpamm.safe_int import S

    def share(amount: int, supply: int, reserve: int) -> int:
        # Wrap at entry
        result = S(amount) * S(supply) // S(reserve)  # Raises if reserve == 0
        # Unwrap at exit, checking the storage width
        return result.to_uint(256)
"""

from __future__ import annotations

from math import isqrt

from cpamm.constants import UINT112_MAX, UINT256_MAX
from cpamm.errors import DivisionByZero, Overflow, SafeIntError, Underflow


class SafeInt:
    """Integer with safe arithmetic operations.

    Wraps an integer and provides arithmetic operators that raise
    descriptive errors instead of producing invalid results:
    - Division by zero raises DivisionByZero
    - Negative results from subtraction raise Underflow
    - Values exceeding a storage width raise Overflow on to_uint()

    Attributes:
        value: The underlying integer value (read-only)
    """

    __slots__ = ("_value",)
    _value: int

    def __init__(self, value: int | SafeInt) -> None:
        if isinstance(value, SafeInt):
            self._value = value._value
        elif isinstance(value, int) and not isinstance(value, bool):
            self._value = value
        else:
            raise TypeError(f"SafeInt requires int, got {type(value).__name__}")

    @property
    def value(self) -> int:
        """The underlying integer value."""
        return self._value

    def __repr__(self) -> str:
        return f"SafeInt({self._value})"

    def __str__(self) -> str:
        return str(self._value)

    def __hash__(self) -> int:
        return hash(self._value)

    # --- Arithmetic operations ---

    def __add__(self, other: SafeInt | int) -> SafeInt:
        return SafeInt(self._value + _extract_value(other))

    def __radd__(self, other: int) -> SafeInt:
        return SafeInt(other + self._value)

    def __sub__(self, other: SafeInt | int) -> SafeInt:
        """Subtract other from self.

        Raises:
            Underflow: If result would be negative
        """
        other_val = _extract_value(other)
        result = self._value - other_val
        if result < 0:
            raise Underflow(f"Underflow: {self._value} - {other_val} = {result}")
        return SafeInt(result)

    def __rsub__(self, other: int) -> SafeInt:
        result = other - self._value
        if result < 0:
            raise Underflow(f"Underflow: {other} - {self._value} = {result}")
        return SafeInt(result)

    def __mul__(self, other: SafeInt | int) -> SafeInt:
        return SafeInt(self._value * _extract_value(other))

    def __rmul__(self, other: int) -> SafeInt:
        return SafeInt(other * self._value)

    def __floordiv__(self, other: SafeInt | int) -> SafeInt:
        """Integer division, truncating toward zero for non-negative operands.

        Raises:
            DivisionByZero: If other is zero
        """
        other_val = _extract_value(other)
        if other_val == 0:
            raise DivisionByZero(f"Division by zero: {self._value} // 0")
        return SafeInt(self._value // other_val)

    def __rfloordiv__(self, other: int) -> SafeInt:
        if self._value == 0:
            raise DivisionByZero(f"Division by zero: {other} // 0")
        return SafeInt(other // self._value)

    # --- Comparison operations ---

    def __eq__(self, other: object) -> bool:
        if isinstance(other, SafeInt):
            return self._value == other._value
        if isinstance(other, int):
            return self._value == other
        return NotImplemented

    def __lt__(self, other: SafeInt | int) -> bool:
        return self._value < _extract_value(other)

    def __le__(self, other: SafeInt | int) -> bool:
        return self._value <= _extract_value(other)

    def __gt__(self, other: SafeInt | int) -> bool:
        return self._value > _extract_value(other)

    def __ge__(self, other: SafeInt | int) -> bool:
        return self._value >= _extract_value(other)

    # --- Conversion ---

    def __int__(self) -> int:
        return self._value

    def __bool__(self) -> bool:
        return self._value != 0

    def __index__(self) -> int:
        return self._value

    # --- Named operations ---

    def min(self, other: SafeInt | int) -> SafeInt:
        """Return minimum of self and other."""
        return SafeInt(min(self._value, _extract_value(other)))

    def isqrt(self) -> SafeInt:
        """Integer square root, rounded down.

        Raises:
            Underflow: If the value is negative
        """
        if self._value < 0:
            raise Underflow(f"Square root of negative value: {self._value}")
        return SafeInt(isqrt(self._value))

    def wrapping_add(self, other: SafeInt | int, bits: int = 256) -> SafeInt:
        """Add modulo 2**bits. Used for the price accumulators only."""
        return SafeInt((self._value + _extract_value(other)) % (1 << bits))

    def wrapping_sub(self, other: SafeInt | int, bits: int = 256) -> SafeInt:
        """Subtract modulo 2**bits.

        The difference of two wrapped readings is exact as long as the true
        difference fits the width, which is why accumulator wraparound is safe.
        """
        return SafeInt((self._value - _extract_value(other)) % (1 << bits))

    def to_uint(self, bits: int = 256) -> int:
        """Convert to int, validating unsigned bounds for a storage width.

        Raises:
            Overflow: If value is negative or does not fit in ``bits`` bits
        """
        if self._value < 0:
            raise Overflow(f"Negative value cannot be uint{bits}: {self._value}")
        if self._value >= 1 << bits:
            raise Overflow(f"Value exceeds uint{bits} max: {self._value}")
        return self._value

    def to_uint112(self) -> int:
        return self.to_uint(112)

    def to_uint256(self) -> int:
        return self.to_uint(256)

    def fits(self, bits: int) -> bool:
        """Check if value fits in an unsigned width without raising."""
        return 0 <= self._value < 1 << bits

    @classmethod
    def zero(cls) -> SafeInt:
        return cls(0)


def _extract_value(x: SafeInt | int) -> int:
    """Extract integer value from SafeInt or int."""
    if isinstance(x, SafeInt):
        return x._value
    return x


# Convenience alias for concise code
S = SafeInt

__all__ = [
    "SafeInt",
    "S",
    "SafeIntError",
    "DivisionByZero",
    "Underflow",
    "Overflow",
    "UINT112_MAX",
    "UINT256_MAX",
]
