"""Error taxonomy for the AMM engine.

Every failure is an exception deriving from AMMError and carries a stable
``code`` string. Raising any of them inside ``Chain.atomic()`` unwinds every
effect of the enclosing operation.
"""

from __future__ import annotations


class AMMError(Exception):
    """Base class for all AMM failures."""

    code: str = "AMM_ERROR"

    def __init__(self, detail: str | None = None) -> None:
        self.detail = detail or self.code
        super().__init__(self.detail)


# --- Arithmetic ---


class SafeIntError(AMMError, ArithmeticError):
    """Base class for checked arithmetic errors."""

    code = "ARITHMETIC"


class DivisionByZero(SafeIntError):
    """Division or modulo by zero."""

    code = "DIVISION_BY_ZERO"


class Underflow(SafeIntError):
    """Subtraction would produce a negative result."""

    code = "UNDERFLOW"


class Overflow(SafeIntError):
    """Value exceeds the fixed bit-width of its storage slot."""

    code = "OVERFLOW"


# --- Pair engine ---


class InsufficientLiquidityMinted(AMMError):
    """Computed claim-token issuance is not positive."""

    code = "INSUFFICIENT_LIQUIDITY_MINTED"


class InsufficientLiquidityBurned(AMMError):
    """A burn would return zero of one of the assets."""

    code = "INSUFFICIENT_LIQUIDITY_BURNED"


class InsufficientLiquidity(AMMError):
    """Requested output is not strictly below the reserve."""

    code = "INSUFFICIENT_LIQUIDITY"


class InsufficientInputAmount(AMMError):
    """No positive input was observed on either side of a swap."""

    code = "INSUFFICIENT_INPUT_AMOUNT"


class InsufficientOutputAmount(AMMError):
    """A swap requested no output, or a route yields less than the minimum."""

    code = "INSUFFICIENT_OUTPUT_AMOUNT"


class InvariantViolation(AMMError):
    """Fee-adjusted product of balances fell below the product of reserves."""

    code = "K"


class InvalidRecipient(AMMError):
    """Swap target is one of the pair's own assets."""

    code = "INVALID_TO"


class Reentrancy(AMMError):
    """A reserve-mutating operation was re-entered while locked."""

    code = "LOCKED"


class Forbidden(AMMError):
    """Caller is not allowed to perform this operation."""

    code = "FORBIDDEN"


# --- Registry ---


class IdenticalAddresses(AMMError):
    code = "IDENTICAL_ADDRESSES"


class ZeroAddress(AMMError):
    code = "ZERO_ADDRESS"


class PairExists(AMMError):
    code = "PAIR_EXISTS"


class PairNotFound(AMMError):
    code = "PAIR_NOT_FOUND"


# --- Asset ledgers ---


class TransferFailed(AMMError):
    """An asset ledger refused a transfer."""

    code = "TRANSFER_FAILED"


class InsufficientBalance(AMMError):
    code = "INSUFFICIENT_BALANCE"


class InsufficientAllowance(AMMError):
    code = "INSUFFICIENT_ALLOWANCE"


class InvalidSignature(AMMError):
    code = "INVALID_SIGNATURE"


# --- Router ---


class Expired(AMMError):
    """Caller-specified deadline has passed."""

    code = "EXPIRED"


class InvalidPath(AMMError):
    code = "INVALID_PATH"


class InsufficientAAmount(AMMError):
    code = "INSUFFICIENT_A_AMOUNT"


class InsufficientBAmount(AMMError):
    code = "INSUFFICIENT_B_AMOUNT"


class ExcessiveInputAmount(AMMError):
    code = "EXCESSIVE_INPUT_AMOUNT"


# --- Oracle ---


class PeriodNotElapsed(AMMError):
    code = "PERIOD_NOT_ELAPSED"


# --- Execution environment ---


class OutOfGas(AMMError):
    """The transaction exhausted its cost budget."""

    code = "OUT_OF_GAS"


__all__ = [
    "AMMError",
    "SafeIntError",
    "DivisionByZero",
    "Underflow",
    "Overflow",
    "InsufficientLiquidityMinted",
    "InsufficientLiquidityBurned",
    "InsufficientLiquidity",
    "InsufficientInputAmount",
    "InsufficientOutputAmount",
    "InvariantViolation",
    "InvalidRecipient",
    "Reentrancy",
    "Forbidden",
    "IdenticalAddresses",
    "ZeroAddress",
    "PairExists",
    "PairNotFound",
    "TransferFailed",
    "InsufficientBalance",
    "InsufficientAllowance",
    "InvalidSignature",
    "Expired",
    "InvalidPath",
    "InsufficientAAmount",
    "InsufficientBAmount",
    "ExcessiveInputAmount",
    "PeriodNotElapsed",
    "OutOfGas",
]
