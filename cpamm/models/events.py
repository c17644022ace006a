"""Event records emitted by contracts for external observers.

Events are not required for core correctness. They are appended to the
chain's log and discarded together with every other effect when the
enclosing atomic scope fails.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class Event:
    """Base record; ``emitter`` is the address of the contract that logged it."""

    emitter: str


@dataclass(frozen=True)
class Transfer(Event):
    sender: str
    to: str
    value: int


@dataclass(frozen=True)
class Approval(Event):
    owner: str
    spender: str
    value: int


@dataclass(frozen=True)
class Mint(Event):
    """Deposit into a pair."""

    sender: str
    amount0: int
    amount1: int


@dataclass(frozen=True)
class Burn(Event):
    """Withdrawal from a pair."""

    sender: str
    amount0: int
    amount1: int
    to: str


@dataclass(frozen=True)
class Swap(Event):
    sender: str
    amount0_in: int
    amount1_in: int
    amount0_out: int
    amount1_out: int
    to: str


@dataclass(frozen=True)
class Sync(Event):
    reserve0: int
    reserve1: int


@dataclass(frozen=True)
class PairCreated(Event):
    token0: str
    token1: str
    pair: str
    index: int


@dataclass(frozen=True)
class Deposit(Event):
    """Native asset wrapped."""

    dst: str
    value: int


@dataclass(frozen=True)
class Withdrawal(Event):
    """Native asset unwrapped."""

    src: str
    value: int


__all__ = [
    "Event",
    "Transfer",
    "Approval",
    "Mint",
    "Burn",
    "Swap",
    "Sync",
    "PairCreated",
    "Deposit",
    "Withdrawal",
]
