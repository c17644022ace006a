"""In-process execution environment.

A Chain hosts every deployed contract, the native-asset balances, the block
timestamp and the event log. It provides the transactional scope that makes
each operation all-or-nothing:

    with chain.atomic():
        token.transfer(alice, pair.address, amount)
        pair.mint(alice)

Contracts call ``self._touch()`` before mutating their scalar state. The
first touch inside a scope journals a deep copy of those fields. Balance-like
mappings are written through ``self._set_entry()``, which journals only the
old value of the key being written, and native balances are journaled the
same way. If the scope exits with an exception, every journaled value is
restored, deployments and the address nonce are restored, and events emitted
inside the scope are dropped. Nested scopes are savepoints: an inner
failure caught by the caller only unwinds the inner scope.
"""

from __future__ import annotations

import copy
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, ClassVar, TypeVar

import structlog

from cpamm.addressing import contract_address
from cpamm.config import DEFAULT_CONFIG, AMMConfig
from cpamm.constants import UINT32_MODULUS, ZERO_ADDRESS
from cpamm.errors import InsufficientBalance, OutOfGas, ZeroAddress
from cpamm.models.events import Event
from cpamm.models.types import normalize_address
from cpamm.safe_int import S

logger = structlog.get_logger()

E = TypeVar("E", bound=Event)


class Contract:
    """Base class for stateful objects deployed on a Chain.

    Every instance attribute not listed in ``_immutable_fields`` is treated as
    journaled state and restored on rollback. Mappings listed in
    ``_keyed_fields`` are journaled one key at a time through ``_set_entry``,
    so rollback cost follows the writes made, not the size of the mapping.
    """

    _immutable_fields: ClassVar[frozenset[str]] = frozenset({"chain", "address"})
    _keyed_fields: ClassVar[frozenset[str]] = frozenset()

    def __init__(self, chain: Chain, address: str | None = None) -> None:
        self.chain = chain
        self.address = chain.register(self, address)

    def _touch(self) -> None:
        """Journal this contract's state before the first mutation in a scope."""
        self.chain.journal(self)

    def _set_entry(self, name: str, key: Any, value: Any) -> None:
        """Write one entry of a keyed mapping, journaling its previous value."""
        self.chain.journal_entry(self, name, key)
        getattr(self, name)[key] = value

    def _snapshot_fields(self) -> list[str]:
        skipped = self._immutable_fields | self._keyed_fields
        return [k for k in vars(self) if k not in skipped]

    def snapshot(self) -> dict[str, Any]:
        return copy.deepcopy({k: vars(self)[k] for k in self._snapshot_fields()})

    def restore(self, state: dict[str, Any]) -> None:
        for key in self._snapshot_fields():
            if key not in state:
                delattr(self, key)
        vars(self).update(copy.deepcopy(state))

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.address})"


# Marks a mapping key that did not exist when it was first written in a scope
_MISSING = object()


@dataclass
class _Scope:
    """One level of the savepoint stack."""

    contracts: dict[str, Contract]
    nonce: int
    events_mark: int
    journal: dict[int, tuple[Contract, dict[str, Any]]] = field(default_factory=dict)
    entries: dict[tuple[int, str, Any], tuple[Contract, Any]] = field(default_factory=dict)
    native: dict[str, Any] = field(default_factory=dict)


class Chain:
    """Execution environment for contracts.

    Args:
        config: Engine configuration shared by every deployed pair
        timestamp: Initial block timestamp (seconds)
    """

    def __init__(self, config: AMMConfig = DEFAULT_CONFIG, timestamp: int = 1) -> None:
        self.config = config
        self._timestamp = timestamp
        self._contracts: dict[str, Contract] = {}
        self._native: dict[str, int] = {}
        self._nonce = 0
        self._events: list[Event] = []
        self._scopes: list[_Scope] = []
        self._gas_limit = config.gas_limit
        self._gas_used = 0

    # --- Time ---

    @property
    def timestamp(self) -> int:
        """Current block timestamp in seconds."""
        return self._timestamp

    @property
    def block_timestamp_32(self) -> int:
        """Block timestamp truncated to 32 bits, as stored by pairs."""
        return self._timestamp % UINT32_MODULUS

    def advance_time(self, seconds: int) -> int:
        if seconds < 0:
            raise ValueError(f"Cannot move time backwards: {seconds}")
        self._timestamp += seconds
        return self._timestamp

    def set_timestamp(self, timestamp: int) -> None:
        if timestamp < 0:
            raise ValueError(f"Timestamp must be non-negative: {timestamp}")
        self._timestamp = timestamp

    # --- Deployment ---

    def register(self, contract: Contract, address: str | None = None) -> str:
        """Deploy a contract at ``address``, or at the next derived address."""
        if address is None:
            address = contract_address(ZERO_ADDRESS, self._nonce)
            self._nonce += 1
        address = normalize_address(address, validate=True)
        if address in self._contracts:
            raise ValueError(f"Address already in use: {address}")
        self._contracts[address] = contract
        return address

    def get_contract(self, address: str) -> Contract | None:
        return self._contracts.get(normalize_address(address))

    def contract_at(self, address: str, kind: type[Any] = Contract) -> Any:
        """Resolve a deployed contract, checking its type.

        Raises:
            LookupError: If nothing of that type is deployed there
        """
        contract = self.get_contract(address)
        if not isinstance(contract, kind):
            raise LookupError(f"No {kind.__name__} deployed at {address}")
        return contract

    # --- Native asset ---

    def native_balance(self, account: str) -> int:
        return self._native.get(normalize_address(account), 0)

    def fund(self, account: str, amount: int) -> None:
        """Credit native balance out of thin air (genesis allocation)."""
        amount = S(amount).to_uint256()
        account = normalize_address(account)
        self._set_native(account, (S(self.native_balance(account)) + amount).to_uint256())

    def transfer_native(self, sender: str, to: str, amount: int) -> None:
        """Move native balance between accounts.

        Raises:
            InsufficientBalance: If ``sender`` holds less than ``amount``
            Overflow: If ``amount`` is negative
        """
        amount = S(amount).to_uint256()
        sender = normalize_address(sender)
        to = normalize_address(to)
        if to == ZERO_ADDRESS:
            raise ZeroAddress("Native transfer to the zero address")
        balance = self.native_balance(sender)
        if balance < amount:
            raise InsufficientBalance(f"Native balance {balance} < {amount}")
        self._set_native(sender, balance - amount)
        self._set_native(to, self.native_balance(to) + amount)

    def _set_native(self, account: str, value: int) -> None:
        if self._scopes:
            self._scopes[-1].native.setdefault(account, self._native.get(account, _MISSING))
        self._native[account] = value

    # --- Events ---

    def emit(self, event: Event) -> None:
        self._events.append(event)

    @property
    def events(self) -> list[Event]:
        return list(self._events)

    def events_of(self, kind: type[E], emitter: str | None = None) -> list[E]:
        """Return logged events of one type, optionally from one emitter."""
        return [
            e
            for e in self._events
            if isinstance(e, kind) and (emitter is None or e.emitter == emitter)
        ]

    # --- Cost meter ---

    @property
    def gas_used(self) -> int:
        """Cost units consumed by the current (or last) outermost transaction."""
        return self._gas_used

    def charge(self, units: int) -> None:
        """Consume cost units from the current transaction's budget.

        Raises:
            OutOfGas: If the budget is exceeded
        """
        if not self._scopes:
            return
        self._gas_used += units
        if self._gas_used > self._gas_limit:
            raise OutOfGas(f"Gas limit {self._gas_limit} exceeded ({self._gas_used})")

    # --- Transactions ---

    @property
    def in_transaction(self) -> bool:
        return bool(self._scopes)

    def journal(self, contract: Contract) -> None:
        """Record ``contract``'s state in the innermost scope, once per scope.

        Raises:
            RuntimeError: If called outside any atomic scope
        """
        if not self._scopes:
            raise RuntimeError(f"State of {contract!r} mutated outside chain.atomic()")
        scope = self._scopes[-1]
        if id(contract) not in scope.journal:
            scope.journal[id(contract)] = (contract, contract.snapshot())

    def journal_entry(self, contract: Contract, name: str, key: Any) -> None:
        """Record the current value of one mapping entry, once per scope.

        Raises:
            RuntimeError: If called outside any atomic scope
        """
        if not self._scopes:
            raise RuntimeError(f"State of {contract!r} mutated outside chain.atomic()")
        mapping = getattr(contract, name)
        self._scopes[-1].entries.setdefault(
            (id(contract), name, key), (contract, mapping.get(key, _MISSING))
        )

    @contextmanager
    def atomic(self, gas_limit: int | None = None) -> Iterator[Chain]:
        """Run a block all-or-nothing.

        The outermost scope is a transaction: it resets the cost meter to
        ``gas_limit`` (default from config). Inner scopes are savepoints.
        """
        outermost = not self._scopes
        if outermost:
            self._gas_limit = gas_limit if gas_limit is not None else self.config.gas_limit
            self._gas_used = 0
        scope = _Scope(
            contracts=dict(self._contracts),
            nonce=self._nonce,
            events_mark=len(self._events),
        )
        self._scopes.append(scope)
        try:
            yield self
        except BaseException as err:
            self._scopes.pop()
            self._rollback(scope)
            if outermost:
                logger.debug(
                    "transaction_reverted",
                    error=type(err).__name__,
                    detail=str(err),
                    gas_used=self._gas_used,
                )
            raise
        else:
            self._scopes.pop()
            if self._scopes:
                parent = self._scopes[-1]
                for key, entry in scope.journal.items():
                    parent.journal.setdefault(key, entry)
                for key, entry in scope.entries.items():
                    parent.entries.setdefault(key, entry)
                for account, old in scope.native.items():
                    parent.native.setdefault(account, old)

    def _rollback(self, scope: _Scope) -> None:
        for contract, state in scope.journal.values():
            contract.restore(state)
        self._contracts = scope.contracts
        for (_, name, key), (contract, old) in scope.entries.items():
            _restore_entry(getattr(contract, name), key, old)
        for account, old in scope.native.items():
            _restore_entry(self._native, account, old)
        self._nonce = scope.nonce
        del self._events[scope.events_mark :]


def _restore_entry(mapping: dict[Any, Any], key: Any, old: Any) -> None:
    if old is _MISSING:
        mapping.pop(key, None)
    else:
        mapping[key] = old


__all__ = ["Chain", "Contract"]
