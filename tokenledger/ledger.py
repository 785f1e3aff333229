"""
tokenledger.ledger: the operation surface handed to a host.

:class:`Ledger` owns a :class:`~tokenledger.store.LedgerStore` and an
:class:`~tokenledger.events.EventLog` and exposes every ledger operation with
an explicit ``caller`` argument. Callers are trusted: authenticating them is
the host's job.

Each mutator:
  - runs under a re-entrant lock (one operation at a time per Ledger),
  - executes inside ``store.atomic()`` so its writes and its persisted event
    records commit together,
  - appends its events to the in-memory log only after the commit succeeded,
  - returns the event it emitted.

Errors are the :mod:`tokenledger.errors` types, raised unchanged. Rejections
are logged at INFO with the error code.

Typical use::

    ledger = Ledger.create(TokenMetadata("Test", "TST", 18), 1000, alice)
    ledger.transfer(alice, bob, 300)
    ledger.approve(alice, carol, 100)
    ledger.transfer_from(carol, alice, dave, 60)
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Dict, Optional, TypeVar

from . import allowance as _allowance
from . import issuance as _issuance
from . import transfer as _transfer
from .config import LedgerConfig
from .errors import InvariantViolation, LedgerError
from .events import ApprovalEvent, EventLog, TransferEvent, decode_event
from .store import LedgerStore, SQLiteBackend, StorageBackend
from .types import TokenMetadata

log = logging.getLogger(__name__)

T = TypeVar("T")


class Ledger:
    def __init__(self, store: Optional[LedgerStore] = None, config: Optional[LedgerConfig] = None) -> None:
        """
        Wrap `store`, or a fresh memory-backed store built with `config`.
        A given store keeps its own config; passing a different `config`
        alongside it raises ValueError.
        """
        if store is not None and config is not None and config != store.config:
            raise ValueError("config conflicts with the config of the given store")
        self.store = store if store is not None else LedgerStore(config=config)
        self.config = self.store.config
        # Rebuild the log from persisted records so a reopened ledger sees its history.
        self._events = EventLog(decode_event(rec) for rec in self.store.events())
        self._lock = threading.RLock()

    # --- construction ---

    @classmethod
    def create(
        cls,
        metadata: TokenMetadata,
        initial_supply: int,
        initial_holder: bytes,
        *,
        owner: Optional[bytes] = None,
        backend: Optional[StorageBackend] = None,
        config: Optional[LedgerConfig] = None,
    ) -> "Ledger":
        ledger = cls(LedgerStore(backend, config))
        ledger.initialize(metadata, initial_supply, initial_holder, owner=owner)
        return ledger

    @classmethod
    def open(cls, path: str, config: Optional[LedgerConfig] = None) -> "Ledger":
        """Open (or create) a SQLite-backed ledger at `path`."""
        return cls(LedgerStore(SQLiteBackend(path), config))

    def close(self) -> None:
        close = getattr(self.store.backend, "close", None)
        if callable(close):
            close()

    # --- plumbing ---

    def _run(self, op: str, fn: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        with self._lock:
            staged = EventLog()
            try:
                with self.store.atomic():
                    result = fn(self.store, staged, *args, **kwargs)
            except LedgerError as e:
                log.info("%s rejected: %s", op, e.code)
                raise
            for ev in staged:
                self._events.append(ev)
            return result

    # --- views ---

    @property
    def events(self) -> EventLog:
        return self._events

    def name(self) -> str:
        return self.store.name()

    def symbol(self) -> str:
        return self.store.symbol()

    def decimals(self) -> int:
        return self.store.decimals()

    def metadata(self) -> TokenMetadata:
        return self.store.metadata()

    def total_supply(self) -> int:
        return self.store.total_supply()

    def balance_of(self, acct: bytes) -> int:
        return self.store.balance_of(bytes(acct))

    def allowance(self, owner: bytes, spender: bytes) -> int:
        return self.store.allowance(bytes(owner), bytes(spender))

    def owner(self) -> bytes:
        return self.store.owner()

    def is_initialized(self) -> bool:
        return self.store.is_initialized()

    def holders(self) -> Dict[bytes, int]:
        """Accounts with a non-zero balance."""
        return {acct: bal for acct, bal in self.store.balances() if bal}

    def check_invariants(self) -> None:
        """Raise InvariantViolation unless sum(balances) == total_supply."""
        total = self.store.total_supply()
        summed = sum(bal for _, bal in self.store.balances())
        if summed != total:
            raise InvariantViolation(
                "sum of balances differs from total supply",
                details={"sum_balances": str(summed), "total_supply": str(total)},
            )

    # --- issuance ---

    def initialize(
        self,
        metadata: TokenMetadata,
        initial_supply: int,
        initial_holder: bytes,
        *,
        owner: Optional[bytes] = None,
    ) -> TransferEvent:
        return self._run(
            "initialize", _issuance.initialize, metadata, initial_supply, initial_holder, owner
        )

    def mint(self, caller: bytes, recipient: bytes, amount: int) -> TransferEvent:
        return self._run("mint", _issuance.mint, caller, recipient, amount)

    def burn(self, caller: bytes, amount: int) -> TransferEvent:
        return self._run("burn", _issuance.burn, caller, amount)

    def burn_from(self, caller: bytes, owner: bytes, amount: int) -> TransferEvent:
        return self._run("burn_from", _issuance.burn_from, caller, owner, amount)

    # --- transfers ---

    def transfer(self, caller: bytes, recipient: bytes, amount: int) -> TransferEvent:
        return self._run("transfer", _transfer.transfer, caller, recipient, amount)

    def transfer_from(self, caller: bytes, owner: bytes, recipient: bytes, amount: int) -> TransferEvent:
        return self._run("transfer_from", _transfer.transfer_from, caller, owner, recipient, amount)

    # --- allowances ---

    def approve(self, caller: bytes, spender: bytes, amount: int) -> ApprovalEvent:
        return self._run("approve", _allowance.approve, caller, spender, amount)

    def increase_allowance(self, caller: bytes, spender: bytes, delta: int) -> ApprovalEvent:
        return self._run("increase_allowance", _allowance.increase_allowance, caller, spender, delta)

    def decrease_allowance(self, caller: bytes, spender: bytes, delta: int) -> ApprovalEvent:
        return self._run("decrease_allowance", _allowance.decrease_allowance, caller, spender, delta)


__all__ = ["Ledger"]
