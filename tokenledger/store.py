"""
tokenledger.store: durable key/value storage for ledger state.

The store holds no policy: every read returns a default (zero /
empty) for unknown keys and every write sets an exact value. Business rules
live in :mod:`tokenledger.guard` and the operation modules.

Design goals
------------
- Deterministic layout: prefixed byte keys, amounts as 32-byte big-endian words.
- Pluggable: a small backend protocol so the host can swap in its own state DB.
- Simple defaults: an in-process memory backend and a SQLite backend.
- One operation, one unit of work: ``atomic()`` groups the writes of a single
  mutator; a failure inside it leaves the backend as it was.

Layout
------
  tok:meta:name | tok:meta:symbol | tok:meta:dec     token metadata
  tok:meta:total                                     total supply (u256)
  tok:meta:owner                                     supply owner (account)
  tok:meta:inited                                    presence flag
  tok:meta:evtn                                      number of persisted events
  tok:bal:   || <acct>                               balance (u256)
  tok:allow: || len(owner) || <owner> || <spender>   allowance (u256)
  tok:evt:   || seq (8 bytes, big-endian)            canonical event record
"""

from __future__ import annotations

import logging
import sqlite3
import threading
from contextlib import contextmanager
from typing import (Any, Dict, Final, Iterator, List, Optional, Protocol, Sequence,
                    Tuple, runtime_checkable)

from .config import LedgerConfig, load_config
from .safe_uint import from_word, to_word
from .types import TokenMetadata

log = logging.getLogger(__name__)

# ------------------------------------------------------------------------------
# Storage keys
# ------------------------------------------------------------------------------

K_NAME: Final[bytes] = b"tok:meta:name"
K_SYMBOL: Final[bytes] = b"tok:meta:symbol"
K_DECIMALS: Final[bytes] = b"tok:meta:dec"
K_TOTAL: Final[bytes] = b"tok:meta:total"
K_OWNER: Final[bytes] = b"tok:meta:owner"
K_INIT: Final[bytes] = b"tok:meta:inited"
K_EVT_COUNT: Final[bytes] = b"tok:meta:evtn"

BAL_PREFIX: Final[bytes] = b"tok:bal:"
ALLOW_PREFIX: Final[bytes] = b"tok:allow:"
EVT_PREFIX: Final[bytes] = b"tok:evt:"


def key_balance(acct: bytes) -> bytes:
    return BAL_PREFIX + bytes(acct)


def key_allow(owner: bytes, spender: bytes) -> bytes:
    # Length-prefix the owner so (owner, spender) pairs never share a key.
    return ALLOW_PREFIX + bytes([len(owner)]) + bytes(owner) + bytes(spender)


def split_allow_key(key: bytes) -> Tuple[bytes, bytes]:
    body = key[len(ALLOW_PREFIX):]
    n = body[0]
    return body[1:1 + n], body[1 + n:]


def key_event(seq: int) -> bytes:
    return EVT_PREFIX + int(seq).to_bytes(8, "big")


# ---------------------------- Backend API ---------------------------- #


@runtime_checkable
class StorageBackend(Protocol):
    """Minimal backend interface for ledger storage."""

    def get(self, key: bytes) -> Optional[bytes]: ...
    def set(self, key: bytes, value: bytes) -> None: ...
    def exists(self, key: bytes) -> bool: ...
    def scan(self, prefix: bytes) -> Iterator[Tuple[bytes, bytes]]: ...
    def atomic(self) -> Any: ...


class MemoryBackend:
    """Thread-safe in-memory backend for local runs and tests."""

    def __init__(self) -> None:
        self._store: Dict[bytes, bytes] = {}
        self._lock = threading.RLock()
        # Undo journal for the outermost atomic() block: key -> previous value.
        self._undo: Optional[Dict[bytes, Optional[bytes]]] = None
        self._depth = 0

    def _remember(self, key: bytes) -> None:
        if self._undo is not None and key not in self._undo:
            self._undo[key] = self._store.get(key)

    def get(self, key: bytes) -> Optional[bytes]:
        with self._lock:
            return self._store.get(key)

    def set(self, key: bytes, value: bytes) -> None:
        with self._lock:
            self._remember(key)
            self._store[key] = value

    def exists(self, key: bytes) -> bool:
        with self._lock:
            return key in self._store

    def scan(self, prefix: bytes) -> Iterator[Tuple[bytes, bytes]]:
        with self._lock:
            items = sorted((k, v) for k, v in self._store.items() if k.startswith(prefix))
        return iter(items)

    @contextmanager
    def atomic(self) -> Iterator[None]:
        with self._lock:
            outermost = self._depth == 0
            if outermost:
                self._undo = {}
            self._depth += 1
            try:
                yield
            except BaseException:
                if outermost and self._undo is not None:
                    for k, old in self._undo.items():
                        if old is None:
                            self._store.pop(k, None)
                        else:
                            self._store[k] = old
                raise
            finally:
                self._depth -= 1
                if outermost:
                    self._undo = None

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)


def _prefix_upper(prefix: bytes) -> Optional[bytes]:
    """Smallest key greater than every key starting with `prefix` (None if unbounded)."""
    p = bytearray(prefix)
    while p:
        if p[-1] < 0xFF:
            p[-1] += 1
            return bytes(p)
        p.pop()
    return None


class SQLiteBackend:
    """
    SQLite-backed implementation.

    Parameters
    ----------
    path : str
        SQLite database file path. Use ':memory:' for in-memory (tests).
    pragmas : Sequence[Tuple[str, Any]]
        Extra PRAGMAs. WAL and sensible defaults are applied automatically.
    """

    def __init__(self, path: str, pragmas: Optional[Sequence[Tuple[str, Any]]] = None) -> None:
        self.path = path
        self._conn = sqlite3.connect(
            path,
            isolation_level=None,  # autocommit; atomic() manages BEGIN IMMEDIATE
            check_same_thread=False,
        )
        self._lock = threading.RLock()
        self._depth = 0
        self._apply_pragmas(pragmas)
        self._migrate()
        log.debug("sqlite ledger store opened at %s", path)

    def _apply_pragmas(self, pragmas: Optional[Sequence[Tuple[str, Any]]]) -> None:
        cur = self._conn.cursor()
        defaults: Sequence[Tuple[str, Any]] = (
            ("journal_mode", "WAL"),
            ("synchronous", "NORMAL"),
            ("temp_store", "MEMORY"),
        )
        for name, val in defaults:
            cur.execute(f"PRAGMA {name} = {val}")
        if pragmas:
            for name, val in pragmas:
                cur.execute(f"PRAGMA {name} = {val}")

    def _migrate(self) -> None:
        self._conn.execute(
            "CREATE TABLE IF NOT EXISTS kv (key BLOB PRIMARY KEY, value BLOB NOT NULL) WITHOUT ROWID"
        )

    def get(self, key: bytes) -> Optional[bytes]:
        with self._lock:
            row = self._conn.execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
        return bytes(row[0]) if row else None

    def set(self, key: bytes, value: bytes) -> None:
        with self._lock:
            self._conn.execute(
                "INSERT INTO kv(key, value) VALUES(?, ?) "
                "ON CONFLICT(key) DO UPDATE SET value = excluded.value",
                (key, value),
            )

    def exists(self, key: bytes) -> bool:
        with self._lock:
            row = self._conn.execute("SELECT 1 FROM kv WHERE key = ?", (key,)).fetchone()
        return row is not None

    def scan(self, prefix: bytes) -> Iterator[Tuple[bytes, bytes]]:
        upper = _prefix_upper(prefix)
        with self._lock:
            if upper is None:
                rows = self._conn.execute(
                    "SELECT key, value FROM kv WHERE key >= ? ORDER BY key", (prefix,)
                ).fetchall()
            else:
                rows = self._conn.execute(
                    "SELECT key, value FROM kv WHERE key >= ? AND key < ? ORDER BY key",
                    (prefix, upper),
                ).fetchall()
        return iter([(bytes(k), bytes(v)) for k, v in rows])

    @contextmanager
    def atomic(self) -> Iterator[None]:
        with self._lock:
            outermost = self._depth == 0
            if outermost:
                self._conn.execute("BEGIN IMMEDIATE")
            self._depth += 1
            try:
                yield
            except BaseException:
                self._depth -= 1
                if outermost:
                    self._conn.execute("ROLLBACK")
                    log.debug("sqlite ledger store: rolled back")
                raise
            else:
                self._depth -= 1
                if outermost:
                    self._conn.execute("COMMIT")

    def close(self) -> None:
        with self._lock:
            self._conn.close()


# ------------------------------ Ledger store ------------------------------ #


class LedgerStore:
    """
    Typed accessors over a :class:`StorageBackend`.

    Reads never fail and return zero/empty defaults; writes set exact values.
    """

    def __init__(
        self,
        backend: Optional[StorageBackend] = None,
        config: Optional[LedgerConfig] = None,
    ) -> None:
        self.backend: StorageBackend = backend if backend is not None else MemoryBackend()
        self.config: LedgerConfig = config or load_config()

    def atomic(self) -> Any:
        return self.backend.atomic()

    # --- u256 <-> storage ---

    def _get_u256(self, k: bytes) -> int:
        return from_word(self.backend.get(k))

    def _set_u256(self, k: bytes, n: int) -> None:
        self.backend.set(k, to_word(n))

    def _get_text(self, k: bytes) -> str:
        v = self.backend.get(k)
        return v.decode("utf-8") if v else ""

    # --- metadata (reads) ---

    def name(self) -> str:
        return self._get_text(K_NAME)

    def symbol(self) -> str:
        return self._get_text(K_SYMBOL)

    def decimals(self) -> int:
        return self._get_u256(K_DECIMALS)

    def metadata(self) -> TokenMetadata:
        return TokenMetadata(name=self.name(), symbol=self.symbol(), decimals=self.decimals())

    def total_supply(self) -> int:
        return self._get_u256(K_TOTAL)

    def owner(self) -> bytes:
        return self.backend.get(K_OWNER) or b""

    def is_initialized(self) -> bool:
        return self.backend.exists(K_INIT)

    # --- balances / allowances (reads) ---

    def _writable(self, *accts: bytes) -> bool:
        return all(len(a) <= self.config.max_account_bytes for a in accts)

    def balance_of(self, acct: bytes) -> int:
        # Ids wider than max_account_bytes can never have been written.
        if not self._writable(acct):
            return 0
        return self._get_u256(key_balance(acct))

    def allowance(self, owner: bytes, spender: bytes) -> int:
        if not self._writable(owner, spender):
            return 0
        return self._get_u256(key_allow(owner, spender))

    def balances(self) -> Iterator[Tuple[bytes, int]]:
        """Every written balance as (account, amount), ordered by account bytes."""
        n = len(BAL_PREFIX)
        for k, v in self.backend.scan(BAL_PREFIX):
            yield k[n:], from_word(v)

    def allowances(self) -> Iterator[Tuple[Tuple[bytes, bytes], int]]:
        for k, v in self.backend.scan(ALLOW_PREFIX):
            yield split_allow_key(k), from_word(v)

    # --- writes ---

    def set_metadata(self, metadata: TokenMetadata) -> None:
        self.backend.set(K_NAME, metadata.name.encode("utf-8"))
        self.backend.set(K_SYMBOL, metadata.symbol.encode("utf-8"))
        self._set_u256(K_DECIMALS, metadata.decimals)

    def set_total_supply(self, amount: int) -> None:
        self._set_u256(K_TOTAL, amount)

    def set_balance(self, acct: bytes, amount: int) -> None:
        self._set_u256(key_balance(acct), amount)

    def set_allowance(self, owner: bytes, spender: bytes, amount: int) -> None:
        self._set_u256(key_allow(owner, spender), amount)

    def set_owner(self, acct: bytes) -> None:
        self.backend.set(K_OWNER, bytes(acct))

    def mark_initialized(self) -> None:
        self.backend.set(K_INIT, b"1")

    # --- persisted event records ---

    def event_count(self) -> int:
        return self._get_u256(K_EVT_COUNT)

    def append_event(self, payload: bytes) -> int:
        seq = self.event_count()
        self.backend.set(key_event(seq), bytes(payload))
        self._set_u256(K_EVT_COUNT, seq + 1)
        return seq

    def events(self) -> List[bytes]:
        return [v for _, v in self.backend.scan(EVT_PREFIX)]


__all__ = [
    "K_NAME",
    "K_SYMBOL",
    "K_DECIMALS",
    "K_TOTAL",
    "K_OWNER",
    "K_INIT",
    "BAL_PREFIX",
    "ALLOW_PREFIX",
    "EVT_PREFIX",
    "key_balance",
    "key_allow",
    "split_allow_key",
    "key_event",
    "StorageBackend",
    "MemoryBackend",
    "SQLiteBackend",
    "LedgerStore",
]
