from __future__ import annotations
"""
tokenledger: fungible-token ledger core.

Tracks balances and allowances of a divisible token across opaque accounts,
enforcing conservation of supply on every state transition. Hosts supply the
caller identity and (optionally) a durable key/value backend; the ledger
decides what is written and when an operation is rejected.

Public surface:
- Ledger (facade), LedgerStore, MemoryBackend, SQLiteBackend
- TokenMetadata, ZERO_ACCOUNT
- TransferEvent, ApprovalEvent, EventLog
- errors (LedgerError and subclasses), config
"""


from typing import List

from .errors import (AlreadyInitialized, InsufficientAllowance, InsufficientBalance,
                     InvalidAccount, InvalidAmount, InvalidMetadata, InvariantViolation,
                     LedgerError, NotInitialized, NotOwner, Overflow, ZeroAddress)
from .events import ApprovalEvent, EventLog, TransferEvent
from .ledger import Ledger
from .store import LedgerStore, MemoryBackend, SQLiteBackend
from .types import ZERO_ACCOUNT, TokenMetadata
from .version import __version__

__all__: List[str] = [
    "__version__",
    "Ledger",
    "LedgerStore",
    "MemoryBackend",
    "SQLiteBackend",
    "TokenMetadata",
    "ZERO_ACCOUNT",
    "TransferEvent",
    "ApprovalEvent",
    "EventLog",
    "LedgerError",
    "ZeroAddress",
    "InsufficientBalance",
    "InsufficientAllowance",
    "Overflow",
    "InvalidAmount",
    "InvalidAccount",
    "InvalidMetadata",
    "AlreadyInitialized",
    "NotInitialized",
    "NotOwner",
    "InvariantViolation",
]
