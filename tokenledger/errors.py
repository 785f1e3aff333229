from __future__ import annotations
# tokenledger/errors.py
"""
Error types raised by the token ledger. They are deterministic, detected
locally before any state is written, and safe to surface over RPC/logs.

Exports:
- LedgerError (base)
- ZeroAddress
- InsufficientBalance
- InsufficientAllowance
- Overflow
- InvalidAmount
- InvalidAccount
- InvalidMetadata
- AlreadyInitialized
- NotInitialized
- NotOwner
- InvariantViolation
"""


import json
from typing import Any, Dict, Mapping, Optional


def _hex(acct: Any) -> Any:
    if isinstance(acct, (bytes, bytearray)):
        return "0x" + bytes(acct).hex()
    return acct


class LedgerError(Exception):
    """Base class for ledger domain errors."""

    code: str = "LEDGER_ERROR"

    def __init__(self, message: str = "", *, details: Optional[Mapping[str, Any]] = None) -> None:
        self.message = message or self.__class__.__name__
        self.details = dict(details or {})
        super().__init__(self.__str__())

    def to_dict(self) -> Dict[str, Any]:
        return {"code": self.code, "message": self.message, "details": self.details}

    def __str__(self) -> str:  # pragma: no cover - trivial
        if self.details:
            # Keep this compact and stable for logs
            try:
                packed = json.dumps(self.details, sort_keys=True, separators=(",", ":"))
            except (TypeError, ValueError):
                packed = str(self.details)
            return f"{self.code}: {self.message} [{packed}]"
        return f"{self.code}: {self.message}"


class ZeroAddress(LedgerError):
    """An identity argument equals the reserved zero account where a real one is required."""
    code = "LEDGER_ZERO_ADDRESS"

    def __init__(
        self,
        *,
        role: str = "account",
        message: str = "zero address not allowed",
        details: Optional[Mapping[str, Any]] = None,
    ) -> None:
        d = dict(details or {})
        d.setdefault("role", role)
        super().__init__(message, details=d)


class InsufficientBalance(LedgerError):
    """Requested amount exceeds the balance available."""
    code = "LEDGER_INSUFFICIENT_BALANCE"

    def __init__(
        self,
        *,
        required: int,
        available: int,
        account: Optional[bytes] = None,
        message: str = "insufficient balance",
        details: Optional[Mapping[str, Any]] = None,
    ) -> None:
        d = dict(details or {})
        d.update({"required": int(required), "available": int(available)})
        if account is not None:
            d.setdefault("account", _hex(account))
        super().__init__(message, details=d)


class InsufficientAllowance(LedgerError):
    """Requested amount exceeds the remaining delegated allowance."""
    code = "LEDGER_INSUFFICIENT_ALLOWANCE"

    def __init__(
        self,
        *,
        required: int,
        available: int,
        owner: Optional[bytes] = None,
        spender: Optional[bytes] = None,
        message: str = "insufficient allowance",
        details: Optional[Mapping[str, Any]] = None,
    ) -> None:
        d = dict(details or {})
        d.update({"required": int(required), "available": int(available)})
        if owner is not None:
            d.setdefault("owner", _hex(owner))
        if spender is not None:
            d.setdefault("spender", _hex(spender))
        super().__init__(message, details=d)


class Overflow(LedgerError):
    """An adjustment would leave the U256 amount range."""
    code = "LEDGER_OVERFLOW"

    def __init__(
        self,
        *,
        op: str,
        lhs: int,
        rhs: int,
        message: str = "amount out of range",
        details: Optional[Mapping[str, Any]] = None,
    ) -> None:
        d = dict(details or {})
        # Operands are rendered as strings; U256 values overflow JSON number precision.
        d.update({"op": op, "lhs": str(lhs), "rhs": str(rhs)})
        super().__init__(message, details=d)


class InvalidAmount(LedgerError):
    """Amount is not an int in [0, 2**256 - 1]."""
    code = "LEDGER_INVALID_AMOUNT"


class InvalidAccount(LedgerError):
    """Account identifier is not bytes or exceeds the configured width."""
    code = "LEDGER_INVALID_ACCOUNT"


class InvalidMetadata(LedgerError):
    """Token name/symbol/decimals fail validation."""
    code = "LEDGER_INVALID_METADATA"


class AlreadyInitialized(LedgerError):
    code = "LEDGER_ALREADY_INITIALIZED"


class NotInitialized(LedgerError):
    code = "LEDGER_NOT_INITIALIZED"


class NotOwner(LedgerError):
    """Caller is not the supply owner recorded at initialization."""
    code = "LEDGER_NOT_OWNER"


class InvariantViolation(LedgerError):
    """Stored state no longer satisfies sum(balances) == total_supply."""
    code = "LEDGER_INVARIANT_VIOLATION"


__all__ = [
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
