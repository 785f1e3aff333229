# -*- coding: utf-8 -*-
"""
tokenledger.guard
=================

Pure validation shared by every ledger mutator. Nothing here reads or writes
storage: callers load the current quantities, hand them to a guard, and only
write once every guard for the operation has passed. A guard either returns
``None`` or raises a :class:`tokenledger.errors.LedgerError` subclass.

Identity rules:
  - AccountIds are ``bytes`` no longer than max_account_bytes.
  - The reserved zero identity (empty or all-zero bytes) is never a valid
    sender, recipient, owner or spender.

Metadata rules (limits come from :class:`tokenledger.config.LedgerConfig`):
  - name, symbol: non-empty str, kept verbatim
  - decimals:     int in 0..max_decimals
  - with ``strict_metadata``: name is 1..max_name_len and symbol
    1..max_symbol_len printable ASCII characters
"""

from __future__ import annotations

from typing import Optional

from .config import LedgerConfig
from .errors import (InsufficientAllowance, InsufficientBalance, InvalidAccount,
                     InvalidMetadata, NotInitialized, NotOwner, ZeroAddress)
from .safe_uint import require_u256
from .types import TokenMetadata, is_zero_account

# -----------------------------------------------------------------------------
# Identity
# -----------------------------------------------------------------------------


def require_account(acct: object, max_bytes: int = 64) -> bytes:
    """
    Ensure `acct` is bytes of an acceptable width and return it as ``bytes``.
    The zero identity passes here; use :func:`reject_if_zero_identity` where a
    real account is required.
    """
    if not isinstance(acct, (bytes, bytearray)):
        raise InvalidAccount(
            "account id must be bytes",
            details={"py_type": type(acct).__name__},
        )
    if len(acct) > max_bytes:
        raise InvalidAccount(
            "account id too long",
            details={"len": len(acct), "max": max_bytes},
        )
    return bytes(acct)


def reject_if_zero_identity(acct: bytes, role: str = "account") -> None:
    if is_zero_account(acct):
        raise ZeroAddress(role=role)


def reject_if_not_owner(caller: bytes, owner: bytes) -> None:
    if not owner or caller != owner:
        raise NotOwner("caller is not the supply owner")


def reject_if_uninitialized(initialized: bool) -> None:
    if not initialized:
        raise NotInitialized("ledger has not been initialized")


# -----------------------------------------------------------------------------
# Amounts
# -----------------------------------------------------------------------------


def require_amount(n: object) -> None:
    require_u256(n)


def reject_if_insufficient(balance: int, amount: int, account: Optional[bytes] = None) -> None:
    if amount > balance:
        raise InsufficientBalance(required=amount, available=balance, account=account)


def reject_if_insufficient_allowance(
    allowance: int,
    amount: int,
    owner: Optional[bytes] = None,
    spender: Optional[bytes] = None,
) -> None:
    if amount > allowance:
        raise InsufficientAllowance(
            required=amount, available=allowance, owner=owner, spender=spender
        )


# -----------------------------------------------------------------------------
# Metadata
# -----------------------------------------------------------------------------


def is_printable_ascii(s: str) -> bool:
    """True iff every character is printable ASCII (32..126)."""
    return bool(s) and all(32 <= ord(c) <= 126 for c in s)


def _check_text(field: str, value: object, max_len: int, strict: bool) -> None:
    if not isinstance(value, str) or not value:
        raise InvalidMetadata(f"{field} must be a non-empty string", details={"field": field})
    if strict and (not is_printable_ascii(value) or len(value) > max_len):
        raise InvalidMetadata(
            f"{field} must be 1..{max_len} printable ASCII characters",
            details={"field": field},
        )


def validate_metadata(metadata: TokenMetadata, config: Optional[LedgerConfig] = None) -> None:
    cfg = config or LedgerConfig()
    _check_text("name", metadata.name, cfg.max_name_len, cfg.strict_metadata)
    _check_text("symbol", metadata.symbol, cfg.max_symbol_len, cfg.strict_metadata)
    decimals = metadata.decimals
    if (
        not isinstance(decimals, int)
        or isinstance(decimals, bool)
        or not (0 <= decimals <= cfg.max_decimals)
    ):
        raise InvalidMetadata(
            f"decimals must be an integer in [0, {cfg.max_decimals}]",
            details={"field": "decimals", "value": repr(decimals)},
        )


__all__ = [
    "require_account",
    "reject_if_zero_identity",
    "reject_if_not_owner",
    "reject_if_uninitialized",
    "require_amount",
    "reject_if_insufficient",
    "reject_if_insufficient_allowance",
    "is_printable_ascii",
    "validate_metadata",
]
