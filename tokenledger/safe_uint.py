# -*- coding: utf-8 -*-
"""
tokenledger.safe_uint
=====================

Checked unsigned-integer helpers for ledger amounts.

Goals
-----
- **U256**-oriented arithmetic that never uses Python floats.
- Fail fast: raise :class:`tokenledger.errors.Overflow` instead of wrapping
  or clamping.
- Functions validate argument domains (0..U256_MAX) before computing.
"""

from __future__ import annotations

from typing import Final

from .errors import InvalidAmount, Overflow

U256_MAX: Final[int] = (1 << 256) - 1
U256_BYTES: Final[int] = 32


def is_u256(x: object) -> bool:
    # bool is a subclass of int; amounts are never booleans.
    return isinstance(x, int) and not isinstance(x, bool) and 0 <= x <= U256_MAX


def require_u256(*xs: object) -> None:
    """Raise InvalidAmount unless every argument is an int in [0, U256_MAX]."""
    for x in xs:
        if not is_u256(x):
            raise InvalidAmount(
                "amount must be an integer in [0, 2**256-1]",
                details={"value": repr(x)[:80]},
            )


def u256_add(x: int, y: int) -> int:
    """Checked add: raise Overflow when x + y exceeds U256_MAX."""
    require_u256(x, y)
    s = x + y
    if s > U256_MAX:
        raise Overflow(op="add", lhs=x, rhs=y)
    return s


def u256_sub(x: int, y: int) -> int:
    """Checked sub: raise Overflow (underflow) when y > x."""
    require_u256(x, y)
    if y > x:
        raise Overflow(op="sub", lhs=x, rhs=y, message="amount underflow")
    return x - y


def to_word(n: int) -> bytes:
    """Encode an amount as a 32-byte big-endian word."""
    require_u256(n)
    return n.to_bytes(U256_BYTES, "big")


def from_word(raw: bytes | None) -> int:
    """Decode a stored word; missing or empty values read as zero."""
    return int.from_bytes(raw, "big") if raw else 0


__all__ = [
    "U256_MAX",
    "U256_BYTES",
    "is_u256",
    "require_u256",
    "u256_add",
    "u256_sub",
    "to_word",
    "from_word",
]
