from __future__ import annotations

"""
Core ledger types.

- AccountId: raw ``bytes``. Any hex/bech32 presentation is a CLI/UI concern.
- Amount: Python ``int`` in [0, 2**256 - 1].
- TokenMetadata: display name, symbol and decimal precision, fixed at creation.
"""

from dataclasses import asdict, dataclass
from typing import Any, Dict, Final

AccountId = bytes
Amount = int

#: Reserved "no account" identity. Used as the synthetic sender of issuance
#: and the synthetic recipient of burns.
ZERO_ACCOUNT: Final[bytes] = b"\x00" * 20


def is_zero_account(acct: bytes) -> bool:
    """True for the empty identity and for any all-zero byte string."""
    return not any(acct)


def parse_account(text: str) -> AccountId:
    """Parse a ``0x``-prefixed (or bare) hex string into an AccountId."""
    s = text.strip()
    if s[:2] in ("0x", "0X"):
        s = s[2:]
    return bytes.fromhex(s)


def format_account(acct: AccountId) -> str:
    return "0x" + bytes(acct).hex()


@dataclass(frozen=True)
class TokenMetadata:
    name: str
    symbol: str
    decimals: int = 18

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


__all__ = [
    "AccountId",
    "Amount",
    "ZERO_ACCOUNT",
    "is_zero_account",
    "parse_account",
    "format_account",
    "TokenMetadata",
]
