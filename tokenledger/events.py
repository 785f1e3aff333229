from __future__ import annotations

"""
Ledger notifications and the append-only event log.

Two event kinds exist:
    Transfer { from: bytes, to: bytes, value: int }
    Approval { owner: bytes, spender: bytes, value: int }

Issuance is a Transfer from ZERO_ACCOUNT; a burn is a Transfer to it.

Events are immutable records. The :class:`EventLog` only ever grows; there is
no API to remove or rewrite an entry. For persistence and receipts each event
has a canonical CBOR form (``encode_event`` / ``decode_event``) with stable
map-key ordering, so the same event always encodes to the same bytes.
"""

from dataclasses import dataclass
from typing import Any, ClassVar, Dict, Final, Iterable, Iterator, List, Optional, Sequence, Union, overload

import cbor2

EVT_TRANSFER: Final[str] = "Transfer"
EVT_APPROVAL: Final[str] = "Approval"


@dataclass(frozen=True)
class TransferEvent:
    sender: bytes
    recipient: bytes
    value: int

    name: ClassVar[str] = EVT_TRANSFER

    def to_dict(self) -> Dict[str, Any]:
        return {"from": self.sender, "to": self.recipient, "value": self.value}


@dataclass(frozen=True)
class ApprovalEvent:
    owner: bytes
    spender: bytes
    value: int

    name: ClassVar[str] = EVT_APPROVAL

    def to_dict(self) -> Dict[str, Any]:
        return {"owner": self.owner, "spender": self.spender, "value": self.value}


LedgerEvent = Union[TransferEvent, ApprovalEvent]


# -----------------------------------------------------------------------------
# Canonical encoding
# -----------------------------------------------------------------------------


def encode_event(event: LedgerEvent) -> bytes:
    """Canonical CBOR: {"name": str, "args": {...}}."""
    return cbor2.dumps({"name": event.name, "args": event.to_dict()}, canonical=True)


def decode_event(buf: bytes) -> LedgerEvent:
    obj = cbor2.loads(buf)
    if not isinstance(obj, dict) or "name" not in obj or "args" not in obj:
        raise ValueError("malformed event record")
    args = obj["args"]
    if obj["name"] == EVT_TRANSFER:
        return TransferEvent(bytes(args["from"]), bytes(args["to"]), int(args["value"]))
    if obj["name"] == EVT_APPROVAL:
        return ApprovalEvent(bytes(args["owner"]), bytes(args["spender"]), int(args["value"]))
    raise ValueError(f"unknown event name: {obj['name']!r}")


# -----------------------------------------------------------------------------
# Emission
# -----------------------------------------------------------------------------


def emit(events: EventLog, event: LedgerEvent, store: Any = None) -> LedgerEvent:
    """
    Append `event` to `events` and, when a store is given, persist its canonical
    record alongside the state it describes.
    """
    if store is not None:
        store.append_event(encode_event(event))
    events.append(event)
    return event


# -----------------------------------------------------------------------------
# Log
# -----------------------------------------------------------------------------


class EventLog(Sequence[LedgerEvent]):
    """Ordered, append-only record of emitted events."""

    def __init__(self, events: Optional[Iterable[LedgerEvent]] = None) -> None:
        self._events: List[LedgerEvent] = list(events or ())

    def append(self, event: LedgerEvent) -> int:
        """Append `event` and return its sequence number (0-based)."""
        if not isinstance(event, (TransferEvent, ApprovalEvent)):
            raise TypeError(f"unsupported event type: {type(event).__name__}")
        self._events.append(event)
        return len(self._events) - 1

    @overload
    def __getitem__(self, idx: int) -> LedgerEvent: ...
    @overload
    def __getitem__(self, idx: slice) -> List[LedgerEvent]: ...

    def __getitem__(self, idx):  # type: ignore[no-untyped-def]
        if isinstance(idx, slice):
            return list(self._events[idx])
        return self._events[idx]

    def __len__(self) -> int:
        return len(self._events)

    def __iter__(self) -> Iterator[LedgerEvent]:
        return iter(tuple(self._events))

    def since(self, index: int) -> List[LedgerEvent]:
        """Events appended at or after sequence number `index`."""
        return list(self._events[max(0, index):])

    def transfers(self) -> List[TransferEvent]:
        return [e for e in self._events if isinstance(e, TransferEvent)]

    def approvals(self) -> List[ApprovalEvent]:
        return [e for e in self._events if isinstance(e, ApprovalEvent)]

    def __repr__(self) -> str:  # pragma: no cover - trivial
        return f"EventLog(len={len(self._events)})"


__all__ = [
    "EVT_TRANSFER",
    "EVT_APPROVAL",
    "TransferEvent",
    "ApprovalEvent",
    "LedgerEvent",
    "EventLog",
    "encode_event",
    "decode_event",
    "emit",
]
