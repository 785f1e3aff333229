"""
Allowance manager: spending permissions granted by an owner to a spender.

`approve` sets an absolute value; `increase_allowance` / `decrease_allowance`
adjust the current value. None of these read or write token balances.
Each appends an Approval event carrying the resulting allowance.
"""

from __future__ import annotations

import logging
from typing import Tuple

from .events import ApprovalEvent, EventLog, emit
from .guard import (reject_if_insufficient_allowance, reject_if_uninitialized,
                    reject_if_zero_identity, require_account, require_amount)
from .safe_uint import u256_add, u256_sub
from .store import LedgerStore

log = logging.getLogger(__name__)


def _check_parties(store: LedgerStore, caller: bytes, spender: bytes) -> Tuple[bytes, bytes]:
    width = store.config.max_account_bytes
    caller = require_account(caller, width)
    spender = require_account(spender, width)
    reject_if_uninitialized(store.is_initialized())
    reject_if_zero_identity(caller, role="owner")
    reject_if_zero_identity(spender, role="spender")
    return caller, spender


def _set(store: LedgerStore, events: EventLog, owner: bytes, spender: bytes, value: int) -> ApprovalEvent:
    store.set_allowance(owner, spender, value)
    return emit(events, ApprovalEvent(owner, spender, value), store)


def approve(
    store: LedgerStore,
    events: EventLog,
    caller: bytes,
    spender: bytes,
    amount: int,
) -> ApprovalEvent:
    require_amount(amount)
    caller, spender = _check_parties(store, caller, spender)
    ev = _set(store, events, caller, spender, amount)
    log.debug("approve owner=%s spender=%s value=%d", caller.hex(), spender.hex(), amount)
    return ev


def increase_allowance(
    store: LedgerStore,
    events: EventLog,
    caller: bytes,
    spender: bytes,
    delta: int,
) -> ApprovalEvent:
    require_amount(delta)
    caller, spender = _check_parties(store, caller, spender)
    new = u256_add(store.allowance(caller, spender), delta)
    ev = _set(store, events, caller, spender, new)
    log.debug("increase_allowance owner=%s spender=%s +%d -> %d", caller.hex(), spender.hex(), delta, new)
    return ev


def decrease_allowance(
    store: LedgerStore,
    events: EventLog,
    caller: bytes,
    spender: bytes,
    delta: int,
) -> ApprovalEvent:
    require_amount(delta)
    caller, spender = _check_parties(store, caller, spender)
    cur = store.allowance(caller, spender)
    reject_if_insufficient_allowance(cur, delta, owner=caller, spender=spender)
    new = u256_sub(cur, delta)
    ev = _set(store, events, caller, spender, new)
    log.debug("decrease_allowance owner=%s spender=%s -%d -> %d", caller.hex(), spender.hex(), delta, new)
    return ev


__all__ = ["approve", "increase_allowance", "decrease_allowance"]
