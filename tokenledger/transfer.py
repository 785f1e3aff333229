# -*- coding: utf-8 -*-
"""
Transfer engine: direct and delegated (allowance-based) transfers.

Both operations follow the same shape:

1. validate argument types and identities,
2. read the quantities involved and run every guard,
3. write the new values,
4. append a Transfer event.

Nothing is written until step 3, so a rejected call leaves the store exactly as
it was. Total supply is never touched here: value only moves between accounts.
"""

from __future__ import annotations

import logging
from typing import List, Tuple

from .events import EventLog, TransferEvent, emit
from .guard import (reject_if_insufficient, reject_if_insufficient_allowance,
                    reject_if_uninitialized, reject_if_zero_identity, require_account,
                    require_amount)
from .safe_uint import u256_add, u256_sub
from .store import LedgerStore

log = logging.getLogger(__name__)

BalanceWrites = List[Tuple[bytes, int]]


def plan_move(store: LedgerStore, sender: bytes, recipient: bytes, amount: int) -> BalanceWrites:
    """
    Check that `sender` can cover `amount` and compute the resulting balances.
    Returns the (account, new_balance) writes; nothing is written here.
    A self-transfer nets to zero and produces no writes.
    """
    from_bal = store.balance_of(sender)
    reject_if_insufficient(from_bal, amount, account=sender)
    if sender == recipient:
        return []
    to_bal = store.balance_of(recipient)
    return [(sender, u256_sub(from_bal, amount)), (recipient, u256_add(to_bal, amount))]


def apply_writes(store: LedgerStore, writes: BalanceWrites) -> None:
    for acct, bal in writes:
        store.set_balance(acct, bal)


def transfer(
    store: LedgerStore,
    events: EventLog,
    caller: bytes,
    recipient: bytes,
    amount: int,
) -> TransferEvent:
    """Move `amount` from `caller` to `recipient`."""
    width = store.config.max_account_bytes
    caller = require_account(caller, width)
    recipient = require_account(recipient, width)
    require_amount(amount)
    reject_if_uninitialized(store.is_initialized())
    reject_if_zero_identity(caller, role="sender")
    reject_if_zero_identity(recipient, role="recipient")

    writes = plan_move(store, caller, recipient, amount)
    apply_writes(store, writes)

    ev = emit(events, TransferEvent(caller, recipient, amount), store)
    log.debug("transfer %s -> %s value=%d", caller.hex(), recipient.hex(), amount)
    return ev


def transfer_from(
    store: LedgerStore,
    events: EventLog,
    caller: bytes,
    owner: bytes,
    recipient: bytes,
    amount: int,
) -> TransferEvent:
    """
    Spender (`caller`) moves `amount` from `owner` to `recipient`, consuming
    allowance(owner, caller). When both the allowance and the balance are
    short, the allowance is reported.
    """
    width = store.config.max_account_bytes
    caller = require_account(caller, width)
    owner = require_account(owner, width)
    recipient = require_account(recipient, width)
    require_amount(amount)
    reject_if_uninitialized(store.is_initialized())
    reject_if_zero_identity(owner, role="sender")
    reject_if_zero_identity(recipient, role="recipient")

    current_allow = store.allowance(owner, caller)
    reject_if_insufficient_allowance(current_allow, amount, owner=owner, spender=caller)
    writes = plan_move(store, owner, recipient, amount)

    store.set_allowance(owner, caller, u256_sub(current_allow, amount))
    apply_writes(store, writes)

    ev = emit(events, TransferEvent(owner, recipient, amount), store)
    log.debug(
        "transfer_from spender=%s %s -> %s value=%d",
        caller.hex(), owner.hex(), recipient.hex(), amount,
    )
    return ev


__all__ = ["plan_move", "apply_writes", "transfer", "transfer_from"]
