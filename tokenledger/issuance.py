# -*- coding: utf-8 -*-
"""
Issuance: one-time initialization plus owner-gated supply control.

Issuance is represented as a Transfer from ZERO_ACCOUNT and burning as a
Transfer to ZERO_ACCOUNT, so observers reconstructing balances from the event
log see every change to total supply.

Public interface
----------------
initialize(store, events, metadata, initial_supply, initial_holder, owner=None)
mint(store, events, caller, recipient, amount)        # owner only
burn(store, events, caller, amount)                   # holder burns own balance
burn_from(store, events, caller, owner, amount)       # spender burns via allowance

The supply owner defaults to the initial holder and is fixed at creation.
"""

from __future__ import annotations

import logging
from typing import Optional

from .errors import AlreadyInitialized
from .events import EventLog, TransferEvent, emit
from .guard import (reject_if_insufficient, reject_if_insufficient_allowance,
                    reject_if_not_owner, reject_if_uninitialized, reject_if_zero_identity,
                    require_account, require_amount, validate_metadata)
from .safe_uint import u256_add, u256_sub
from .store import LedgerStore
from .types import ZERO_ACCOUNT, TokenMetadata

log = logging.getLogger(__name__)


def initialize(
    store: LedgerStore,
    events: EventLog,
    metadata: TokenMetadata,
    initial_supply: int,
    initial_holder: bytes,
    owner: Optional[bytes] = None,
) -> TransferEvent:
    """
    One-time initializer. Fails with AlreadyInitialized if run twice.
    """
    if store.is_initialized():
        raise AlreadyInitialized("ledger is already initialized")

    width = store.config.max_account_bytes
    validate_metadata(metadata, store.config)
    initial_holder = require_account(initial_holder, width)
    require_amount(initial_supply)
    reject_if_zero_identity(initial_holder, role="initial_holder")
    supply_owner = initial_holder
    if owner is not None:
        supply_owner = require_account(owner, width)
        reject_if_zero_identity(supply_owner, role="owner")

    store.set_metadata(metadata)
    store.set_owner(supply_owner)
    store.set_total_supply(initial_supply)
    store.set_balance(initial_holder, initial_supply)
    store.mark_initialized()

    ev = emit(events, TransferEvent(ZERO_ACCOUNT, initial_holder, initial_supply), store)
    log.info(
        "initialized %s (%s, %d decimals) supply=%d holder=%s",
        metadata.name, metadata.symbol, metadata.decimals, initial_supply, initial_holder.hex(),
    )
    return ev


def mint(
    store: LedgerStore,
    events: EventLog,
    caller: bytes,
    recipient: bytes,
    amount: int,
) -> TransferEvent:
    width = store.config.max_account_bytes
    caller = require_account(caller, width)
    recipient = require_account(recipient, width)
    require_amount(amount)
    reject_if_uninitialized(store.is_initialized())
    reject_if_not_owner(caller, store.owner())
    reject_if_zero_identity(recipient, role="recipient")

    new_total = u256_add(store.total_supply(), amount)
    new_bal = u256_add(store.balance_of(recipient), amount)

    store.set_total_supply(new_total)
    store.set_balance(recipient, new_bal)

    ev = emit(events, TransferEvent(ZERO_ACCOUNT, recipient, amount), store)
    log.debug("mint %s value=%d total=%d", recipient.hex(), amount, new_total)
    return ev


def _burn(store: LedgerStore, events: EventLog, holder: bytes, amount: int) -> TransferEvent:
    bal = store.balance_of(holder)
    reject_if_insufficient(bal, amount, account=holder)
    store.set_balance(holder, u256_sub(bal, amount))
    store.set_total_supply(u256_sub(store.total_supply(), amount))
    return emit(events, TransferEvent(holder, ZERO_ACCOUNT, amount), store)


def burn(
    store: LedgerStore,
    events: EventLog,
    caller: bytes,
    amount: int,
) -> TransferEvent:
    """Holder burns their own tokens."""
    caller = require_account(caller, store.config.max_account_bytes)
    require_amount(amount)
    reject_if_uninitialized(store.is_initialized())
    reject_if_zero_identity(caller, role="sender")

    ev = _burn(store, events, caller, amount)
    log.debug("burn %s value=%d", caller.hex(), amount)
    return ev


def burn_from(
    store: LedgerStore,
    events: EventLog,
    caller: bytes,
    owner: bytes,
    amount: int,
) -> TransferEvent:
    """Spender burns tokens from `owner` using allowance."""
    width = store.config.max_account_bytes
    caller = require_account(caller, width)
    owner = require_account(owner, width)
    require_amount(amount)
    reject_if_uninitialized(store.is_initialized())
    reject_if_zero_identity(owner, role="sender")

    cur_allow = store.allowance(owner, caller)
    reject_if_insufficient_allowance(cur_allow, amount, owner=owner, spender=caller)
    reject_if_insufficient(store.balance_of(owner), amount, account=owner)

    store.set_allowance(owner, caller, u256_sub(cur_allow, amount))
    ev = _burn(store, events, owner, amount)
    log.debug("burn_from spender=%s owner=%s value=%d", caller.hex(), owner.hex(), amount)
    return ev


__all__ = ["initialize", "mint", "burn", "burn_from"]
