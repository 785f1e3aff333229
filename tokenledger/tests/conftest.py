# -*- coding: utf-8 -*-
"""
tokenledger.tests.conftest
==========================

Shared fixtures:
- ``accounts``: stable 20-byte account ids derived from a tag via SHA3-256.
- ``store`` / ``events``: a fresh memory-backed LedgerStore and EventLog.
- ``ledger``: a Ledger initialized with 1000 units held by ``alice``.
- Config isolation: TOKENLEDGER_* variables are cleared and the cached config
  is reset around every test.
"""
from __future__ import annotations

import hashlib
import os
from typing import Dict, Iterator

import pytest

from tokenledger.config import LedgerConfig, load_config
from tokenledger.events import EventLog
from tokenledger.ledger import Ledger
from tokenledger.store import LedgerStore, MemoryBackend
from tokenledger.types import TokenMetadata

os.environ.setdefault("PYTHONHASHSEED", "0")

INITIAL_SUPPLY = 1000
META = TokenMetadata(name="Test Token", symbol="TST", decimals=18)


def det_account(tag: str) -> bytes:
    """Stable 20-byte account id for `tag`."""
    return hashlib.sha3_256(tag.encode("utf-8")).digest()[:20]


@pytest.fixture(autouse=True)
def _isolated_config(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    for k in list(os.environ):
        if k.startswith("TOKENLEDGER_"):
            monkeypatch.delenv(k, raising=False)
    load_config.cache_clear()
    yield
    load_config.cache_clear()


@pytest.fixture
def accounts() -> Dict[str, bytes]:
    return {tag: det_account(tag) for tag in ("alice", "bob", "carol", "dave", "erin")}


@pytest.fixture
def store() -> LedgerStore:
    return LedgerStore(MemoryBackend(), LedgerConfig())


@pytest.fixture
def events() -> EventLog:
    return EventLog()


@pytest.fixture
def ledger(accounts: Dict[str, bytes]) -> Ledger:
    return Ledger.create(META, INITIAL_SUPPLY, accounts["alice"], config=LedgerConfig())


def snapshot(ledger: Ledger, accts: Dict[str, bytes]) -> Dict[str, object]:
    """Observable state for before/after comparisons."""
    return {
        "total": ledger.total_supply(),
        "balances": {k: ledger.balance_of(v) for k, v in accts.items()},
        "allowances": {
            (a, b): ledger.allowance(va, vb)
            for a, va in accts.items()
            for b, vb in accts.items()
        },
        "events": len(ledger.events),
    }
