# -*- coding: utf-8 -*-
"""
Property tests (Hypothesis) for ledger conservation laws.

Random sequences of operations, including ones that are expected to fail,
are applied to a fresh ledger. After every step:

- sum(balances) == total_supply
- transfers and allowance ops leave total_supply unchanged
- a rejected operation changes no state and emits no event
- a successful op emits exactly one event

Profiles: HYPOTHESIS_PROFILE=dev|ci (default: "ci" when CI is set, else "dev").
"""
from __future__ import annotations

import os
from typing import Dict, List, Tuple

from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st

from tokenledger.config import LedgerConfig
from tokenledger.errors import LedgerError
from tokenledger.ledger import Ledger
from tokenledger.safe_uint import U256_MAX

from .conftest import META, det_account

settings.register_profile(
    "dev",
    settings(
        max_examples=100,
        deadline=None,
        suppress_health_check=(HealthCheck.too_slow, HealthCheck.function_scoped_fixture),
    ),
)
settings.register_profile(
    "ci",
    settings(
        max_examples=200,
        deadline=None,
        suppress_health_check=(HealthCheck.too_slow, HealthCheck.function_scoped_fixture),
        derandomize=True,
    ),
)
settings.load_profile(os.getenv("HYPOTHESIS_PROFILE") or ("ci" if os.getenv("CI") else "dev"))

ACCTS: List[bytes] = [det_account(t) for t in ("p0", "p1", "p2", "p3")]
OWNER = ACCTS[0]

idx = st.integers(min_value=0, max_value=len(ACCTS) - 1)
amount = st.one_of(
    st.integers(min_value=0, max_value=2_000),
    st.sampled_from([U256_MAX, U256_MAX - 1, 1 << 255]),
)

op = st.one_of(
    st.tuples(st.just("transfer"), idx, idx, amount),
    st.tuples(st.just("approve"), idx, idx, amount),
    st.tuples(st.just("increase_allowance"), idx, idx, amount),
    st.tuples(st.just("decrease_allowance"), idx, idx, amount),
    st.tuples(st.just("transfer_from"), idx, idx, idx, amount),
    st.tuples(st.just("mint"), idx, idx, amount),
    st.tuples(st.just("burn"), idx, amount),
    st.tuples(st.just("burn_from"), idx, idx, amount),
)

SUPPLY_NEUTRAL = {"transfer", "transfer_from", "approve", "increase_allowance", "decrease_allowance"}


def _state(ledger: Ledger) -> Tuple[int, Dict[bytes, int], Dict[Tuple[bytes, bytes], int], int]:
    return (
        ledger.total_supply(),
        {a: ledger.balance_of(a) for a in ACCTS},
        {(a, b): ledger.allowance(a, b) for a in ACCTS for b in ACCTS},
        len(ledger.events),
    )


def _apply(ledger: Ledger, step: tuple) -> None:
    name, *rest = step
    *who, value = rest
    getattr(ledger, name)(*(ACCTS[i] for i in who), value)


@given(supply=st.integers(min_value=0, max_value=10_000), steps=st.lists(op, max_size=40))
def test_conservation_over_random_operations(supply, steps):
    ledger = Ledger.create(META, supply, OWNER, config=LedgerConfig())
    for step in steps:
        before = _state(ledger)
        try:
            _apply(ledger, step)
        except LedgerError:
            assert _state(ledger) == before
            continue
        after = _state(ledger)
        assert after[3] == before[3] + 1
        if step[0] in SUPPLY_NEUTRAL:
            assert after[0] == before[0]
        assert sum(after[1].values()) == after[0]
        ledger.check_invariants()


@given(a=idx, b=idx, start=st.integers(min_value=0, max_value=5_000), value=amount)
def test_transfer_is_zero_sum(a, b, start, value):
    ledger = Ledger.create(META, start, ACCTS[a], config=LedgerConfig())
    bal_a, bal_b = ledger.balance_of(ACCTS[a]), ledger.balance_of(ACCTS[b])
    try:
        ledger.transfer(ACCTS[a], ACCTS[b], value)
    except LedgerError:
        assert value > bal_a
        return
    assert value <= bal_a
    if a == b:
        assert ledger.balance_of(ACCTS[a]) == bal_a
    else:
        assert ledger.balance_of(ACCTS[a]) == bal_a - value
        assert ledger.balance_of(ACCTS[b]) == bal_b + value


@given(
    granted=st.integers(min_value=0, max_value=1_000),
    spends=st.lists(st.integers(min_value=0, max_value=400), max_size=8),
)
def test_allowance_only_decreases_by_spending(granted, spends):
    owner, spender, sink = ACCTS[0], ACCTS[1], ACCTS[2]
    ledger = Ledger.create(META, 10_000, owner, config=LedgerConfig())
    ledger.approve(owner, spender, granted)
    remaining = granted
    for s in spends:
        try:
            ledger.transfer_from(spender, owner, sink, s)
        except LedgerError:
            assert s > remaining
        else:
            remaining -= s
        assert ledger.allowance(owner, spender) == remaining
    assert ledger.balance_of(sink) == granted - remaining


@given(
    a=idx,
    b=idx,
    start_a=st.integers(min_value=0, max_value=5_000),
    start_b=st.integers(min_value=0, max_value=5_000),
    value=st.integers(min_value=0, max_value=5_000),
)
def test_transfer_then_reverse_restores_balances(a, b, start_a, start_b, value):
    ledger = Ledger.create(META, start_a + start_b, OWNER, config=LedgerConfig())
    for i, want in ((a, start_a), (b, start_b)):
        if ACCTS[i] != OWNER:
            ledger.transfer(OWNER, ACCTS[i], want)
    before = _state(ledger)
    bal_a = ledger.balance_of(ACCTS[a])
    try:
        ledger.transfer(ACCTS[a], ACCTS[b], value)
    except LedgerError:
        assert value > bal_a
        assert _state(ledger) == before
        return
    ledger.transfer(ACCTS[b], ACCTS[a], value)
    after = _state(ledger)
    assert after[:3] == before[:3]
    assert after[3] == before[3] + 2


@given(
    original=st.integers(min_value=0, max_value=U256_MAX),
    d1=st.integers(min_value=0, max_value=U256_MAX),
    data=st.data(),
)
def test_increase_then_decrease_allowance(original, d1, data):
    d2 = data.draw(st.integers(min_value=0, max_value=d1), label="d2")
    owner, spender = ACCTS[1], ACCTS[2]
    ledger = Ledger.create(META, 100, OWNER, config=LedgerConfig())
    ledger.approve(owner, spender, original)
    balances = {acct: ledger.balance_of(acct) for acct in ACCTS}
    try:
        ledger.increase_allowance(owner, spender, d1)
    except LedgerError:
        assert original + d1 > U256_MAX
        assert ledger.allowance(owner, spender) == original
        return
    ledger.decrease_allowance(owner, spender, d2)
    assert ledger.allowance(owner, spender) == original + d1 - d2
    assert {acct: ledger.balance_of(acct) for acct in ACCTS} == balances
    assert ledger.total_supply() == 100
