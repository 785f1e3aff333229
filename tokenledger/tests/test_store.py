from __future__ import annotations

import pytest

from tokenledger.config import LedgerConfig
from tokenledger.safe_uint import U256_MAX
from tokenledger.store import (ALLOW_PREFIX, BAL_PREFIX, LedgerStore, MemoryBackend,
                               SQLiteBackend, StorageBackend, _prefix_upper, key_allow,
                               key_balance, key_event, split_allow_key)
from tokenledger.types import TokenMetadata


@pytest.fixture(params=["memory", "sqlite"])
def backend(request, tmp_path):
    if request.param == "memory":
        yield MemoryBackend()
    else:
        be = SQLiteBackend(str(tmp_path / "kv.db"))
        yield be
        be.close()


def test_backends_satisfy_protocol(backend):
    assert isinstance(backend, StorageBackend)


def test_get_set_exists(backend):
    assert backend.get(b"k") is None
    assert not backend.exists(b"k")
    backend.set(b"k", b"v1")
    backend.set(b"k", b"v2")
    assert backend.get(b"k") == b"v2"
    assert backend.exists(b"k")


def test_backends_expose_no_key_removal(backend):
    # Ledger state only ever overwrites; balances and allowances go to zero, not away.
    assert not hasattr(backend, "delete")


def test_scan_is_prefix_bounded_and_sorted(backend):
    for k in (b"a:2", b"a:1", b"a\xff", b"b:1", b"a:3"):
        backend.set(k, k)
    assert [k for k, _ in backend.scan(b"a:")] == [b"a:1", b"a:2", b"a:3"]
    assert [k for k, _ in backend.scan(b"a")] == [b"a:1", b"a:2", b"a:3", b"a\xff"]


def test_atomic_commits(backend):
    with backend.atomic():
        backend.set(b"x", b"1")
        with backend.atomic():
            backend.set(b"y", b"2")
    assert backend.get(b"x") == b"1"
    assert backend.get(b"y") == b"2"


def test_atomic_rolls_back_on_error(backend):
    backend.set(b"x", b"old")
    with pytest.raises(RuntimeError):
        with backend.atomic():
            backend.set(b"x", b"new")
            backend.set(b"y", b"created")
            backend.set(b"x", b"newer")
            raise RuntimeError("boom")
    assert backend.get(b"x") == b"old"
    assert backend.get(b"y") is None


def test_prefix_upper():
    assert _prefix_upper(b"ab") == b"ac"
    assert _prefix_upper(b"a\xff") == b"b"
    assert _prefix_upper(b"\xff\xff") is None


def test_allowance_keys_never_collide():
    # Without the owner length prefix these two pairs would concatenate identically.
    k1 = key_allow(b"\x01\x02", b"\x03")
    k2 = key_allow(b"\x01", b"\x02\x03")
    assert k1 != k2
    assert split_allow_key(k1) == (b"\x01\x02", b"\x03")
    assert split_allow_key(k2) == (b"\x01", b"\x02\x03")
    assert k1.startswith(ALLOW_PREFIX)
    assert key_balance(b"\x01") == BAL_PREFIX + b"\x01"


def test_event_keys_sort_by_sequence():
    keys = [key_event(n) for n in (0, 1, 255, 256, 70000)]
    assert keys == sorted(keys)


def test_ledger_store_defaults(backend):
    s = LedgerStore(backend, LedgerConfig())
    assert s.total_supply() == 0
    assert s.balance_of(b"\x01") == 0
    assert s.allowance(b"\x01", b"\x02") == 0
    assert s.name() == "" and s.symbol() == "" and s.decimals() == 0
    assert s.owner() == b""
    assert not s.is_initialized()
    assert s.event_count() == 0
    assert s.events() == []


def test_ledger_store_roundtrips_state(backend):
    s = LedgerStore(backend, LedgerConfig())
    s.set_metadata(TokenMetadata("Test Token", "TST", 6))
    s.set_owner(b"\x0a")
    s.set_total_supply(U256_MAX)
    s.set_balance(b"\x02", 5)
    s.set_balance(b"\x01", U256_MAX - 5)
    s.set_allowance(b"\x01", b"\x02", 7)
    s.mark_initialized()

    assert s.metadata() == TokenMetadata("Test Token", "TST", 6)
    assert s.owner() == b"\x0a"
    assert s.total_supply() == U256_MAX
    assert list(s.balances()) == [(b"\x01", U256_MAX - 5), (b"\x02", 5)]
    assert list(s.allowances()) == [((b"\x01", b"\x02"), 7)]
    assert s.is_initialized()


def test_event_records_append_in_order(backend):
    s = LedgerStore(backend, LedgerConfig())
    assert s.append_event(b"first") == 0
    assert s.append_event(b"second") == 1
    assert s.event_count() == 2
    assert s.events() == [b"first", b"second"]


def test_sqlite_state_survives_reopen(tmp_path):
    path = str(tmp_path / "ledger.db")
    be = SQLiteBackend(path)
    s = LedgerStore(be, LedgerConfig())
    with s.atomic():
        s.set_balance(b"\x01", 42)
    be.close()

    be2 = SQLiteBackend(path)
    try:
        assert LedgerStore(be2, LedgerConfig()).balance_of(b"\x01") == 42
    finally:
        be2.close()


def test_reads_of_unwritable_ids_return_zero(backend):
    s = LedgerStore(backend, LedgerConfig())
    wide = b"\x02" * 300
    assert s.balance_of(wide) == 0
    assert s.allowance(wide, b"\x03") == 0
    assert s.allowance(b"\x03", wide) == 0
    assert s.allowance(b"\x01" * 65, b"\x03") == 0


def test_ledger_allowance_view_on_oversized_owner(ledger):
    assert ledger.allowance(b"\x02" * 300, b"\x03") == 0
    assert ledger.balance_of(b"\x02" * 300) == 0
