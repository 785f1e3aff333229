from __future__ import annotations

import pytest

from tokenledger.errors import InvalidAmount, Overflow
from tokenledger.safe_uint import (U256_MAX, from_word, is_u256, require_u256, to_word,
                                   u256_add, u256_sub)


def test_add_within_range():
    assert u256_add(1, 2) == 3
    assert u256_add(U256_MAX - 1, 1) == U256_MAX


def test_add_overflow_raises():
    with pytest.raises(Overflow) as ei:
        u256_add(U256_MAX, 1)
    assert ei.value.details["op"] == "add"
    assert ei.value.details["lhs"] == str(U256_MAX)


def test_sub_underflow_raises():
    assert u256_sub(5, 5) == 0
    with pytest.raises(Overflow):
        u256_sub(4, 5)


@pytest.mark.parametrize("bad", [-1, U256_MAX + 1, 1.0, "1", None, True])
def test_domain_rejected(bad):
    assert not is_u256(bad)
    with pytest.raises(InvalidAmount):
        require_u256(bad)


def test_word_encoding():
    assert to_word(0) == b"\x00" * 32
    assert to_word(U256_MAX) == b"\xff" * 32
    assert from_word(to_word(123456789)) == 123456789
    assert from_word(None) == 0
    assert from_word(b"") == 0
