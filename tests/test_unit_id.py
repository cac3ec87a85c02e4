from __future__ import annotations

import pytest

from ledger_sdk.types.attributes import VAR_UNIT_TYPE
from ledger_sdk.types.unit_id import ShardID, compose_unit_id, prnd_sh, unit_type_of


def test_shard_id_parse_and_key():
    sid = ShardID.parse("0110")
    assert sid.length == 4
    assert sid.key() == b"\x00\x04" + bytes([0b0110_0000])
    assert str(sid) == "0110"

    empty = ShardID.parse("")
    assert empty == ShardID()
    assert empty.key() == b"\x00\x00"
    assert str(empty) == ""


def test_shard_id_rejects_non_binary():
    with pytest.raises(ValueError):
        ShardID.parse("012")
    with pytest.raises(ValueError):
        ShardID(bits=b"\x01", length=9)


def test_compose_is_pure():
    sid = ShardID.parse("1")
    seed = prnd_sh(5, sid)
    a = compose_unit_id(4, sid, VAR_UNIT_TYPE, seed)
    b = compose_unit_id(4, sid, VAR_UNIT_TYPE, seed)
    assert a == b
    assert len(a) == 33
    assert unit_type_of(a) == VAR_UNIT_TYPE


def test_shard_bits_lead_the_unit_id():
    one = ShardID.parse("1")
    zero = ShardID.parse("0")
    u1 = compose_unit_id(4, one, 1, prnd_sh(5, one))
    u0 = compose_unit_id(4, zero, 1, prnd_sh(5, zero))
    assert u1[0] & 0x80
    assert not u0[0] & 0x80
    assert u0 != u1


def test_distinct_inputs_give_distinct_ids():
    sid = ShardID()
    base = compose_unit_id(4, sid, 1, prnd_sh(5, sid))
    assert compose_unit_id(4, sid, 1, prnd_sh(6, sid)) != base
    assert compose_unit_id(4, sid, 2, prnd_sh(5, sid)) != base
    assert compose_unit_id(4, ShardID.parse("01"), 1, prnd_sh(5, sid)) != base
    assert prnd_sh(5, sid) != prnd_sh(5, ShardID.parse("1"))


def test_unit_type_of_short_id():
    with pytest.raises(ValueError):
        unit_type_of(b"\x01")


def test_trailing_shard_bits_are_not_significant():
    a = ShardID(bits=b"\x80", length=1)
    b = ShardID(bits=b"\xff", length=1)
    assert a == b == ShardID.parse("1")
    assert a.key() == b.key()
    assert compose_unit_id(4, a, 1, prnd_sh(5, a)) == compose_unit_id(4, b, 1, prnd_sh(5, b))

    # extra bytes past the bit length are dropped as well
    assert ShardID(bits=b"\x60\xff", length=4) == ShardID.parse("0110")
