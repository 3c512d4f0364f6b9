from __future__ import annotations

from datetime import datetime, timezone

import pytest

from prefstore.codec import (
    KIND_LOCAL,
    KIND_UTC,
    decode_datetime,
    encode_datetime,
    parse_datetime,
    to_float32,
    to_int32,
)
from prefstore.errors import PrefsValueError
from prefstore.keys import component_keys, count_key, index_key, scalar_key, VECTOR3_SUFFIXES


def test_key_format():
    base = scalar_key("P1_", "Score")
    assert base == "P1_Score"
    assert count_key(base) == "P1_Score_Count"
    assert index_key(base, 0) == "P1_Score_0"
    assert index_key(base, 12) == "P1_Score_12"
    assert component_keys(base, VECTOR3_SUFFIXES) == ("P1_Score_x", "P1_Score_y", "P1_Score_z")


def test_negative_index_rejected():
    with pytest.raises(ValueError):
        index_key("k", -1)


def test_known_tick_values():
    assert encode_datetime(datetime(1, 1, 1)) == 0
    assert encode_datetime(datetime(2000, 1, 1)) == 630822816000000000
    assert encode_datetime(datetime(2000, 1, 1, tzinfo=timezone.utc)) == 630822816000000000 | KIND_UTC


def test_decode_kinds():
    assert decode_datetime(630822816000000000) == datetime(2000, 1, 1)
    utc = decode_datetime(630822816000000000 | KIND_UTC)
    assert utc == datetime(2000, 1, 1, tzinfo=timezone.utc)
    # local kind is stored as a negative signed value holding UTC ticks
    local_signed = (630822816000000000 | KIND_LOCAL) - 2**64
    assert decode_datetime(local_signed) == datetime(2000, 1, 1, tzinfo=timezone.utc)


def test_ticks_truncate_to_microseconds():
    assert decode_datetime(630822816000000019) == datetime(2000, 1, 1, 0, 0, 0, 1)


def test_parse_datetime():
    assert parse_datetime(" 630822816000000000 ") == datetime(2000, 1, 1)
    assert parse_datetime(None) is None
    assert parse_datetime("abc") is None
    assert parse_datetime(str(2**63)) is None


def test_int32_bounds():
    assert to_int32(-(2**31)) == -(2**31)
    with pytest.raises(PrefsValueError):
        to_int32(-(2**31) - 1)


def test_float32_rounding():
    assert to_float32(0.5) == 0.5
    assert to_float32(1 / 3) != 1 / 3
    with pytest.raises(PrefsValueError):
        to_float32(1e300)
