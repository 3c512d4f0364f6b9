from __future__ import annotations

import struct
from datetime import datetime, timedelta, timezone
from typing import Optional

from .errors import PrefsValueError

INT32_MIN = -(2**31)
INT32_MAX = 2**31 - 1

# Binary timestamp layout: 100ns ticks since 0001-01-01 in the low 62 bits,
# kind in the top two bits (00 unspecified, 01 UTC, 1x local).
TICKS_PER_SECOND = 10_000_000
TICKS_PER_MICROSECOND = 10
TICKS_PER_DAY = 86_400 * TICKS_PER_SECOND
TICKS_MASK = 0x3FFFFFFFFFFFFFFF
TICKS_CEILING = 0x4000000000000000
KIND_UTC = 0x4000000000000000
KIND_LOCAL = 0x8000000000000000
_UINT64_MASK = 0xFFFFFFFFFFFFFFFF

_EPOCH = datetime(1, 1, 1)


def to_int32(value: int) -> int:
    """Validate that ``value`` fits a signed 32-bit slot."""
    ivalue = int(value)
    if ivalue < INT32_MIN or ivalue > INT32_MAX:
        raise PrefsValueError(f"Integer {ivalue} does not fit in 32 bits")
    return ivalue


def to_float32(value: float) -> float:
    """Round ``value`` to the nearest IEEE-754 binary32 number."""
    try:
        return struct.unpack("<f", struct.pack("<f", float(value)))[0]
    except OverflowError as e:
        raise PrefsValueError(f"Float {value!r} is out of 32-bit range") from e


def to_utf8_str(value: str) -> str:
    """Reject strings that cannot be written as UTF-8 (lone surrogates)."""
    text = str(value)
    try:
        text.encode("utf-8")
    except UnicodeEncodeError as e:
        raise PrefsValueError(f"String is not valid UTF-8 at position {e.start}") from e
    return text


def bool_to_int(value: bool) -> int:
    return 1 if value else 0


def int_to_bool(value: int) -> bool:
    return value == 1


def _ticks_of(naive: datetime) -> int:
    delta = naive - _EPOCH
    return (delta.days * 86_400 + delta.seconds) * TICKS_PER_SECOND + delta.microseconds * TICKS_PER_MICROSECOND


def _from_ticks(ticks: int) -> datetime:
    if ticks < 0:
        raise ValueError(f"Tick count {ticks} precedes 0001-01-01")
    return _EPOCH + timedelta(microseconds=ticks // TICKS_PER_MICROSECOND)


def encode_datetime(value: datetime) -> int:
    """Encode a datetime as a signed 64-bit binary timestamp.

    Naive datetimes keep the unspecified kind. Aware datetimes are converted to
    UTC and flagged as such.
    """
    if value.tzinfo is not None and value.utcoffset() is not None:
        try:
            naive = value.astimezone(timezone.utc).replace(tzinfo=None)
        except OverflowError as e:
            raise PrefsValueError(f"Datetime {value!r} falls outside the range once converted to UTC") from e
        return _ticks_of(naive) | KIND_UTC
    return _ticks_of(value.replace(tzinfo=None))


def decode_datetime(binary: int) -> datetime:
    """Inverse of :func:`encode_datetime`.

    Local-kind values store UTC ticks and come back as aware UTC datetimes.
    Raises ValueError or OverflowError for values outside the datetime range.
    """
    raw = binary & _UINT64_MASK
    ticks = raw & TICKS_MASK
    if raw & KIND_LOCAL:
        # Negative UTC ticks wrap into the top of the range
        if ticks > TICKS_CEILING - TICKS_PER_DAY:
            ticks -= TICKS_CEILING
        return _from_ticks(ticks).replace(tzinfo=timezone.utc)
    if raw & KIND_UTC:
        return _from_ticks(ticks).replace(tzinfo=timezone.utc)
    return _from_ticks(ticks)


def format_datetime(value: datetime) -> str:
    """Locale-independent decimal form of the binary timestamp."""
    return str(encode_datetime(value))


def parse_datetime(text: Optional[str]) -> Optional[datetime]:
    """Parse a stored timestamp string, or return None if it is absent or malformed."""
    if not text:
        return None
    stripped = text.strip()
    if not stripped:
        return None
    try:
        binary = int(stripped, 10)
    except ValueError:
        return None
    if binary < -(2**63) or binary > 2**63 - 1:
        return None
    try:
        return decode_datetime(binary)
    except (ValueError, OverflowError):
        return None
