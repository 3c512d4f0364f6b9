"""Composite key naming.

Every key written to a backend is ``namespace + key`` with an optional
``"_" + suffix``. The format must stay byte-for-byte stable so existing
preference files keep loading.
"""
from __future__ import annotations

from typing import Tuple

COUNT_SUFFIX = "_Count"
INDEX_SEPARATOR = "_"

VECTOR3_SUFFIXES: Tuple[str, ...] = ("_x", "_y", "_z")
COLOR_SUFFIXES: Tuple[str, ...] = ("_r", "_g", "_b", "_a")


def scalar_key(namespace: str, key: str) -> str:
    return namespace + key


def count_key(base: str) -> str:
    return base + COUNT_SUFFIX


def index_key(base: str, index: int) -> str:
    if index < 0:
        raise ValueError(f"Array index must be non-negative, got {index}")
    return f"{base}{INDEX_SEPARATOR}{index:d}"


def component_keys(base: str, suffixes: Tuple[str, ...]) -> Tuple[str, ...]:
    return tuple(base + s for s in suffixes)
