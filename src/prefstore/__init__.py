"""Namespaced, typed preference storage.

This package provides:
- PrefsStore: typed save/load of ints, floats, strings, bools, timestamps,
  vectors, colors, serializable objects and arrays of them under a key prefix
- Backends: an in-memory store and a JSON file store with atomic writes and backups
- A stable key format (``<ns><key>``, ``_Count``, ``_<i>``, ``_x``..., ``_r``...)
  shared with existing preference files
"""

from .backends import InMemoryBackend, JsonFileBackend, PrefsBackend
from .errors import (
    CorruptPrefsError,
    PrefsBackendError,
    PrefsError,
    PrefsSerializationError,
    PrefsValueError,
)
from .models import Color, PrefObject, Vector3
from .store import PrefsStore

__version__ = "0.1.0"

__all__ = [
    "PrefsStore",
    "PrefsBackend",
    "InMemoryBackend",
    "JsonFileBackend",
    "PrefObject",
    "Vector3",
    "Color",
    "PrefsError",
    "PrefsValueError",
    "PrefsSerializationError",
    "PrefsBackendError",
    "CorruptPrefsError",
]
