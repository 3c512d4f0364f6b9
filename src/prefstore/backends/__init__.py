"""Backends: flat string-keyed preference stores that ``PrefsStore`` writes through."""

from .base import PrefsBackend
from .memory import InMemoryBackend
from .json_file import JsonFileBackend, validate_prefs_document

__all__ = ["PrefsBackend", "InMemoryBackend", "JsonFileBackend", "validate_prefs_document"]
