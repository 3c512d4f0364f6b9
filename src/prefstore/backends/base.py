from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from typing import Iterable, Optional


class PrefsBackend(ABC):
    """Abstract flat, string-keyed preference store.

    Entries are typed: a value written with ``set_int`` is only visible to
    ``get_int``; the other getters return their default for it. Getters never
    raise for a missing key.

    ``lock`` is re-entrant and shared by every store that wraps this backend,
    so callers can group multi-key sequences.
    """

    def __init__(self) -> None:
        self.lock = threading.RLock()

    @abstractmethod
    def get_int(self, key: str, default: int = 0) -> int:
        """Return the int stored at ``key`` or ``default``."""

    @abstractmethod
    def set_int(self, key: str, value: int) -> None:
        """Store an int at ``key``, replacing any previous entry."""

    @abstractmethod
    def get_float(self, key: str, default: float = 0.0) -> float:
        """Return the float stored at ``key`` or ``default``."""

    @abstractmethod
    def set_float(self, key: str, value: float) -> None:
        """Store a float at ``key``, replacing any previous entry."""

    @abstractmethod
    def get_str(self, key: str, default: Optional[str] = "") -> Optional[str]:
        """Return the string stored at ``key`` or ``default``."""

    @abstractmethod
    def set_str(self, key: str, value: str) -> None:
        """Store a string at ``key``, replacing any previous entry."""

    @abstractmethod
    def has_key(self, key: str) -> bool:
        """True if any entry exists at ``key``."""

    @abstractmethod
    def delete_key(self, key: str) -> None:
        """Remove ``key``. Missing keys are ignored."""

    @abstractmethod
    def keys(self) -> Iterable[str]:
        """All keys currently held."""

    @abstractmethod
    def flush(self) -> None:
        """Synchronously persist every pending change."""
