from __future__ import annotations

from typing import Any, Dict, Iterable, Optional, Tuple

from .base import PrefsBackend

INT = "int"
FLOAT = "float"
STRING = "string"


class InMemoryBackend(PrefsBackend):
    """Test/ephemeral backend that holds entries in a dict only.

    ``flush_count`` records how many times ``flush`` was called.
    """

    def __init__(self, entries: Optional[Dict[str, Tuple[str, Any]]] = None) -> None:
        super().__init__()
        self._entries: Dict[str, Tuple[str, Any]] = dict(entries or {})
        self.flush_count = 0

    def _get(self, key: str, kind: str, default: Any) -> Any:
        entry = self._entries.get(key)
        if entry is None or entry[0] != kind:
            return default
        return entry[1]

    def get_int(self, key: str, default: int = 0) -> int:
        return self._get(key, INT, default)

    def set_int(self, key: str, value: int) -> None:
        with self.lock:
            self._entries[key] = (INT, int(value))

    def get_float(self, key: str, default: float = 0.0) -> float:
        return self._get(key, FLOAT, default)

    def set_float(self, key: str, value: float) -> None:
        with self.lock:
            self._entries[key] = (FLOAT, float(value))

    def get_str(self, key: str, default: Optional[str] = "") -> Optional[str]:
        return self._get(key, STRING, default)

    def set_str(self, key: str, value: str) -> None:
        with self.lock:
            self._entries[key] = (STRING, str(value))

    def has_key(self, key: str) -> bool:
        return key in self._entries

    def delete_key(self, key: str) -> None:
        with self.lock:
            self._entries.pop(key, None)

    def keys(self) -> Iterable[str]:
        with self.lock:
            return list(self._entries.keys())

    def flush(self) -> None:
        self.flush_count += 1
