from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Callable, List, Optional, Sequence, TypeVar

from .backends.base import PrefsBackend
from .codec import (
    bool_to_int,
    format_datetime,
    int_to_bool,
    parse_datetime,
    to_float32,
    to_int32,
    to_utf8_str,
)
from .errors import PrefsSerializationError, PrefsValueError
from .keys import COLOR_SUFFIXES, VECTOR3_SUFFIXES, component_keys, count_key, index_key, scalar_key
from .models import Color, PrefObject, Vector3

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Count read when an array was never saved, as opposed to saved empty (0).
ABSENT_COUNT = -1


class PrefsStore:
    """Typed save/load helpers over a flat preference backend.

    Every key is prefixed with the store's namespace (``id``), so several
    stores can share one backend without colliding. Arrays are stored as a
    ``<key>_Count`` entry plus one entry per element at ``<key>_<i>``.

    Loads never raise for missing or malformed data; they fall back to the
    caller's default. Backend failures propagate.
    """

    def __init__(self, namespace: str, backend: PrefsBackend) -> None:
        if not isinstance(namespace, str):
            raise TypeError("namespace must be a string")
        self._id = namespace
        self._backend = backend

    @property
    def id(self) -> str:
        return self._id

    @property
    def backend(self) -> PrefsBackend:
        return self._backend

    def key_for(self, key: str) -> str:
        """Composite key written to the backend for ``key``."""
        return scalar_key(self._id, key)

    # Scalars

    def save_int(self, key: str, value: int) -> None:
        self._backend.set_int(self.key_for(key), to_int32(value))

    def load_int(self, key: str, default: int = 0) -> int:
        return self._backend.get_int(self.key_for(key), default)

    def save_float(self, key: str, value: float) -> None:
        self._backend.set_float(self.key_for(key), to_float32(value))

    def load_float(self, key: str, default: float = 0.0) -> float:
        return self._backend.get_float(self.key_for(key), default)

    def save_str(self, key: str, value: str) -> None:
        self._backend.set_str(self.key_for(key), to_utf8_str(value))

    def load_str(self, key: str, default: str = "") -> str:
        return self._backend.get_str(self.key_for(key), default)

    def save_bool(self, key: str, value: bool) -> None:
        self._backend.set_int(self.key_for(key), bool_to_int(value))

    def load_bool(self, key: str, default: bool = False) -> bool:
        return int_to_bool(self._backend.get_int(self.key_for(key), bool_to_int(default)))

    def save_datetime(self, key: str, value: datetime) -> None:
        self._backend.set_str(self.key_for(key), format_datetime(value))

    def load_datetime(self, key: str, default: datetime) -> datetime:
        parsed = parse_datetime(self._backend.get_str(self.key_for(key), ""))
        if parsed is None:
            return default
        return parsed

    def save_vector3(self, key: str, value: Vector3) -> None:
        self._save_components(key, VECTOR3_SUFFIXES, tuple(value))

    def load_vector3(self, key: str, default: Vector3) -> Vector3:
        values = self._load_components(key, VECTOR3_SUFFIXES)
        if values is None:
            return default
        return Vector3(*values)

    def save_color(self, key: str, value: Color) -> None:
        self._save_components(key, COLOR_SUFFIXES, tuple(value.clamped()))

    def load_color(self, key: str, default: Color) -> Color:
        values = self._load_components(key, COLOR_SUFFIXES)
        if values is None:
            return default
        return Color(*values)

    def _save_components(self, key: str, suffixes: Sequence[str], values: Sequence[float]) -> None:
        encoded = [to_float32(v) for v in values]
        with self._backend.lock:
            for k, v in zip(component_keys(self.key_for(key), tuple(suffixes)), encoded):
                self._backend.set_float(k, v)

    def _load_components(self, key: str, suffixes: Sequence[str]) -> Optional[List[float]]:
        keys = component_keys(self.key_for(key), tuple(suffixes))
        with self._backend.lock:
            # Partial presence, or a component stored with another type, counts as absence
            values = [self._backend.get_float(k, None) for k in keys]
        if any(v is None for v in values):
            return None
        return values

    # Serializable objects

    def save_object(self, key: str, value: PrefObject) -> None:
        self._backend.set_str(self.key_for(key), to_utf8_str(value.serialize()))

    def load_object(
        self,
        key: str,
        deserialize: Callable[[str], T],
        default: Optional[T] = None,
        default_factory: Optional[Callable[[], T]] = None,
    ) -> Optional[T]:
        """Load an object saved with :meth:`save_object`.

        Returns ``deserialize(data)`` when a non-empty string is stored,
        otherwise ``default_factory()`` if given, else ``default``. Errors
        raised by ``deserialize`` reach the caller.
        """
        data = self._backend.get_str(self.key_for(key), "")
        if data:
            return deserialize(data)
        if default_factory is not None:
            return default_factory()
        return default

    # Arrays

    def save_int_array(self, key: str, values: Sequence[int]) -> None:
        self._save_array(key, [to_int32(v) for v in values], self._backend.set_int)

    def load_int_array(self, key: str, default: Any = None) -> Any:
        return self._load_array(key, default, lambda k: self._backend.get_int(k, 0))

    def save_float_array(self, key: str, values: Sequence[float]) -> None:
        self._save_array(key, [to_float32(v) for v in values], self._backend.set_float)

    def load_float_array(self, key: str, default: Any = None) -> Any:
        return self._load_array(key, default, lambda k: self._backend.get_float(k, 0.0))

    def save_str_array(self, key: str, values: Sequence[str]) -> None:
        self._save_array(key, [to_utf8_str(v) for v in values], self._backend.set_str)

    def load_str_array(self, key: str, default: Any = None) -> Any:
        return self._load_array(key, default, lambda k: self._backend.get_str(k, ""))

    def save_bool_array(self, key: str, values: Sequence[bool]) -> None:
        self._save_array(key, [bool_to_int(v) for v in values], self._backend.set_int)

    def load_bool_array(self, key: str, default: Any = None) -> Any:
        return self._load_array(key, default, lambda k: int_to_bool(self._backend.get_int(k, 0)))

    def save_object_array(self, key: str, values: Sequence[PrefObject], strict: bool = False) -> bool:
        """Serialize every element, then write the array in one pass.

        If any element fails to serialize nothing is written and the
        previously stored array stays as it was. With ``strict`` the first
        failure is raised as PrefsSerializationError; otherwise failures are
        logged and False is returned.
        """
        encoded: List[str] = []
        failures = []
        for i, value in enumerate(values):
            try:
                encoded.append(to_utf8_str(value.serialize()))
            except Exception as e:  # noqa: BLE001 serializers are caller code
                logger.error("%s - %s could not serialize value %d. Message: %s", self._id, key, i, e)
                failures.append((i, e))
        if failures:
            index, exc = failures[0]
            if strict:
                raise PrefsSerializationError(
                    f"{self._id}{key}: element {index} could not be serialized: {exc}"
                ) from exc
            logger.error(
                "%s - %s not saved: %d of %d elements failed to serialize; keeping previous data",
                self._id,
                key,
                len(failures),
                len(values),
            )
            return False
        self._save_array(key, encoded, self._backend.set_str)
        return True

    def load_object_array(
        self,
        key: str,
        deserialize: Callable[[str], T],
        default: Optional[List[T]] = None,
    ) -> List[T]:
        """Load an array saved with :meth:`save_object_array`.

        Elements stored empty or failing to deserialize are skipped and logged.
        Reading stops at the first missing index.
        """
        base = self.key_for(key)
        results: List[T] = []
        with self._backend.lock:
            count = self._backend.get_int(count_key(base), ABSENT_COUNT)
            if count == ABSENT_COUNT:
                return default if default is not None else []
            for i in range(count):
                k = index_key(base, i)
                if not self._backend.has_key(k):
                    logger.debug("Array %s stops at missing index %d of %d", base, i, count)
                    break
                data = self._backend.get_str(k, "")
                if not data:
                    logger.warning("%s - %s has no data under index %d; skipping", self._id, key, i)
                    continue
                try:
                    results.append(deserialize(data))
                except Exception as e:  # noqa: BLE001 deserializers are caller code
                    logger.error("%s - Could not deserialize key %s under index %d. Error: %s", self._id, key, i, e)
        return results

    def clear_array_keys(self, key: str, new_length: int) -> None:
        """Delete element entries from ``new_length`` up to the stored count."""
        with self._backend.lock:
            self._clear_array_keys(self.key_for(key), new_length)

    def delete_array(self, key: str) -> None:
        base = self.key_for(key)
        with self._backend.lock:
            self._clear_array_keys(base, 0)
            self._backend.delete_key(count_key(base))

    def _clear_array_keys(self, base: str, new_length: int) -> None:
        old_count = self._backend.get_int(count_key(base), 0)
        for i in range(max(new_length, 0), old_count):
            self._backend.delete_key(index_key(base, i))
        if old_count > new_length:
            logger.debug("Cleared %d stale entries of %s", old_count - max(new_length, 0), base)

    def _save_array(self, key: str, values: List[Any], setter: Callable[[str, Any], None]) -> None:
        base = self.key_for(key)
        with self._backend.lock:
            self._clear_array_keys(base, len(values))
            self._backend.set_int(count_key(base), len(values))
            for i, value in enumerate(values):
                setter(index_key(base, i), value)
        logger.debug("Saved %d elements under %s", len(values), base)

    def _load_array(self, key: str, default: Any, getter: Callable[[str], Any]) -> Any:
        base = self.key_for(key)
        with self._backend.lock:
            count = self._backend.get_int(count_key(base), ABSENT_COUNT)
            if count == ABSENT_COUNT:
                return default
            values = []
            for i in range(count):
                k = index_key(base, i)
                if not self._backend.has_key(k):
                    logger.debug("Array %s stops at missing index %d of %d", base, i, count)
                    break
                values.append(getter(k))
            return values

    # Generic dispatch

    def save(self, key: str, value: Any, strict: bool = False) -> Optional[bool]:
        """Save ``value`` with the method matching its type.

        Sequences must be homogeneous; an empty sequence is saved as an empty
        array. Returns what the dispatched method returns (only object arrays
        return a value).
        """
        if isinstance(value, (list, tuple)):
            return self._save_sequence(key, value, strict)
        kind = _kind_of(value)
        if kind == "bool":
            self.save_bool(key, value)
        elif kind == "int":
            self.save_int(key, value)
        elif kind == "float":
            self.save_float(key, value)
        elif kind == "str":
            self.save_str(key, value)
        elif kind == "datetime":
            self.save_datetime(key, value)
        elif kind == "vector3":
            self.save_vector3(key, value)
        elif kind == "color":
            self.save_color(key, value)
        elif kind == "object":
            self.save_object(key, value)
        else:
            raise PrefsValueError(f"Cannot save value of type {type(value).__name__}")
        return None

    def _save_sequence(self, key: str, values: Sequence[Any], strict: bool) -> Optional[bool]:
        if not values:
            self._save_array(key, [], self._backend.set_int)
            return None
        kinds = {_kind_of(v) for v in values}
        if len(kinds) != 1:
            raise PrefsValueError(f"Array {key!r} mixes element types: {sorted(str(k) for k in kinds)}")
        kind = kinds.pop()
        if kind == "bool":
            self.save_bool_array(key, values)
        elif kind == "int":
            self.save_int_array(key, values)
        elif kind == "float":
            self.save_float_array(key, values)
        elif kind == "str":
            self.save_str_array(key, values)
        elif kind == "object":
            return self.save_object_array(key, values, strict=strict)
        else:
            raise PrefsValueError(f"Arrays of {type(values[0]).__name__} are not supported")
        return None

    def load(self, key: str, default: Any, deserialize: Optional[Callable[[str], Any]] = None) -> Any:
        """Load ``key`` with the method matching the type of ``default``.

        Objects and object arrays need ``deserialize``. A list default must be
        non-empty so its element type is known, unless ``deserialize`` is
        given.
        """
        if deserialize is not None:
            if isinstance(default, (list, tuple)):
                return self.load_object_array(key, deserialize, default=default)
            return self.load_object(key, deserialize, default=default)
        if isinstance(default, (list, tuple)):
            if not default:
                raise PrefsValueError(f"Cannot infer element type of empty default for {key!r}")
            kinds = {_kind_of(v) for v in default}
            kind = kinds.pop() if len(kinds) == 1 else None
            loaders = {
                "bool": self.load_bool_array,
                "int": self.load_int_array,
                "float": self.load_float_array,
                "str": self.load_str_array,
            }
            if kind not in loaders:
                raise PrefsValueError(f"Cannot load array {key!r} from default {default!r}")
            return loaders[kind](key, default)
        kind = _kind_of(default)
        if kind == "bool":
            return self.load_bool(key, default)
        if kind == "int":
            return self.load_int(key, default)
        if kind == "float":
            return self.load_float(key, default)
        if kind == "str":
            return self.load_str(key, default)
        if kind == "datetime":
            return self.load_datetime(key, default)
        if kind == "vector3":
            return self.load_vector3(key, default)
        if kind == "color":
            return self.load_color(key, default)
        if kind == "object":
            raise PrefsValueError(f"Loading object {key!r} requires a deserialize function")
        raise PrefsValueError(f"Cannot load value of type {type(default).__name__}")

    # Key management

    def has_key(self, key: str) -> bool:
        return self._backend.has_key(self.key_for(key))

    def delete_key(self, key: str) -> None:
        self._backend.delete_key(self.key_for(key))

    def write_to_disk(self) -> None:
        """Flush the backend to persistent media."""
        self._backend.flush()


def _kind_of(value: Any) -> Optional[str]:
    # bool before int: bool is an int subclass
    if isinstance(value, bool):
        return "bool"
    if isinstance(value, int):
        return "int"
    if isinstance(value, float):
        return "float"
    if isinstance(value, str):
        return "str"
    if isinstance(value, datetime):
        return "datetime"
    if isinstance(value, Vector3):
        return "vector3"
    if isinstance(value, Color):
        return "color"
    if isinstance(value, PrefObject):
        return "object"
    return None
