from __future__ import annotations

import json
import logging
import os
import shutil
from functools import lru_cache
from importlib import resources
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from jsonschema import Draft202012Validator

from ..errors import CorruptPrefsError, PrefsBackendError
from ..paths import APP_NAME, default_prefs_path, ensure_dir
from .memory import FLOAT, INT, STRING, InMemoryBackend

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1


@lru_cache(maxsize=1)
def _load_schema() -> Dict[str, Any]:
    with resources.files("prefstore.schemas").joinpath("prefs.schema.json").open("r", encoding="utf-8") as f:
        return json.load(f)


def validate_prefs_document(data: Any) -> None:
    """Validate a decoded prefs file.

    Raises:
        jsonschema.ValidationError if the document does not match the schema.
    """
    validator = Draft202012Validator(_load_schema())
    errors = sorted(validator.iter_errors(data), key=lambda e: list(e.path))
    if errors:
        for err in errors:
            logger.error("Prefs schema validation error at %s: %s", list(err.path), err.message)
        raise errors[0]


def encode_entries(entries: Dict[str, Tuple[str, Any]]) -> str:
    data = {
        "schema_version": SCHEMA_VERSION,
        "entries": {k: {"type": kind, "value": v} for k, (kind, v) in entries.items()},
    }
    return json.dumps(data, ensure_ascii=False, sort_keys=True, indent=2)


def decode_entries(text: str) -> Dict[str, Tuple[str, Any]]:
    data = json.loads(text)
    validate_prefs_document(data)
    version = data["schema_version"]
    if version > SCHEMA_VERSION:
        raise ValueError(f"Prefs schema version {version} is newer than supported {SCHEMA_VERSION}.")
    entries: Dict[str, Tuple[str, Any]] = {}
    for key, entry in data["entries"].items():
        kind = entry["type"]
        value = entry["value"]
        if kind == INT:
            entries[key] = (INT, int(value))
        elif kind == FLOAT:
            entries[key] = (FLOAT, float(value))
        else:
            entries[key] = (STRING, str(value))
    return entries


class JsonFileBackend(InMemoryBackend):
    """Backend persisted to a single JSON file.

    Entries are loaded once on construction and kept in memory; the file is
    rewritten only by ``flush``. Writes go through a temp file and
    ``os.replace`` and keep the previous file as ``<name>.bak``.
    """

    def __init__(self, path: Optional[Path] = None, app_name: str = APP_NAME) -> None:
        super().__init__()
        self.path = Path(path) if path is not None else default_prefs_path(app_name)
        self.backup_path = self.path.with_suffix(self.path.suffix + ".bak")
        self._entries = self._load()

    def _load(self) -> Dict[str, Tuple[str, Any]]:
        if not self.path.exists() and not self.backup_path.exists():
            logger.info("Prefs file %s not found; starting empty", self.path)
            return {}
        primary_exc: Optional[Exception] = None
        try:
            entries = self._read(self.path)
            logger.info("Loaded %d prefs entries from %s", len(entries), self.path)
            return entries
        except Exception as e:  # noqa: BLE001 any decode failure triggers backup recovery
            primary_exc = e
        if self.backup_path.exists():
            try:
                entries = self._read(self.backup_path)
                logger.warning(
                    "Prefs file %s unreadable (%s); recovered from %s", self.path, primary_exc, self.backup_path
                )
                return entries
            except Exception as e:  # noqa: BLE001
                logger.error("Prefs backup %s is also unreadable: %s", self.backup_path, e)
        raise CorruptPrefsError(f"Unable to load prefs from {self.path}: {primary_exc}")

    def _read(self, path: Path) -> Dict[str, Tuple[str, Any]]:
        with path.open("r", encoding="utf-8") as f:
            text = f.read()
        return decode_entries(text)

    def flush(self) -> None:
        with self.lock:
            try:
                self._atomic_write(encode_entries(self._entries))
            except (OSError, UnicodeError, ValueError) as e:
                logger.error("Failed to write prefs to %s: %s", self.path, e)
                raise PrefsBackendError(f"Failed to write prefs to {self.path}: {e}") from e
            self.flush_count += 1
            logger.info("Flushed %d prefs entries to %s", len(self._entries), self.path)

    def _atomic_write(self, text: str) -> None:
        ensure_dir(self.path.parent)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        logger.debug("Writing prefs to temporary file: %s", tmp)
        try:
            with tmp.open("w", encoding="utf-8") as f:
                f.write(text)
                f.flush()
                os.fsync(f.fileno())
            if self.path.exists():
                shutil.copy2(str(self.path), str(self.backup_path))
            os.replace(tmp, self.path)
        finally:
            if tmp.exists():
                try:
                    tmp.unlink()
                except OSError:
                    logger.debug("Could not remove temp file %s", tmp, exc_info=True)
        if not self.backup_path.exists():
            shutil.copy2(str(self.path), str(self.backup_path))
