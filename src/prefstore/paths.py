from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from platformdirs import PlatformDirs

APP_NAME = "prefstore"
PREFS_FILENAME = "prefs.json"

logger = logging.getLogger(__name__)


def default_prefs_dir(app_name: str = APP_NAME, app_author: Optional[str] = None) -> Path:
    """Return the per-user config directory for ``app_name``.

    Linux: ~/.config/<app_name>
    macOS: ~/Library/Application Support/<app_name>
    Windows: %LOCALAPPDATA%\\<app_author>\\<app_name>
    """
    d = PlatformDirs(appname=app_name, appauthor=app_author or False)
    return Path(d.user_config_dir)


def default_prefs_path(app_name: str = APP_NAME, app_author: Optional[str] = None) -> Path:
    return default_prefs_dir(app_name, app_author) / PREFS_FILENAME


def ensure_dir(path: Path) -> Path:
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        logger.error("Failed to create directory '%s': %s", path, exc)
        raise
    return path
