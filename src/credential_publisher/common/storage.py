"""Data storage helpers."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Final

APP_DIR_NAME: Final[str] = "credential-publisher"
HTTP_CACHE_FILENAME: Final[str] = "http_cache.db"
VOCABULARY_FILENAME: Final[str] = "vocabulary.json"


def get_data_dir() -> Path:
    """Return the directory where the publisher keeps its cache and vocabulary."""

    env_dir = os.getenv("CREDENTIAL_PUBLISHER_DATA_DIR")
    if env_dir:
        return Path(env_dir).expanduser().resolve()

    if os.name == "nt":
        base = os.getenv("LOCALAPPDATA")
        base_path = Path(base) if base else (Path.home() / "AppData" / "Local")
    else:
        base = os.getenv("XDG_DATA_HOME")
        base_path = Path(base) if base else (Path.home() / ".local" / "share")

    return (base_path / APP_DIR_NAME).expanduser().resolve()


def ensure_data_dir(path: Path | None = None) -> Path:
    """Ensure the data directory exists and return it."""

    data_dir = path or get_data_dir()
    data_dir.mkdir(parents=True, exist_ok=True)
    return data_dir


def get_http_cache_path() -> Path:
    """Return the sqlite path backing the HTTP response cache."""

    return ensure_data_dir() / HTTP_CACHE_FILENAME


def get_vocabulary_path() -> Path:
    """Return where a downloaded vocabulary is stored, honouring ``VOCABULARY_PATH``."""

    env_path = os.getenv("VOCABULARY_PATH")
    if env_path:
        return Path(env_path).expanduser().resolve()
    return get_data_dir() / VOCABULARY_FILENAME
