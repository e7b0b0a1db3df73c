# config/resolvers.py
import os
from pathlib import Path
from typing import Optional

from platformdirs import user_data_dir, user_log_dir

APP = "sortwise"
SCHEMA_VERSION = 1  # increment when schema changes


def data_dir() -> Path:
    """Per-user data directory; SORTWISE_HOME overrides it."""
    override = os.environ.get("SORTWISE_HOME")
    p = Path(override).expanduser() if override else Path(user_data_dir(APP))
    p.mkdir(parents=True, exist_ok=True)
    return p


def default_db_path() -> Path:
    return data_dir() / f"scans-v{SCHEMA_VERSION}.sqlite"


def default_image_root() -> Path:
    return data_dir() / "images"


def default_log_dir() -> Path:
    return Path(user_log_dir(APP))


def resolve_db_path(db_path: Optional[str]) -> Path:
    """Use the given path, or the per-user default database."""
    if db_path:
        p = Path(db_path).expanduser()
        if p.exists() and p.is_dir():
            raise ValueError(f"Database path is a directory: {p}")
        return p
    return default_db_path()


def resolve_image_root(image_root: Optional[str]) -> Path:
    if image_root:
        p = Path(image_root).expanduser()
        if p.exists() and not p.is_dir():
            raise ValueError(f"Image root is not a directory: {p}")
        return p
    return default_image_root()
