# data/db.py
import sqlite3
from pathlib import Path

from sortwise.domain.exceptions import DatabaseError


def connect(db_path: str, use_wal: bool = False) -> sqlite3.Connection:
    """Open the scan database, creating its parent directory when needed."""
    if db_path != ":memory:":
        Path(db_path).expanduser().parent.mkdir(parents=True, exist_ok=True)
    try:
        conn = sqlite3.connect(db_path)
        conn.execute("PRAGMA foreign_keys = ON;")
        conn.execute("PRAGMA busy_timeout = 30000;")

        if use_wal:
            conn.execute("PRAGMA journal_mode = WAL;")
            conn.execute("PRAGMA synchronous = NORMAL;")
        else:
            conn.execute("PRAGMA journal_mode = DELETE;")
            conn.execute("PRAGMA synchronous = NORMAL;")
            conn.execute("PRAGMA temp_store = MEMORY;")
    except sqlite3.Error as e:
        raise DatabaseError(f"Cannot open database: {e}", db_path=db_path).add_suggestion(
            "Check that the database path is writable"
        ) from e

    return conn
