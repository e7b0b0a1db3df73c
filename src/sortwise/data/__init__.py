"""SQLite persistence for scans and feedback."""

from .db import connect
from .schema import create_schema
from .scan_repo import SqliteScanRepository

__all__ = ["connect", "create_schema", "SqliteScanRepository"]
