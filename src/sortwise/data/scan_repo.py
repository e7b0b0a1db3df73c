"""SQLite-backed scan repository and feedback channel."""
import json
import logging
import sqlite3
from datetime import datetime, timezone
from typing import Iterable, List, Optional, Tuple

from sortwise.domain.exceptions import RepositoryError
from sortwise.domain.interfaces import FeedbackChannel, ScanRepository
from sortwise.domain.models import FeedbackAnnotation, ModelSlot, ScanRecord
from sortwise.models.classification import ClassificationInput, EnsembleMetrics, ReasonCode
from sortwise.utils.itertools import chunked

from .db import connect
from .schema import create_schema

logger = logging.getLogger(__name__)

_SCAN_COLUMNS = """
    scan_id, owner_id, created_at, image_ref,
    human_label, model_a_label, model_a_conf, model_b_label, model_b_conf,
    final_label, final_confidence, reason_code, metrics_json, points
"""

_INSERT_SCAN = """
    INSERT INTO scans
      (owner_id, created_at, image_ref,
       human_label, model_a_label, model_a_conf, model_b_label, model_b_conf,
       final_label, final_confidence, reason_code, metrics_json, points)
    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
"""


def utc_text(when: datetime) -> str:
    """ISO text in UTC so that string order in SQL is chronological; naive means UTC."""
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)
    return when.astimezone(timezone.utc).isoformat(timespec="microseconds")


def scan_row(record: ScanRecord) -> Tuple:
    """Flatten a ScanRecord into the INSERT parameter tuple."""
    return (
        record.owner_id,
        utc_text(record.created_at),
        record.image_ref,
        record.human.label,
        record.model_a.label,
        record.model_a.confidence,
        record.model_b.label,
        record.model_b.confidence,
        record.final_label,
        record.final_confidence,
        record.reason_code.value,
        json.dumps(record.metrics.to_dict()),
        record.points,
    )


def record_from_row(row: Tuple) -> ScanRecord:
    (scan_id, owner_id, created_at, image_ref,
     human, a_label, a_conf, b_label, b_conf,
     final_label, final_conf, reason, metrics_json, points) = row
    return ScanRecord(
        image_ref=image_ref,
        human=ClassificationInput(human),
        model_a=ClassificationInput(a_label, a_conf),
        model_b=ClassificationInput(b_label, b_conf),
        final_label=final_label,
        final_confidence=final_conf or 0.0,
        reason_code=ReasonCode(reason),
        metrics=EnsembleMetrics.from_dict(json.loads(metrics_json or "{}")),
        owner_id=owner_id,
        created_at=datetime.fromisoformat(created_at),
        points=points,
        scan_id=scan_id,
    )


class SqliteScanRepository(ScanRepository, FeedbackChannel):
    """Append-only storage for scans and their feedback in one SQLite file."""

    def __init__(self, conn: sqlite3.Connection, db_path: Optional[str] = None):
        self.conn = conn
        self.db_path = db_path
        create_schema(conn)

    @classmethod
    def open(cls, db_path: str, use_wal: bool = False) -> "SqliteScanRepository":
        return cls(connect(db_path, use_wal=use_wal), db_path=db_path)

    def close(self) -> None:
        self.conn.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    def _error(self, operation: str, e: Exception, scan_id: Optional[int] = None) -> RepositoryError:
        err = RepositoryError(f"{operation} failed: {e}", operation=operation, scan_id=scan_id)
        if self.db_path:
            err.add_context("db_path", self.db_path)
        return err

    # scans

    def append(self, record: ScanRecord) -> ScanRecord:
        try:
            with self.conn:
                cur = self.conn.execute(_INSERT_SCAN, scan_row(record))
        except sqlite3.Error as e:
            raise self._error("append", e) from e
        logger.debug("stored scan %d for %s", cur.lastrowid, record.owner_id)
        return record.with_id(cur.lastrowid)

    def bulk_append(self, records: Iterable[ScanRecord], chunk_size: int = 500) -> int:
        """Insert many records in a single transaction; returns how many were written."""
        written = 0
        try:
            with self.conn:
                for batch in chunked(records, chunk_size):
                    self.conn.executemany(_INSERT_SCAN, [scan_row(r) for r in batch])
                    written += len(batch)
        except sqlite3.Error as e:
            raise self._error("bulk_append", e) from e
        return written

    def get(self, scan_id: int) -> Optional[ScanRecord]:
        try:
            row = self.conn.execute(
                f"SELECT {_SCAN_COLUMNS} FROM scans WHERE scan_id = ?", (scan_id,)
            ).fetchone()
        except sqlite3.Error as e:
            raise self._error("get", e, scan_id=scan_id) from e
        return record_from_row(row) if row else None

    def list_for_owner(self, owner_id: str) -> List[ScanRecord]:
        try:
            rows = self.conn.execute(
                f"SELECT {_SCAN_COLUMNS} FROM scans WHERE owner_id = ? ORDER BY created_at, scan_id",
                (owner_id,),
            ).fetchall()
        except sqlite3.Error as e:
            raise self._error("list_for_owner", e) from e
        return [record_from_row(r) for r in rows]

    def count(self, owner_id: Optional[str] = None) -> int:
        if owner_id is None:
            return self.conn.execute("SELECT COUNT(*) FROM scans").fetchone()[0]
        return self.conn.execute("SELECT COUNT(*) FROM scans WHERE owner_id = ?", (owner_id,)).fetchone()[0]

    # feedback

    def append_feedback(self, feedback: FeedbackAnnotation) -> FeedbackAnnotation:
        try:
            with self.conn:
                exists = self.conn.execute(
                    "SELECT 1 FROM scans WHERE scan_id = ?", (feedback.scan_id,)
                ).fetchone()
                if not exists:
                    raise RepositoryError(
                        f"No scan with id {feedback.scan_id}",
                        operation="append_feedback",
                        scan_id=feedback.scan_id,
                    )
                cur = self.conn.execute(
                    """
                    INSERT INTO feedback (scan_id, was_correct, category, model_type, created_at)
                    VALUES (?, ?, ?, ?, ?)
                    """,
                    (
                        feedback.scan_id,
                        1 if feedback.was_correct else 0,
                        feedback.category,
                        ModelSlot.parse(feedback.model_type).value,
                        utc_text(feedback.created_at),
                    ),
                )
        except sqlite3.Error as e:
            raise self._error("append_feedback", e, scan_id=feedback.scan_id) from e
        return FeedbackAnnotation(
            scan_id=feedback.scan_id,
            was_correct=feedback.was_correct,
            category=feedback.category,
            model_type=ModelSlot.parse(feedback.model_type),
            created_at=feedback.created_at,
            feedback_id=cur.lastrowid,
        )

    def list_feedback(self, owner_id: Optional[str] = None) -> List[FeedbackAnnotation]:
        sql = """
            SELECT f.feedback_id, f.scan_id, f.was_correct, f.category, f.model_type, f.created_at
            FROM feedback f
        """
        params: Tuple = ()
        if owner_id is not None:
            sql += " JOIN scans s ON s.scan_id = f.scan_id WHERE s.owner_id = ?"
            params = (owner_id,)
        sql += " ORDER BY f.feedback_id"
        try:
            rows = self.conn.execute(sql, params).fetchall()
        except sqlite3.Error as e:
            raise self._error("list_feedback", e) from e
        return [
            FeedbackAnnotation(
                scan_id=scan_id,
                was_correct=bool(was_correct),
                category=category,
                model_type=ModelSlot.parse(model_type),
                created_at=datetime.fromisoformat(created_at),
                feedback_id=feedback_id,
            )
            for feedback_id, scan_id, was_correct, category, model_type, created_at in rows
        ]
