"""Create the tables that hold scans and feedback."""
import sqlite3


def create_schema(con: sqlite3.Connection) -> sqlite3.Connection:
    """Create the scan database schema if it does not exist. Safe to call repeatedly."""
    with con:
        con.executescript("""
            CREATE TABLE IF NOT EXISTS scans(
                scan_id          INTEGER PRIMARY KEY AUTOINCREMENT,
                owner_id         TEXT    NOT NULL,
                created_at       TEXT    NOT NULL,
                image_ref        TEXT,
                human_label      TEXT,
                model_a_label    TEXT,
                model_a_conf     REAL,
                model_b_label    TEXT,
                model_b_conf     REAL,
                final_label      TEXT,
                final_confidence REAL    NOT NULL DEFAULT 0,
                reason_code      TEXT    NOT NULL,
                metrics_json     TEXT    NOT NULL,
                points           INTEGER NOT NULL DEFAULT 10
            );

            CREATE TABLE IF NOT EXISTS feedback(
                feedback_id  INTEGER PRIMARY KEY AUTOINCREMENT,
                scan_id      INTEGER NOT NULL REFERENCES scans(scan_id),
                was_correct  BOOLEAN NOT NULL,
                category     TEXT    NOT NULL,
                model_type   TEXT    NOT NULL,
                created_at   TEXT    NOT NULL
            );

            CREATE INDEX IF NOT EXISTS idx_scans_owner_created ON scans(owner_id, created_at, scan_id);
            CREATE INDEX IF NOT EXISTS idx_feedback_scan ON feedback(scan_id);
            CREATE INDEX IF NOT EXISTS idx_feedback_category ON feedback(category, model_type);
        """)
    return con


def existing_tables(con: sqlite3.Connection) -> set:
    rows = con.execute("""
        SELECT name FROM sqlite_master
        WHERE type='table' AND name IN ('scans','feedback')
    """).fetchall()
    return {row[0] for row in rows}
