"""SQLite output sink for canonical records and harvest run history."""

import json
import sqlite3
from pathlib import Path
from typing import Protocol

from src.core.schemas import CanonicalRecord, HarvestSummary

_RECORDS_TABLE = """
CREATE TABLE IF NOT EXISTS records (
    row_id           INTEGER PRIMARY KEY AUTOINCREMENT,
    id               TEXT NOT NULL UNIQUE,
    channel          TEXT NOT NULL,
    title            TEXT,
    company          TEXT,
    location         TEXT,
    salary           TEXT,
    job_type         TEXT,
    date_posted      TEXT,
    url              TEXT,
    description_html TEXT,
    description_text TEXT,
    experience_level TEXT,
    remote_work      TEXT,
    apply_url        TEXT,
    fetched_at       TEXT NOT NULL
);
"""

_HARVEST_RUNS_TABLE = """
CREATE TABLE IF NOT EXISTS harvest_runs (
    id               INTEGER PRIMARY KEY AUTOINCREMENT,
    criteria_json    TEXT    NOT NULL,
    pages_processed  INTEGER NOT NULL,
    records_saved    INTEGER NOT NULL,
    remote_calls     INTEGER NOT NULL,
    errors           INTEGER NOT NULL,
    fallback_used    INTEGER NOT NULL,
    elapsed_s        REAL    NOT NULL,
    started_at       TEXT    NOT NULL,
    finished_at      TEXT    NOT NULL
);
"""

_RECORD_COLUMNS = (
    "id",
    "channel",
    "title",
    "company",
    "location",
    "salary",
    "job_type",
    "date_posted",
    "url",
    "description_html",
    "description_text",
    "experience_level",
    "remote_work",
    "apply_url",
    "fetched_at",
)


class RecordSink(Protocol):
    """Append-only destination for canonical records."""

    def write(self, record: CanonicalRecord) -> bool: ...


def init_db(path: str | Path) -> sqlite3.Connection:
    """Create the database and tables, returning a connection."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(path))
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute(_RECORDS_TABLE)
    conn.execute(_HARVEST_RUNS_TABLE)
    conn.commit()
    return conn


def insert_record(conn: sqlite3.Connection, record: CanonicalRecord) -> bool:
    """Append a record. Never updates an existing row.

    Returns True if a new row was inserted, False if the id already existed.
    """
    data = record.model_dump()
    data["fetched_at"] = record.fetched_at.isoformat()
    placeholders = ", ".join("?" for _ in _RECORD_COLUMNS)
    try:
        conn.execute(
            f"INSERT INTO records ({', '.join(_RECORD_COLUMNS)}) VALUES ({placeholders})",
            tuple(data[col] for col in _RECORD_COLUMNS),
        )
        conn.commit()
        return True
    except sqlite3.IntegrityError:
        return False


def insert_harvest_run(
    conn: sqlite3.Connection,
    criteria_json: str,
    summary: HarvestSummary,
) -> int:
    """Record a finished harvest. Returns the row ID."""
    cursor = conn.execute(
        """
        INSERT INTO harvest_runs
            (criteria_json, pages_processed, records_saved, remote_calls, errors,
             fallback_used, elapsed_s, started_at, finished_at)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
        """,
        (
            criteria_json,
            summary.pages_processed,
            summary.records_saved,
            summary.remote_calls,
            summary.errors,
            int(summary.fallback_used),
            summary.elapsed_s,
            summary.started_at.isoformat(),
            summary.finished_at.isoformat(),
        ),
    )
    conn.commit()
    return cursor.lastrowid or 0


def count_records(conn: sqlite3.Connection) -> int:
    row = conn.execute("SELECT COUNT(*) FROM records").fetchone()
    return int(row[0])


def export_records_json(conn: sqlite3.Connection) -> str:
    """Export every stored record as a JSON string, in insertion order."""
    rows = conn.execute(
        f"SELECT {', '.join(_RECORD_COLUMNS)} FROM records ORDER BY row_id",
    ).fetchall()
    return json.dumps([dict(row) for row in rows], indent=2, ensure_ascii=False)


class SqliteSink:
    """RecordSink backed by the ``records`` table."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def write(self, record: CanonicalRecord) -> bool:
        return insert_record(self._conn, record)
