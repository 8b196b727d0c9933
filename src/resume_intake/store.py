"""SQLite persistence for candidates, the ingestion log and resume files."""

from __future__ import annotations

import re
import sqlite3
import time
from datetime import datetime
from pathlib import Path

from .constants import INTAKE_DB_PATH, LOG_STATUSES, RESUME_DIR
from .models import Candidate, LogEntry

_CREATE_TABLES_SQL = """
CREATE TABLE IF NOT EXISTS candidates (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    email TEXT NOT NULL UNIQUE,
    name TEXT,
    phone TEXT,
    domain TEXT,
    experience_level TEXT,
    notice_period TEXT,
    resume_url TEXT,
    resume_text TEXT,
    status TEXT,
    source TEXT,
    created_at TEXT
);

CREATE TABLE IF NOT EXISTS ingestion_log (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    message_id TEXT NOT NULL UNIQUE,
    uid TEXT,
    sender TEXT,
    subject TEXT,
    attachment_name TEXT,
    candidate_id INTEGER,
    status TEXT NOT NULL,
    error_message TEXT,
    processed_at TEXT,
    FOREIGN KEY (candidate_id) REFERENCES candidates(id)
);

CREATE TABLE IF NOT EXISTS scan_state (
    id INTEGER PRIMARY KEY CHECK (id = 1),
    last_scan_time TEXT,
    last_error TEXT,
    total_processed INTEGER NOT NULL DEFAULT 0
);
"""

_CANDIDATE_COLUMNS = (
    "email",
    "name",
    "phone",
    "domain",
    "experience_level",
    "notice_period",
    "resume_url",
    "resume_text",
    "status",
    "source",
    "created_at",
)

_LOG_COLUMNS = (
    "message_id",
    "uid",
    "sender",
    "subject",
    "attachment_name",
    "candidate_id",
    "status",
    "error_message",
    "processed_at",
)


def _row_to_candidate(row: sqlite3.Row) -> Candidate:
    return Candidate(id=row["id"], **{col: row[col] for col in _CANDIDATE_COLUMNS})


def _row_to_entry(row: sqlite3.Row) -> LogEntry:
    return LogEntry(id=row["id"], **{col: row[col] for col in _LOG_COLUMNS})


class IntakeStore:
    """Persistent SQLite store for candidates and ingestion log entries."""

    def __init__(self, db_path: Path | None = None) -> None:
        self.db_path = Path(db_path or INTAKE_DB_PATH)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        # Scheduled scans run on a worker thread; passes are serialized by the scanner.
        self._conn = sqlite3.connect(str(self.db_path), check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._create_tables()

    def _create_tables(self) -> None:
        self._conn.executescript(_CREATE_TABLES_SQL)

    # --- candidates ---

    def find_candidate_by_email(self, email: str) -> Candidate | None:
        row = self._conn.execute(
            "SELECT * FROM candidates WHERE email = ? COLLATE NOCASE", (email,)
        ).fetchone()
        return _row_to_candidate(row) if row else None

    def get_candidate(self, candidate_id: int) -> Candidate | None:
        row = self._conn.execute("SELECT * FROM candidates WHERE id = ?", (candidate_id,)).fetchone()
        return _row_to_candidate(row) if row else None

    def create_candidate(self, candidate: Candidate) -> Candidate:
        """Insert a candidate; raises sqlite3.IntegrityError if the email exists."""
        with self._conn:
            cursor = self._conn.execute(
                f"INSERT INTO candidates ({', '.join(_CANDIDATE_COLUMNS)}) "
                f"VALUES ({', '.join('?' for _ in _CANDIDATE_COLUMNS)})",
                tuple(getattr(candidate, col) for col in _CANDIDATE_COLUMNS),
            )
        candidate.id = cursor.lastrowid
        return candidate

    def list_candidates(self, limit: int = 50) -> list[Candidate]:
        rows = self._conn.execute(
            "SELECT * FROM candidates ORDER BY id DESC LIMIT ?", (limit,)
        ).fetchall()
        return [_row_to_candidate(r) for r in rows]

    # --- ingestion log ---

    def find_log_by_key(self, key: str) -> LogEntry | None:
        row = self._conn.execute(
            "SELECT * FROM ingestion_log WHERE message_id = ?", (key,)
        ).fetchone()
        return _row_to_entry(row) if row else None

    def insert_log(self, entry: LogEntry) -> LogEntry:
        with self._conn:
            cursor = self._conn.execute(
                f"INSERT INTO ingestion_log ({', '.join(_LOG_COLUMNS)}) "
                f"VALUES ({', '.join('?' for _ in _LOG_COLUMNS)})",
                tuple(getattr(entry, col) for col in _LOG_COLUMNS),
            )
        entry.id = cursor.lastrowid
        return entry

    def delete_log_by_id(self, entry_id: int) -> bool:
        with self._conn:
            cursor = self._conn.execute("DELETE FROM ingestion_log WHERE id = ?", (entry_id,))
        return cursor.rowcount > 0

    def list_logs(self, page: int = 1, limit: int = 50) -> tuple[list[LogEntry], int]:
        """Return one page of log entries, newest first, and the total count."""
        page = max(1, page)
        rows = self._conn.execute(
            "SELECT * FROM ingestion_log ORDER BY id DESC LIMIT ? OFFSET ?",
            (limit, (page - 1) * limit),
        ).fetchall()
        total = self._conn.execute("SELECT COUNT(*) AS c FROM ingestion_log").fetchone()["c"]
        return [_row_to_entry(r) for r in rows], total

    def count_logs_by_status(self) -> dict[str, int]:
        counts = {status: 0 for status in LOG_STATUSES}
        for row in self._conn.execute(
            "SELECT status, COUNT(*) AS c FROM ingestion_log GROUP BY status"
        ).fetchall():
            counts[row["status"]] = row["c"]
        return counts

    def clear_logs(self) -> int:
        with self._conn:
            cursor = self._conn.execute("DELETE FROM ingestion_log")
        return cursor.rowcount

    # --- scan state ---

    def load_scan_state(self) -> tuple[datetime | None, str | None, int]:
        """Return (last scan time, last error, total processed) from earlier passes."""
        row = self._conn.execute("SELECT * FROM scan_state WHERE id = 1").fetchone()
        if row is None:
            return None, None, 0
        last_scan = datetime.fromisoformat(row["last_scan_time"]) if row["last_scan_time"] else None
        return last_scan, row["last_error"], row["total_processed"]

    def save_scan_state(self, last_scan_time: datetime | None, last_error: str | None, total_processed: int) -> None:
        with self._conn:
            self._conn.execute(
                "INSERT OR REPLACE INTO scan_state (id, last_scan_time, last_error, total_processed) "
                "VALUES (1, ?, ?, ?)",
                (last_scan_time.isoformat() if last_scan_time else None, last_error, total_processed),
            )

    def close(self) -> None:
        """Close the database connection."""
        self._conn.close()

    # --- context manager ---

    def __enter__(self) -> IntakeStore:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:  # noqa: ANN001
        self.close()


_UNSAFE_FILENAME_RE = re.compile(r"[^a-zA-Z0-9.-]")


class ResumeFileStore:
    """Saves resume bytes under a directory and returns their path."""

    def __init__(self, root: Path | None = None) -> None:
        self.root = Path(root or RESUME_DIR)

    def store(self, data: bytes, filename: str, content_type: str = "") -> str:
        self.root.mkdir(parents=True, exist_ok=True)
        safe_name = f"{int(time.time() * 1000)}-{_UNSAFE_FILENAME_RE.sub('_', filename)}"
        path = self.root / safe_name
        path.write_bytes(data)
        return str(path)
