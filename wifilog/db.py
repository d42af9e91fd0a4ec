"""SQLite database layer — schema, connection, daily connection upserts.

- Thread-safe via a dedicated lock (SQLite check_same_thread=False is not enough)
- WAL journal for concurrent reads during writes
- Schema versioning for future migrations
- Context-manager protocol for clean resource handling
- Parameterized queries only
"""

import logging
import re
import sqlite3
import threading
from dataclasses import dataclass
from datetime import date as _date
from pathlib import Path

from wifilog.config import DB_PATH

log = logging.getLogger(__name__)

SCHEMA_VERSION = 1

_VALID_TABLES = frozenset({"connections", "daemon_health"})

_TIME_RE = re.compile(r"([01]\d|2[0-3]):[0-5]\d")

_SCHEMA = """
-- Schema version tracking
CREATE TABLE IF NOT EXISTS schema_meta (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL
);
INSERT OR IGNORE INTO schema_meta (key, value) VALUES ('version', '1');

-- One row per calendar day the target network was seen
CREATE TABLE IF NOT EXISTS connections (
    date TEXT PRIMARY KEY,
    earliest TEXT NOT NULL,
    latest TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS daemon_health (
    id INTEGER PRIMARY KEY,
    timestamp REAL NOT NULL,
    event_type TEXT,
    details TEXT
);
CREATE INDEX IF NOT EXISTS idx_health_ts ON daemon_health(timestamp);
"""

_UPSERT_SQL = """
INSERT INTO connections (date, earliest, latest)
VALUES (?1, ?2, ?2)
ON CONFLICT(date) DO UPDATE
SET earliest = MIN(earliest, excluded.earliest),
    latest = MAX(latest, excluded.latest)
"""


@dataclass(frozen=True)
class ConnectionLog:
    """First and last time the target network was seen on one day."""
    date: str
    earliest: str
    latest: str

    def as_dict(self) -> dict:
        return {"date": self.date, "earliest": self.earliest, "latest": self.latest}


def _validate_date(value: str) -> None:
    try:
        parsed = _date.fromisoformat(value)
    except (TypeError, ValueError):
        raise ValueError(f"invalid date: {value!r} (expected YYYY-MM-DD)") from None
    # fromisoformat accepts other ISO forms on newer Pythons
    if parsed.isoformat() != value:
        raise ValueError(f"invalid date: {value!r} (expected YYYY-MM-DD)")


def _validate_time(value: str) -> None:
    if not isinstance(value, str) or not _TIME_RE.fullmatch(value):
        raise ValueError(f"invalid time: {value!r} (expected HH:MM)")


class Database:
    """Thread-safe SQLite wrapper holding the daily connection log.

    Usage:
        db = Database()
        db.open()
        ...
        db.close()

    Or as a context manager:
        with Database() as db:
            ...
    """

    def __init__(self, path: Path | None = None):
        self.path = path or DB_PATH
        self._conn: sqlite3.Connection | None = None
        self._lock = threading.Lock()

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    # ── lifecycle ───────────────────────────────────────────────────────

    def open(self) -> None:
        """Open the database, apply pragmas, and ensure schema exists."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(
            str(self.path),
            check_same_thread=False,
            timeout=10.0,
        )
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.execute("PRAGMA synchronous=NORMAL")
        self._conn.execute("PRAGMA busy_timeout=5000")
        self._conn.executescript(_SCHEMA)
        self._conn.commit()
        log.info("database opened at %s (schema v%d)", self.path, SCHEMA_VERSION)

    def close(self) -> None:
        """Close the database connection safely."""
        with self._lock:
            if self._conn:
                try:
                    self._conn.execute("PRAGMA optimize")
                    self._conn.close()
                except sqlite3.Error:
                    log.exception("error during database close")
                finally:
                    self._conn = None
                    log.info("database closed")

    @property
    def is_open(self) -> bool:
        return self._conn is not None

    def _ensure_conn(self) -> sqlite3.Connection:
        """Return the active connection, raising if closed."""
        if self._conn is None:
            raise RuntimeError("database is not open — call .open() first")
        return self._conn

    # ── daily log ───────────────────────────────────────────────────────

    def upsert_connection(self, date: str, time: str) -> None:
        """Record that the target network was seen on ``date`` at ``time``.

        Creates the day's row on first sight, otherwise widens the
        earliest/latest window. ``HH:MM`` strings compare lexicographically
        in chronological order, so SQLite's scalar MIN/MAX do the work.
        """
        _validate_date(date)
        _validate_time(time)
        conn = self._ensure_conn()
        with self._lock:
            with conn:
                conn.execute(_UPSERT_SQL, (date, time))

    def list_connections(self) -> list[ConnectionLog]:
        """Return every daily row, most recent day first."""
        conn = self._ensure_conn()
        with self._lock:
            cur = conn.execute(
                "SELECT date, earliest, latest FROM connections ORDER BY date DESC"
            )
            rows = cur.fetchall()
        return [ConnectionLog(*row) for row in rows]

    def get_connection(self, date: str) -> ConnectionLog | None:
        """Return the row for a single day, or None if nothing was seen."""
        conn = self._ensure_conn()
        with self._lock:
            cur = conn.execute(
                "SELECT date, earliest, latest FROM connections WHERE date = ?",
                (date,),
            )
            row = cur.fetchone()
        return ConnectionLog(*row) if row else None

    # ── health ──────────────────────────────────────────────────────────

    def log_health(self, ts: float, event_type: str, details: str = "") -> None:
        """Record a daemon health event."""
        conn = self._ensure_conn()
        with self._lock:
            with conn:
                conn.execute(
                    "INSERT INTO daemon_health (timestamp, event_type, details) VALUES (?, ?, ?)",
                    (ts, event_type, details),
                )

    # ── reads (for verification / debugging) ────────────────────────────

    def count(self, table: str) -> int:
        """Return the row count for a table."""
        if table not in _VALID_TABLES:
            raise ValueError(f"unknown table: {table!r}")
        conn = self._ensure_conn()
        with self._lock:
            cur = conn.execute(f"SELECT COUNT(*) FROM {table}")
            return cur.fetchone()[0]
