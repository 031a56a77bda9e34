"""SQLite connection and schema migrations for the CareCrafter data bank."""

from __future__ import annotations

import logging
import sqlite3
from pathlib import Path

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 2

_VERSION_TABLE = """
CREATE TABLE IF NOT EXISTS schema_version (
    version    INTEGER NOT NULL,
    applied_at TEXT NOT NULL DEFAULT (datetime('now'))
);
"""

# ---------------------------------------------------------------------------
# Migrations
# ---------------------------------------------------------------------------

_DAILY_AND_CHAT_TABLES = """
-- Keyed by day; saving the same day again replaces the row
CREATE TABLE IF NOT EXISTS health_entries (
    entry_date        TEXT PRIMARY KEY,
    metrics_enc       TEXT NOT NULL,

    -- Plaintext scores so ranges can be filtered without decrypting
    total_score       INTEGER NOT NULL,
    sleep_score       INTEGER NOT NULL,
    exercise_score    INTEGER NOT NULL,
    steps_score       INTEGER NOT NULL,
    water_score       INTEGER NOT NULL,
    medication_score  INTEGER NOT NULL,
    nutrition_score   INTEGER NOT NULL,
    rating            TEXT NOT NULL,
    color             TEXT NOT NULL,

    created_at        TEXT NOT NULL DEFAULT (datetime('now')),
    updated_at        TEXT NOT NULL DEFAULT (datetime('now'))
);

CREATE TABLE IF NOT EXISTS prescribed_medications (
    name      TEXT PRIMARY KEY,
    position  INTEGER NOT NULL,
    added_at  TEXT NOT NULL DEFAULT (datetime('now'))
);

CREATE TABLE IF NOT EXISTS chat_sessions (
    id                      TEXT PRIMARY KEY,
    age_group               TEXT NOT NULL,
    started_at              TEXT NOT NULL,
    first_user_message_enc  TEXT
);

CREATE TABLE IF NOT EXISTS chat_messages (
    id          TEXT PRIMARY KEY,
    session_id  TEXT NOT NULL REFERENCES chat_sessions(id),
    position    INTEGER NOT NULL,
    is_user     INTEGER NOT NULL,
    text_enc    TEXT NOT NULL,
    timestamp   TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_entries_score     ON health_entries(total_score);
CREATE INDEX IF NOT EXISTS idx_messages_session  ON chat_messages(session_id, position);
CREATE INDEX IF NOT EXISTS idx_sessions_started  ON chat_sessions(started_at);
"""

_AUDIT_TABLE = """
CREATE TABLE IF NOT EXISTS audit_log (
    id              TEXT PRIMARY KEY,
    timestamp       TEXT NOT NULL DEFAULT (datetime('now')),
    action          TEXT NOT NULL,
    tool_name       TEXT,
    tool_input_hash TEXT,
    entry_date      TEXT,
    duration_ms     REAL,
    status          TEXT NOT NULL DEFAULT 'success',
    error_type      TEXT,
    metadata_json   TEXT
);

CREATE INDEX IF NOT EXISTS idx_audit_timestamp ON audit_log(timestamp);
CREATE INDEX IF NOT EXISTS idx_audit_action    ON audit_log(action);
CREATE INDEX IF NOT EXISTS idx_audit_tool      ON audit_log(tool_name);
"""

# (version, label, ddl) in ascending order; every statement is idempotent
_MIGRATIONS: list[tuple[int, str, str]] = [
    (1, "daily entries, prescriptions and chat history", _DAILY_AND_CHAT_TABLES),
    (2, "audit_log", _AUDIT_TABLE),
]


class DatabaseError(Exception):
    """Raised when the database is used before ``initialize()``."""


class HealthDatabase:
    """Owns the single SQLite connection used by storage and audit.

    ``db_path`` may be a file path (``~`` is expanded and parent folders
    are created) or ``":memory:"``, which the tests use::

        with HealthDatabase(":memory:") as db:
            db.connection.execute("SELECT COUNT(*) FROM health_entries")
    """

    def __init__(self, db_path: str = ":memory:") -> None:
        self._db_path = db_path
        self._conn: sqlite3.Connection | None = None

    @property
    def connection(self) -> sqlite3.Connection:
        if self._conn is None:
            raise DatabaseError("Database not initialized. Call initialize() first.")
        return self._conn

    def initialize(self) -> None:
        """Open the connection and bring the schema up to date. No-op if already open."""
        if self._conn is not None:
            return

        target = self._db_path
        if target != ":memory:":
            db_file = Path(target).expanduser()
            db_file.parent.mkdir(parents=True, exist_ok=True)
            target = str(db_file)

        conn = sqlite3.connect(target, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode=WAL")
        conn.execute("PRAGMA foreign_keys=ON")
        self._conn = conn

        self._migrate()
        logger.info("Health database ready at %s", self._db_path)

    def _migrate(self) -> None:
        conn = self.connection
        conn.executescript(_VERSION_TABLE)
        found = self.get_schema_version()
        if found >= SCHEMA_VERSION:
            return

        for version, label, ddl in _MIGRATIONS:
            if version > found:
                conn.executescript(ddl)
                logger.info("Applied schema V%d: %s", version, label)

        conn.execute("INSERT INTO schema_version (version) VALUES (?)", (SCHEMA_VERSION,))
        conn.commit()
        logger.info("Schema version %d -> %d", found, SCHEMA_VERSION)

    def get_schema_version(self) -> int:
        """Highest recorded schema version, 0 for a brand-new file."""
        (version,) = self.connection.execute(
            "SELECT MAX(version) FROM schema_version"
        ).fetchone()
        return version or 0

    def table_names(self) -> list[str]:
        rows = self.connection.execute(
            "SELECT name FROM sqlite_master WHERE type = 'table' ORDER BY name"
        ).fetchall()
        return [name for (name,) in rows]

    def close(self) -> None:
        if self._conn is None:
            return
        self._conn.close()
        self._conn = None
        logger.info("Health database closed")

    def __enter__(self) -> HealthDatabase:
        self.initialize()
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
