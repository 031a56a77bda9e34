"""Tests for HealthDatabase: schema, migrations and lifecycle."""

from __future__ import annotations

import sqlite3

import pytest

from carecrafter.core.storage.database import SCHEMA_VERSION, DatabaseError, HealthDatabase


class TestLifecycle:
    def test_connection_before_init_raises(self):
        db = HealthDatabase(":memory:")
        with pytest.raises(DatabaseError, match="not initialized"):
            _ = db.connection

    def test_initialize_is_idempotent(self):
        db = HealthDatabase(":memory:")
        db.initialize()
        conn = db.connection
        db.initialize()
        assert db.connection is conn
        db.close()

    def test_context_manager_closes(self):
        with HealthDatabase(":memory:") as db:
            assert db.get_schema_version() == SCHEMA_VERSION
        with pytest.raises(DatabaseError):
            _ = db.connection

    def test_double_close_is_safe(self):
        db = HealthDatabase(":memory:")
        db.initialize()
        db.close()
        db.close()


class TestSchema:
    def test_tables_created(self, health_db):
        tables = set(health_db.table_names())
        assert {
            "health_entries",
            "prescribed_medications",
            "chat_sessions",
            "chat_messages",
            "schema_version",
            "audit_log",
        } <= tables

    def test_indexes_created(self, health_db):
        rows = health_db.connection.execute(
            "SELECT name FROM sqlite_master WHERE type='index'"
        ).fetchall()
        indexes = {row[0] for row in rows}
        for name in ("idx_entries_score", "idx_messages_session", "idx_audit_timestamp"):
            assert name in indexes

    def test_foreign_keys_enforced(self, health_db):
        with pytest.raises(sqlite3.IntegrityError):
            health_db.connection.execute(
                "INSERT INTO chat_messages (id, session_id, position, is_user, text_enc, timestamp)"
                " VALUES ('m1', 'missing', 0, 1, 'x', 'now')"
            )

    def test_one_row_per_entry_date(self, health_db):
        conn = health_db.connection
        insert = (
            "INSERT INTO health_entries (entry_date, metrics_enc, total_score, sleep_score,"
            " exercise_score, steps_score, water_score, medication_score, nutrition_score,"
            " rating, color) VALUES ('2026-02-10', 'x', 0, 0, 0, 0, 0, 0, 0, 'Fair', 'c')"
        )
        conn.execute(insert)
        with pytest.raises(sqlite3.IntegrityError):
            conn.execute(insert)


class TestFileDatabase:
    def test_creates_parent_directories(self, tmp_path):
        db_path = tmp_path / "nested" / "health.db"
        with HealthDatabase(str(db_path)) as db:
            assert db_path.exists()
            assert db.get_schema_version() == SCHEMA_VERSION

    def test_reopen_keeps_single_version_row(self, tmp_path):
        db_path = str(tmp_path / "health.db")
        with HealthDatabase(db_path):
            pass
        with HealthDatabase(db_path) as db:
            count = db.connection.execute("SELECT COUNT(*) FROM schema_version").fetchone()[0]
            assert count == 1
            assert db.get_schema_version() == SCHEMA_VERSION

    def test_v1_database_is_migrated(self, tmp_path):
        db_path = tmp_path / "old.db"
        conn = sqlite3.connect(db_path)
        conn.execute("CREATE TABLE schema_version (version INTEGER NOT NULL, applied_at TEXT)")
        conn.execute("INSERT INTO schema_version (version) VALUES (1)")
        conn.commit()
        conn.close()

        with HealthDatabase(str(db_path)) as db:
            assert db.get_schema_version() == 2
            assert "audit_log" in db.table_names()
