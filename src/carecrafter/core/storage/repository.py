"""Health data repository: the encrypted SQLite EntryStore.

Mediates between domain objects (HealthEntry, ChatSession) and the
database, using FieldEncryptor for raw metrics and chat text.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Any

from carecrafter.core.storage.database import HealthDatabase
from carecrafter.core.storage.encryption import FieldEncryptor
from carecrafter.core.storage.models import ChatMessage, ChatSession
from carecrafter.domains.health.domain_logic.tracker_models import (
    DailyMetrics,
    HealthEntry,
    HealthScore,
    ScoreBreakdown,
)

logger = logging.getLogger(__name__)


class RepositoryError(Exception):
    """Raised when repository operations fail."""


class HealthRepository:
    """Daily entries, the prescription list and chat history.

    Satisfies the ``EntryStore`` protocol, so a ``HealthTracker`` can run
    directly on top of it.

    Usage::

        db = HealthDatabase(":memory:")
        db.initialize()
        repo = HealthRepository(db, FieldEncryptor(key="..."))

        repo.save_entry(entry)
        entries = repo.load_entries()
    """

    def __init__(self, database: HealthDatabase, encryptor: FieldEncryptor) -> None:
        self._db = database
        self._enc = encryptor

    @staticmethod
    def _new_id() -> str:
        return str(uuid.uuid4())

    @staticmethod
    def _now_iso() -> str:
        return datetime.now(timezone.utc).isoformat()

    # ------------------------------------------------------------------
    # Daily entries
    # ------------------------------------------------------------------

    def save_entry(self, entry: HealthEntry) -> None:
        """Insert the entry for ``entry.date`` or overwrite the existing one."""
        conn = self._db.connection
        breakdown = entry.score.breakdown
        now = self._now_iso()

        conn.execute(
            """INSERT INTO health_entries (
                entry_date, metrics_enc, total_score,
                sleep_score, exercise_score, steps_score,
                water_score, medication_score, nutrition_score,
                rating, color, created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(entry_date) DO UPDATE SET
                metrics_enc = excluded.metrics_enc,
                total_score = excluded.total_score,
                sleep_score = excluded.sleep_score,
                exercise_score = excluded.exercise_score,
                steps_score = excluded.steps_score,
                water_score = excluded.water_score,
                medication_score = excluded.medication_score,
                nutrition_score = excluded.nutrition_score,
                rating = excluded.rating,
                color = excluded.color,
                updated_at = excluded.updated_at""",
            (
                entry.date,
                self._enc.encrypt(entry.metrics.to_dict()),
                entry.score.total_score,
                breakdown.sleep,
                breakdown.exercise,
                breakdown.steps,
                breakdown.water,
                breakdown.medication,
                breakdown.nutrition,
                entry.score.rating,
                entry.score.color,
                now,
                now,
            ),
        )
        conn.commit()
        logger.info("Saved health entry %s", entry.date)

    def get_entry(self, entry_date: str) -> HealthEntry | None:
        row = self._db.connection.execute(
            "SELECT * FROM health_entries WHERE entry_date = ?", (entry_date,)
        ).fetchone()
        if row is None:
            return None
        return self._row_to_entry(row)

    def load_entries(self) -> dict[str, HealthEntry]:
        """Every stored entry keyed by date, oldest first."""
        rows = self._db.connection.execute(
            "SELECT * FROM health_entries ORDER BY entry_date"
        ).fetchall()
        return {row["entry_date"]: self._row_to_entry(row) for row in rows}

    # ------------------------------------------------------------------
    # Prescriptions
    # ------------------------------------------------------------------

    def list_prescribed_medications(self) -> list[str]:
        rows = self._db.connection.execute(
            "SELECT name FROM prescribed_medications ORDER BY position"
        ).fetchall()
        return [row[0] for row in rows]

    def add_prescribed_medication(self, name: str) -> bool:
        conn = self._db.connection
        row = conn.execute("SELECT COALESCE(MAX(position), -1) FROM prescribed_medications").fetchone()
        cursor = conn.execute(
            "INSERT OR IGNORE INTO prescribed_medications (name, position) VALUES (?, ?)",
            (name, row[0] + 1),
        )
        conn.commit()
        return cursor.rowcount > 0

    def remove_prescribed_medication(self, name: str) -> bool:
        conn = self._db.connection
        cursor = conn.execute("DELETE FROM prescribed_medications WHERE name = ?", (name,))
        conn.commit()
        return cursor.rowcount > 0

    # ------------------------------------------------------------------
    # Chat history
    # ------------------------------------------------------------------

    def create_chat_session(
        self,
        age_group: str,
        *,
        session_id: str = "",
        started_at: str = "",
    ) -> ChatSession:
        session = ChatSession(
            id=session_id or self._new_id(),
            age_group=age_group,
            started_at=started_at or self._now_iso(),
        )
        conn = self._db.connection
        conn.execute(
            "INSERT INTO chat_sessions (id, age_group, started_at) VALUES (?, ?, ?)",
            (session.id, session.age_group, session.started_at),
        )
        conn.commit()
        logger.info("Created chat session %s (%s)", session.id, age_group)
        return session

    def add_chat_message(self, session_id: str, text: str, *, is_user: bool) -> ChatMessage:
        """Append a message; the first user message also becomes the session title.

        Raises:
            RepositoryError: If the session does not exist.
        """
        conn = self._db.connection
        session_row = conn.execute(
            "SELECT first_user_message_enc FROM chat_sessions WHERE id = ?", (session_id,)
        ).fetchone()
        if session_row is None:
            raise RepositoryError(f"Unknown chat session: {session_id!r}")

        position_row = conn.execute(
            "SELECT COALESCE(MAX(position), -1) FROM chat_messages WHERE session_id = ?",
            (session_id,),
        ).fetchone()

        message = ChatMessage(
            id=self._new_id(),
            text=text,
            is_user=is_user,
            timestamp=self._now_iso(),
        )
        conn.execute(
            """INSERT INTO chat_messages (id, session_id, position, is_user, text_enc, timestamp)
               VALUES (?, ?, ?, ?, ?, ?)""",
            (
                message.id,
                session_id,
                position_row[0] + 1,
                int(is_user),
                self._enc.encrypt(text),
                message.timestamp,
            ),
        )
        if is_user and not session_row["first_user_message_enc"]:
            conn.execute(
                "UPDATE chat_sessions SET first_user_message_enc = ? WHERE id = ?",
                (self._enc.encrypt(text), session_id),
            )
        conn.commit()
        return message

    def get_chat_session(self, session_id: str) -> ChatSession | None:
        """A session with all its messages in order, or None."""
        conn = self._db.connection
        row = conn.execute("SELECT * FROM chat_sessions WHERE id = ?", (session_id,)).fetchone()
        if row is None:
            return None

        session = self._row_to_session(row)
        message_rows = conn.execute(
            "SELECT * FROM chat_messages WHERE session_id = ? ORDER BY position",
            (session_id,),
        ).fetchall()
        session.messages = [
            ChatMessage(
                id=m["id"],
                text=self._enc.decrypt(m["text_enc"]),
                is_user=bool(m["is_user"]),
                timestamp=m["timestamp"],
            )
            for m in message_rows
        ]
        session.message_count = len(session.messages)
        return session

    def list_chat_sessions(self, *, limit: int = 20) -> list[ChatSession]:
        """Sessions newest first, without their messages."""
        rows = self._db.connection.execute(
            """SELECT s.*,
                      (SELECT COUNT(*) FROM chat_messages m WHERE m.session_id = s.id)
                          AS message_count
               FROM chat_sessions s ORDER BY s.started_at DESC LIMIT ?""",
            (limit,),
        ).fetchall()
        return [self._row_to_session(row) for row in rows]

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _row_to_entry(self, row: Any) -> HealthEntry:
        metrics_data = self._enc.decrypt(row["metrics_enc"])
        if not isinstance(metrics_data, dict):
            raise RepositoryError(f"Corrupt metrics for entry {row['entry_date']}")

        return HealthEntry(
            date=row["entry_date"],
            metrics=DailyMetrics.from_dict(metrics_data),
            score=HealthScore(
                total_score=row["total_score"],
                breakdown=ScoreBreakdown(
                    sleep=row["sleep_score"],
                    exercise=row["exercise_score"],
                    steps=row["steps_score"],
                    water=row["water_score"],
                    medication=row["medication_score"],
                    nutrition=row["nutrition_score"],
                ),
                rating=row["rating"],
                color=row["color"],
            ),
        )

    def _row_to_session(self, row: Any) -> ChatSession:
        return ChatSession(
            id=row["id"],
            age_group=row["age_group"],
            started_at=row["started_at"],
            first_user_message=self._enc.decrypt(row["first_user_message_enc"] or ""),
            message_count=row["message_count"] if "message_count" in row.keys() else 0,
        )
