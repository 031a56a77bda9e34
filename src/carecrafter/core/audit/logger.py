"""Audit logger: PHI-free record of tool invocations.

Every tool call that reads or writes health data leaves one row in
``audit_log``:

* ``tool_input_hash``: SHA-256 of canonical JSON, never the raw input.
* ``entry_date``: the day key touched, when there is one.
* ``status``: ``success`` or ``failure`` with the exception class.
"""

from __future__ import annotations

import hashlib
import json
import logging
import sqlite3
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from carecrafter.core.storage.database import DatabaseError, HealthDatabase

logger = logging.getLogger(__name__)

_COLUMNS = (
    "id",
    "timestamp",
    "action",
    "tool_name",
    "tool_input_hash",
    "entry_date",
    "duration_ms",
    "status",
    "error_type",
    "metadata_json",
)

_INSERT_SQL = "INSERT INTO audit_log ({}) VALUES ({})".format(
    ", ".join(_COLUMNS), ", ".join("?" for _ in _COLUMNS)
)


def _hash_input(data: Any) -> str:
    """SHA-256 of canonical JSON, or empty string if ``data`` isn't serializable."""
    try:
        canonical = json.dumps(data, sort_keys=True, separators=(",", ":"))
    except (TypeError, ValueError):
        return ""
    return hashlib.sha256(canonical.encode()).hexdigest()


def _where(**filters: Any) -> tuple[str, list[Any]]:
    """Build a WHERE clause from the non-empty keyword filters.

    ``since`` compares against ``timestamp``; every other key is an
    equality test on the column of the same name.
    """
    clauses: list[str] = []
    params: list[Any] = []
    for key, value in filters.items():
        if not value:
            continue
        if key == "since":
            clauses.append("timestamp >= ?")
        else:
            clauses.append(f"{key} = ?")
        params.append(value)
    if not clauses:
        return "", params
    return " WHERE " + " AND ".join(clauses), params


@dataclass
class AuditEvent:
    """One row of the audit trail, before it gets an id and timestamp."""

    action: str                          # 'tool_invocation'
    tool_name: str = ""
    tool_input_hash: str = ""
    entry_date: str | None = None
    duration_ms: float | None = None
    status: str = "success"              # 'success' | 'failure'
    error_type: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_row(self, event_id: str, timestamp: str) -> tuple[Any, ...]:
        """Values in ``_COLUMNS`` order. Empty strings are stored as NULL."""
        metadata_json = (
            json.dumps(self.metadata, separators=(",", ":")) if self.metadata else None
        )
        return (
            event_id,
            timestamp,
            self.action,
            self.tool_name or None,
            self.tool_input_hash or None,
            self.entry_date,
            self.duration_ms,
            self.status,
            self.error_type,
            metadata_json,
        )


class AuditLogger:
    """Append-only writer and query helper for the ``audit_log`` table.

    Example::

        audit = AuditLogger(health_db)
        audit.log_tool_call(
            "log_daily_health",
            {"entry_date": "2026-02-03"},
            entry_date="2026-02-03",
        )
    """

    def __init__(self, database: HealthDatabase) -> None:
        self._db = database

    def log_event(self, event: AuditEvent) -> str:
        """Persist ``event`` and return its new id, or "" when the write fails.

        Losing an audit row is logged but never propagates to the tool
        call being audited.
        """
        event_id = str(uuid.uuid4())
        row = event.to_row(event_id, datetime.now(timezone.utc).isoformat())
        try:
            conn = self._db.connection
            conn.execute(_INSERT_SQL, row)
            conn.commit()
        except (DatabaseError, sqlite3.Error):
            logger.exception("Audit write for %s dropped", event.tool_name or event.action)
            return ""
        return event_id

    def log_tool_call(
        self,
        tool_name: str,
        tool_input: Any = None,
        *,
        entry_date: str | None = None,
        duration_ms: float | None = None,
        status: str = "success",
        error_type: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> str:
        """Record one MCP tool invocation.

        ``tool_input`` is hashed and then discarded. ``metadata`` must only
        carry non-PHI context such as counts or the output format.
        """
        return self.log_event(AuditEvent(
            action="tool_invocation",
            tool_name=tool_name,
            tool_input_hash=_hash_input(tool_input) if tool_input else "",
            entry_date=entry_date,
            duration_ms=duration_ms,
            status=status,
            error_type=error_type,
            metadata=metadata or {},
        ))

    # -- queries ------------------------------------------------------------

    def get_events(
        self,
        *,
        action: str | None = None,
        tool_name: str | None = None,
        since: str | None = None,
        limit: int = 50,
    ) -> list[dict[str, Any]]:
        """Newest-first audit rows as plain dicts."""
        where, params = _where(action=action, tool_name=tool_name, since=since)
        rows = self._db.connection.execute(
            f"SELECT * FROM audit_log{where} ORDER BY timestamp DESC LIMIT ?",
            [*params, limit],
        ).fetchall()
        return [dict(row) for row in rows]

    def count_events(self, *, since: str | None = None, status: str | None = None) -> int:
        where, params = _where(since=since, status=status)
        (total,) = self._db.connection.execute(
            f"SELECT COUNT(*) FROM audit_log{where}", params
        ).fetchone()
        return total

    def count_by_tool(self, *, since: str | None = None) -> dict[str, int]:
        """Invocations per tool; rows without a tool name are left out."""
        where, params = _where(since=since)
        rows = self._db.connection.execute(
            f"SELECT tool_name, COUNT(*) FROM audit_log{where} "
            "GROUP BY tool_name ORDER BY tool_name",
            params,
        ).fetchall()
        return {name: count for name, count in rows if name}
