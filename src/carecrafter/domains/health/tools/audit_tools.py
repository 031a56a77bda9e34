"""MCP tools for viewing the audit trail.

The audit log holds tool names, timings, statuses and hashed inputs.
It never holds health values or chat text.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING

from fastmcp import Context, FastMCP

if TYPE_CHECKING:
    from carecrafter.core.audit.logger import AuditLogger

logger = logging.getLogger(__name__)

_SHOWN_FIELDS = ("timestamp", "tool_name", "entry_date", "status", "error_type", "duration_ms")


def register_audit_tools(mcp: FastMCP, audit_logger: AuditLogger) -> None:

    @mcp.tool
    async def audit_summary(ctx: Context, days: int = 30) -> str:
        """Summarize which CareCrafter tools ran over the last ``days`` days.

        Args:
            days: Look-back window in days (default: 30).
        """
        since = (datetime.now(timezone.utc) - timedelta(days=days)).isoformat()
        recent = [
            {name: event.get(name) for name in _SHOWN_FIELDS}
            for event in audit_logger.get_events(since=since, limit=20)
        ]
        return json.dumps({
            "status": "ok",
            "period_days": days,
            "total_events": audit_logger.count_events(since=since),
            "failed_events": audit_logger.count_events(since=since, status="failure"),
            "calls_by_tool": audit_logger.count_by_tool(since=since),
            "recent_events": recent,
            "note": "This audit trail contains no health values or chat text.",
        }, indent=2)
