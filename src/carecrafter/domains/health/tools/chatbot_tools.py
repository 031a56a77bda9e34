"""MCP tools for the symptom chatbot and its conversation history."""

from __future__ import annotations

import json
import logging
import time
from typing import TYPE_CHECKING

from fastmcp import Context, FastMCP

from carecrafter.domains.health.chatbot.models import AGE_GROUPS
from carecrafter.domains.health.chatbot.symptom_matcher import WELCOME_MESSAGE

if TYPE_CHECKING:
    from carecrafter.core.audit.logger import AuditLogger
    from carecrafter.core.storage.repository import HealthRepository
    from carecrafter.domains.health.chatbot.symptom_matcher import SymptomMatcher

logger = logging.getLogger(__name__)

DISCLAIMER = (
    "This assistant offers general guidance only and is not a substitute "
    "for professional medical advice."
)


def register_chatbot_tools(
    mcp: FastMCP,
    matcher: SymptomMatcher,
    repository: HealthRepository | None = None,
    audit_logger: AuditLogger | None = None,
    *,
    default_age_group: str = "adult",
) -> None:
    """Register symptom chat tools on the MCP server.

    History tools are only registered when a repository is available.
    """

    @mcp.tool
    async def symptom_chat(
        ctx: Context,
        message: str,
        age_group: str = "",
        session_id: str = "",
    ) -> str:
        """Describe symptoms and get rule-based guidance: likely condition,
        over-the-counter medicines with age-appropriate dosage, foods to eat
        and avoid, and when to see a doctor.

        Args:
            message: Symptoms or health concern in plain language.
            age_group: 'youth', 'adult' or 'senior'. Defaults to the
                configured age group (or the session's, when continuing one).
            session_id: Continue an existing conversation. Empty starts a new one.
        """
        if not message.strip():
            return json.dumps({"status": "error", "message": "Message must not be empty"})

        start_time = time.monotonic()
        session = None
        if repository is not None and session_id:
            session = repository.get_chat_session(session_id)
            if session is None:
                return json.dumps({
                    "status": "not_found",
                    "session_id": session_id,
                    "message": "No chat session with that ID.",
                })

        group = age_group or (session.age_group if session else default_age_group)
        if group not in AGE_GROUPS:
            return json.dumps({
                "status": "error",
                "message": f"Unknown age group {group!r}. Valid: {', '.join(AGE_GROUPS)}",
            })

        reply = matcher.respond(message, group)

        result: dict = {"status": "ok", "age_group": group, "reply": reply}
        if repository is not None:
            if session is None:
                session = repository.create_chat_session(group)
                result["welcome"] = WELCOME_MESSAGE
            repository.add_chat_message(session.id, message, is_user=True)
            repository.add_chat_message(session.id, reply, is_user=False)
            result["session_id"] = session.id
        result["disclaimer"] = DISCLAIMER

        if audit_logger is not None:
            audit_logger.log_tool_call(
                tool_name="symptom_chat",
                tool_input={"message": message, "age_group": group},
                duration_ms=round((time.monotonic() - start_time) * 1000, 1),
                metadata={"persisted": repository is not None},
            )
        return json.dumps(result)

    if repository is None:
        logger.info("No repository; chat history tools not registered")
        return

    @mcp.tool
    async def list_chat_sessions(ctx: Context, limit: int = 20) -> str:
        """List past chatbot conversations, newest first.

        Args:
            limit: Maximum number of sessions to return.
        """
        sessions = repository.list_chat_sessions(limit=limit)
        return json.dumps({
            "status": "ok",
            "count": len(sessions),
            "sessions": [s.summary() for s in sessions],
        }, indent=2)

    @mcp.tool
    async def get_chat_session(ctx: Context, session_id: str) -> str:
        """Show a past chatbot conversation with every message.

        Args:
            session_id: The session ID returned by symptom_chat.
        """
        session = repository.get_chat_session(session_id)
        if session is None:
            return json.dumps({
                "status": "not_found",
                "session_id": session_id,
                "message": "No chat session with that ID.",
            })
        return json.dumps({
            "status": "ok",
            **session.summary(),
            "messages": [m.to_dict() for m in session.messages],
        }, indent=2)
