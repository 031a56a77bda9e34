"""Data models for the chat history persistence layer."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class ChatMessage:
    """One turn of a chatbot conversation. ``text`` is encrypted at rest."""

    text: str
    is_user: bool
    timestamp: str  # ISO 8601
    id: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "text": self.text,
            "is_user": self.is_user,
            "timestamp": self.timestamp,
        }


@dataclass
class ChatSession:
    """A conversation with the symptom chatbot for one age group."""

    id: str
    age_group: str  # 'youth' | 'adult' | 'senior'
    started_at: str  # ISO 8601
    first_user_message: str | None = None
    messages: list[ChatMessage] = field(default_factory=list)
    message_count: int = 0

    def summary(self) -> dict[str, Any]:
        return {
            "session_id": self.id,
            "age_group": self.age_group,
            "started_at": self.started_at,
            "first_user_message": self.first_user_message,
            "message_count": self.message_count or len(self.messages),
        }
