"""Tests for the AuditLogger and input hashing."""

from __future__ import annotations

import json

from carecrafter.core.audit.logger import AuditEvent, _hash_input


# ---------------------------------------------------------------------------
# _hash_input
# ---------------------------------------------------------------------------

class TestHashInput:
    def test_sha256_hex(self):
        assert len(_hash_input({"entry_date": "2026-02-10"})) == 64

    def test_key_order_does_not_matter(self):
        assert _hash_input({"z": 1, "a": 2}) == _hash_input({"a": 2, "z": 1})

    def test_different_inputs_differ(self):
        assert _hash_input({"steps": 1}) != _hash_input({"steps": 2})

    def test_non_serializable_returns_empty(self):
        assert _hash_input(object()) == ""


# ---------------------------------------------------------------------------
# Writing events
# ---------------------------------------------------------------------------

class TestLogToolCall:
    def test_stores_hash_not_input(self, audit_logger):
        tool_input = {"entry_date": "2026-02-10", "notes": "dizzy spells"}
        event_id = audit_logger.log_tool_call(
            "log_daily_health",
            tool_input,
            entry_date="2026-02-10",
            duration_ms=12.5,
        )
        assert event_id

        [event] = audit_logger.get_events()
        assert event["id"] == event_id
        assert event["action"] == "tool_invocation"
        assert event["tool_name"] == "log_daily_health"
        assert event["tool_input_hash"] == _hash_input(tool_input)
        assert event["entry_date"] == "2026-02-10"
        assert event["duration_ms"] == 12.5
        assert event["status"] == "success"
        assert "dizzy" not in json.dumps(event)

    def test_failure_and_metadata(self, audit_logger):
        audit_logger.log_tool_call(
            "health_report",
            status="failure",
            error_type="InvalidDateError",
            metadata={"output_format": "text"},
        )
        [event] = audit_logger.get_events()
        assert event["tool_input_hash"] is None
        assert event["error_type"] == "InvalidDateError"
        assert json.loads(event["metadata_json"]) == {"output_format": "text"}

    def test_log_event_directly(self, audit_logger):
        audit_logger.log_event(AuditEvent(action="tool_invocation", entry_date="2026-02-10"))
        [event] = audit_logger.get_events(action="tool_invocation")
        assert event["entry_date"] == "2026-02-10"
        assert event["tool_name"] is None

    def test_write_failure_is_swallowed(self, audit_logger, health_db):
        health_db.close()
        assert audit_logger.log_tool_call("symptom_chat") == ""


# ---------------------------------------------------------------------------
# Reading events
# ---------------------------------------------------------------------------

class TestQueries:
    def test_filters_and_counts(self, audit_logger):
        audit_logger.log_tool_call("symptom_chat")
        audit_logger.log_tool_call("symptom_chat", status="failure", error_type="ValueError")
        audit_logger.log_tool_call("health_analytics")

        assert len(audit_logger.get_events(tool_name="symptom_chat")) == 2
        assert len(audit_logger.get_events(limit=1)) == 1
        assert audit_logger.count_events() == 3
        assert audit_logger.count_events(status="failure") == 1
        assert audit_logger.count_by_tool() == {"health_analytics": 1, "symptom_chat": 2}

    def test_since_filter(self, audit_logger):
        audit_logger.log_tool_call("symptom_chat")
        assert audit_logger.count_events(since="2000-01-01") == 1
        assert audit_logger.count_events(since="2999-01-01") == 0
        assert audit_logger.count_by_tool(since="2999-01-01") == {}
