"""CareCrafter Health MCP Server: application factory.

This module provides:
- create_app() for testability (integration tests create fresh server instances)
- Module-level `mcp` variable for FastMCP discovery
"""

from __future__ import annotations

import logging

from fastmcp import FastMCP

from carecrafter.core.audit.logger import AuditLogger
from carecrafter.core.config.settings import get_settings
from carecrafter.core.storage.database import HealthDatabase
from carecrafter.core.storage.encryption import EncryptionError, FieldEncryptor
from carecrafter.core.storage.repository import HealthRepository
from carecrafter.domains.health.chatbot.knowledge import (
    DiseaseRegistry,
    default_registry,
    load_knowledge_base,
)
from carecrafter.domains.health.chatbot.symptom_matcher import SymptomMatcher
from carecrafter.domains.health.connectors import EntryStore
from carecrafter.domains.health.connectors.memory_store import InMemoryEntryStore
from carecrafter.domains.health.domain_logic.tracker import HealthTracker
from carecrafter.domains.health.prompts.health_prompts import register_health_prompts
from carecrafter.domains.health.resources.knowledge import register_knowledge_resources
from carecrafter.domains.health.tools.chatbot_tools import register_chatbot_tools
from carecrafter.domains.health.tools.tracker_tools import register_tracker_tools

logger = logging.getLogger(__name__)

SERVER_NAME = "CareCrafter Health"
SERVER_VERSION = "0.1.0"


def create_app(
    *,
    repository_override: HealthRepository | None = None,
    audit_logger_override: AuditLogger | None = None,
    tracker_override: HealthTracker | None = None,
    registry_override: DiseaseRegistry | None = None,
) -> FastMCP:
    """Create and configure the CareCrafter Health MCP server.

    This is the main application factory. It:
    1. Creates the FastMCP server instance
    2. Loads the disease knowledge base
    3. Initializes the encrypted storage layer, or the in-memory store
       when no encryption key is configured
    4. Builds the health tracker on top of the chosen store
    5. Registers all tools, resources, and prompts
    """
    settings = get_settings()

    # --- Server instance ---
    server = FastMCP(
        SERVER_NAME,
        instructions=(
            "CareCrafter personal health server. Tracks daily sleep, exercise, "
            "steps, water, meals and medication adherence as a 0-100 health "
            "score, analyzes trends and patterns over time, generates health "
            "reports, and offers rule-based symptom guidance."
        ),
    )

    # --- Disease knowledge base ---
    if registry_override is not None:
        registry = registry_override
    elif settings.knowledge_base_path:
        registry = load_knowledge_base(settings.knowledge_base_path)
    else:
        registry = default_registry()
    matcher = SymptomMatcher(registry)

    # --- Initialize encrypted storage (health data bank) ---
    repository: HealthRepository | None = None
    audit_logger: AuditLogger | None = audit_logger_override
    if repository_override is not None:
        repository = repository_override
    elif settings.encryption_key:
        try:
            encryptor = FieldEncryptor(settings.encryption_key)
            health_db = HealthDatabase(settings.db_path)
            health_db.initialize()
            repository = HealthRepository(health_db, encryptor)
            if audit_logger is None:
                audit_logger = AuditLogger(health_db)
            logger.info(
                "Health data bank initialized: %s (schema v%d)",
                settings.db_path,
                health_db.get_schema_version(),
            )
        except EncryptionError as exc:
            logger.error("Failed to initialize storage: %s", exc)
            logger.warning("Continuing without persistence, entries will not be stored")
    else:
        logger.warning(
            "No ENCRYPTION_KEY configured, entries are kept in memory only. "
            "Set ENCRYPTION_KEY to enable the health data bank."
        )

    # --- Health tracker ---
    if tracker_override is not None:
        tracker = tracker_override
    else:
        store: EntryStore = repository if repository is not None else InMemoryEntryStore()
        tracker = HealthTracker(store)

    # --- Register tools ---
    @server.tool
    def health_check() -> dict:
        """Check server health and return basic status information."""
        status = {
            "status": "ok",
            "server": SERVER_NAME,
            "version": SERVER_VERSION,
            "diseases_loaded": len(registry),
            "storage_enabled": repository is not None,
            "audit_enabled": audit_logger is not None,
            "entries_stored": len(tracker.entries()),
        }
        return status

    register_tracker_tools(
        server,
        tracker,
        audit_logger,
        default_range_preset=settings.default_range_preset,
    )
    logger.info("Health tracker tools registered")

    register_chatbot_tools(
        server,
        matcher,
        repository,
        audit_logger,
        default_age_group=settings.default_age_group,
    )
    logger.info("Symptom chatbot tools registered")

    if audit_logger is not None:
        from carecrafter.domains.health.tools.audit_tools import register_audit_tools

        register_audit_tools(server, audit_logger)
        logger.info("Audit tools registered")

    # --- Register resources ---
    register_knowledge_resources(server, registry)

    # --- Register prompts ---
    register_health_prompts(server)

    return server


# Module-level instance for FastMCP discovery (`fastmcp run ...app.py:mcp`).
# Lazy: only created when this attribute is accessed (not when tests import create_app).
def __getattr__(name: str):
    if name == "mcp":
        global mcp  # noqa: PLW0603
        mcp = create_app()
        return mcp
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
