"""MCP Resources for disease knowledge base discovery."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

from fastmcp import FastMCP

if TYPE_CHECKING:
    from carecrafter.domains.health.chatbot.knowledge import DiseaseRegistry


def register_knowledge_resources(mcp: FastMCP, registry: DiseaseRegistry) -> None:
    """Register disease knowledge base resources on the MCP server."""

    @mcp.resource("knowledge://health/diseases")
    def disease_knowledge_resource() -> str:
        """Every condition the symptom chatbot recognises, with its symptom keywords."""
        diseases = registry.all()
        return json.dumps(
            {
                "disease_count": len(diseases),
                "diseases": [
                    {
                        "name": d.name,
                        "symptoms": d.symptoms,
                        "medicines": [m.name for m in d.medicines],
                        "duration": d.duration,
                        "requires_hospital": d.requires_hospital,
                    }
                    for d in diseases
                ],
            },
            indent=2,
        )
