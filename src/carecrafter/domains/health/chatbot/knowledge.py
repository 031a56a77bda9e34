"""Disease knowledge base: YAML loader and in-memory registry."""

from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml

from carecrafter.domains.health.chatbot.models import (
    AGE_GROUPS,
    MEDICINE_TIMINGS,
    Disease,
    Medicine,
)

logger = logging.getLogger(__name__)

DEFAULT_KNOWLEDGE_PATH = (
    Path(__file__).resolve().parent.parent / "knowledge" / "diseases.yaml"
)


class KnowledgeBaseError(Exception):
    """Raised when the disease knowledge base can't be loaded."""


class DiseaseRegistry:
    """In-memory index of known diseases, in file order.

    Order matters: name matching and ranking ties both resolve to the
    earliest record.
    """

    def __init__(self) -> None:
        self._diseases: list[Disease] = []
        self._by_name: dict[str, Disease] = {}

    def register(self, disease: Disease) -> None:
        key = disease.name.lower()
        if key in self._by_name:
            raise KnowledgeBaseError(f"Duplicate disease registered: {disease.name!r}")
        self._diseases.append(disease)
        self._by_name[key] = disease

    def get(self, name: str) -> Disease | None:
        """Case-insensitive exact lookup by name."""
        return self._by_name.get(name.lower())

    def all(self) -> list[Disease]:
        return list(self._diseases)

    def __len__(self) -> int:
        return len(self._diseases)


def _parse_medicine(data: dict[str, Any], disease_name: str) -> Medicine:
    dosage = data.get("dosage", {}) or {}
    missing = [group for group in AGE_GROUPS if group not in dosage]
    if missing:
        raise KnowledgeBaseError(
            f"{disease_name}: medicine {data.get('name')!r} lacks dosage for {', '.join(missing)}"
        )
    timing = data.get("timing", "any time")
    if timing not in MEDICINE_TIMINGS:
        raise KnowledgeBaseError(f"{disease_name}: unknown medicine timing {timing!r}")
    return Medicine(
        name=data["name"],
        dosage={group: str(dosage[group]) for group in AGE_GROUPS},
        timing=timing,
    )


def parse_disease(data: dict[str, Any]) -> Disease:
    """Turn one YAML record into a Disease."""
    try:
        name = data["name"]
        symptoms = [str(s) for s in data["symptoms"]]
    except (KeyError, TypeError) as exc:
        raise KnowledgeBaseError(f"Malformed disease record: {data!r}") from exc

    return Disease(
        name=name,
        symptoms=symptoms,
        medicines=[_parse_medicine(m, name) for m in data.get("medicines", [])],
        food_to_eat=list(data.get("food_to_eat", [])),
        food_to_avoid=list(data.get("food_to_avoid", [])),
        duration=str(data.get("duration", "")),
        requires_hospital=bool(data.get("requires_hospital", False)),
    )


def load_knowledge_base(path: str | Path | None = None) -> DiseaseRegistry:
    """Load a disease YAML file into a fresh registry.

    Raises:
        KnowledgeBaseError: If the file is missing or malformed.
    """
    path = Path(path) if path else DEFAULT_KNOWLEDGE_PATH
    if not path.is_file():
        raise KnowledgeBaseError(f"Knowledge base not found: {path}")

    with open(path, encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise KnowledgeBaseError(f"Invalid YAML in {path}: {exc}") from exc

    records = data.get("diseases")
    if not isinstance(records, list):
        raise KnowledgeBaseError(f"{path}: expected a top-level 'diseases' list")

    registry = DiseaseRegistry()
    for record in records:
        registry.register(parse_disease(record))
    logger.info("Loaded %d diseases from %s (v%s)", len(registry), path, data.get("version", "?"))
    return registry


@lru_cache(maxsize=1)
def default_registry() -> DiseaseRegistry:
    """The bundled knowledge base, loaded once per process."""
    return load_knowledge_base(DEFAULT_KNOWLEDGE_PATH)
