"""Tests for the disease knowledge base loader and registry."""

from __future__ import annotations

import pytest

from carecrafter.domains.health.chatbot.knowledge import (
    DiseaseRegistry,
    KnowledgeBaseError,
    default_registry,
    load_knowledge_base,
    parse_disease,
)
from carecrafter.domains.health.chatbot.models import AGE_GROUPS, MEDICINE_TIMINGS, Disease

MINIMAL_YAML = """\
version: "0.1"
diseases:
  - name: "Test Fever"
    symptoms: ["warm", "tired"]
    medicines:
      - name: "Testamol"
        dosage: {youth: "1 tab", adult: "2 tabs", senior: "1 tab"}
        timing: "after food"
    food_to_eat: ["Soup"]
    food_to_avoid: ["Ice"]
    duration: "1-3 days"
"""


def _write(tmp_path, text):
    path = tmp_path / "diseases.yaml"
    path.write_text(text, encoding="utf-8")
    return path


class TestBundledKnowledgeBase:
    def test_loads_all_records(self, disease_registry):
        assert len(disease_registry) == 31

    def test_first_record_is_common_cold(self, disease_registry):
        assert disease_registry.all()[0].name == "Common Cold"

    def test_every_medicine_is_complete(self, disease_registry):
        for disease in disease_registry.all():
            assert disease.symptoms, disease.name
            for medicine in disease.medicines:
                assert set(medicine.dosage) == set(AGE_GROUPS)
                assert medicine.timing in MEDICINE_TIMINGS

    def test_lookup_is_case_insensitive(self, disease_registry):
        assert disease_registry.get("diarrhea").name == "Diarrhea"
        assert disease_registry.get("unknown") is None

    def test_default_registry_is_cached(self):
        assert default_registry() is default_registry()


class TestLoadKnowledgeBase:
    def test_custom_file(self, tmp_path):
        registry = load_knowledge_base(_write(tmp_path, MINIMAL_YAML))
        disease = registry.get("Test Fever")
        assert disease.symptoms == ["warm", "tired"]
        assert disease.medicines[0].dosage_for("adult") == "2 tabs"
        assert disease.duration == "1-3 days"
        assert disease.requires_hospital is False

    def test_missing_file(self, tmp_path):
        with pytest.raises(KnowledgeBaseError, match="not found"):
            load_knowledge_base(tmp_path / "nope.yaml")

    def test_invalid_yaml(self, tmp_path):
        with pytest.raises(KnowledgeBaseError, match="Invalid YAML"):
            load_knowledge_base(_write(tmp_path, "diseases: [unclosed"))

    def test_requires_diseases_list(self, tmp_path):
        with pytest.raises(KnowledgeBaseError, match="'diseases' list"):
            load_knowledge_base(_write(tmp_path, "version: 1\n"))

    def test_duplicate_names_rejected(self, tmp_path):
        text = MINIMAL_YAML + MINIMAL_YAML.split("diseases:\n", 1)[1]
        with pytest.raises(KnowledgeBaseError, match="Duplicate"):
            load_knowledge_base(_write(tmp_path, text))


class TestParseDisease:
    def test_missing_dosage_for_age_group(self):
        record = {
            "name": "X",
            "symptoms": ["x"],
            "medicines": [{"name": "M", "dosage": {"adult": "1"}}],
        }
        with pytest.raises(KnowledgeBaseError, match="lacks dosage for youth, senior"):
            parse_disease(record)

    def test_unknown_timing(self):
        record = {
            "name": "X",
            "symptoms": ["x"],
            "medicines": [{
                "name": "M",
                "dosage": {"youth": "1", "adult": "1", "senior": "1"},
                "timing": "at midnight",
            }],
        }
        with pytest.raises(KnowledgeBaseError, match="timing"):
            parse_disease(record)

    def test_malformed_record(self):
        with pytest.raises(KnowledgeBaseError, match="Malformed"):
            parse_disease({"symptoms": ["x"]})


def test_registry_preserves_order():
    registry = DiseaseRegistry()
    registry.register(Disease(name="B", symptoms=["b"]))
    registry.register(Disease(name="A", symptoms=["a"]))
    assert [d.name for d in registry.all()] == ["B", "A"]
