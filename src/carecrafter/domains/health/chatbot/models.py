"""Disease knowledge base models."""

from __future__ import annotations

from dataclasses import dataclass, field

AGE_GROUPS = ("youth", "adult", "senior")

MEDICINE_TIMINGS = ("before food", "after food", "with food", "any time")


@dataclass
class Medicine:
    """An over-the-counter option with per-age-group dosage."""

    name: str
    dosage: dict[str, str]  # age group -> dosage text
    timing: str = "any time"

    def dosage_for(self, age_group: str) -> str:
        return self.dosage.get(age_group, "Consult doctor")


@dataclass
class Disease:
    """A common condition the chatbot can recognise."""

    name: str
    symptoms: list[str]
    medicines: list[Medicine] = field(default_factory=list)
    food_to_eat: list[str] = field(default_factory=list)
    food_to_avoid: list[str] = field(default_factory=list)
    duration: str = ""
    requires_hospital: bool = False
