"""Rule-based symptom matcher.

Maps a free-text message to one fixed reply: an emergency warning, a
hospital referral, a treatment recommendation for one disease, a short
list of candidate diseases, or a request for more detail. Stateless and
synchronous; each reply depends only on the message, the age group and
the loaded knowledge base.
"""

from __future__ import annotations

import logging
import re

from carecrafter.domains.health.chatbot.knowledge import DiseaseRegistry, default_registry
from carecrafter.domains.health.chatbot.models import AGE_GROUPS, Disease

logger = logging.getLogger(__name__)

WELCOME_MESSAGE = (
    "Hello! I'm your healthcare assistant. Please describe your symptoms or "
    "health concerns, and I'll do my best to help you."
)

EMERGENCY_KEYWORDS = ("emergency", "severe pain", "can't breathe", "chest pain")
PERSISTENCE_KEYWORDS = (
    "still having",
    "not getting better",
    "persists",
    "worsening",
    "not working",
)

EMERGENCY_MESSAGE = (
    "This sounds like an emergency. Please call emergency services (911) "
    "immediately or go to the nearest emergency room."
)
CONSULT_DOCTOR_MESSAGE = "It is advisable to consult a doctor."
FALLBACK_MESSAGE = (
    "I'm not able to determine your condition based on the information "
    "provided. Could you please describe your symptoms in more detail?"
)
HOSPITAL_NOTE = (
    "⚠ NOTE: This condition may require medical attention. Please consult "
    "a healthcare professional if symptoms worsen."
)

NEARBY_HOSPITALS = (
    "City General Hospital - 2.3 miles away",
    "Community Medical Center - 3.1 miles away",
    "University Health Clinic - 5.7 miles away",
)

MAX_CANDIDATES = 3

_USER_DURATION_RE = re.compile(r"(for|since)\s+(\d+)\s*(day|days|week|weeks|month|months)")
_CLAUSE_SPLIT_RE = re.compile(r"[.,;]|\band\b")
_UNIT_DAYS = {"day": 1, "week": 7, "month": 30}
# Checked in this order; "4-24 hours" has no day-based maximum.
_DISEASE_DURATION_RES = (
    (re.compile(r"(\d+)(?:-(\d+))?\s*day"), 1),
    (re.compile(r"(\d+)(?:-(\d+))?\s*week"), 7),
    (re.compile(r"(\d+)(?:-(\d+))?\s*month"), 30),
)


# ---------------------------------------------------------------------------
# Durations
# ---------------------------------------------------------------------------


def user_duration_days(message: str) -> int | None:
    """Days stated in phrases like "for 2 weeks" or "since 10 days"."""
    match = _USER_DURATION_RE.search(message.lower())
    if not match:
        return None
    amount = int(match.group(2))
    unit = match.group(3).rstrip("s")
    return amount * _UNIT_DAYS[unit]


def disease_max_days(duration: str) -> int | None:
    """Upper bound of a documented duration such as "7-10 days" or "2 weeks"."""
    for pattern, factor in _DISEASE_DURATION_RES:
        match = pattern.search(duration)
        if match:
            upper = match.group(2) or match.group(1)
            return int(upper) * factor
    return None


def exceeds_duration(disease: Disease, days: int | None) -> bool:
    # A stated duration of 0 days never triggers the check.
    if not days:
        return False
    max_days = disease_max_days(disease.duration)
    return bool(max_days) and days > max_days


# ---------------------------------------------------------------------------
# Replies
# ---------------------------------------------------------------------------


def hospital_recommendation() -> str:
    hospitals = "\n".join(f"{i}. {name}" for i, name in enumerate(NEARBY_HOSPITALS, 1))
    return (
        "I'm concerned about your persistent symptoms. I recommend visiting a "
        "healthcare facility for proper diagnosis and treatment.\n\n"
        f"NEARBY HOSPITALS:\n{hospitals}\n\n"
        "Please don't delay seeking medical attention. Would you like me to "
        "provide directions to any of these facilities?"
    )


def recommendation(disease: Disease, age_group: str) -> str:
    """Treatment summary for one disease with age-appropriate dosages."""
    medicines = "\n".join(
        f"{med.name}: {med.dosage_for(age_group)} (take {med.timing})"
        for med in disease.medicines
    )
    lines = [
        f"Based on your symptoms, you may have {disease.name}.",
        "",
        "RECOMMENDED TREATMENT:",
        "- Medicines:",
        medicines,
        "",
        f"- Foods to eat: {', '.join(disease.food_to_eat)}",
        f"- Foods to avoid: {', '.join(disease.food_to_avoid)}",
        "",
        f"- Expected duration: {disease.duration}",
    ]
    if disease.requires_hospital:
        lines += ["", HOSPITAL_NOTE]
    return "\n".join(lines)


def candidates_message(diseases: list[Disease]) -> str:
    names = ", ".join(d.name for d in diseases[:MAX_CANDIDATES])
    return (
        f"Based on your symptoms, you might be experiencing one of the following: "
        f"{names}. Can you provide more details about your symptoms?"
    )


# ---------------------------------------------------------------------------
# Matching
# ---------------------------------------------------------------------------


def split_clauses(message: str) -> list[str]:
    """Lower-cased symptom phrases split on punctuation and the word "and"."""
    parts = _CLAUSE_SPLIT_RE.split(message.lower())
    return [p.strip() for p in parts if p.strip()]


def match_count(disease: Disease, clauses: list[str]) -> int:
    """Symptoms that overlap any clause, in either direction."""
    count = 0
    for symptom in disease.symptoms:
        symptom = symptom.lower()
        if any(symptom in clause or clause in symptom for clause in clauses):
            count += 1
    return count


class SymptomMatcher:
    """Answers chat messages from a disease registry.

    Usage::

        matcher = SymptomMatcher(load_knowledge_base())
        reply = matcher.respond("I have a runny nose and sneezing", "adult")
    """

    def __init__(self, registry: DiseaseRegistry) -> None:
        self._registry = registry

    @property
    def registry(self) -> DiseaseRegistry:
        return self._registry

    def match_symptoms(self, clauses: list[str]) -> list[Disease]:
        """Diseases with at least one overlapping symptom, most matches first.

        Ties keep knowledge base order.
        """
        scored = []
        for disease in self._registry.all():
            count = match_count(disease, clauses)
            if count > 0:
                scored.append((count, disease))
        scored.sort(key=lambda item: item[0], reverse=True)
        return [disease for _, disease in scored]

    def find_named_disease(self, message: str) -> Disease | None:
        lowered = message.lower()
        for disease in self._registry.all():
            if disease.name.lower() in lowered:
                return disease
        return None

    def respond(self, message: str, age_group: str) -> str:
        """Reply to one user message.

        Raises:
            ValueError: If ``age_group`` is not youth, adult or senior.
        """
        if age_group not in AGE_GROUPS:
            raise ValueError(
                f"Unknown age group {age_group!r}; expected one of {', '.join(AGE_GROUPS)}"
            )

        lowered = message.lower()

        if any(keyword in lowered for keyword in EMERGENCY_KEYWORDS):
            logger.info("Chat reply: emergency")
            return EMERGENCY_MESSAGE

        if any(keyword in lowered for keyword in PERSISTENCE_KEYWORDS):
            logger.info("Chat reply: hospital referral")
            return hospital_recommendation()

        days = user_duration_days(lowered)

        named = self.find_named_disease(lowered)
        if named is not None:
            if exceeds_duration(named, days):
                logger.info("Chat reply: named disease past expected duration")
                return CONSULT_DOCTOR_MESSAGE
            logger.info("Chat reply: named disease")
            return recommendation(named, age_group)

        matched = self.match_symptoms(split_clauses(lowered))
        if not matched:
            logger.info("Chat reply: no match")
            return FALLBACK_MESSAGE

        if any(exceeds_duration(disease, days) for disease in matched):
            logger.info("Chat reply: symptoms past expected duration")
            return CONSULT_DOCTOR_MESSAGE

        if len(matched) == 1:
            logger.info("Chat reply: single match")
            return recommendation(matched[0], age_group)

        logger.info("Chat reply: %d candidate diseases", len(matched))
        return candidates_message(matched)


def respond(message: str, age_group: str) -> str:
    """Reply using the bundled knowledge base."""
    return SymptomMatcher(default_registry()).respond(message, age_group)
