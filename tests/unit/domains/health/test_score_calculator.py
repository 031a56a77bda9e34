"""Tests for the daily health score calculator."""

from __future__ import annotations

import pytest

from carecrafter.domains.health.domain_logic.score_calculator import (
    RATING_COLORS,
    compute_score,
    exercise_score,
    get_color,
    get_rating,
    medication_score,
    nutrition_score,
    round_half_up,
    sleep_score,
    steps_score,
    water_score,
)
from carecrafter.domains.health.domain_logic.tracker_models import Meals, Medications
from conftest import make_metrics


class TestRoundHalfUp:
    def test_ties_round_up(self):
        assert round_half_up(10.5) == 11
        assert round_half_up(2.5) == 3

    def test_ties_away_from_zero_when_negative(self):
        assert round_half_up(-2.5) == -3

    def test_regular_rounding(self):
        assert round_half_up(12.49) == 12
        assert round_half_up(12.51) == 13


class TestSleepScore:
    @pytest.mark.parametrize(
        "hours, expected",
        [
            (7, 25), (8, 25), (9, 25),
            (6, 20), (6.5, 20),
            (9.5, 21), (10, 21),
            (5, 15), (5.5, 15),
            (11, 18), (12, 18),
            (4, 10), (4.5, 10),
            (3, 5), (0, 0),
        ],
    )
    def test_curve(self, hours, expected):
        assert sleep_score(hours) == expected


class TestExerciseScore:
    @pytest.mark.parametrize(
        "minutes, kind, expected",
        [
            (30, "cardio", 20),
            (90, "strength", 20),
            (20, "cardio", 16),
            (15, "strength", 12),
            (10, "cardio", 8),
            (5, "cardio", 3),
            (30, "yoga", 19),
            (20, "yoga", 15),
            (20, "sports", 17),
        ],
    )
    def test_curve(self, minutes, kind, expected):
        assert exercise_score(minutes, kind) == expected

    def test_sports_bonus_capped_at_weight(self):
        assert exercise_score(45, "sports") == 20

    def test_type_none_scores_zero(self):
        assert exercise_score(60, "none") == 0

    def test_zero_minutes_scores_zero(self):
        assert exercise_score(0, "cardio") == 0


class TestStepsScore:
    @pytest.mark.parametrize(
        "steps, expected",
        [(12000, 15), (10000, 15), (7500, 13), (5000, 11), (2500, 8), (1000, 2), (0, 0)],
    )
    def test_curve(self, steps, expected):
        assert steps_score(steps) == expected


class TestWaterScore:
    @pytest.mark.parametrize(
        "glasses, expected",
        [(10, 10), (8, 10), (6, 8), (4, 6), (2, 3), (0, 0)],
    )
    def test_curve(self, glasses, expected):
        assert water_score(glasses) == expected


class TestMedicationScore:
    def test_nothing_prescribed_is_full_adherence(self):
        assert medication_score(Medications(taken=[], prescribed=[])) == 20

    def test_partial_adherence(self):
        assert medication_score(Medications(taken=["A"], prescribed=["A", "B"])) == 10
        assert medication_score(Medications(taken=["A", "B"], prescribed=["A", "B", "C"])) == 13
        assert medication_score(Medications(taken=["A"], prescribed=["A", "B", "C"])) == 7

    def test_none_taken(self):
        assert medication_score(Medications(taken=[], prescribed=["A", "B"])) == 0


class TestNutritionScore:
    @pytest.mark.parametrize(
        "meals, expected",
        [
            (Meals(True, True, True), 10),
            (Meals(True, False, True), 7),
            (Meals(False, True, False), 3),
            (Meals(), 0),
        ],
    )
    def test_thirds(self, meals, expected):
        assert nutrition_score(meals) == expected


class TestRating:
    @pytest.mark.parametrize(
        "score, rating",
        [
            (100, "Excellent"), (85, "Excellent"),
            (84, "Good"), (70, "Good"),
            (69, "Fair"), (50, "Fair"),
            (49, "Needs Improvement"), (0, "Needs Improvement"),
        ],
    )
    def test_tiers(self, score, rating):
        assert get_rating(score) == rating

    def test_colors_follow_rating(self):
        assert get_color("Excellent") == "hsl(142, 76%, 36%)"
        assert get_color("Needs Improvement") == "hsl(0, 84%, 60%)"
        assert set(RATING_COLORS) == {"Excellent", "Good", "Fair", "Needs Improvement"}


class TestComputeScore:
    def test_perfect_day(self):
        score = compute_score(make_metrics())
        assert score.total_score == 100
        assert score.rating == "Excellent"
        assert score.color == RATING_COLORS["Excellent"]

    def test_low_activity_day(self):
        score = compute_score(make_metrics(
            sleep=3,
            exercise_minutes=0,
            exercise_type="none",
            steps=0,
            water=0,
            meals=0,
            prescribed=["A", "B"],
        ))
        assert score.breakdown.as_dict() == {
            "sleep": 5,
            "exercise": 0,
            "steps": 0,
            "water": 0,
            "medication": 0,
            "nutrition": 0,
        }
        assert score.total_score == 5
        assert score.rating == "Needs Improvement"

    def test_mixed_day(self):
        score = compute_score(make_metrics(
            sleep=6.5,
            exercise_minutes=20,
            exercise_type="yoga",
            steps=5000,
            water=6,
            meals=2,
            taken=["A"],
            prescribed=["A", "B"],
        ))
        assert score.breakdown.as_dict() == {
            "sleep": 20,
            "exercise": 15,
            "steps": 11,
            "water": 8,
            "medication": 10,
            "nutrition": 7,
        }
        assert score.total_score == 71
        assert score.rating == "Good"

    def test_total_is_sum_of_components(self):
        score = compute_score(make_metrics(sleep=11, steps=7500, water=2, meals=1))
        assert score.total_score == score.breakdown.total()
        assert 0 <= score.total_score <= 100

    def test_does_not_mutate_input(self):
        metrics = make_metrics(taken=["A"], prescribed=["A", "B"])
        before = metrics.to_dict()
        compute_score(metrics)
        assert metrics.to_dict() == before
