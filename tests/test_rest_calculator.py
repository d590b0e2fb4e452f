"""Tests for adaptive rest calculation."""

import pytest

from coach.core.models import (
    EnvironmentalFactors,
    Exercise,
    SessionContext,
    SetPerformance,
    build_biometrics,
    build_set_performance,
)
from coach.core.patterns import ExercisePatternCatalog
from coach.core.rest_calculator import DEFAULT_REASON, AdaptiveRestCalculator


def context(duration=30.0, fatigue=5.0, average_rpe=7.0, temperature=None):
    return SessionContext(
        session_duration_minutes=duration,
        average_rpe=average_rpe,
        fatigue_level=fatigue,
        environmental_factors=EnvironmentalFactors(temperature=temperature),
    )


def effort(rpe):
    return build_set_performance(1, reps=10, completed=True, rpe=rpe)


@pytest.fixture
def calculator():
    return AdaptiveRestCalculator()


SQUAT_90 = Exercise(name="squat", rest_time=90)


class TestMultipliers:

    def test_very_high_effort(self, calculator):
        rec = calculator.compute(SQUAT_90, effort(9), None, context())
        assert rec.current_rest == 108
        assert (rec.min_rest, rec.max_rest, rec.base_rest) == (60, 180, 90)
        assert "very high effort" in rec.reason

    def test_no_adjustments(self, calculator):
        rec = calculator.compute(SQUAT_90, effort(7), None, context())
        assert rec.current_rest == 90
        assert rec.factors == ()

    def test_factors_compound(self, calculator):
        # 90 x 1.2 (rpe) x 1.1 (long) x 1.2 (fatigue) = 142.56
        rec = calculator.compute(SQUAT_90, effort(9), None, context(duration=75, fatigue=8))
        assert rec.current_rest == 143
        assert rec.factors == ("very high effort", "long session", "high fatigue")

    def test_low_intensity_session(self, calculator):
        rec = calculator.compute(SQUAT_90, effort(5), None, context(average_rpe=5))
        assert rec.current_rest == 81

    def test_hot_environment(self, calculator):
        exercise = Exercise(name="squat", rest_time=100)
        rec = calculator.compute(exercise, effort(7), None, context(temperature=31))
        assert rec.current_rest == 115

    def test_cold_environment_does_not_change_rest(self, calculator):
        rec = calculator.compute(SQUAT_90, effort(7), None, context(temperature=5))
        assert rec.current_rest == 90


class TestBiometrics:

    def test_slow_recovery(self, calculator):
        bio = build_biometrics(heart_rate_recovery=15)
        rec = calculator.compute(SQUAT_90, effort(7), bio, context())
        assert rec.current_rest == 117

    def test_fast_recovery(self, calculator):
        bio = build_biometrics(heart_rate_recovery=45)
        rec = calculator.compute(SQUAT_90, effort(7), bio, context())
        assert rec.current_rest == 72

    def test_poor_sleep(self, calculator):
        exercise = Exercise(name="squat", rest_time=100)
        bio = build_biometrics(sleep_quality=0.5)
        rec = calculator.compute(exercise, effort(7), bio, context())
        assert rec.current_rest == 115

    def test_unknown_biometrics_change_nothing(self, calculator):
        rec = calculator.compute(SQUAT_90, effort(7), build_biometrics(), context())
        assert rec.current_rest == 90

    def test_notes(self, calculator):
        bio = build_biometrics(heart_rate=165, stress_level=8, heart_rate_recovery=10)
        rec = calculator.compute(SQUAT_90, effort(9), bio, context())
        assert len(rec.notes) == 3


class TestBounds:

    def test_clamped_to_max(self, calculator):
        rec = calculator.compute(Exercise(name="squat", rest_time=170), effort(9), None, context())
        assert rec.current_rest == 180

    def test_clamped_to_min(self, calculator):
        rec = calculator.compute(Exercise(name="squat", rest_time=40), effort(7), None, context())
        assert rec.current_rest == 60

    def test_exercise_overrides_bounds(self, calculator):
        exercise = Exercise(name="deadlift", rest_time=170, max_rest=300)
        rec = calculator.compute(exercise, effort(9), None, context())
        assert rec.current_rest == 204
        assert rec.max_rest == 300

    def test_deterministic(self, calculator):
        args = (SQUAT_90, effort(9), build_biometrics(heart_rate_recovery=30), context(duration=61))
        assert calculator.compute(*args) == calculator.compute(*args)


class TestDefaults:

    def test_missing_set_performance(self, calculator):
        rec = calculator.compute(SQUAT_90, None, None, context())
        assert rec.current_rest == 90
        assert rec.reason == DEFAULT_REASON

    def test_invalid_rpe_uses_base_rest(self, calculator):
        bad = SetPerformance(set_number=1, reps=10, completed=True, rpe=14)
        rec = calculator.compute(SQUAT_90, bad, None, context())
        assert rec.current_rest == 90
        assert rec.reason == DEFAULT_REASON

    def test_missing_exercise_uses_default_rest(self, calculator):
        rec = calculator.compute(None, effort(9), None, context())
        assert rec.current_rest == 90
        assert rec.reason == DEFAULT_REASON

    def test_pattern_default_rest_when_unset(self):
        calculator = AdaptiveRestCalculator(ExercisePatternCatalog())
        rec = calculator.compute(Exercise(name="deadlift"), effort(7), None, context())
        assert rec.base_rest == 120
        assert rec.current_rest == 120
