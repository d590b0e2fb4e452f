"""
Adaptive rest-time calculation.

Rest starts from the exercise's configured rest and is scaled by independent
multipliers that compound:

    rpe >= 9                       x1.20
    session longer than 60 min     x1.10
    fatigue level above 7          x1.20
    low-intensity session (avg<6)  x0.90
    ambient temperature above 25   x1.15
    slow heart-rate recovery (<20) x1.30   (biometrics only)
    fast heart-rate recovery (>40) x0.80   (biometrics only)
    sleep quality q                x(1.3 - 0.3q)  (biometrics only)

The result is rounded to whole seconds and clamped to the rest bounds.
"""

import logging
from typing import List, Optional, Tuple

from coach.config import get_settings
from coach.core.models import (
    BiometricSnapshot,
    Exercise,
    RestRecommendation,
    SessionContext,
    SetPerformance,
)
from coach.core.patterns import ExercisePatternCatalog

logger = logging.getLogger(__name__)

DEFAULT_REASON = "default (insufficient data)"


class AdaptiveRestCalculator:
    """Computes rest recommendations. Never raises to the caller."""

    VERY_HIGH_EFFORT = 1.20
    LONG_SESSION = 1.10
    HIGH_FATIGUE = 1.20
    LOW_INTENSITY = 0.90
    HOT_ENVIRONMENT = 1.15
    SLOW_RECOVERY = 1.30
    FAST_RECOVERY = 0.80

    SLOW_RECOVERY_BPM = 20
    FAST_RECOVERY_BPM = 40
    HIGH_HEART_RATE = 150
    HIGH_STRESS = 7
    MOBILITY_REST_SECONDS = 120

    def __init__(self, catalog: Optional[ExercisePatternCatalog] = None):
        self.settings = get_settings()
        self.catalog = catalog

    def base_rest(self, exercise: Optional[Exercise]) -> int:
        if exercise is not None and exercise.rest_time:
            return int(exercise.rest_time)
        if exercise is not None and self.catalog is not None:
            return self.catalog.lookup(exercise.name).default_rest
        return self.settings.default_rest_seconds

    def bounds(self, exercise: Optional[Exercise]) -> Tuple[int, int]:
        min_rest = self.settings.min_rest_seconds
        max_rest = self.settings.max_rest_seconds
        if exercise is not None:
            if exercise.min_rest is not None:
                min_rest = exercise.min_rest
            if exercise.max_rest is not None:
                max_rest = exercise.max_rest
        return min_rest, max(min_rest, max_rest)

    def compute(
        self,
        exercise: Optional[Exercise],
        set_performance: Optional[SetPerformance],
        biometrics: Optional[BiometricSnapshot] = None,
        context: Optional[SessionContext] = None,
    ) -> RestRecommendation:
        base = self.base_rest(exercise)
        min_rest, max_rest = self.bounds(exercise)

        if exercise is None or set_performance is None or context is None \
                or not set_performance.is_valid:
            logger.info("Rest calculation missing inputs, using base rest")
            return self._default(base, min_rest, max_rest)

        try:
            multiplier, factors = self._multipliers(set_performance, biometrics, context)
        except (TypeError, ValueError) as e:
            logger.warning(f"Rest calculation failed, using base rest: {e}")
            return self._default(base, min_rest, max_rest)

        rest = int(round(base * multiplier))
        rest = max(min_rest, min(max_rest, rest))

        return RestRecommendation(
            current_rest=rest,
            min_rest=min_rest,
            max_rest=max_rest,
            base_rest=base,
            reason=", ".join(factors) if factors else "standard rest",
            factors=tuple(factors),
            notes=tuple(self._notes(rest, biometrics)),
        )

    def _multipliers(
        self,
        set_performance: SetPerformance,
        biometrics: Optional[BiometricSnapshot],
        context: SessionContext
    ) -> Tuple[float, List[str]]:
        s = self.settings
        multiplier = 1.0
        factors: List[str] = []

        if set_performance.rpe >= s.very_high_rpe:
            multiplier *= self.VERY_HIGH_EFFORT
            factors.append("very high effort")

        if context.session_duration_minutes > s.long_session_minutes:
            multiplier *= self.LONG_SESSION
            factors.append("long session")

        if context.fatigue_level > s.high_fatigue_level:
            multiplier *= self.HIGH_FATIGUE
            factors.append("high fatigue")

        if 0 < context.average_rpe < s.low_intensity_rpe:
            multiplier *= self.LOW_INTENSITY
            factors.append("low-intensity session")

        temperature = context.environmental_factors.temperature
        if temperature is not None and temperature > s.hot_temperature:
            multiplier *= self.HOT_ENVIRONMENT
            factors.append("hot environment")

        if biometrics is not None:
            recovery = biometrics.heart_rate_recovery
            if recovery is not None:
                if recovery < self.SLOW_RECOVERY_BPM:
                    multiplier *= self.SLOW_RECOVERY
                    factors.append("slow heart-rate recovery")
                elif recovery > self.FAST_RECOVERY_BPM:
                    multiplier *= self.FAST_RECOVERY
                    factors.append("fast heart-rate recovery")

            if biometrics.sleep_quality is not None:
                sleep_factor = 1.3 - 0.3 * biometrics.sleep_quality
                if sleep_factor != 1.0:
                    multiplier *= sleep_factor
                    factors.append("sleep quality")

        return multiplier, factors

    def _notes(self, rest: int, biometrics: Optional[BiometricSnapshot]) -> List[str]:
        notes = []
        if biometrics is not None and biometrics.heart_rate is not None \
                and biometrics.heart_rate > self.HIGH_HEART_RATE:
            notes.append("Focus on deep breathing to bring your heart rate down")
        if rest > self.MOBILITY_REST_SECONDS:
            notes.append("Use the extra time for light mobility work")
        if biometrics is not None and biometrics.stress_level is not None \
                and biometrics.stress_level > self.HIGH_STRESS:
            notes.append("Take a moment for mindful breathing")
        return notes

    def _default(self, base: int, min_rest: int, max_rest: int) -> RestRecommendation:
        return RestRecommendation(
            current_rest=base,
            min_rest=min_rest,
            max_rest=max_rest,
            base_rest=base,
            reason=DEFAULT_REASON,
        )
