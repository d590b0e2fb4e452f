"""
Session history aggregation.

The aggregator keeps no state of its own. It appends to, and derives
statistics from, the performance history of the session it is handed, so a
session's data lives only on the session.
"""

import numpy as np
from datetime import datetime
import logging
from typing import List, Optional

from coach.config import get_settings
from coach.core.models import (
    BiometricSnapshot,
    FrameAnalysisResult,
    HeartRateStats,
    PerformanceEntry,
    PerformanceTrend,
    SessionContext,
    SetPerformance,
    WorkoutSession,
)

logger = logging.getLogger(__name__)

TREND_WINDOW = 3
TREND_THRESHOLD = 0.10
DEFAULT_FATIGUE = 5.0
DEFAULT_FORM_ACCURACY = 85.0


class SessionAggregator:
    """Appends events to a session's history and derives rolling statistics."""

    # Recording

    def record(
        self,
        session: WorkoutSession,
        payload,
        timestamp: datetime
    ) -> PerformanceEntry:
        entry = PerformanceEntry(
            timestamp=timestamp,
            exercise_index=session.exercise_index,
            set_index=session.set_index,
            payload=payload,
        )
        session.performance_history.append(entry)
        return entry

    # Views

    @staticmethod
    def set_performances(history: List[PerformanceEntry]) -> List[SetPerformance]:
        return [e.payload for e in history if isinstance(e.payload, SetPerformance)]

    @staticmethod
    def frame_results(history: List[PerformanceEntry]) -> List[FrameAnalysisResult]:
        return [e.payload for e in history if isinstance(e.payload, FrameAnalysisResult)]

    @staticmethod
    def biometrics(history: List[PerformanceEntry]) -> List[BiometricSnapshot]:
        return [e.payload for e in history if isinstance(e.payload, BiometricSnapshot)]

    def recent_frames(
        self,
        history: List[PerformanceEntry],
        limit: Optional[int] = None
    ) -> List[FrameAnalysisResult]:
        """Bounded tail of frame results for export. The stored history is not trimmed."""
        limit = limit if limit is not None else get_settings().frame_export_limit
        if limit <= 0:
            return []
        return self.frame_results(history)[-limit:]

    # Derived statistics

    def average_rpe(self, history: List[PerformanceEntry]) -> float:
        rpes = [s.rpe for s in self.set_performances(history)]
        if not rpes:
            return 0.0
        return float(np.mean(rpes))

    def performance_trend(self, history: List[PerformanceEntry]) -> PerformanceTrend:
        """
        Compare the mean RPE of the last 3 sets against all earlier sets.

        Needs at least 3 sets and at least one earlier set, else stable.
        """
        rpes = [s.rpe for s in self.set_performances(history)]
        if len(rpes) < TREND_WINDOW:
            return PerformanceTrend.STABLE
        earlier = rpes[:-TREND_WINDOW]
        if not earlier:
            return PerformanceTrend.STABLE

        recent_mean = float(np.mean(rpes[-TREND_WINDOW:]))
        earlier_mean = float(np.mean(earlier))
        if recent_mean > earlier_mean * (1 + TREND_THRESHOLD):
            return PerformanceTrend.IMPROVING
        if recent_mean < earlier_mean * (1 - TREND_THRESHOLD):
            return PerformanceTrend.DECLINING
        return PerformanceTrend.STABLE

    def fatigue_level(self, history: List[PerformanceEntry]) -> float:
        rpes = [s.rpe for s in self.set_performances(history)]
        if not rpes:
            return DEFAULT_FATIGUE
        return float(np.clip(np.mean(rpes), 1.0, 10.0))

    def form_accuracy(self, history: List[PerformanceEntry]) -> float:
        """Mean form score on a 0-100 scale."""
        scores = [f.form_score for f in self.frame_results(history)]
        if not scores:
            return DEFAULT_FORM_ACCURACY
        return round(float(np.mean(scores)) * 10, 1)

    def total_volume(self, history: List[PerformanceEntry]) -> float:
        return float(sum(s.volume for s in self.set_performances(history)))

    def sets_completed(self, history: List[PerformanceEntry]) -> int:
        return sum(1 for s in self.set_performances(history) if s.completed)

    def heart_rate_stats(self, history: List[PerformanceEntry]) -> Optional[HeartRateStats]:
        rates = [b.heart_rate for b in self.biometrics(history) if b.heart_rate is not None]
        if not rates:
            return None
        return HeartRateStats(
            average=round(float(np.mean(rates)), 1),
            max=float(np.max(rates)),
            min=float(np.min(rates)),
        )

    def latest_biometrics(self, history: List[PerformanceEntry]) -> Optional[BiometricSnapshot]:
        snapshots = self.biometrics(history)
        return snapshots[-1] if snapshots else None

    def context(self, session: WorkoutSession, now: datetime) -> SessionContext:
        history = session.performance_history
        return SessionContext(
            session_duration_minutes=session.duration_seconds(now) / 60.0,
            average_rpe=self.average_rpe(history),
            performance_trend=self.performance_trend(history),
            fatigue_level=self.fatigue_level(history),
            adaptation_count=len(session.adaptations),
            environmental_factors=session.environmental_factors,
        )
