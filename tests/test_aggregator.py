"""Tests for session aggregation."""

import pytest

from coach.core.aggregator import SessionAggregator
from coach.core.models import (
    ExercisePhase,
    FrameAnalysisResult,
    PerformanceTrend,
    build_biometrics,
    build_set_performance,
)


def record_sets(agg, session, clock, rpes, weight=None):
    for i, rpe in enumerate(rpes, 1):
        perf = build_set_performance(i, reps=10, completed=True, rpe=rpe, actual_weight=weight)
        agg.record(session, perf, clock())


def frame_result(score, t=0.0):
    return FrameAnalysisResult(
        landmarks=(),
        confidence=0.9,
        timestamp=t,
        form_score=score,
        feedback=(),
        rep_count=0,
        phase=ExercisePhase.PREPARATION,
    )


@pytest.fixture
def agg():
    return SessionAggregator()


class TestRpeStatistics:

    def test_defaults_without_sets(self, agg, session):
        history = session.performance_history
        assert agg.average_rpe(history) == 0.0
        assert agg.fatigue_level(history) == 5.0
        assert agg.performance_trend(history) == PerformanceTrend.STABLE

    def test_average_and_fatigue(self, agg, session, clock):
        record_sets(agg, session, clock, [6, 7, 8])
        assert agg.average_rpe(session.performance_history) == pytest.approx(7.0)
        assert agg.fatigue_level(session.performance_history) == pytest.approx(7.0)

    def test_trend_needs_earlier_sets(self, agg, session, clock):
        record_sets(agg, session, clock, [5, 9, 9])
        assert agg.performance_trend(session.performance_history) == PerformanceTrend.STABLE

    def test_trend_improving(self, agg, session, clock):
        record_sets(agg, session, clock, [5, 5, 7, 7, 7])
        assert agg.performance_trend(session.performance_history) == PerformanceTrend.IMPROVING

    def test_trend_declining(self, agg, session, clock):
        record_sets(agg, session, clock, [8, 8, 6, 6, 6])
        assert agg.performance_trend(session.performance_history) == PerformanceTrend.DECLINING

    def test_trend_within_ten_percent_is_stable(self, agg, session, clock):
        record_sets(agg, session, clock, [7, 7, 7.5, 7.5, 7.5])
        assert agg.performance_trend(session.performance_history) == PerformanceTrend.STABLE


class TestHistory:

    def test_record_tags_current_position(self, agg, session, clock):
        session.set_index = 2
        entry = agg.record(session, build_biometrics(heart_rate=120), clock())
        assert entry.set_index == 2
        assert entry.kind == "biometric"
        assert session.performance_history == [entry]

    def test_volume_and_completed_sets(self, agg, session, clock):
        record_sets(agg, session, clock, [7, 8], weight=50.0)
        agg.record(session, build_set_performance(3, reps=4, completed=False, rpe=10), clock())
        history = session.performance_history
        assert agg.total_volume(history) == pytest.approx(1000.0)
        assert agg.sets_completed(history) == 2

    def test_form_accuracy(self, agg, session, clock):
        assert agg.form_accuracy(session.performance_history) == 85.0
        for score in (8.0, 9.0):
            agg.record(session, frame_result(score), clock())
        assert agg.form_accuracy(session.performance_history) == pytest.approx(85.0)
        agg.record(session, frame_result(10.0), clock())
        assert agg.form_accuracy(session.performance_history) == pytest.approx(90.0)

    def test_heart_rate_stats(self, agg, session, clock):
        assert agg.heart_rate_stats(session.performance_history) is None
        for hr in (120, 150, 135):
            agg.record(session, build_biometrics(heart_rate=hr), clock())
        agg.record(session, build_biometrics(sleep_quality=0.8), clock())
        stats = agg.heart_rate_stats(session.performance_history)
        assert (stats.average, stats.max, stats.min) == (135.0, 150.0, 120.0)

    def test_recent_frames_is_bounded_view(self, agg, session, clock):
        for i in range(40):
            agg.record(session, frame_result(8.0, t=float(i)), clock())
        recent = agg.recent_frames(session.performance_history, limit=30)
        assert len(recent) == 30
        assert recent[0].timestamp == 10.0
        assert len(session.performance_history) == 40

    def test_context(self, agg, session, clock):
        record_sets(agg, session, clock, [8, 8])
        clock.advance(minutes=45)
        ctx = agg.context(session, clock())
        assert ctx.session_duration_minutes == pytest.approx(45.0)
        assert ctx.average_rpe == pytest.approx(8.0)
        assert ctx.fatigue_level == pytest.approx(8.0)
        assert ctx.adaptation_count == 0
