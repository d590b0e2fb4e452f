"""Tests for cadence-limited frame analysis."""

from coach.core.frame_analyzer import AnalysisCadence, FrameAnalyzer
from coach.core.models import ExercisePhase
from coach.core.patterns import PUSHUP, SQUAT
from coach.core.rep_detector import RepPhaseStateMachine

from poses import SQUAT_REP_ANGLES, pose


class TestAnalysisCadence:

    def test_empty_poll(self):
        assert AnalysisCadence(1.0).poll(0.0) is None

    def test_first_frame_released_immediately(self):
        cadence = AnalysisCadence(1.0)
        frame = pose(timestamp=0.0)
        cadence.offer(frame)
        assert cadence.poll(0.0) is frame

    def test_latest_frame_wins(self):
        cadence = AnalysisCadence(1.0)
        cadence.offer(pose(timestamp=0.0))
        cadence.poll(0.0)

        cadence.offer(pose(timestamp=0.3))
        assert cadence.poll(0.3) is None
        newest = pose(timestamp=0.6)
        cadence.offer(newest)
        assert cadence.dropped == 1
        assert cadence.poll(1.0) is newest

    def test_reset_releases_next_frame(self):
        cadence = AnalysisCadence(1.0)
        cadence.offer(pose(timestamp=0.0))
        cadence.poll(0.0)
        cadence.reset()
        frame = pose(timestamp=0.1)
        cadence.offer(frame)
        assert cadence.poll(0.1) is frame

    def test_backwards_clock_restarts_cadence(self):
        cadence = AnalysisCadence(1.0)
        cadence.offer(pose(timestamp=500.0))
        cadence.poll(500.0)

        restarted = pose(timestamp=0.0)
        cadence.offer(restarted)
        assert cadence.poll(0.0) is restarted
        cadence.offer(pose(timestamp=0.5))
        assert cadence.poll(0.5) is None
        assert cadence.poll(1.0) is not None


class TestFrameAnalyzer:

    def test_counts_reps(self):
        analyzer = FrameAnalyzer(SQUAT, machine=RepPhaseStateMachine(SQUAT, hysteresis_frames=2))
        result = None
        for i, angle in enumerate(SQUAT_REP_ANGLES):
            result = analyzer.analyze(pose(knee_angle=angle, timestamp=float(i)))
        assert result.rep_count == 1
        assert result.phase == ExercisePhase.PREPARATION
        assert result.exercise == "squat"
        assert analyzer.analyzed_frames == len(SQUAT_REP_ANGLES)

    def test_invalid_frame_is_dropped(self):
        analyzer = FrameAnalyzer(SQUAT)
        assert analyzer.analyze(pose(visibility=0.1)) is None
        assert analyzer.dropped_frames == 1
        assert analyzer.machine.phase_history == ()

    def test_accepts_counts_rejected_frames(self):
        analyzer = FrameAnalyzer(SQUAT)
        assert analyzer.accepts(pose())
        assert not analyzer.accepts(pose(visibility=0.1))
        assert analyzer.dropped_frames == 1

    def test_switch_pattern_starts_fresh(self):
        analyzer = FrameAnalyzer(SQUAT, machine=RepPhaseStateMachine(SQUAT, hysteresis_frames=3))
        for i, angle in enumerate(SQUAT_REP_ANGLES[:4]):
            analyzer.analyze(pose(knee_angle=angle, timestamp=float(i)))

        analyzer.switch_pattern(PUSHUP)
        assert analyzer.pattern is PUSHUP
        assert analyzer.machine.rep_count == 0
        assert analyzer.machine.current_phase == ExercisePhase.PREPARATION
        assert analyzer.machine.hysteresis_frames == 3
