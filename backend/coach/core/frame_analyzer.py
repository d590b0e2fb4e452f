"""
Per-frame analysis at a fixed cadence.

AnalysisCadence implements latest-wins backpressure: frames offered faster
than the analysis interval replace the pending frame instead of queueing,
so at most one frame is ever buffered.
"""

import logging
from typing import Optional

from coach.config import get_settings
from coach.core.errors import InvalidInputError
from coach.core.form_scorer import FormScorer
from coach.core.geometry import is_valid_pose
from coach.core.models import FrameAnalysisResult, PoseFrame
from coach.core.patterns import ExercisePattern
from coach.core.rep_detector import RepPhaseStateMachine

logger = logging.getLogger(__name__)


class AnalysisCadence:
    """Releases at most one frame per interval, always the most recent one."""

    def __init__(self, interval_seconds: Optional[float] = None):
        self.interval = (
            interval_seconds if interval_seconds is not None
            else get_settings().analysis_interval_seconds
        )
        self._pending: Optional[PoseFrame] = None
        self._last_released: Optional[float] = None
        self.dropped = 0

    def offer(self, frame: PoseFrame) -> None:
        if self._pending is not None:
            self.dropped += 1
        self._pending = frame

    def poll(self, now: float) -> Optional[PoseFrame]:
        """Return the pending frame if the interval has elapsed, else None."""
        if self._pending is None:
            return None
        if self._last_released is not None and now < self._last_released:
            # Source clock went backwards (camera restart); start over from here
            logger.info(f"Frame clock reset from {self._last_released:.2f} to {now:.2f}")
            self._last_released = None
        if self._last_released is not None and now - self._last_released < self.interval:
            return None
        frame, self._pending = self._pending, None
        self._last_released = now
        return frame

    def reset(self) -> None:
        self._pending = None
        self._last_released = None


class FrameAnalyzer:
    """
    Runs the rep state machine and form scorer over validated frames.

    Invalid frames are dropped and counted in `dropped_frames`; they never
    reach the state machine.
    """

    def __init__(
        self,
        pattern: ExercisePattern,
        scorer: Optional[FormScorer] = None,
        machine: Optional[RepPhaseStateMachine] = None,
    ):
        self.pattern = pattern
        self.scorer = scorer or FormScorer()
        self.machine = machine or RepPhaseStateMachine(pattern)
        self.dropped_frames = 0
        self.analyzed_frames = 0

    def accepts(self, frame: PoseFrame) -> bool:
        """Check a frame before it takes an analysis slot. Rejected frames count as dropped."""
        if is_valid_pose(frame, self.scorer.min_visibility):
            return True
        self.dropped_frames += 1
        logger.debug(f"Dropped frame at {frame.timestamp:.2f}: invalid pose")
        return False

    def analyze(self, frame: PoseFrame) -> Optional[FrameAnalysisResult]:
        try:
            score, feedback = self.scorer.score(frame, self.pattern)
        except InvalidInputError as e:
            self.dropped_frames += 1
            logger.debug(f"Dropped frame: {e}")
            return None

        self.machine.process_frame(frame)
        self.analyzed_frames += 1

        return FrameAnalysisResult(
            landmarks=frame.landmarks,
            confidence=frame.confidence,
            timestamp=frame.timestamp,
            form_score=score,
            feedback=tuple(feedback),
            rep_count=self.machine.rep_count,
            phase=self.machine.current_phase,
            exercise=self.pattern.name,
        )

    def switch_pattern(self, pattern: ExercisePattern) -> None:
        """Start a fresh rep state machine for a new exercise."""
        self.pattern = pattern
        self.machine = RepPhaseStateMachine(
            pattern,
            hysteresis_frames=self.machine.hysteresis_frames,
            history_size=self.machine.history_size,
            min_visibility=self.machine.min_visibility,
        )
