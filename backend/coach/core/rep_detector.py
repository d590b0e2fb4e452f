"""
Phase-based repetition counting.

The machine walks the pattern's phase sequence driven by the dominant joint
angle. Moving to the next phase requires the angle to stay inside that phase's
range for N consecutive valid frames (hysteresis), which rejects jitter
around range boundaries. A rep is counted when the sequence wraps from its
last phase back to the first.
"""

import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Deque, Optional, Tuple

from coach.config import get_settings
from coach.core.geometry import is_valid_pose
from coach.core.models import ExercisePhase, PoseFrame
from coach.core.patterns import ExercisePattern

logger = logging.getLogger(__name__)


@dataclass
class PhaseTransition:
    """A recorded phase change."""
    phase: ExercisePhase
    timestamp: float
    angle: float


@dataclass
class RepState:
    current_phase: ExercisePhase
    rep_count: int = 0
    phase_history: Deque[PhaseTransition] = field(default_factory=lambda: deque(maxlen=50))


class RepPhaseStateMachine:
    """
    Rep counter for one (session, exercise) pair.

    Usage:
        machine = RepPhaseStateMachine(SQUAT)
        for frame in frames:
            machine.process_frame(frame)
        print(machine.rep_count)
    """

    def __init__(
        self,
        pattern: ExercisePattern,
        hysteresis_frames: Optional[int] = None,
        history_size: Optional[int] = None,
        min_visibility: Optional[float] = None,
    ):
        settings = get_settings()
        self.pattern = pattern
        self.hysteresis_frames = max(1, hysteresis_frames or settings.phase_hysteresis_frames)
        self.history_size = history_size or settings.phase_history_size
        self.min_visibility = (
            min_visibility if min_visibility is not None else settings.min_landmark_visibility
        )
        self.state = self._initial_state()
        self._pending = 0

    def _initial_state(self) -> RepState:
        return RepState(
            current_phase=self.pattern.phases[0],
            phase_history=deque(maxlen=self.history_size),
        )

    @property
    def current_phase(self) -> ExercisePhase:
        return self.state.current_phase

    @property
    def rep_count(self) -> int:
        return self.state.rep_count

    @property
    def phase_history(self) -> Tuple[PhaseTransition, ...]:
        return tuple(self.state.phase_history)

    @property
    def next_phase(self) -> ExercisePhase:
        phases = self.pattern.phases
        index = phases.index(self.state.current_phase)
        return phases[(index + 1) % len(phases)]

    def process_frame(self, frame: PoseFrame) -> bool:
        """
        Feed one frame. Returns True when this frame completed a rep.

        Frames failing the visibility check are ignored entirely: they do not
        advance the machine and do not touch the hysteresis counter.
        """
        if not is_valid_pose(frame, self.min_visibility):
            logger.debug(f"Ignoring low-confidence frame at t={frame.timestamp}")
            return False
        angle = self.pattern.dominant_angle(frame.landmarks)
        return self.process_angle(angle, frame.timestamp)

    def process_angle(self, angle: float, timestamp: float = 0.0) -> bool:
        """Advance on a dominant-joint angle from an already validated frame."""
        target = self.next_phase
        if not self.pattern.in_phase_range(target, angle):
            self._pending = 0
            return False

        self._pending += 1
        if self._pending < self.hysteresis_frames:
            return False

        self._pending = 0
        completed_rep = target == self.pattern.phases[0]
        self.state.current_phase = target
        self.state.phase_history.append(PhaseTransition(target, timestamp, angle))

        if completed_rep:
            self.state.rep_count += 1
            logger.info(f"{self.pattern.name}: rep {self.state.rep_count} completed")
        return completed_rep

    def reset(self) -> None:
        """Clear reps, history and pending hysteresis. Used on exercise change."""
        self.state = self._initial_state()
        self._pending = 0
