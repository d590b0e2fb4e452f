"""
Workout session orchestration.

The orchestrator owns one active WorkoutSession at a time and sequences the
pipeline around it:

    PoseEvent          -> cadence -> FrameAnalyzer -> aggregator -> rules
    SetCompletionEvent -> aggregator -> rules -> advance set / exercise
    BiometricEvent     -> aggregator -> rules

Auto-apply directives are folded into the session adjustments immediately.
Other directives are recorded as not applied and surfaced to the caller.

Lifecycle: IDLE -> ACTIVE -> (complete) -> IDLE. Completed sessions are kept
in `history` together with their summaries, up to
`completed_history_size`; older ones are evicted.
"""

import logging
import uuid
from collections import deque
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Deque, Dict, List, Optional

from coach.config import get_settings
from coach.core.aggregator import SessionAggregator
from coach.core.errors import (
    InvalidInputError,
    NoActiveSessionError,
    SessionAlreadyActiveError,
)
from coach.core.events import BiometricEvent, PoseEvent, SessionEvent, SetCompletionEvent
from coach.core.frame_analyzer import AnalysisCadence, FrameAnalyzer
from coach.core.form_scorer import FormScorer
from coach.core.models import (
    Achievement,
    AdaptationDirective,
    AppliedAdaptation,
    BiometricSnapshot,
    EnvironmentalFactors,
    Exercise,
    FrameAnalysisResult,
    ImprovementArea,
    Priority,
    RestRecommendation,
    SessionStatus,
    SessionSummary,
    SetPerformance,
    User,
    Workout,
    WorkoutSession,
)
from coach.core.patterns import ExercisePatternCatalog
from coach.core.rest_calculator import AdaptiveRestCalculator
from coach.core.rest_timer import RestTimer
from coach.core.rules import AdaptationRuleEngine, RuleInput, max_heart_rate_for

logger = logging.getLogger(__name__)

CONSISTENCY_SESSIONS = 7
PERSONAL_RECORD_MARGIN = 1.05


class OrchestratorState(Enum):
    IDLE = "idle"
    ACTIVE = "active"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class WorkoutSessionOrchestrator:
    """
    Drives a single workout session at a time.

    Construct one per athlete stream; nothing is shared between instances.
    """

    def __init__(
        self,
        catalog: Optional[ExercisePatternCatalog] = None,
        rule_engine: Optional[AdaptationRuleEngine] = None,
        rest_calculator: Optional[AdaptiveRestCalculator] = None,
        aggregator: Optional[SessionAggregator] = None,
        scorer: Optional[FormScorer] = None,
        clock: Callable[[], datetime] = utc_now,
        history_size: Optional[int] = None,
    ):
        self.settings = get_settings()
        self.catalog = catalog or ExercisePatternCatalog()
        self.rule_engine = rule_engine or AdaptationRuleEngine()
        self.rest_calculator = rest_calculator or AdaptiveRestCalculator(self.catalog)
        self.aggregator = aggregator or SessionAggregator()
        self.scorer = scorer or FormScorer()
        self.clock = clock

        history_size = history_size or self.settings.completed_history_size
        self.history: Deque[WorkoutSession] = deque(maxlen=max(1, history_size))
        self.completed_sessions = 0
        self.summaries: Dict[str, SessionSummary] = {}
        self.rest_timer: Optional[RestTimer] = None
        self.latest_frame_result: Optional[FrameAnalysisResult] = None

        self._session: Optional[WorkoutSession] = None
        self._user: Optional[User] = None
        self._max_heart_rate: Optional[float] = None
        self._analyzer: Optional[FrameAnalyzer] = None
        self._cadence: Optional[AnalysisCadence] = None

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def state(self) -> OrchestratorState:
        return OrchestratorState.ACTIVE if self._session is not None else OrchestratorState.IDLE

    @property
    def session(self) -> Optional[WorkoutSession]:
        return self._session

    @property
    def dropped_frames(self) -> int:
        """Frames discarded as invalid or superseded by a newer frame."""
        if self._analyzer is None or self._cadence is None:
            return 0
        return self._analyzer.dropped_frames + self._cadence.dropped

    @property
    def rep_count(self) -> int:
        return self._analyzer.machine.rep_count if self._analyzer else 0

    def knows(self, session_id: str) -> bool:
        """True for the active session and completed sessions still in history."""
        if self._session is not None and self._session.id == session_id:
            return True
        return session_id in self.summaries

    def _require_active(self, session_id: Optional[str] = None) -> WorkoutSession:
        if self._session is None:
            raise NoActiveSessionError()
        if session_id is not None and session_id != self._session.id:
            raise NoActiveSessionError(f"Session {session_id} is not active")
        return self._session

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(
        self,
        workout: Workout,
        user: User,
        environmental_factors: Optional[EnvironmentalFactors] = None,
        session_id: Optional[str] = None,
    ) -> WorkoutSession:
        if self._session is not None:
            raise SessionAlreadyActiveError(self._session.id)
        if not workout.exercises:
            raise InvalidInputError(f"Workout {workout.id} has no exercises")

        session = WorkoutSession(
            id=session_id or str(uuid.uuid4()),
            user_id=user.id,
            workout_id=workout.id,
            workout=workout,
            start_time=self.clock(),
            environmental_factors=environmental_factors or EnvironmentalFactors(),
        )

        self._session = session
        self._user = user
        self._max_heart_rate = max_heart_rate_for(user, self.settings)
        self._analyzer = FrameAnalyzer(
            self.catalog.lookup(workout.exercises[0].name), scorer=self.scorer
        )
        self._cadence = AnalysisCadence(self.settings.analysis_interval_seconds)
        self.latest_frame_result = None

        directives = self.rule_engine.evaluate(RuleInput(
            environment=session.environmental_factors,
            session_start=True,
        ))
        self._apply_directives(session, directives)

        logger.info(
            f"Started session {session.id} for user {user.id}: "
            f"{len(workout.exercises)} exercises, {len(directives)} start directives"
        )
        return session

    def complete(self, session_id: Optional[str] = None) -> SessionSummary:
        session = self._require_active(session_id)
        now = self.clock()
        summary = self._summarize(session, now)

        session.end_time = now
        session.status = SessionStatus.COMPLETED

        if len(self.history) == self.history.maxlen:
            self.summaries.pop(self.history[0].id, None)
        self.history.append(session)
        self.completed_sessions += 1
        self.summaries[session.id] = summary
        if self.rest_timer is not None:
            self.rest_timer.skip()
        self._session = None
        self._analyzer = None
        self._cadence = None

        logger.info(
            f"Completed session {session.id}: {summary.sets_completed} sets, "
            f"avg RPE {summary.average_rpe:.1f}, efficiency {summary.efficiency}"
        )
        return summary

    # ------------------------------------------------------------------
    # Real-time events
    # ------------------------------------------------------------------

    def process_real_time_data(
        self,
        event: SessionEvent,
        session_id: Optional[str] = None
    ) -> List[AdaptationDirective]:
        session = self._require_active(session_id)

        if isinstance(event, PoseEvent):
            directives = self._handle_pose(session, event)
        elif isinstance(event, SetCompletionEvent):
            directives = self._handle_set(session, event.performance)
        elif isinstance(event, BiometricEvent):
            directives = self._handle_biometrics(session, event.snapshot)
        else:
            raise TypeError(f"Unsupported event type: {type(event).__name__}")

        self._apply_directives(session, directives)
        return directives

    def _handle_pose(self, session: WorkoutSession, event: PoseEvent) -> List[AdaptationDirective]:
        if not self._analyzer.accepts(event.frame):
            return []
        # Cadence runs on frame timestamps so replays behave like live streams
        self._cadence.offer(event.frame)
        frame = self._cadence.poll(event.frame.timestamp)
        if frame is None:
            return []

        result = self._analyzer.analyze(frame)
        if result is None:
            return []

        self.latest_frame_result = result
        self.aggregator.record(session, result, self.clock())
        return self.rule_engine.evaluate(RuleInput(
            form_score=result.form_score * 10,
            set_index=session.set_index,
            environment=session.environmental_factors,
        ))

    def _handle_set(
        self,
        session: WorkoutSession,
        performance: SetPerformance
    ) -> List[AdaptationDirective]:
        exercise = session.exercise_at(session.exercise_index)
        self.aggregator.record(session, performance, self.clock())

        target_reps = performance.target_reps or (exercise.reps if exercise else None)
        completion = performance.reps / target_reps if target_reps else None

        directives = self.rule_engine.evaluate(RuleInput(
            rpe=performance.rpe,
            completion_rate=completion,
            set_index=session.set_index,
            environment=session.environmental_factors,
        ))
        self._advance(session)
        return directives

    def _handle_biometrics(
        self,
        session: WorkoutSession,
        snapshot: BiometricSnapshot
    ) -> List[AdaptationDirective]:
        self.aggregator.record(session, snapshot, self.clock())
        return self.rule_engine.evaluate(RuleInput(
            heart_rate=snapshot.heart_rate,
            max_heart_rate=self._max_heart_rate,
            set_index=session.set_index,
            environment=session.environmental_factors,
        ))

    def _advance(self, session: WorkoutSession) -> None:
        exercise = session.current_exercise
        if exercise is None:
            return
        session.set_index += 1
        if session.set_index < exercise.sets:
            return

        session.exercise_index += 1
        session.set_index = 0
        next_exercise = session.current_exercise
        if next_exercise is None:
            logger.info(f"Session {session.id}: all exercises done")
            return

        logger.info(f"Session {session.id}: moving to {next_exercise.name}")
        self._analyzer.switch_pattern(self.catalog.lookup(next_exercise.name))
        self._cadence.reset()

    def _apply_directives(
        self,
        session: WorkoutSession,
        directives: List[AdaptationDirective]
    ) -> None:
        now = self.clock()
        for directive in directives:
            session.adaptations.append(
                AppliedAdaptation(directive=directive, timestamp=now, applied=directive.auto_apply)
            )
            if directive.auto_apply:
                session.adjustments.apply(directive)
                logger.info(f"Auto-applied {directive.type.value} directive: {directive.reason}")
            else:
                logger.debug(f"Suggested {directive.type.value} directive: {directive.reason}")

    # ------------------------------------------------------------------
    # Rest
    # ------------------------------------------------------------------

    def calculate_optimal_rest_time(
        self,
        exercise: Optional[Exercise] = None,
        set_performance: Optional[SetPerformance] = None,
        biometrics: Optional[BiometricSnapshot] = None,
        session_id: Optional[str] = None,
    ) -> RestRecommendation:
        """
        Rest recommendation for the current (or given) exercise.

        Missing arguments are taken from the session: the exercise of the last
        recorded set, that set, and the latest biometric snapshot.

        The result does not include `session.adjustments.rest`; callers scale
        `current_rest` by it when they want auto-applied rest directives honored.
        """
        session = self._require_active(session_id)
        history = session.performance_history

        if set_performance is None:
            sets = self.aggregator.set_performances(history)
            set_performance = sets[-1] if sets else None
        if exercise is None:
            exercise = self._last_set_exercise(session)
        if biometrics is None:
            biometrics = self.aggregator.latest_biometrics(history)

        context = self.aggregator.context(session, self.clock())
        return self.rest_calculator.compute(exercise, set_performance, biometrics, context)

    def start_rest_timer(self, seconds: Optional[float] = None) -> RestTimer:
        """Start (or restart) the rest countdown, defaulting to the recommended rest."""
        self._require_active()
        if seconds is None:
            seconds = self.calculate_optimal_rest_time().current_rest
        if self.rest_timer is None:
            self.rest_timer = RestTimer()
        self.rest_timer.start(seconds)
        return self.rest_timer

    def _last_set_exercise(self, session: WorkoutSession) -> Optional[Exercise]:
        for entry in reversed(session.performance_history):
            if isinstance(entry.payload, SetPerformance):
                return session.exercise_at(entry.exercise_index)
        return session.current_exercise

    # ------------------------------------------------------------------
    # Summary
    # ------------------------------------------------------------------

    def _summarize(self, session: WorkoutSession, now: datetime) -> SessionSummary:
        agg = self.aggregator
        history = session.performance_history

        duration = session.duration_seconds(now)
        duration_minutes = duration / 60.0
        sets_completed = agg.sets_completed(history)
        total_sets = session.workout.total_sets
        average_rpe = round(agg.average_rpe(history), 2)
        form_accuracy = agg.form_accuracy(history)

        time_factor = 1.0 if duration_minutes <= 0 else min(1.0, self.settings.target_session_minutes / duration_minutes)
        completion_factor = min(1.0, sets_completed / total_sets) if total_sets else 0.0
        efficiency = int(round(100 * (time_factor + completion_factor) / 2))

        exercises_done = {
            min(e.exercise_index, len(session.workout.exercises) - 1)
            for e in history if isinstance(e.payload, SetPerformance)
        }

        return SessionSummary(
            session_id=session.id,
            user_id=session.user_id,
            workout_id=session.workout_id,
            duration_seconds=duration,
            duration_minutes=int(round(duration_minutes)),
            exercise_count=len(exercises_done),
            sets_completed=sets_completed,
            average_rpe=average_rpe,
            total_volume=agg.total_volume(history),
            form_accuracy=form_accuracy,
            efficiency=efficiency,
            adaptation_count=len(session.adaptations),
            heart_rate_stats=agg.heart_rate_stats(history),
            achievements=tuple(self._achievements(session)),
            improvement_areas=tuple(self._improvement_areas(
                form_accuracy, average_rpe, sets_completed, total_sets, history
            )),
            recommended_rest_days=2 if average_rpe > 8 else 1 if average_rpe > 6 else 0,
            next_intensity=self._next_intensity(average_rpe),
        )

    def _achievements(self, session: WorkoutSession) -> List[Achievement]:
        achievements = []
        for entry in session.performance_history:
            perf = entry.payload
            if not isinstance(perf, SetPerformance) or perf.actual_weight is None:
                continue
            exercise = session.exercise_at(entry.exercise_index)
            target = perf.target_weight
            if target is None:
                target = exercise.weight
            if target and perf.actual_weight > target * PERSONAL_RECORD_MARGIN:
                achievements.append(Achievement(
                    type="personal_record",
                    title="Personal Record!",
                    description=f"Lifted {perf.actual_weight:g} on {exercise.name}, above the {target:g} target",
                ))
                break

        if self.completed_sessions + 1 >= CONSISTENCY_SESSIONS:
            achievements.append(Achievement(
                type="consistency",
                title="Consistency Champion",
                description=f"Completed {self.completed_sessions + 1} sessions",
            ))
        return achievements

    def _improvement_areas(
        self,
        form_accuracy: float,
        average_rpe: float,
        sets_completed: int,
        total_sets: int,
        history
    ) -> List[ImprovementArea]:
        areas = []
        if form_accuracy < 80:
            areas.append(ImprovementArea(
                area="form",
                recommendation="Focus on technique with lighter loads",
                priority=Priority.HIGH,
            ))
        if average_rpe > 8.5:
            areas.append(ImprovementArea(
                area="intensity",
                recommendation="Consider reducing intensity to support recovery",
                priority=Priority.MEDIUM,
            ))
        if self.aggregator.set_performances(history) and total_sets \
                and sets_completed / total_sets < 0.8:
            areas.append(ImprovementArea(
                area="completion",
                recommendation="Adjust volume so the full workout can be completed",
                priority=Priority.MEDIUM,
            ))
        return areas

    @staticmethod
    def _next_intensity(average_rpe: float) -> str:
        if average_rpe > 8:
            return "light"
        if average_rpe > 6 or average_rpe == 0:
            return "moderate"
        return "high"
