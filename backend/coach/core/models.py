"""
Data model for the coaching core.

Records that are inputs or derived outputs are frozen dataclasses. Closed sets
are Enums with lowercase string values so the HTTP boundary can serialize them
with `.value`.
"""

import math
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from coach.core.errors import InvalidInputError

POSE_LANDMARK_COUNT = 33


class ExercisePhase(Enum):
    """Stages of a repetition. Exercises declare a sub-sequence of these."""
    PREPARATION = "preparation"
    ECCENTRIC = "eccentric"     # Lowering / lengthening
    BOTTOM = "bottom"
    CONCENTRIC = "concentric"   # Lifting / shortening
    TOP = "top"
    REST = "rest"


class FeedbackType(Enum):
    ERROR = "error"
    WARNING = "warning"
    SUCCESS = "success"
    IMPROVEMENT = "improvement"


class DirectiveType(Enum):
    INTENSITY = "intensity"
    REST = "rest"
    TECHNIQUE = "technique"
    VOLUME = "volume"
    WARMUP = "warmup"


class Priority(Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        """Sort key, lower is more urgent."""
        return {"high": 0, "medium": 1, "low": 2}[self.value]


class TimeOfDay(Enum):
    MORNING = "morning"
    AFTERNOON = "afternoon"
    EVENING = "evening"


class PerformanceTrend(Enum):
    IMPROVING = "improving"
    STABLE = "stable"
    DECLINING = "declining"


class SessionStatus(Enum):
    ACTIVE = "active"
    COMPLETED = "completed"


# ---------------------------------------------------------------------------
# Pose input
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PoseLandmark:
    """A single body landmark from the external pose estimator."""
    x: float
    y: float
    z: float = 0.0
    visibility: float = 1.0  # Confidence 0-1

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PoseLandmark":
        return cls(
            x=float(data["x"]),
            y=float(data["y"]),
            z=float(data.get("z", 0.0) or 0.0),
            visibility=float(data.get("visibility", 1.0)),
        )


@dataclass(frozen=True)
class PoseFrame:
    """
    One pose estimate: 33 landmarks in MediaPipe order plus a timestamp.

    Confidence is the mean landmark visibility.
    """
    landmarks: Tuple[PoseLandmark, ...]
    timestamp: float
    confidence: float = 0.0

    @classmethod
    def from_landmarks(
        cls,
        landmarks: Sequence[Union[PoseLandmark, Dict[str, Any]]],
        timestamp: float
    ) -> "PoseFrame":
        """Build a frame, converting dict landmarks and computing confidence."""
        converted = tuple(
            lm if isinstance(lm, PoseLandmark) else PoseLandmark.from_dict(lm)
            for lm in landmarks
        )
        confidence = (
            sum(lm.visibility for lm in converted) / len(converted)
            if converted else 0.0
        )
        return cls(landmarks=converted, timestamp=float(timestamp), confidence=confidence)

    @property
    def min_visibility(self) -> float:
        return min((lm.visibility for lm in self.landmarks), default=0.0)


# ---------------------------------------------------------------------------
# Frame analysis output
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class FormFeedback:
    """Structured coaching cue for the live overlay."""
    type: FeedbackType
    message: str
    body_part: str = "general"
    severity: int = 1  # 1-10
    suggestion: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type.value,
            "message": self.message,
            "body_part": self.body_part,
            "severity": self.severity,
            "suggestion": self.suggestion,
        }


@dataclass(frozen=True)
class FrameAnalysisResult:
    """Result of analyzing one accepted pose frame."""
    landmarks: Tuple[PoseLandmark, ...]
    confidence: float
    timestamp: float
    form_score: float  # 1-10
    feedback: Tuple[FormFeedback, ...]
    rep_count: int
    phase: ExercisePhase
    exercise: str = ""


# ---------------------------------------------------------------------------
# Set / biometric inputs
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SetPerformance:
    """A completed (or abandoned) set as reported by the athlete."""
    set_number: int
    reps: int
    completed: bool
    rpe: float  # 1-10
    actual_weight: Optional[float] = None
    target_reps: Optional[int] = None
    target_weight: Optional[float] = None

    @property
    def is_valid(self) -> bool:
        return (
            self.set_number >= 1
            and self.reps >= 0
            and _is_number(self.rpe)
            and 1.0 <= self.rpe <= 10.0
        )

    @property
    def volume(self) -> float:
        if self.actual_weight is None:
            return 0.0
        return self.reps * self.actual_weight

    @property
    def completion_rate(self) -> Optional[float]:
        if not self.target_reps:
            return None
        return self.reps / self.target_reps


def build_set_performance(
    set_number: int,
    reps: int,
    completed: bool,
    rpe: float,
    actual_weight: Optional[float] = None,
    target_reps: Optional[int] = None,
    target_weight: Optional[float] = None,
) -> SetPerformance:
    """Validated constructor for SetPerformance."""
    if set_number < 1:
        raise InvalidInputError(f"set_number must be >= 1, got {set_number}")
    if reps < 0:
        raise InvalidInputError(f"reps must be >= 0, got {reps}")
    if not _is_number(rpe) or not 1 <= rpe <= 10:
        raise InvalidInputError(f"rpe must be within 1-10, got {rpe}")
    if actual_weight is not None and actual_weight < 0:
        raise InvalidInputError("actual_weight must be >= 0")
    if target_reps is not None and target_reps < 1:
        raise InvalidInputError("target_reps must be >= 1")
    if target_weight is not None and target_weight < 0:
        raise InvalidInputError("target_weight must be >= 0")
    return SetPerformance(
        set_number=set_number,
        reps=reps,
        completed=completed,
        rpe=float(rpe),
        actual_weight=actual_weight,
        target_reps=target_reps,
        target_weight=target_weight,
    )


@dataclass(frozen=True)
class BiometricSnapshot:
    """Optional biometric readings. None means unknown, never zero."""
    heart_rate: Optional[float] = None
    heart_rate_recovery: Optional[float] = None  # bpm drop in the first minute
    sleep_quality: Optional[float] = None  # 0-1
    stress_level: Optional[float] = None  # 1-10

    @property
    def is_empty(self) -> bool:
        return all(
            v is None for v in (
                self.heart_rate, self.heart_rate_recovery,
                self.sleep_quality, self.stress_level
            )
        )


def build_biometrics(
    heart_rate: Optional[float] = None,
    heart_rate_recovery: Optional[float] = None,
    sleep_quality: Optional[float] = None,
    stress_level: Optional[float] = None,
) -> BiometricSnapshot:
    """Validated constructor for BiometricSnapshot."""
    if heart_rate is not None and not 20 <= heart_rate <= 250:
        raise InvalidInputError(f"heart_rate out of range: {heart_rate}")
    if heart_rate_recovery is not None and heart_rate_recovery < 0:
        raise InvalidInputError("heart_rate_recovery must be >= 0")
    if sleep_quality is not None and not 0 <= sleep_quality <= 1:
        raise InvalidInputError("sleep_quality must be within 0-1")
    if stress_level is not None and not 1 <= stress_level <= 10:
        raise InvalidInputError("stress_level must be within 1-10")
    return BiometricSnapshot(
        heart_rate=heart_rate,
        heart_rate_recovery=heart_rate_recovery,
        sleep_quality=sleep_quality,
        stress_level=stress_level,
    )


@dataclass(frozen=True)
class EnvironmentalFactors:
    temperature: Optional[float] = None  # Celsius
    humidity: Optional[float] = None
    altitude: Optional[float] = None
    time_of_day: Optional[TimeOfDay] = None


# ---------------------------------------------------------------------------
# Adaptations
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class AdaptationDirective:
    """A recommended or auto-applied change to workout parameters."""
    type: DirectiveType
    reason: str
    recommendation: str
    priority: Priority
    auto_apply: bool = False
    value: Optional[float] = None  # Multiplier applied to the matching adjustment
    signal: str = ""  # rpe, heart_rate, form_score, temperature, ...

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type.value,
            "reason": self.reason,
            "recommendation": self.recommendation,
            "priority": self.priority.value,
            "auto_apply": self.auto_apply,
            "value": self.value,
            "signal": self.signal,
        }


def build_directive(
    type: Union[DirectiveType, str],
    reason: str,
    recommendation: str,
    priority: Union[Priority, str],
    auto_apply: bool = False,
    value: Optional[float] = None,
    signal: str = "",
) -> AdaptationDirective:
    """Validated constructor for AdaptationDirective."""
    try:
        directive_type = DirectiveType(type) if not isinstance(type, DirectiveType) else type
        directive_priority = Priority(priority) if not isinstance(priority, Priority) else priority
    except ValueError as e:
        raise InvalidInputError(str(e)) from e
    if not reason or not recommendation:
        raise InvalidInputError("directive reason and recommendation are required")
    if value is not None and (not _is_number(value) or value <= 0):
        raise InvalidInputError(f"directive value must be a positive multiplier, got {value}")
    return AdaptationDirective(
        type=directive_type,
        reason=reason,
        recommendation=recommendation,
        priority=directive_priority,
        auto_apply=auto_apply,
        value=value,
        signal=signal,
    )


@dataclass(frozen=True)
class AppliedAdaptation:
    """A directive as recorded on the session."""
    directive: AdaptationDirective
    timestamp: datetime
    applied: bool


ADJUSTMENT_BOUNDS = (0.5, 2.0)


@dataclass
class SessionAdjustments:
    """Running multipliers changed by auto-applied directives."""
    intensity: float = 1.0
    rest: float = 1.0
    volume: float = 1.0
    warmup: float = 1.0

    def apply(self, directive: AdaptationDirective) -> bool:
        """Fold a directive into the adjustments. Returns True if anything changed."""
        if directive.value is None:
            return False
        name = directive.type.value
        if not hasattr(self, name):
            return False  # technique cues carry no numeric adjustment
        low, high = ADJUSTMENT_BOUNDS
        value = min(high, max(low, getattr(self, name) * directive.value))
        setattr(self, name, round(value, 4))
        return True

    def to_dict(self) -> Dict[str, float]:
        return {
            "intensity": self.intensity,
            "rest": self.rest,
            "volume": self.volume,
            "warmup": self.warmup,
        }


# ---------------------------------------------------------------------------
# Workout / user (read-only inputs from the profile source)
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Exercise:
    name: str
    sets: int = 3
    reps: int = 10
    weight: Optional[float] = None
    rest_time: Optional[int] = None  # Seconds, None = pattern default
    min_rest: Optional[int] = None  # Overrides the global rest bounds
    max_rest: Optional[int] = None


@dataclass(frozen=True)
class Workout:
    id: str
    exercises: Tuple[Exercise, ...]
    name: str = "Workout"

    @property
    def total_sets(self) -> int:
        return sum(ex.sets for ex in self.exercises)


@dataclass(frozen=True)
class User:
    id: str
    age: Optional[int] = None
    max_heart_rate: Optional[float] = None
    fitness_level: str = "intermediate"
    goals: Tuple[str, ...] = ()
    physical_limitations: Tuple[str, ...] = ()
    equipment: Tuple[str, ...] = ()

    def estimated_max_heart_rate(self, default_age: int) -> float:
        """Measured max HR if known, else the 220 - age estimate."""
        if self.max_heart_rate:
            return float(self.max_heart_rate)
        age = self.age if self.age is not None else default_age
        return float(220 - age)


# ---------------------------------------------------------------------------
# Session state
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PerformanceEntry:
    """One recorded event in the session history."""
    timestamp: datetime
    exercise_index: int
    set_index: int
    payload: Union[FrameAnalysisResult, SetPerformance, BiometricSnapshot]

    @property
    def kind(self) -> str:
        if isinstance(self.payload, FrameAnalysisResult):
            return "frame"
        if isinstance(self.payload, SetPerformance):
            return "set"
        return "biometric"


@dataclass
class WorkoutSession:
    """
    The active workout session. Owned exclusively by the orchestrator.
    """
    id: str
    user_id: str
    workout_id: str
    workout: Workout
    start_time: datetime
    end_time: Optional[datetime] = None
    exercise_index: int = 0
    set_index: int = 0
    adaptations: List[AppliedAdaptation] = field(default_factory=list)
    performance_history: List[PerformanceEntry] = field(default_factory=list)
    environmental_factors: EnvironmentalFactors = field(default_factory=EnvironmentalFactors)
    adjustments: SessionAdjustments = field(default_factory=SessionAdjustments)
    status: SessionStatus = SessionStatus.ACTIVE

    @property
    def current_exercise(self) -> Optional[Exercise]:
        if 0 <= self.exercise_index < len(self.workout.exercises):
            return self.workout.exercises[self.exercise_index]
        return None

    def exercise_at(self, index: int) -> Optional[Exercise]:
        """Exercise a history entry belongs to. Sets past the plan count against the last exercise."""
        if not self.workout.exercises or index < 0:
            return None
        return self.workout.exercises[min(index, len(self.workout.exercises) - 1)]

    @property
    def is_active(self) -> bool:
        return self.status == SessionStatus.ACTIVE

    def duration_seconds(self, now: datetime) -> float:
        end = self.end_time or now
        return max(0.0, (end - self.start_time).total_seconds())


@dataclass(frozen=True)
class SessionContext:
    """Derived statistics handed to the rest calculator and rules."""
    session_duration_minutes: float = 0.0
    average_rpe: float = 0.0
    performance_trend: PerformanceTrend = PerformanceTrend.STABLE
    fatigue_level: float = 5.0
    adaptation_count: int = 0
    environmental_factors: EnvironmentalFactors = field(default_factory=EnvironmentalFactors)


@dataclass(frozen=True)
class RestRecommendation:
    current_rest: int
    min_rest: int
    max_rest: int
    base_rest: int
    reason: str
    factors: Tuple[str, ...] = ()
    notes: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "current_rest": self.current_rest,
            "min_rest": self.min_rest,
            "max_rest": self.max_rest,
            "base_rest": self.base_rest,
            "reason": self.reason,
            "factors": list(self.factors),
            "notes": list(self.notes),
        }


@dataclass(frozen=True)
class Achievement:
    type: str
    title: str
    description: str


@dataclass(frozen=True)
class ImprovementArea:
    area: str
    recommendation: str
    priority: Priority


@dataclass(frozen=True)
class HeartRateStats:
    average: float
    max: float
    min: float


@dataclass(frozen=True)
class SessionSummary:
    """Read-only summary produced once at completion."""
    session_id: str
    user_id: str
    workout_id: str
    duration_seconds: float
    duration_minutes: int
    exercise_count: int
    sets_completed: int
    average_rpe: float
    total_volume: float
    form_accuracy: float  # 0-100
    efficiency: int  # 0-100
    adaptation_count: int
    heart_rate_stats: Optional[HeartRateStats] = None
    achievements: Tuple[Achievement, ...] = ()
    improvement_areas: Tuple[ImprovementArea, ...] = ()
    recommended_rest_days: int = 0
    next_intensity: str = "moderate"


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)
