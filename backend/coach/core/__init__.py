"""
Real-time exercise coaching pipeline.

PIPELINE COMPONENTS:
1. Geometry: joint angles and distances from landmark triples
2. ExercisePatternCatalog: per-exercise joints, phases, ranges and fault rules
3. RepPhaseStateMachine: hysteresis-gated phase walk, counts reps
4. FormScorer: fault penalties blended with angle compliance
5. FrameAnalyzer + AnalysisCadence: 1 Hz latest-wins frame analysis
6. SessionAggregator: history and derived statistics (RPE, trend, fatigue)
7. AdaptiveRestCalculator: multi-factor rest recommendation
8. AdaptationRuleEngine: prioritized adaptation directives
9. WorkoutSessionOrchestrator: session lifecycle and summary
10. RestTimer: cancellable countdown between sets

Usage:
    from coach.core import WorkoutSessionOrchestrator, SetCompletionEvent

    orchestrator = WorkoutSessionOrchestrator()
    session = orchestrator.start(workout, user)
    directives = orchestrator.process_real_time_data(SetCompletionEvent(performance))
    rest = orchestrator.calculate_optimal_rest_time()
    summary = orchestrator.complete()
"""

from coach.core.errors import (
    CoachError,
    InvalidInputError,
    UnknownExerciseError,
    NoActiveSessionError,
    SessionAlreadyActiveError,
    InsufficientDataError,
)
from coach.core.models import (
    ExercisePhase,
    FeedbackType,
    DirectiveType,
    Priority,
    TimeOfDay,
    PerformanceTrend,
    SessionStatus,
    PoseLandmark,
    PoseFrame,
    FormFeedback,
    FrameAnalysisResult,
    SetPerformance,
    BiometricSnapshot,
    EnvironmentalFactors,
    AdaptationDirective,
    AppliedAdaptation,
    SessionAdjustments,
    Exercise,
    Workout,
    User,
    WorkoutSession,
    SessionContext,
    RestRecommendation,
    SessionSummary,
    build_set_performance,
    build_biometrics,
    build_directive,
)
from coach.core.events import PoseEvent, SetCompletionEvent, BiometricEvent, SessionEvent
from coach.core.geometry import angle_between, distance, is_valid_pose, LANDMARK_INDEX
from coach.core.patterns import ExercisePattern, ExercisePatternCatalog, FaultRule
from coach.core.rep_detector import RepPhaseStateMachine, RepState
from coach.core.form_scorer import FormScorer
from coach.core.frame_analyzer import AnalysisCadence, FrameAnalyzer
from coach.core.aggregator import SessionAggregator
from coach.core.rest_calculator import AdaptiveRestCalculator
from coach.core.rules import AdaptationRuleEngine, Rule, RuleInput
from coach.core.rest_timer import RestTimer
from coach.core.orchestrator import WorkoutSessionOrchestrator, OrchestratorState

__all__ = [
    # Errors
    "CoachError",
    "InvalidInputError",
    "UnknownExerciseError",
    "NoActiveSessionError",
    "SessionAlreadyActiveError",
    "InsufficientDataError",

    # Data model
    "ExercisePhase",
    "FeedbackType",
    "DirectiveType",
    "Priority",
    "TimeOfDay",
    "PerformanceTrend",
    "SessionStatus",
    "PoseLandmark",
    "PoseFrame",
    "FormFeedback",
    "FrameAnalysisResult",
    "SetPerformance",
    "BiometricSnapshot",
    "EnvironmentalFactors",
    "AdaptationDirective",
    "AppliedAdaptation",
    "SessionAdjustments",
    "Exercise",
    "Workout",
    "User",
    "WorkoutSession",
    "SessionContext",
    "RestRecommendation",
    "SessionSummary",
    "build_set_performance",
    "build_biometrics",
    "build_directive",

    # Events
    "PoseEvent",
    "SetCompletionEvent",
    "BiometricEvent",
    "SessionEvent",

    # Geometry
    "angle_between",
    "distance",
    "is_valid_pose",
    "LANDMARK_INDEX",

    # Patterns
    "ExercisePattern",
    "ExercisePatternCatalog",
    "FaultRule",

    # Frame analysis
    "RepPhaseStateMachine",
    "RepState",
    "FormScorer",
    "AnalysisCadence",
    "FrameAnalyzer",

    # Session engine
    "SessionAggregator",
    "AdaptiveRestCalculator",
    "AdaptationRuleEngine",
    "Rule",
    "RuleInput",
    "RestTimer",
    "WorkoutSessionOrchestrator",
    "OrchestratorState",
]
