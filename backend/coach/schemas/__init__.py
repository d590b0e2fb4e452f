"""Pydantic schemas for API request/response models."""

from coach.schemas.session import (
    ExerciseIn,
    WorkoutIn,
    UserIn,
    EnvironmentIn,
    SessionStartRequest,
    LandmarkIn,
    FrameRequest,
    SetRequest,
    BiometricsRequest,
    RestRequest,
    DirectiveResponse,
    AdaptationResponse,
    DirectiveListResponse,
    FeedbackResponse,
    FrameResponse,
    RestResponse,
    SummaryResponse,
    SessionResponse,
)
from coach.schemas.exercise import (
    FaultRuleResponse,
    ExercisePatternResponse,
    ExerciseListResponse,
)

__all__ = [
    "ExerciseIn",
    "WorkoutIn",
    "UserIn",
    "EnvironmentIn",
    "SessionStartRequest",
    "LandmarkIn",
    "FrameRequest",
    "SetRequest",
    "BiometricsRequest",
    "RestRequest",
    "DirectiveResponse",
    "AdaptationResponse",
    "DirectiveListResponse",
    "FeedbackResponse",
    "FrameResponse",
    "RestResponse",
    "SummaryResponse",
    "SessionResponse",
    "FaultRuleResponse",
    "ExercisePatternResponse",
    "ExerciseListResponse",
]
