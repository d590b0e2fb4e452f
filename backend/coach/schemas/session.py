"""Workout session schemas."""

import uuid
from datetime import datetime
from typing import Optional, List, Dict
from pydantic import BaseModel, Field, field_validator

from coach.core.models import TimeOfDay


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------

class ExerciseIn(BaseModel):
    """One exercise of the planned workout."""
    name: str = Field(..., min_length=1, description="Exercise name, e.g. squat or push-up")
    sets: int = Field(3, ge=1)
    reps: int = Field(10, ge=1)
    weight: Optional[float] = Field(None, ge=0)
    rest_time: Optional[int] = Field(None, ge=0, description="Base rest in seconds")
    min_rest: Optional[int] = Field(None, ge=0)
    max_rest: Optional[int] = Field(None, ge=0)


class WorkoutIn(BaseModel):
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    name: str = "Workout"
    exercises: List[ExerciseIn] = Field(..., min_length=1)


class UserIn(BaseModel):
    id: str
    age: Optional[int] = Field(None, ge=5, le=120)
    max_heart_rate: Optional[float] = Field(None, gt=0, le=250)
    fitness_level: str = "intermediate"
    goals: List[str] = []
    physical_limitations: List[str] = []
    equipment: List[str] = []


class EnvironmentIn(BaseModel):
    temperature: Optional[float] = None  # Celsius
    humidity: Optional[float] = Field(None, ge=0, le=100)
    altitude: Optional[float] = None
    time_of_day: Optional[str] = None

    @field_validator("time_of_day")
    @classmethod
    def validate_time_of_day(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        valid = [t.value for t in TimeOfDay]
        if v not in valid:
            raise ValueError(f"time_of_day must be one of: {valid}")
        return v


class SessionStartRequest(BaseModel):
    workout: WorkoutIn
    user: UserIn
    environment: Optional[EnvironmentIn] = None


class LandmarkIn(BaseModel):
    x: float
    y: float
    z: float = 0.0
    visibility: float = Field(1.0, ge=0, le=1)


class FrameRequest(BaseModel):
    """A pose frame: 33 landmarks in MediaPipe order."""
    landmarks: List[LandmarkIn]
    timestamp: float = Field(..., ge=0, description="Seconds since capture start")


class SetRequest(BaseModel):
    set_number: int = Field(..., ge=1)
    reps: int = Field(..., ge=0)
    completed: bool = True
    rpe: float = Field(..., ge=1, le=10, description="Rate of perceived exertion")
    actual_weight: Optional[float] = Field(None, ge=0)
    target_reps: Optional[int] = Field(None, ge=1)
    target_weight: Optional[float] = Field(None, ge=0)


class BiometricsRequest(BaseModel):
    heart_rate: Optional[float] = Field(None, ge=20, le=250)
    heart_rate_recovery: Optional[float] = Field(None, ge=0)
    sleep_quality: Optional[float] = Field(None, ge=0, le=1)
    stress_level: Optional[float] = Field(None, ge=1, le=10)


class RestRequest(BaseModel):
    """Optional overrides; missing values come from the session."""
    performance: Optional[SetRequest] = None
    biometrics: Optional[BiometricsRequest] = None


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------

class DirectiveResponse(BaseModel):
    type: str
    reason: str
    recommendation: str
    priority: str
    auto_apply: bool
    value: Optional[float] = None
    signal: str = ""


class AdaptationResponse(BaseModel):
    directive: DirectiveResponse
    timestamp: datetime
    applied: bool


class DirectiveListResponse(BaseModel):
    """Directives triggered by one event plus the resulting adjustments."""
    directives: List[DirectiveResponse]
    adjustments: Dict[str, float]
    exercise_index: int
    set_index: int


class FeedbackResponse(BaseModel):
    type: str
    message: str
    body_part: str
    severity: int
    suggestion: Optional[str] = None


class FrameResponse(BaseModel):
    """
    Live overlay data.

    `analyzed` is False when the frame was dropped (invalid or superseded
    within the analysis interval).
    """
    analyzed: bool
    form_score: Optional[float] = None
    feedback: List[FeedbackResponse] = []
    rep_count: int
    phase: Optional[str] = None
    dropped_frames: int
    directives: List[DirectiveResponse] = []


class RestResponse(BaseModel):
    current_rest: int
    min_rest: int
    max_rest: int
    base_rest: int
    reason: str
    factors: List[str] = []
    notes: List[str] = []


class HeartRateStatsResponse(BaseModel):
    average: float
    max: float
    min: float


class AchievementResponse(BaseModel):
    type: str
    title: str
    description: str


class ImprovementAreaResponse(BaseModel):
    area: str
    recommendation: str
    priority: str


class SummaryResponse(BaseModel):
    session_id: str
    user_id: str
    workout_id: str
    duration_seconds: float
    duration_minutes: int
    exercise_count: int
    sets_completed: int
    average_rpe: float
    total_volume: float
    form_accuracy: float
    efficiency: int
    adaptation_count: int
    heart_rate_stats: Optional[HeartRateStatsResponse] = None
    achievements: List[AchievementResponse] = []
    improvement_areas: List[ImprovementAreaResponse] = []
    recommended_rest_days: int
    next_intensity: str

    class Config:
        from_attributes = True


class SessionResponse(BaseModel):
    """Session state snapshot."""
    id: str
    user_id: str
    workout_id: str
    status: str
    start_time: datetime
    end_time: Optional[datetime] = None
    exercise_index: int
    set_index: int
    current_exercise: Optional[str] = None
    rep_count: int = 0
    dropped_frames: int = 0
    adjustments: Dict[str, float]
    adaptations: List[AdaptationResponse] = []
    start_directives: List[DirectiveResponse] = []
    summary: Optional[SummaryResponse] = None
