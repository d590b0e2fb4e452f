"""Workout session API endpoints."""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status

from coach.core.errors import (
    CoachError,
    InvalidInputError,
    NoActiveSessionError,
    SessionAlreadyActiveError,
)
from coach.core.events import BiometricEvent, PoseEvent, SetCompletionEvent
from coach.core.models import (
    AdaptationDirective,
    EnvironmentalFactors,
    Exercise,
    PoseFrame,
    PoseLandmark,
    SessionSummary,
    TimeOfDay,
    User,
    Workout,
    WorkoutSession,
    build_biometrics,
    build_set_performance,
)
from coach.core.orchestrator import WorkoutSessionOrchestrator
from coach.registry import SessionRegistry, get_registry
from coach.schemas.session import (
    AdaptationResponse,
    BiometricsRequest,
    DirectiveListResponse,
    DirectiveResponse,
    FeedbackResponse,
    FrameRequest,
    FrameResponse,
    RestRequest,
    RestResponse,
    SessionResponse,
    SessionStartRequest,
    SetRequest,
    SummaryResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _to_http(e: CoachError) -> HTTPException:
    """Map core errors onto HTTP status codes."""
    if isinstance(e, NoActiveSessionError):
        code = status.HTTP_404_NOT_FOUND
    elif isinstance(e, SessionAlreadyActiveError):
        code = status.HTTP_409_CONFLICT
    elif isinstance(e, InvalidInputError):
        code = status.HTTP_422_UNPROCESSABLE_ENTITY
    else:
        code = status.HTTP_400_BAD_REQUEST
    return HTTPException(status_code=code, detail=str(e))


def _directive_response(d: AdaptationDirective) -> DirectiveResponse:
    return DirectiveResponse(**d.to_dict())


def _summary_response(summary: SessionSummary) -> SummaryResponse:
    return SummaryResponse(
        session_id=summary.session_id,
        user_id=summary.user_id,
        workout_id=summary.workout_id,
        duration_seconds=summary.duration_seconds,
        duration_minutes=summary.duration_minutes,
        exercise_count=summary.exercise_count,
        sets_completed=summary.sets_completed,
        average_rpe=summary.average_rpe,
        total_volume=summary.total_volume,
        form_accuracy=summary.form_accuracy,
        efficiency=summary.efficiency,
        adaptation_count=summary.adaptation_count,
        heart_rate_stats=(
            {
                "average": summary.heart_rate_stats.average,
                "max": summary.heart_rate_stats.max,
                "min": summary.heart_rate_stats.min,
            }
            if summary.heart_rate_stats else None
        ),
        achievements=[
            {"type": a.type, "title": a.title, "description": a.description}
            for a in summary.achievements
        ],
        improvement_areas=[
            {"area": a.area, "recommendation": a.recommendation, "priority": a.priority.value}
            for a in summary.improvement_areas
        ],
        recommended_rest_days=summary.recommended_rest_days,
        next_intensity=summary.next_intensity,
    )


def _session_response(
    orchestrator: WorkoutSessionOrchestrator,
    session: WorkoutSession,
    start_directives: Optional[List[AdaptationDirective]] = None,
) -> SessionResponse:
    active = orchestrator.session is session
    summary = orchestrator.summaries.get(session.id)
    current = session.current_exercise
    return SessionResponse(
        id=session.id,
        user_id=session.user_id,
        workout_id=session.workout_id,
        status=session.status.value,
        start_time=session.start_time,
        end_time=session.end_time,
        exercise_index=session.exercise_index,
        set_index=session.set_index,
        current_exercise=current.name if current else None,
        rep_count=orchestrator.rep_count if active else 0,
        dropped_frames=orchestrator.dropped_frames if active else 0,
        adjustments=session.adjustments.to_dict(),
        adaptations=[
            AdaptationResponse(
                directive=_directive_response(a.directive),
                timestamp=a.timestamp,
                applied=a.applied,
            )
            for a in session.adaptations
        ],
        start_directives=[_directive_response(d) for d in start_directives or []],
        summary=_summary_response(summary) if summary else None,
    )


def _directive_list(session: WorkoutSession, directives: List[AdaptationDirective]) -> DirectiveListResponse:
    return DirectiveListResponse(
        directives=[_directive_response(d) for d in directives],
        adjustments=session.adjustments.to_dict(),
        exercise_index=session.exercise_index,
        set_index=session.set_index,
    )


def _build_set(data: SetRequest):
    return build_set_performance(
        set_number=data.set_number,
        reps=data.reps,
        completed=data.completed,
        rpe=data.rpe,
        actual_weight=data.actual_weight,
        target_reps=data.target_reps,
        target_weight=data.target_weight,
    )


def _build_biometrics(data: BiometricsRequest):
    return build_biometrics(
        heart_rate=data.heart_rate,
        heart_rate_recovery=data.heart_rate_recovery,
        sleep_quality=data.sleep_quality,
        stress_level=data.stress_level,
    )


@router.post("", response_model=SessionResponse, status_code=status.HTTP_201_CREATED)
async def start_session(
    data: SessionStartRequest,
    registry: SessionRegistry = Depends(get_registry)
):
    """Start a workout session for a user."""
    workout = Workout(
        id=data.workout.id,
        name=data.workout.name,
        exercises=tuple(Exercise(**ex.model_dump()) for ex in data.workout.exercises),
    )
    user = User(
        id=data.user.id,
        age=data.user.age,
        max_heart_rate=data.user.max_heart_rate,
        fitness_level=data.user.fitness_level,
        goals=tuple(data.user.goals),
        physical_limitations=tuple(data.user.physical_limitations),
        equipment=tuple(data.user.equipment),
    )
    environment = None
    if data.environment is not None:
        env = data.environment
        environment = EnvironmentalFactors(
            temperature=env.temperature,
            humidity=env.humidity,
            altitude=env.altitude,
            time_of_day=TimeOfDay(env.time_of_day) if env.time_of_day else None,
        )

    orchestrator = registry.orchestrator_for_user(user.id)
    try:
        session = orchestrator.start(workout, user, environment)
    except CoachError as e:
        raise _to_http(e)

    registry.register(session.id, user.id)
    start_directives = [a.directive for a in session.adaptations]
    return _session_response(orchestrator, session, start_directives)


@router.get("/{session_id}", response_model=SessionResponse)
async def get_session(
    session_id: str,
    registry: SessionRegistry = Depends(get_registry)
):
    """Get the state of an active or completed session."""
    try:
        orchestrator = registry.orchestrator_for_session(session_id)
    except CoachError as e:
        raise _to_http(e)

    if orchestrator.session is not None and orchestrator.session.id == session_id:
        return _session_response(orchestrator, orchestrator.session)

    for session in orchestrator.history:
        if session.id == session_id:
            return _session_response(orchestrator, session)

    raise HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail="Session not found"
    )


@router.post("/{session_id}/frames", response_model=FrameResponse)
async def submit_frame(
    session_id: str,
    data: FrameRequest,
    registry: SessionRegistry = Depends(get_registry)
):
    """Submit a pose frame for live analysis."""
    frame = PoseFrame.from_landmarks(
        [PoseLandmark(x=lm.x, y=lm.y, z=lm.z, visibility=lm.visibility) for lm in data.landmarks],
        data.timestamp,
    )
    try:
        orchestrator = registry.orchestrator_for_session(session_id)
        before = orchestrator.latest_frame_result
        directives = orchestrator.process_real_time_data(PoseEvent(frame), session_id=session_id)
    except CoachError as e:
        raise _to_http(e)

    result = orchestrator.latest_frame_result
    analyzed = result is not None and result is not before
    return FrameResponse(
        analyzed=analyzed,
        form_score=result.form_score if analyzed else None,
        feedback=[FeedbackResponse(**f.to_dict()) for f in result.feedback] if analyzed else [],
        rep_count=orchestrator.rep_count,
        phase=result.phase.value if result is not None else None,
        dropped_frames=orchestrator.dropped_frames,
        directives=[_directive_response(d) for d in directives],
    )


@router.post("/{session_id}/sets", response_model=DirectiveListResponse)
async def complete_set(
    session_id: str,
    data: SetRequest,
    registry: SessionRegistry = Depends(get_registry)
):
    """Record a completed set and return triggered adaptations."""
    try:
        orchestrator = registry.orchestrator_for_session(session_id)
        performance = _build_set(data)
        directives = orchestrator.process_real_time_data(
            SetCompletionEvent(performance), session_id=session_id
        )
    except CoachError as e:
        raise _to_http(e)

    return _directive_list(orchestrator.session, directives)


@router.post("/{session_id}/biometrics", response_model=DirectiveListResponse)
async def submit_biometrics(
    session_id: str,
    data: BiometricsRequest,
    registry: SessionRegistry = Depends(get_registry)
):
    """Record a biometric snapshot and return triggered adaptations."""
    try:
        orchestrator = registry.orchestrator_for_session(session_id)
        snapshot = _build_biometrics(data)
        directives = orchestrator.process_real_time_data(
            BiometricEvent(snapshot), session_id=session_id
        )
    except CoachError as e:
        raise _to_http(e)

    return _directive_list(orchestrator.session, directives)


@router.post("/{session_id}/rest", response_model=RestResponse)
async def recommend_rest(
    session_id: str,
    data: Optional[RestRequest] = None,
    registry: SessionRegistry = Depends(get_registry)
):
    """Recommended rest before the next set."""
    try:
        orchestrator = registry.orchestrator_for_session(session_id)
        performance = _build_set(data.performance) if data and data.performance else None
        biometrics = _build_biometrics(data.biometrics) if data and data.biometrics else None
        recommendation = orchestrator.calculate_optimal_rest_time(
            set_performance=performance,
            biometrics=biometrics,
            session_id=session_id,
        )
    except CoachError as e:
        raise _to_http(e)

    return RestResponse(**recommendation.to_dict())


@router.post("/{session_id}/complete", response_model=SummaryResponse)
async def complete_session(
    session_id: str,
    registry: SessionRegistry = Depends(get_registry)
):
    """Complete the session and return its summary."""
    try:
        orchestrator = registry.orchestrator_for_session(session_id)
        summary = orchestrator.complete(session_id=session_id)
    except CoachError as e:
        raise _to_http(e)

    registry.prune(summary.user_id)

    return _summary_response(summary)
