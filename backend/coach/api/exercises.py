"""Exercise catalog API endpoints."""

from fastapi import APIRouter, Depends, HTTPException, status

from coach.core.errors import UnknownExerciseError
from coach.core.patterns import ExercisePattern
from coach.registry import SessionRegistry, get_registry
from coach.schemas.exercise import (
    ExerciseListResponse,
    ExercisePatternResponse,
    FaultRuleResponse,
)

router = APIRouter()


def _pattern_response(pattern: ExercisePattern) -> ExercisePatternResponse:
    return ExercisePatternResponse(
        name=pattern.name,
        key_joints=list(pattern.key_joints),
        dominant_joint=pattern.dominant_joint,
        phases=[p.value for p in pattern.phases],
        phase_ranges={p.value: list(r) for p, r in pattern.phase_ranges.items()},
        optimal_angles={j: list(r) for j, r in pattern.optimal_angles.items()},
        faults=[
            FaultRuleResponse(
                name=f.name,
                predicate=f.predicate,
                message=f.message,
                correction=f.correction,
                body_part=f.body_part,
                params=dict(f.params),
            )
            for f in pattern.faults
        ],
        default_rest=pattern.default_rest,
    )


@router.get("", response_model=ExerciseListResponse)
async def list_exercises(registry: SessionRegistry = Depends(get_registry)):
    """List supported exercises."""
    names = registry.catalog.names()
    return ExerciseListResponse(items=names, total=len(names))


@router.get("/{name}", response_model=ExercisePatternResponse)
async def get_exercise(name: str, registry: SessionRegistry = Depends(get_registry)):
    """Get the pattern configuration for an exercise."""
    try:
        pattern = registry.catalog.lookup_strict(name)
    except UnknownExerciseError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e)
        )
    return _pattern_response(pattern)
