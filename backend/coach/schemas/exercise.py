"""Exercise pattern schemas."""

from typing import List, Dict
from pydantic import BaseModel


class FaultRuleResponse(BaseModel):
    name: str
    predicate: str
    message: str
    correction: str
    body_part: str
    params: Dict[str, float] = {}

    class Config:
        from_attributes = True


class ExercisePatternResponse(BaseModel):
    """Static configuration of one exercise."""
    name: str
    key_joints: List[str]
    dominant_joint: str
    phases: List[str]
    phase_ranges: Dict[str, List[float]]
    optimal_angles: Dict[str, List[float]]
    faults: List[FaultRuleResponse]
    default_rest: int


class ExerciseListResponse(BaseModel):
    items: List[str]
    total: int
