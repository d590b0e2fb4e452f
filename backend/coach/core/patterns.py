"""
Exercise pattern catalog.

A pattern is static configuration for one exercise:
- key joints (landmark triples); the first joint is dominant and drives
  phase detection
- the ordered phase sequence of one repetition
- the dominant-joint angle range for each phase
- optimal angle ranges used for form compliance
- fault rules, expressed as data (predicate id + params)

FAULT PREDICATES:
Fault predicates are pure functions of the landmark list and a params dict,
registered by id in FAULT_PREDICATES. Patterns only reference the id, so a
pattern never holds code.
"""

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from coach.core.errors import UnknownExerciseError
from coach.core.geometry import angle_between, landmark, midpoint, vertical_angle
from coach.core.models import ExercisePhase, PoseLandmark

logger = logging.getLogger(__name__)

AngleRange = Tuple[float, float]


@dataclass(frozen=True)
class JointDefinition:
    """
    A joint angle measured at `vertex` between `a` and `c`.

    Landmark names omit the side prefix; the angle is the mean of the left
    and right measurements.
    """
    name: str
    a: str
    vertex: str
    c: str

    def measure(self, landmarks: Sequence[PoseLandmark]) -> float:
        angles = [
            angle_between(
                landmark(landmarks, f"{side}_{self.a}"),
                landmark(landmarks, f"{side}_{self.vertex}"),
                landmark(landmarks, f"{side}_{self.c}"),
            )
            for side in ("left", "right")
        ]
        return sum(angles) / len(angles)


JOINTS: Dict[str, JointDefinition] = {
    "knee": JointDefinition("knee", "hip", "knee", "ankle"),
    "hip": JointDefinition("hip", "shoulder", "hip", "knee"),
    "elbow": JointDefinition("elbow", "shoulder", "elbow", "wrist"),
    "shoulder": JointDefinition("shoulder", "elbow", "shoulder", "hip"),
    "body_line": JointDefinition("body_line", "shoulder", "hip", "ankle"),
}


@dataclass(frozen=True)
class FaultRule:
    """A biomechanical fault detector described as data."""
    name: str
    predicate: str
    message: str
    correction: str
    body_part: str = "general"
    params: Mapping[str, float] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "params", MappingProxyType(dict(self.params)))


@dataclass(frozen=True)
class ExercisePattern:
    name: str
    key_joints: Tuple[str, ...]
    phases: Tuple[ExercisePhase, ...]
    phase_ranges: Mapping[ExercisePhase, AngleRange]
    optimal_angles: Mapping[str, AngleRange]
    faults: Tuple[FaultRule, ...] = ()
    default_rest: int = 90

    def __post_init__(self):
        # Patterns are shared by every session; keep the tables read-only
        object.__setattr__(self, "phase_ranges", MappingProxyType(dict(self.phase_ranges)))
        object.__setattr__(self, "optimal_angles", MappingProxyType(dict(self.optimal_angles)))

    @property
    def dominant_joint(self) -> str:
        return self.key_joints[0]

    def joint_angle(self, joint: str, landmarks: Sequence[PoseLandmark]) -> float:
        return JOINTS[joint].measure(landmarks)

    def dominant_angle(self, landmarks: Sequence[PoseLandmark]) -> float:
        return self.joint_angle(self.dominant_joint, landmarks)

    def in_phase_range(self, phase: ExercisePhase, angle: float) -> bool:
        low, high = self.phase_ranges[phase]
        return low <= angle <= high


# ---------------------------------------------------------------------------
# Fault predicates
# ---------------------------------------------------------------------------

FaultPredicate = Callable[[Sequence[PoseLandmark], Mapping[str, float]], bool]


def _mid(landmarks: Sequence[PoseLandmark], part: str) -> PoseLandmark:
    return midpoint(landmark(landmarks, f"left_{part}"), landmark(landmarks, f"right_{part}"))


def _knee_valgus(landmarks, params) -> bool:
    """Knees collapse inward relative to the ankles."""
    knee_width = abs(landmark(landmarks, "left_knee").x - landmark(landmarks, "right_knee").x)
    ankle_width = abs(landmark(landmarks, "left_ankle").x - landmark(landmarks, "right_ankle").x)
    if ankle_width == 0:
        return False
    return knee_width / ankle_width < params.get("min_ratio", 0.7)


def _forward_lean(landmarks, params) -> bool:
    torso = vertical_angle(_mid(landmarks, "shoulder"), _mid(landmarks, "hip"))
    return torso > params.get("max_degrees", 45.0)


def _sagging_hips(landmarks, params) -> bool:
    line = JOINTS["body_line"].measure(landmarks)
    return line < params.get("min_degrees", 160.0)


def _flared_elbows(landmarks, params) -> bool:
    shoulder = JOINTS["shoulder"].measure(landmarks)
    return shoulder > params.get("max_degrees", 80.0)


def _rounded_back(landmarks, params) -> bool:
    ear_shoulder_hip = angle_between(
        _mid(landmarks, "ear"), _mid(landmarks, "shoulder"), _mid(landmarks, "hip")
    )
    return ear_shoulder_hip < params.get("min_degrees", 140.0)


def _bar_drift(landmarks, params) -> bool:
    offset = abs(_mid(landmarks, "wrist").x - _mid(landmarks, "ankle").x)
    return offset > params.get("max_offset", 0.15)


def _elbow_drift(landmarks, params) -> bool:
    offset = abs(_mid(landmarks, "shoulder").x - _mid(landmarks, "elbow").x)
    return offset > params.get("max_offset", 0.1)


def _knee_over_toes(landmarks, params) -> bool:
    max_offset = params.get("max_offset", 0.1)
    for side in ("left", "right"):
        knee = landmark(landmarks, f"{side}_knee")
        foot = landmark(landmarks, f"{side}_foot_index")
        if abs(knee.x - foot.x) > max_offset:
            return True
    return False


FAULT_PREDICATES: Dict[str, FaultPredicate] = {
    "knee_valgus": _knee_valgus,
    "forward_lean": _forward_lean,
    "sagging_hips": _sagging_hips,
    "flared_elbows": _flared_elbows,
    "rounded_back": _rounded_back,
    "bar_drift": _bar_drift,
    "elbow_drift": _elbow_drift,
    "knee_over_toes": _knee_over_toes,
}


def evaluate_fault(rule: FaultRule, landmarks: Sequence[PoseLandmark]) -> bool:
    """Evaluate a fault rule. Unknown predicate ids never trigger."""
    predicate = FAULT_PREDICATES.get(rule.predicate)
    if predicate is None:
        logger.warning(f"Unknown fault predicate '{rule.predicate}' in rule '{rule.name}'")
        return False
    return bool(predicate(landmarks, rule.params))


# ---------------------------------------------------------------------------
# Built-in patterns
# ---------------------------------------------------------------------------

_P = ExercisePhase

# Lowering / lifting movements: straight -> bent -> straight
_DESCENT_SEQUENCE = (_P.PREPARATION, _P.ECCENTRIC, _P.BOTTOM, _P.CONCENTRIC, _P.TOP)


def _descent_ranges(straight: float, bottom: float) -> Dict[ExercisePhase, AngleRange]:
    return {
        _P.PREPARATION: (straight, 180.0),
        _P.ECCENTRIC: (bottom, straight),
        _P.BOTTOM: (0.0, bottom),
        _P.CONCENTRIC: (bottom, straight),
        _P.TOP: (straight, 180.0),
    }


SQUAT = ExercisePattern(
    name="squat",
    key_joints=("knee", "hip"),
    phases=_DESCENT_SEQUENCE,
    phase_ranges=_descent_ranges(straight=160.0, bottom=100.0),
    optimal_angles={"knee": (60.0, 180.0), "hip": (50.0, 180.0)},
    faults=(
        FaultRule(
            name="Knee Cave",
            predicate="knee_valgus",
            params={"min_ratio": 0.7},
            message="Keep your knees tracking over your toes",
            correction="Focus on pushing knees outward during the movement",
            body_part="knees",
        ),
        FaultRule(
            name="Forward Lean",
            predicate="forward_lean",
            params={"max_degrees": 45.0},
            message="Keep your chest up and torso more upright",
            correction="Sit back into your heels more",
            body_part="torso",
        ),
    ),
    default_rest=90,
)

PUSHUP = ExercisePattern(
    name="pushup",
    key_joints=("elbow", "body_line", "shoulder"),
    phases=_DESCENT_SEQUENCE,
    phase_ranges=_descent_ranges(straight=150.0, bottom=90.0),
    optimal_angles={"elbow": (45.0, 180.0), "body_line": (160.0, 180.0), "shoulder": (0.0, 80.0)},
    faults=(
        FaultRule(
            name="Sagging Hips",
            predicate="sagging_hips",
            params={"min_degrees": 160.0},
            message="Keep your body in a straight line",
            correction="Engage your core and squeeze glutes",
            body_part="hips",
        ),
        FaultRule(
            name="Flared Elbows",
            predicate="flared_elbows",
            params={"max_degrees": 80.0},
            message="Keep elbows closer to your body",
            correction="Aim for 45-degree angle from torso",
            body_part="elbows",
        ),
    ),
    default_rest=60,
)

DEADLIFT = ExercisePattern(
    name="deadlift",
    key_joints=("hip", "knee"),
    phases=_DESCENT_SEQUENCE,
    phase_ranges=_descent_ranges(straight=160.0, bottom=110.0),
    optimal_angles={"hip": (60.0, 180.0), "knee": (110.0, 180.0)},
    faults=(
        FaultRule(
            name="Rounded Back",
            predicate="rounded_back",
            params={"min_degrees": 140.0},
            message="Keep your back straight and chest up",
            correction="Engage lats and maintain neutral spine",
            body_part="back",
        ),
        FaultRule(
            name="Bar Drift",
            predicate="bar_drift",
            params={"max_offset": 0.15},
            message="Keep the bar close to your body",
            correction="Think about dragging the bar up your legs",
            body_part="arms",
        ),
    ),
    default_rest=120,
)

BICEP_CURL = ExercisePattern(
    name="bicep_curl",
    key_joints=("elbow", "shoulder"),
    # Curl starts extended, flexes to the top and lowers back
    phases=(_P.PREPARATION, _P.CONCENTRIC, _P.TOP, _P.ECCENTRIC),
    phase_ranges={
        _P.PREPARATION: (150.0, 180.0),
        _P.CONCENTRIC: (60.0, 150.0),
        _P.TOP: (0.0, 60.0),
        _P.ECCENTRIC: (60.0, 150.0),
    },
    optimal_angles={"elbow": (30.0, 180.0), "shoulder": (0.0, 30.0)},
    faults=(
        FaultRule(
            name="Elbow Drift",
            predicate="elbow_drift",
            params={"max_offset": 0.1},
            message="Keep your elbows pinned to your sides",
            correction="Lighten the load and avoid swinging the upper arm",
            body_part="elbows",
        ),
    ),
    default_rest=60,
)

LUNGE = ExercisePattern(
    name="lunge",
    key_joints=("knee", "hip"),
    phases=_DESCENT_SEQUENCE,
    phase_ranges=_descent_ranges(straight=160.0, bottom=110.0),
    optimal_angles={"knee": (70.0, 180.0), "hip": (70.0, 180.0)},
    faults=(
        FaultRule(
            name="Knee Past Toes",
            predicate="knee_over_toes",
            params={"max_offset": 0.1},
            message="Keep your front knee stacked over your ankle",
            correction="Take a longer stride",
            body_part="knees",
        ),
        FaultRule(
            name="Forward Lean",
            predicate="forward_lean",
            params={"max_degrees": 30.0},
            message="Keep your torso upright",
            correction="Brace your core and look straight ahead",
            body_part="torso",
        ),
    ),
    default_rest=75,
)

DEFAULT_PATTERN = SQUAT

_PATTERNS: Dict[str, ExercisePattern] = {
    p.name: p for p in (SQUAT, PUSHUP, DEADLIFT, BICEP_CURL, LUNGE)
}

_ALIASES: Dict[str, str] = {
    "squats": "squat",
    "back_squat": "squat",
    "bodyweight_squat": "squat",
    "push_up": "pushup",
    "push_ups": "pushup",
    "pushups": "pushup",
    "deadlifts": "deadlift",
    "curl": "bicep_curl",
    "bicep_curls": "bicep_curl",
    "biceps_curl": "bicep_curl",
    "lunges": "lunge",
}


def normalize_name(name: str) -> str:
    return "_".join(name.strip().lower().replace("-", " ").split())


class ExercisePatternCatalog:
    """
    Read-only lookup over the built-in patterns.

    `lookup` never raises: unrecognized names resolve to the default pattern
    and are counted in `fallback_count`.
    """

    def __init__(self, patterns: Optional[Dict[str, ExercisePattern]] = None):
        self._patterns = dict(patterns or _PATTERNS)
        self.fallback_count = 0

    def _resolve(self, name: str) -> Optional[ExercisePattern]:
        key = normalize_name(name or "")
        key = _ALIASES.get(key, key)
        return self._patterns.get(key)

    def lookup(self, name: str) -> ExercisePattern:
        pattern = self._resolve(name)
        if pattern is None:
            self.fallback_count += 1
            logger.warning(
                f"Unknown exercise '{name}', falling back to '{DEFAULT_PATTERN.name}'"
            )
            return DEFAULT_PATTERN
        return pattern

    def lookup_strict(self, name: str) -> ExercisePattern:
        pattern = self._resolve(name)
        if pattern is None:
            raise UnknownExerciseError(name)
        return pattern

    def names(self) -> List[str]:
        return sorted(self._patterns)

    def __contains__(self, name: str) -> bool:
        return self._resolve(name) is not None
