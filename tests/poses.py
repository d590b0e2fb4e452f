"""Synthetic 33-landmark poses for tests.

The base pose is a front-facing upright figure in normalized image
coordinates. Knee and elbow angles are set by rotating the ankle / wrist
around the joint, so `pose(knee_angle=90)` measures 90 degrees at the knee.
"""

import math
from typing import Dict, Optional, Tuple

from coach.core.geometry import LANDMARK_INDEX
from coach.core.models import PoseFrame, PoseLandmark

BASE_POINTS: Dict[str, Tuple[float, float]] = {
    "nose": (0.50, 0.10),
    "left_eye_inner": (0.49, 0.09),
    "left_eye": (0.48, 0.09),
    "left_eye_outer": (0.47, 0.09),
    "right_eye_inner": (0.51, 0.09),
    "right_eye": (0.52, 0.09),
    "right_eye_outer": (0.53, 0.09),
    "left_ear": (0.47, 0.12),
    "right_ear": (0.53, 0.12),
    "mouth_left": (0.49, 0.15),
    "mouth_right": (0.51, 0.15),
    "left_shoulder": (0.44, 0.25),
    "right_shoulder": (0.56, 0.25),
    "left_elbow": (0.44, 0.38),
    "right_elbow": (0.56, 0.38),
    "left_hip": (0.46, 0.50),
    "right_hip": (0.54, 0.50),
    "left_knee": (0.46, 0.70),
    "right_knee": (0.54, 0.70),
}

SEGMENT = 0.2
FOREARM = 0.12


def _rotate(joint: Tuple[float, float], angle: float, length: float) -> Tuple[float, float]:
    """Point at `length` from `joint`, `angle` degrees away from straight up."""
    rad = math.radians(angle)
    return joint[0] + length * math.sin(rad), joint[1] - length * math.cos(rad)


def pose_points(
    knee_angle: float = 180.0,
    elbow_angle: float = 180.0,
    overrides: Optional[Dict[str, Tuple[float, float]]] = None,
) -> Dict[str, Tuple[float, float]]:
    """Overrides are applied last; ankles and wrists stay where the base pose put them."""
    points = dict(BASE_POINTS)

    for side in ("left", "right"):
        knee = points[f"{side}_knee"]
        ankle = _rotate(knee, knee_angle, SEGMENT)
        points[f"{side}_ankle"] = ankle
        points[f"{side}_heel"] = (ankle[0], ankle[1] + 0.02)
        points[f"{side}_foot_index"] = (knee[0], ankle[1] + 0.02)

        elbow = points[f"{side}_elbow"]
        wrist = _rotate(elbow, elbow_angle, FOREARM)
        points[f"{side}_wrist"] = wrist
        for part in ("pinky", "index", "thumb"):
            points[f"{side}_{part}"] = wrist

    points.update(overrides or {})
    return points


def pose(
    knee_angle: float = 180.0,
    elbow_angle: float = 180.0,
    timestamp: float = 0.0,
    visibility: float = 0.95,
    overrides: Optional[Dict[str, Tuple[float, float]]] = None,
    low_visibility: Optional[Dict[str, float]] = None,
) -> PoseFrame:
    """Build a valid 33-landmark frame."""
    points = pose_points(knee_angle, elbow_angle, overrides)
    landmarks = [None] * len(LANDMARK_INDEX)
    for name, index in LANDMARK_INDEX.items():
        x, y = points[name]
        vis = (low_visibility or {}).get(name, visibility)
        landmarks[index] = PoseLandmark(x=x, y=y, z=0.0, visibility=vis)
    return PoseFrame.from_landmarks(landmarks, timestamp)


def landmark_dicts(frame: PoseFrame):
    """JSON-ready landmarks for API requests."""
    return [
        {"x": lm.x, "y": lm.y, "z": lm.z, "visibility": lm.visibility}
        for lm in frame.landmarks
    ]


# Dominant-joint angles for one full squat rep with 2-frame hysteresis:
# eccentric, bottom, concentric, top, then back to preparation.
SQUAT_REP_ANGLES = [130, 130, 80, 80, 130, 130, 170, 170, 170, 170]
