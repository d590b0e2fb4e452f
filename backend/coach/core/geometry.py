"""
Pose geometry helpers.

All angles are in degrees. Landmarks use the 33-point MediaPipe topology with
normalized image coordinates (y grows downward).
"""

import numpy as np
from typing import Dict, Sequence, Union

from coach.core.models import POSE_LANDMARK_COUNT, PoseFrame, PoseLandmark


LANDMARK_INDEX: Dict[str, int] = {
    "nose": 0,
    "left_eye_inner": 1,
    "left_eye": 2,
    "left_eye_outer": 3,
    "right_eye_inner": 4,
    "right_eye": 5,
    "right_eye_outer": 6,
    "left_ear": 7,
    "right_ear": 8,
    "mouth_left": 9,
    "mouth_right": 10,
    "left_shoulder": 11,
    "right_shoulder": 12,
    "left_elbow": 13,
    "right_elbow": 14,
    "left_wrist": 15,
    "right_wrist": 16,
    "left_pinky": 17,
    "right_pinky": 18,
    "left_index": 19,
    "right_index": 20,
    "left_thumb": 21,
    "right_thumb": 22,
    "left_hip": 23,
    "right_hip": 24,
    "left_knee": 25,
    "right_knee": 26,
    "left_ankle": 27,
    "right_ankle": 28,
    "left_heel": 29,
    "right_heel": 30,
    "left_foot_index": 31,
    "right_foot_index": 32,
}


def angle_between(a: PoseLandmark, b: PoseLandmark, c: PoseLandmark) -> float:
    """
    Interior angle at vertex b formed by the rays b->a and b->c.

    Uses the 2-D image plane. Result is in [0, 180]; coincident points give 0.
    """
    if (a.x == b.x and a.y == b.y) or (c.x == b.x and c.y == b.y):
        return 0.0

    radians = np.arctan2(c.y - b.y, c.x - b.x) - np.arctan2(a.y - b.y, a.x - b.x)
    angle = float(abs(np.degrees(radians)))
    if angle > 180.0:
        angle = 360.0 - angle
    return angle


def distance(a: PoseLandmark, b: PoseLandmark) -> float:
    """Euclidean distance in 3-D."""
    return float(np.linalg.norm(np.array([a.x - b.x, a.y - b.y, a.z - b.z])))


def midpoint(a: PoseLandmark, b: PoseLandmark) -> PoseLandmark:
    return PoseLandmark(
        x=(a.x + b.x) / 2,
        y=(a.y + b.y) / 2,
        z=(a.z + b.z) / 2,
        visibility=min(a.visibility, b.visibility),
    )


def vertical_angle(top: PoseLandmark, bottom: PoseLandmark) -> float:
    """Inclination of the segment bottom->top from the image vertical, 0-180."""
    dx = top.x - bottom.x
    dy = bottom.y - top.y  # Flip so "up" is positive
    if dx == 0 and dy == 0:
        return 0.0
    return float(abs(np.degrees(np.arctan2(dx, dy))))


def landmark(
    landmarks: Union[PoseFrame, Sequence[PoseLandmark]],
    name: str
) -> PoseLandmark:
    """Look up a landmark by its MediaPipe name."""
    points = landmarks.landmarks if isinstance(landmarks, PoseFrame) else landmarks
    return points[LANDMARK_INDEX[name]]


def is_valid_pose(
    landmarks: Union[PoseFrame, Sequence[PoseLandmark]],
    min_visibility: float = 0.5
) -> bool:
    """Exactly 33 landmarks, each at or above the visibility threshold."""
    points = landmarks.landmarks if isinstance(landmarks, PoseFrame) else landmarks
    if points is None or len(points) != POSE_LANDMARK_COUNT:
        return False
    return all(lm.visibility >= min_visibility for lm in points)
