"""
Form quality scoring.

The score blends two sub-scores on a 1-10 scale:
- fault score: 10 minus a fixed penalty per triggered fault
- angle compliance: share of key joints inside their optimal range

The blend weight and penalty come from settings so they can be tuned without
touching the patterns.
"""

import logging
from typing import List, Optional, Tuple

from coach.config import get_settings
from coach.core.errors import InvalidInputError
from coach.core.geometry import is_valid_pose
from coach.core.models import FeedbackType, FormFeedback, PoseFrame
from coach.core.patterns import ExercisePattern, evaluate_fault

logger = logging.getLogger(__name__)

FAULT_SEVERITY = 7
ANGLE_WARNING_SEVERITY = 4


class FormScorer:
    """Deterministic scorer: the same frame and pattern always give the same result."""

    def __init__(
        self,
        fault_penalty: Optional[float] = None,
        fault_weight: Optional[float] = None,
        compliance_default: Optional[float] = None,
        min_visibility: Optional[float] = None,
    ):
        settings = get_settings()
        self.fault_penalty = fault_penalty if fault_penalty is not None else settings.form_fault_penalty
        self.fault_weight = fault_weight if fault_weight is not None else settings.form_fault_weight
        self.compliance_default = (
            compliance_default if compliance_default is not None
            else settings.angle_compliance_default
        )
        self.min_visibility = (
            min_visibility if min_visibility is not None else settings.min_landmark_visibility
        )

    def score(
        self,
        frame: PoseFrame,
        pattern: ExercisePattern
    ) -> Tuple[float, List[FormFeedback]]:
        if not is_valid_pose(frame, self.min_visibility):
            raise InvalidInputError(
                f"Frame at t={frame.timestamp} has {len(frame.landmarks)} landmarks "
                f"or a landmark below visibility {self.min_visibility}"
            )

        feedback: List[FormFeedback] = []
        fault_score = 10.0

        for rule in pattern.faults:
            if evaluate_fault(rule, frame.landmarks):
                fault_score -= self.fault_penalty
                feedback.append(FormFeedback(
                    type=FeedbackType.ERROR,
                    message=rule.message,
                    body_part=rule.body_part,
                    severity=FAULT_SEVERITY,
                    suggestion=rule.correction,
                ))

        faults_found = len(feedback)
        compliance = self._angle_compliance(frame, pattern, feedback)

        score = self.fault_weight * fault_score + (1 - self.fault_weight) * compliance
        score = max(1.0, min(10.0, score))

        if faults_found == 0:
            feedback.append(FormFeedback(
                type=FeedbackType.SUCCESS,
                message="Great form! Keep it up!",
                severity=1,
            ))

        return round(score, 2), feedback

    def _angle_compliance(
        self,
        frame: PoseFrame,
        pattern: ExercisePattern,
        feedback: List[FormFeedback]
    ) -> float:
        measured = 0
        in_range = 0
        for joint, (low, high) in pattern.optimal_angles.items():
            try:
                angle = pattern.joint_angle(joint, frame.landmarks)
            except KeyError:
                logger.warning(f"Pattern '{pattern.name}' references unknown joint '{joint}'")
                continue
            measured += 1
            if low <= angle <= high:
                in_range += 1
            else:
                feedback.append(FormFeedback(
                    type=FeedbackType.WARNING,
                    message=f"{joint.replace('_', ' ').capitalize()} angle {angle:.0f} outside {low:.0f}-{high:.0f}",
                    body_part=joint,
                    severity=ANGLE_WARNING_SEVERITY,
                    suggestion="Control the range of motion",
                ))

        if measured == 0:
            return self.compliance_default
        return 1.0 + 9.0 * in_range / measured
