"""
Real-time events consumed by the session orchestrator.

The set of event kinds is closed: every event is exactly one of PoseEvent,
SetCompletionEvent or BiometricEvent and carries only its own fields.
"""

from dataclasses import dataclass
from typing import Union

from coach.core.models import BiometricSnapshot, PoseFrame, SetPerformance


@dataclass(frozen=True)
class PoseEvent:
    """A pose frame from the external estimator."""
    frame: PoseFrame


@dataclass(frozen=True)
class SetCompletionEvent:
    """The athlete finished (or abandoned) a set."""
    performance: SetPerformance


@dataclass(frozen=True)
class BiometricEvent:
    """A biometric reading from a wearable or health platform."""
    snapshot: BiometricSnapshot


SessionEvent = Union[PoseEvent, SetCompletionEvent, BiometricEvent]
