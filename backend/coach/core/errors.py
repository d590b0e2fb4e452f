"""
Error taxonomy for the coaching core.

- InvalidInputError: malformed pose frame or event field. Frames are dropped
  and counted by the analyzer, never surfaced to the session.
- UnknownExerciseError: only raised by strict catalog lookups. The regular
  lookup falls back to the default pattern with a warning.
- NoActiveSessionError: orchestrator called out of sequence.
- SessionAlreadyActiveError: start() while a session is active.
- InsufficientDataError: resolved internally via documented defaults.
"""


class CoachError(Exception):
    """Base class for coaching core errors."""


class InvalidInputError(CoachError, ValueError):
    """Malformed pose frame or event payload."""


class UnknownExerciseError(CoachError, KeyError):
    """Exercise name not present in the pattern catalog."""

    def __init__(self, name: str):
        super().__init__(name)
        self.name = name

    def __str__(self) -> str:
        return f"Unknown exercise: {self.name!r}"


class NoActiveSessionError(CoachError):
    """Orchestrator operation requires an active session."""

    def __init__(self, message: str = "No active workout session"):
        super().__init__(message)


class SessionAlreadyActiveError(CoachError):
    """A session is already active on this orchestrator."""

    def __init__(self, session_id: str):
        super().__init__(f"Session {session_id} is already active")
        self.session_id = session_id


class InsufficientDataError(CoachError):
    """Not enough data to compute a value; callers fall back to defaults."""
