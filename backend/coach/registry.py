"""In-memory session registry shared by the API routes."""

import logging
import threading
from typing import Dict, Optional

from fastapi import Request

from coach.core.errors import NoActiveSessionError
from coach.core.models import SessionSummary
from coach.core.orchestrator import WorkoutSessionOrchestrator
from coach.core.patterns import ExercisePatternCatalog

logger = logging.getLogger(__name__)


class SessionRegistry:
    """
    Maps users to their orchestrator and session ids to users.

    Each user gets one orchestrator, so a user has at most one active session
    and their completed sessions accumulate in that orchestrator's history.
    Orchestrators never share state with each other.
    """

    def __init__(self, history_size: Optional[int] = None):
        self.catalog = ExercisePatternCatalog()
        self.history_size = history_size
        self._lock = threading.Lock()
        self._by_user: Dict[str, WorkoutSessionOrchestrator] = {}
        self._session_users: Dict[str, str] = {}

    def orchestrator_for_user(self, user_id: str) -> WorkoutSessionOrchestrator:
        with self._lock:
            orchestrator = self._by_user.get(user_id)
            if orchestrator is None:
                orchestrator = WorkoutSessionOrchestrator(catalog=self.catalog, history_size=self.history_size)
                self._by_user[user_id] = orchestrator
                logger.debug(f"Created orchestrator for user {user_id}")
            return orchestrator

    def register(self, session_id: str, user_id: str) -> None:
        with self._lock:
            self._session_users[session_id] = user_id

    def orchestrator_for_session(self, session_id: str) -> WorkoutSessionOrchestrator:
        with self._lock:
            user_id = self._session_users.get(session_id)
            orchestrator = self._by_user.get(user_id) if user_id else None
        if orchestrator is None:
            raise NoActiveSessionError(f"Session {session_id} not found")
        return orchestrator

    def prune(self, user_id: str) -> int:
        """Forget session ids the user's orchestrator has evicted from its history."""
        with self._lock:
            orchestrator = self._by_user.get(user_id)
            stale = [
                sid for sid, uid in self._session_users.items()
                if uid == user_id and (orchestrator is None or not orchestrator.knows(sid))
            ]
            for sid in stale:
                del self._session_users[sid]
        if stale:
            logger.debug(f"Pruned {len(stale)} sessions for user {user_id}")
        return len(stale)

    def summary(self, session_id: str) -> Optional[SessionSummary]:
        return self.orchestrator_for_session(session_id).summaries.get(session_id)

    def clear(self) -> None:
        with self._lock:
            self._by_user.clear()
            self._session_users.clear()


def get_registry(request: Request) -> SessionRegistry:
    """FastAPI dependency returning the app-wide registry."""
    return request.app.state.registry
