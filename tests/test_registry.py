"""Tests for the in-memory session registry."""

import pytest

from coach.core.errors import NoActiveSessionError
from coach.registry import SessionRegistry


def run_session(registry, workout, user):
    orchestrator = registry.orchestrator_for_user(user.id)
    session = orchestrator.start(workout, user)
    registry.register(session.id, user.id)
    orchestrator.complete(session.id)
    registry.prune(user.id)
    return session.id


class TestSessionRegistry:

    def test_one_orchestrator_per_user(self):
        registry = SessionRegistry()
        assert registry.orchestrator_for_user("a") is registry.orchestrator_for_user("a")
        assert registry.orchestrator_for_user("a") is not registry.orchestrator_for_user("b")

    def test_unknown_session(self):
        with pytest.raises(NoActiveSessionError):
            SessionRegistry().orchestrator_for_session("missing")

    def test_evicted_sessions_are_forgotten(self, squat_workout, user):
        registry = SessionRegistry(history_size=2)
        ids = [run_session(registry, squat_workout, user) for _ in range(3)]

        with pytest.raises(NoActiveSessionError):
            registry.orchestrator_for_session(ids[0])
        for session_id in ids[1:]:
            assert registry.summary(session_id).session_id == session_id

    def test_prune_keeps_active_session(self, squat_workout, user):
        registry = SessionRegistry(history_size=1)
        orchestrator = registry.orchestrator_for_user(user.id)
        session = orchestrator.start(squat_workout, user)
        registry.register(session.id, user.id)
        assert registry.prune(user.id) == 0
        assert registry.orchestrator_for_session(session.id) is orchestrator
