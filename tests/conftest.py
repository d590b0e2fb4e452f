"""Shared fixtures."""

from datetime import datetime, timedelta, timezone

import pytest

from coach.core.models import Exercise, User, Workout, WorkoutSession


class FakeClock:
    """Manually advanced wall clock."""

    def __init__(self, start: datetime = datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc)):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class FakeMonotonic:
    def __init__(self):
        self.t = 1000.0

    def __call__(self) -> float:
        return self.t

    def advance(self, seconds: float) -> None:
        self.t += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def monotonic():
    return FakeMonotonic()


@pytest.fixture
def squat_workout():
    return Workout(
        id="w-squat",
        name="Leg day",
        exercises=(Exercise(name="squat", sets=3, reps=10, weight=60.0, rest_time=90),),
    )


@pytest.fixture
def two_exercise_workout():
    return Workout(
        id="w-mixed",
        exercises=(
            Exercise(name="squat", sets=2, reps=10, rest_time=90),
            Exercise(name="push-up", sets=2, reps=15),
        ),
    )


@pytest.fixture
def user():
    return User(id="athlete-1", age=30)


@pytest.fixture
def session(squat_workout, clock):
    return WorkoutSession(
        id="s-1",
        user_id="athlete-1",
        workout_id=squat_workout.id,
        workout=squat_workout,
        start_time=clock(),
    )
