"""Tests for the HTTP API."""

import pytest
from fastapi.testclient import TestClient

from coach.main import app

from poses import SQUAT_REP_ANGLES, landmark_dicts, pose


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


def start_payload(user_id="athlete-1", environment=None, sets=3):
    payload = {
        "workout": {
            "id": "w-1",
            "name": "Leg day",
            "exercises": [{"name": "squat", "sets": sets, "reps": 10, "weight": 60, "rest_time": 90}],
        },
        "user": {"id": user_id, "age": 30},
    }
    if environment is not None:
        payload["environment"] = environment
    return payload


def start(client, **kwargs):
    response = client.post("/api/sessions", json=start_payload(**kwargs))
    assert response.status_code == 201
    return response.json()


class TestHealth:

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"


class TestExercises:

    def test_list(self, client):
        data = client.get("/api/exercises").json()
        assert "squat" in data["items"]
        assert data["total"] == len(data["items"])

    def test_get_pattern(self, client):
        data = client.get("/api/exercises/push-up").json()
        assert data["name"] == "pushup"
        assert data["dominant_joint"] == "elbow"
        assert data["phases"][0] == "preparation"
        assert {f["predicate"] for f in data["faults"]} == {"sagging_hips", "flared_elbows"}

    def test_unknown_exercise_is_404(self, client):
        assert client.get("/api/exercises/handstand").status_code == 404


class TestSessionLifecycle:

    def test_start(self, client):
        data = start(client)
        assert data["status"] == "active"
        assert data["current_exercise"] == "squat"
        assert data["adjustments"]["intensity"] == 1.0

    def test_start_directives(self, client):
        data = start(client, environment={"temperature": 30, "time_of_day": "morning"})
        assert {d["type"] for d in data["start_directives"]} == {"rest", "intensity"}
        assert data["adjustments"]["rest"] == pytest.approx(1.15)

    def test_invalid_time_of_day(self, client):
        payload = start_payload(environment={"time_of_day": "midnight"})
        assert client.post("/api/sessions", json=payload).status_code == 422

    def test_second_start_conflicts(self, client):
        start(client, user_id="dup")
        response = client.post("/api/sessions", json=start_payload(user_id="dup"))
        assert response.status_code == 409

    def test_unknown_session_is_404(self, client):
        assert client.get("/api/sessions/nope").status_code == 404
        assert client.post("/api/sessions/nope/complete").status_code == 404

    def test_complete(self, client):
        session_id = start(client, user_id="finisher")["id"]
        summary = client.post(f"/api/sessions/{session_id}/complete").json()
        assert summary["session_id"] == session_id
        assert summary["form_accuracy"] == 85.0

        state = client.get(f"/api/sessions/{session_id}").json()
        assert state["status"] == "completed"
        assert state["summary"]["session_id"] == session_id

        # Session is sealed
        response = client.post(f"/api/sessions/{session_id}/sets", json={"set_number": 1, "reps": 10, "rpe": 7})
        assert response.status_code == 404


class TestRealTimeEvents:

    def test_hard_set_then_rest(self, client):
        session_id = start(client, user_id="e2e")["id"]
        response = client.post(
            f"/api/sessions/{session_id}/sets",
            json={"set_number": 1, "reps": 10, "completed": True, "rpe": 9},
        )
        assert response.status_code == 200
        data = response.json()
        assert data["directives"][0]["type"] == "intensity"
        assert data["directives"][0]["auto_apply"] is True
        assert data["set_index"] == 1

        rest = client.post(f"/api/sessions/{session_id}/rest").json()
        assert rest["current_rest"] >= 108
        assert rest["min_rest"] == 60

    def test_extra_set_after_plan(self, client):
        session_id = start(client, user_id="overtime", sets=1)["id"]
        for n in (1, 2):
            response = client.post(
                f"/api/sessions/{session_id}/sets",
                json={"set_number": n, "reps": 10, "rpe": 7},
            )
            assert response.status_code == 200
        assert client.post(f"/api/sessions/{session_id}/rest").status_code == 200

        summary = client.post(f"/api/sessions/{session_id}/complete").json()
        assert summary["sets_completed"] == 2
        assert client.get(f"/api/sessions/{session_id}").json()["status"] == "completed"

    def test_invalid_rpe_is_422(self, client):
        session_id = start(client, user_id="bad-rpe")["id"]
        response = client.post(
            f"/api/sessions/{session_id}/sets",
            json={"set_number": 1, "reps": 10, "rpe": 12},
        )
        assert response.status_code == 422

    def test_biometrics(self, client):
        session_id = start(client, user_id="hr")["id"]
        data = client.post(f"/api/sessions/{session_id}/biometrics", json={"heart_rate": 185}).json()
        assert [d["type"] for d in data["directives"]] == ["rest"]
        assert data["adjustments"]["rest"] == pytest.approx(1.25)

    def test_frames(self, client):
        session_id = start(client, user_id="frames")["id"]
        last = None
        for i, angle in enumerate(SQUAT_REP_ANGLES):
            frame = pose(knee_angle=angle, timestamp=float(i))
            last = client.post(
                f"/api/sessions/{session_id}/frames",
                json={"landmarks": landmark_dicts(frame), "timestamp": float(i)},
            ).json()
        assert last["analyzed"] is True
        assert last["rep_count"] == 1
        assert last["phase"] == "preparation"
        assert 1.0 <= last["form_score"] <= 10.0

    def test_dropped_frame(self, client):
        session_id = start(client, user_id="drop")["id"]
        frame = pose(visibility=0.1)
        data = client.post(
            f"/api/sessions/{session_id}/frames",
            json={"landmarks": landmark_dicts(frame), "timestamp": 0.0},
        ).json()
        assert data["analyzed"] is False
        assert data["dropped_frames"] == 1
