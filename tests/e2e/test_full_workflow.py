import pytest
from fastapi.testclient import TestClient
from main import app
from api.session_store import session_store
from core.config import settings

client = TestClient(app)

API = settings.API_V1_STR

def squat_keypoints(offset=0):
    return [
        {"name": "left_shoulder", "x": 100, "y": 270 + offset, "score": 0.9},
        {"name": "left_hip", "x": 200, "y": 300 + offset, "score": 0.9},
        {"name": "left_knee", "x": 300, "y": 300 + offset, "score": 0.9},
        {"name": "left_ankle", "x": 300, "y": 400 + offset, "score": 0.9},
    ]

def cycle_offsets():
    return [10 * i for i in range(11)] + [100 - 10 * i for i in range(1, 11)] + [0, 0]

class TestFullWorkflow:

    def setup_method(self):
        session_store.clear()

    def create_session(self, **body):
        response = client.post(f"{API}/sessions", json=body)
        assert response.status_code == 200
        return response.json()["session_id"]

    def test_health(self):
        assert client.get("/health").json() == {"status": "healthy"}
        assert "version" in client.get("/").json()

    def test_supported_exercises(self):
        response = client.get(f"{API}/exercises")
        assert response.status_code == 200
        ids = [exercise["id"] for exercise in response.json()["supported_exercises"]]
        assert ids == ["squat", "push-up", "wall-sit", "barbell-rdl"]

    def test_create_session(self):
        response = client.post(f"{API}/sessions", json={"exercise": "squat"})
        assert response.status_code == 200
        data = response.json()
        assert data["exercise"] == "squat"
        assert data["is_active"] is True
        assert data["rep_count"] == 0
        assert data["form"] == {"feedback": "", "is_valid": False, "angles": {}}
        assert data["breathing"] == {"rate": "normal", "consistency": "steady", "confidence": "medium"}

    def test_unknown_exercise_rejected(self):
        response = client.post(f"{API}/sessions", json={"exercise": "burpee"})
        assert response.status_code == 400

    def test_unknown_session(self):
        assert client.get(f"{API}/sessions/missing").status_code == 404
        assert client.post(f"{API}/sessions/missing/frames", json={"keypoints": []}).status_code == 404

    def test_squat_set_through_api(self):
        session_id = self.create_session(exercise="squat")

        for i, offset in enumerate(cycle_offsets() * 4):
            response = client.post(
                f"{API}/sessions/{session_id}/frames",
                json={"keypoints": squat_keypoints(offset), "timestamp": i * 100}
            )
            assert response.status_code == 200
            assert response.json()["form"]["is_valid"] is True

        data = client.get(f"{API}/sessions/{session_id}").json()
        assert data["rep_count"] == 3
        assert len(data["recent_reps"]) == 3
        assert data["recent_reps"][0]["form_quality"] == "good"

        # Three steady reps give nothing to report
        response = client.get(f"{API}/sessions/{session_id}/predictions", params={"timestamp": 10000})
        assert response.json() == {"prediction": None}

    def test_frame_feedback(self):
        session_id = self.create_session(exercise="squat")
        response = client.post(
            f"{API}/sessions/{session_id}/frames",
            json={"keypoints": squat_keypoints(), "timestamp": 0}
        )
        data = response.json()
        assert data["form"]["feedback"] == "Good form! You're getting deep into the squat"
        assert data["form"]["angles"]["knee_angle"] == pytest.approx(90.0)
        assert data["rep_count"] == 0

    def test_exercise_change_and_deactivation(self):
        session_id = self.create_session(exercise="squat")
        for i, offset in enumerate(cycle_offsets() * 3):
            client.post(f"{API}/sessions/{session_id}/frames",
                        json={"keypoints": squat_keypoints(offset), "timestamp": i * 100})

        response = client.put(f"{API}/sessions/{session_id}/exercise", json={"exercise": "wall-sit"})
        assert response.json()["exercise"] == "wall-sit"
        assert response.json()["rep_count"] == 0

        response = client.post(f"{API}/sessions/{session_id}/deactivate")
        assert response.json()["is_active"] is False

        response = client.post(f"{API}/sessions/{session_id}/frames",
                               json={"keypoints": squat_keypoints(), "timestamp": 0})
        assert response.json()["form"] == {"feedback": "", "is_valid": False, "angles": {}}

        response = client.post(f"{API}/sessions/{session_id}/activate")
        assert response.json()["is_active"] is True

    def test_breathing_analysis_on_demand(self):
        session_id = self.create_session()
        response = client.post(f"{API}/sessions/{session_id}/breathing/analyze")
        assert response.status_code == 200
        assert response.json()["breathing"]["confidence"] == "low"

    def test_coaching_adaptation(self):
        response = client.post(f"{API}/coaching/adapt", json={
            "personality": "neutral",
            "breathing_rate": "fast",
            "breathing_consistency": "steady",
            "signal_confidence": "high"
        })
        assert response.status_code == 200
        voice = response.json()["voice_settings"]
        assert voice["rate"] == pytest.approx(0.85)
        assert voice["confidence_multiplier"] == 1.0

        response = client.post(f"{API}/coaching/adapt", json={"personality": "grumpy"})
        assert response.status_code == 422

    def test_session_coaching(self):
        session_id = self.create_session(exercise="squat", personality="calm")
        data = client.get(f"{API}/sessions/{session_id}/coaching").json()
        assert data["personality"] == "calm"
        assert data["voice_settings"]["rate"] == pytest.approx(0.85)
        assert data["voice_settings"]["confidence_multiplier"] == 1.2

    def test_delete_session(self):
        session_id = self.create_session(exercise="squat")
        assert client.delete(f"{API}/sessions/{session_id}").status_code == 200
        assert client.get(f"{API}/sessions/{session_id}").status_code == 404
        assert client.delete(f"{API}/sessions/{session_id}").status_code == 404
