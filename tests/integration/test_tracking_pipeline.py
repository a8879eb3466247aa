import math
import pytest
from api.session_store import SessionStore
from models.coaching import adapt_voice_settings
from models.tracking import Exercise, Keypoint, Level, TrackingSession

FRAME_MS = 100

def push_up_frame(shoulder_y, elbow_angle_deg):
    """Side view push-up: shoulder height and elbow bend move together."""
    theta = math.radians(elbow_angle_deg)
    elbow = (100.0, shoulder_y + 100)
    return [
        Keypoint('left_shoulder', 100.0, shoulder_y, 0.9),
        Keypoint('left_elbow', *elbow, 0.9),
        Keypoint('left_wrist', elbow[0] + 100 * math.sin(theta), elbow[1] - 100 * math.cos(theta), 0.9),
    ]

def push_up_cycle():
    heights = [200 + 10 * i for i in range(11)] + [300 - 10 * i for i in range(1, 11)] + [200, 200]
    return [(y, 165 - (y - 200) * 0.75) for y in heights]

class TestTrackingPipeline:

    def test_push_up_set_with_breathing_and_coaching(self):
        session = TrackingSession(Exercise.PUSH_UP)
        t = 0
        for _ in range(7):
            for shoulder_y, elbow in push_up_cycle():
                session.process_frame(push_up_frame(shoulder_y, elbow), t)
                t += FRAME_MS

        assert session.rep_count == 6
        assert all(rep.form_quality == 'good' for rep in session.rep_history)

        # Shoulder travel doubles as the chest signal: large but not noise
        assert session.breathing.confidence == Level.MEDIUM

        voice = adapt_voice_settings('neutral', session.breathing.rate,
                                     session.breathing.consistency, session.breathing.confidence)
        assert voice.confidence_multiplier == 1.2

    def test_store_evicts_oldest_session(self):
        store = SessionStore(max_sessions=2)
        first = store.create('squat')
        second = store.create('push-up')
        third = store.create(None)

        assert len(store) == 2
        assert store.get(first) is None
        assert store.get(second).session.exercise == Exercise.PUSH_UP
        assert store.get(third).session.exercise is None

    def test_store_delete_deactivates(self):
        store = SessionStore()
        session_id = store.create('squat', 'energetic')
        entry = store.get(session_id)
        assert entry.personality.value == 'energetic'
        assert store.delete(session_id) is True
        assert entry.session.is_active is False
        assert store.delete(session_id) is False
