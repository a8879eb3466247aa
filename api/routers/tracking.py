from fastapi import APIRouter, HTTPException, Query
from pydantic import BaseModel, Field
from typing import List, Optional

from api.session_store import SessionEntry, session_store
from models.tracking import Exercise, Keypoint
from utils.serialization import CustomJSONResponse

router = APIRouter()

EXERCISE_DESCRIPTIONS = {
    Exercise.SQUAT: ("Squat", "Depth, back angle and knee tracking with rep counting"),
    Exercise.PUSH_UP: ("Push-up", "Elbow depth, body line, hand placement and elbow flare with rep counting"),
    Exercise.WALL_SIT: ("Wall Sit", "Knee angle, back position and knee stacking for an isometric hold"),
    Exercise.BARBELL_RDL: ("Barbell Romanian Deadlift", "Hip hinge depth, knee bend and bar path with rep counting"),
}


class KeypointIn(BaseModel):
    name: str
    x: float
    y: float
    score: float = 1.0


class FrameRequest(BaseModel):
    keypoints: List[KeypointIn] = Field(default_factory=list)
    timestamp: Optional[float] = Field(None, description="Frame time in milliseconds")


class SessionCreateRequest(BaseModel):
    exercise: Optional[str] = None
    personality: Optional[str] = "neutral"


class ExerciseUpdateRequest(BaseModel):
    exercise: Optional[str] = None


def _parse_exercise(name: Optional[str]) -> Optional[Exercise]:
    if name is None:
        return None
    exercise = Exercise.parse(name)
    if exercise is None:
        raise HTTPException(status_code=400, detail=f"Unsupported exercise: {name}")
    return exercise


def _get_entry(session_id: str) -> SessionEntry:
    entry = session_store.get(session_id)
    if entry is None:
        raise HTTPException(status_code=404, detail=f"Session not found: {session_id}")
    return entry


@router.get("/exercises")
async def get_supported_exercises():
    """Get list of exercises with form classification."""
    return {
        "supported_exercises": [
            {"id": exercise.value, "name": name, "description": description}
            for exercise, (name, description) in EXERCISE_DESCRIPTIONS.items()
        ]
    }


@router.post("/sessions")
async def create_session(request: SessionCreateRequest):
    """Start a tracking session, optionally with an exercise selected."""
    exercise = _parse_exercise(request.exercise)
    session_id = session_store.create(exercise, request.personality)
    entry = _get_entry(session_id)
    with entry.lock:
        snapshot = entry.session.snapshot()
    return CustomJSONResponse(content={"session_id": session_id, **snapshot})


@router.get("/sessions/{session_id}")
async def get_session(session_id: str):
    """Current read-only snapshot of a session."""
    entry = _get_entry(session_id)
    with entry.lock:
        snapshot = entry.session.snapshot()
    return CustomJSONResponse(content={"session_id": session_id, **snapshot})


@router.post("/sessions/{session_id}/frames")
async def process_frame(session_id: str, request: FrameRequest):
    """
    Feed one frame of keypoints.
    Returns the frame's form result, the rep count and the breathing state.
    """
    entry = _get_entry(session_id)
    frame = [Keypoint(name=kp.name, x=kp.x, y=kp.y, score=kp.score) for kp in request.keypoints]
    with entry.lock:
        form = entry.session.process_frame(frame, request.timestamp)
        response = {
            "form": form,
            "rep_count": entry.session.rep_count,
            "breathing": entry.session.snapshot()["breathing"],
        }
    return CustomJSONResponse(content=response)


@router.put("/sessions/{session_id}/exercise")
async def update_exercise(session_id: str, request: ExerciseUpdateRequest):
    """Select another exercise; history is cleared when it changes."""
    exercise = _parse_exercise(request.exercise)
    entry = _get_entry(session_id)
    with entry.lock:
        entry.session.set_exercise(exercise)
        snapshot = entry.session.snapshot()
    return CustomJSONResponse(content={"session_id": session_id, **snapshot})


@router.post("/sessions/{session_id}/activate")
async def activate_session(session_id: str):
    entry = _get_entry(session_id)
    with entry.lock:
        entry.session.set_active(True)
        snapshot = entry.session.snapshot()
    return CustomJSONResponse(content={"session_id": session_id, **snapshot})


@router.post("/sessions/{session_id}/deactivate")
async def deactivate_session(session_id: str):
    """Stop tracking; all buffers and cached outputs are cleared."""
    entry = _get_entry(session_id)
    with entry.lock:
        entry.session.set_active(False)
        snapshot = entry.session.snapshot()
    return CustomJSONResponse(content={"session_id": session_id, **snapshot})


@router.get("/sessions/{session_id}/predictions")
async def get_predictions(
    session_id: str,
    timestamp: Optional[float] = Query(None, description="Evaluation time in milliseconds")
):
    """Fatigue and form-breakdown prediction, recomputed at most every prediction interval."""
    entry = _get_entry(session_id)
    with entry.lock:
        prediction = entry.session.get_predictions(timestamp)
    return CustomJSONResponse(content={"prediction": prediction})


@router.post("/sessions/{session_id}/breathing/analyze")
async def analyze_breathing(session_id: str):
    """Run breathing analysis now, outside its regular cadence."""
    entry = _get_entry(session_id)
    with entry.lock:
        if entry.session.is_active:
            entry.session.analyze_breathing()
        breathing = entry.session.snapshot()["breathing"]
    return CustomJSONResponse(content={"breathing": breathing})


@router.delete("/sessions/{session_id}")
async def delete_session(session_id: str):
    if not session_store.delete(session_id):
        raise HTTPException(status_code=404, detail=f"Session not found: {session_id}")
    return {"deleted": session_id}
