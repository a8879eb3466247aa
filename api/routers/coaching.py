from fastapi import APIRouter, HTTPException
from pydantic import BaseModel
from typing import Optional

from api.session_store import session_store
from models.coaching import VoicePersonality, adapt_voice_settings
from models.tracking import BreathingConsistency, BreathingRate, Level
from utils.serialization import CustomJSONResponse

router = APIRouter()

class AdaptationRequest(BaseModel):
    personality: VoicePersonality = VoicePersonality.NEUTRAL
    breathing_rate: Optional[BreathingRate] = None
    breathing_consistency: Optional[BreathingConsistency] = None
    signal_confidence: Optional[Level] = None

@router.post("/coaching/adapt")
async def adapt_coaching(request: AdaptationRequest):
    """
    Voice delivery settings for the given personality and breathing metrics.
    """
    voice_settings = adapt_voice_settings(
        request.personality,
        request.breathing_rate,
        request.breathing_consistency,
        request.signal_confidence
    )
    return CustomJSONResponse(content={"voice_settings": voice_settings})

@router.get("/sessions/{session_id}/coaching")
async def get_session_coaching(session_id: str):
    """
    Voice delivery settings adapted to a session's latest breathing state.
    """
    entry = session_store.get(session_id)
    if entry is None:
        raise HTTPException(status_code=404, detail=f"Session not found: {session_id}")

    with entry.lock:
        breathing = entry.session.snapshot()["breathing"]

    voice_settings = adapt_voice_settings(
        entry.personality,
        breathing.rate,
        breathing.consistency,
        breathing.confidence
    )
    return CustomJSONResponse(content={
        "personality": entry.personality,
        "breathing": breathing,
        "voice_settings": voice_settings
    })
