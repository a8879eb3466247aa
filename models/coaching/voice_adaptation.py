from enum import Enum
from dataclasses import dataclass, field
from typing import Optional

from core.config import settings
from models.tracking.types import BreathingConsistency, BreathingRate, Level


class VoicePersonality(str, Enum):
    """
    Coaching voice personalities.

    Options:
    - CALM: Gentle, measured coaching
    - NEUTRAL: Balanced, professional tone
    - ENERGETIC: Upbeat, motivating coaching
    """
    CALM = "calm"
    NEUTRAL = "neutral"
    ENERGETIC = "energetic"

    @classmethod
    def parse(cls, value) -> "VoicePersonality":
        """Return the matching personality, falling back to NEUTRAL."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.NEUTRAL


@dataclass(frozen=True)
class VoiceSettings:
    """Parameters handed to the speech layer with each feedback message."""
    rate: float
    pitch: float
    stability: float
    volume: float = 1.0
    confidence_multiplier: float = 1.0  # Scales the interval between spoken cues
    voice_id: str = field(default_factory=lambda: settings.DEFAULT_VOICE_ID)


_PERSONALITY_BASES = {
    VoicePersonality.CALM: (0.85, 0.95, 0.7),
    VoicePersonality.ENERGETIC: (0.95, 1.1, 0.3),
    VoicePersonality.NEUTRAL: (0.9, 1.0, 0.5),
}

_CONFIDENCE_MULTIPLIERS = {
    Level.LOW: 1.5,
    Level.MEDIUM: 1.2,
    Level.HIGH: 1.0,
}


def personality_settings(personality, voice_id: Optional[str] = None) -> VoiceSettings:
    """Base voice settings for a personality, without breathing adaptation."""
    rate, pitch, stability = _PERSONALITY_BASES[VoicePersonality.parse(personality)]
    return VoiceSettings(rate=rate, pitch=pitch, stability=stability,
                         voice_id=voice_id or settings.DEFAULT_VOICE_ID)


def adapt_voice_settings(personality,
                         breathing_rate: Optional[BreathingRate],
                         breathing_consistency: Optional[BreathingConsistency],
                         signal_confidence: Optional[Level],
                         voice_id: Optional[str] = None) -> VoiceSettings:
    """
    Adapt coaching tone and timing to the breathing signal.

    Used only for coaching tone, timing and frequency, never to infer
    medical or emotional state. If any breathing metric is missing the
    plain personality settings are returned.

    Args:
        personality: VoicePersonality or its name
        breathing_rate: Latest breathing rate
        breathing_consistency: Latest breathing consistency
        signal_confidence: Confidence in the breathing signal
        voice_id: Voice identifier passed through to the speech layer

    Returns:
        VoiceSettings for the next spoken cue
    """
    base = personality_settings(personality, voice_id)
    if breathing_rate is None or breathing_consistency is None or signal_confidence is None:
        return base

    rate, pitch, stability = base.rate, base.pitch, base.stability

    # Fast breathing gets a calmer, slower delivery regardless of personality
    if breathing_rate == BreathingRate.FAST:
        rate = min(rate, 0.85)
        pitch = max(pitch - 0.05, 0.9)
        stability = min(stability + 0.1, 0.8)
    elif breathing_rate == BreathingRate.SLOW:
        rate = min(rate + 0.05, 1.0)
        pitch = min(pitch + 0.05, 1.15)
        stability = max(stability - 0.1, 0.2)

    if breathing_consistency == BreathingConsistency.ERRATIC:
        rate = min(rate, 0.88)
        stability = min(stability + 0.1, 0.8)

    # Lower confidence means less frequent feedback
    multiplier = _CONFIDENCE_MULTIPLIERS.get(Level(signal_confidence), 1.0)

    return VoiceSettings(
        rate=rate,
        pitch=pitch,
        stability=stability,
        volume=1.0,
        confidence_multiplier=multiplier,
        voice_id=base.voice_id,
    )
