"""
Coaching adaptation: turns breathing metrics into voice delivery settings.
"""

from .voice_adaptation import VoicePersonality, VoiceSettings, adapt_voice_settings, personality_settings

__all__ = [
    'VoicePersonality',
    'VoiceSettings',
    'adapt_voice_settings',
    'personality_settings'
]
