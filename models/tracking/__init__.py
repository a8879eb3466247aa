"""
Real-time tracking: form classification, rep detection, breathing and
fatigue prediction from per-frame keypoints.
"""

from .types import (
    Exercise, Keypoint, FormResult, MotionSample, BreathingSample, RepRecord,
    Suggestion, Prediction, BreathingState, BreathingRate, BreathingConsistency, Level
)
from .geometry import angle_between, select_keypoint, prefer_side
from .form_classifiers import ExerciseClassifier, CLASSIFIERS, classify_form, get_classifier
from .sample_buffer import TimeWindowBuffer, motion_sample_from_frame
from .rep_detector import RepDetector, RepHistory, RepPhase
from .breathing import BreathingAnalyzer, BreathingConfig
from .predictive import PredictiveAnalyzer, PredictiveConfig
from .scheduler import PeriodicTask
from .session import TrackingSession, TrackingConfig

__all__ = [
    'Exercise',
    'Keypoint',
    'FormResult',
    'MotionSample',
    'BreathingSample',
    'RepRecord',
    'Suggestion',
    'Prediction',
    'BreathingState',
    'BreathingRate',
    'BreathingConsistency',
    'Level',
    'angle_between',
    'select_keypoint',
    'prefer_side',
    'ExerciseClassifier',
    'CLASSIFIERS',
    'classify_form',
    'get_classifier',
    'TimeWindowBuffer',
    'motion_sample_from_frame',
    'RepDetector',
    'RepHistory',
    'RepPhase',
    'BreathingAnalyzer',
    'BreathingConfig',
    'PredictiveAnalyzer',
    'PredictiveConfig',
    'PeriodicTask',
    'TrackingSession',
    'TrackingConfig'
]
