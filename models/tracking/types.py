from enum import Enum
from dataclasses import dataclass, field
from typing import Dict, List, Optional


class Exercise(str, Enum):
    """
    Exercises with a form classifier.

    Options:
    - SQUAT: Bodyweight squat, tracked by center of mass
    - PUSH_UP: Push-up, tracked by shoulder height and elbow extension
    - WALL_SIT: Isometric wall sit, form only (no reps)
    - BARBELL_RDL: Barbell Romanian deadlift, tracked by shoulder height
    """
    SQUAT = "squat"
    PUSH_UP = "push-up"
    WALL_SIT = "wall-sit"
    BARBELL_RDL = "barbell-rdl"

    @classmethod
    def parse(cls, value) -> Optional["Exercise"]:
        """Return the matching exercise, or None for absent/unknown names."""
        if value is None:
            return None
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return None


class Level(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class BreathingRate(str, Enum):
    SLOW = "slow"
    NORMAL = "normal"
    FAST = "fast"


class BreathingConsistency(str, Enum):
    STEADY = "steady"
    ERRATIC = "erratic"


# Signal confidence and suggestion priority share the low/medium/high scale
SignalConfidence = Level
Priority = Level


@dataclass(frozen=True)
class Keypoint:
    """A named, scored 2D body point from the pose source."""
    name: str
    x: float
    y: float
    score: float = 1.0


@dataclass(frozen=True)
class FormResult:
    """Per-frame form verdict for one exercise."""
    feedback: str
    is_valid: bool
    angles: Dict[str, float] = field(default_factory=dict)

    @classmethod
    def neutral(cls) -> "FormResult":
        """The "no opinion" result used when required joints are missing."""
        return cls(feedback="", is_valid=False)


@dataclass(frozen=True)
class MotionSample:
    timestamp: float
    hip_y: Optional[float]
    knee_y: Optional[float]
    shoulder_y: Optional[float]
    chest_y: Optional[float]
    center_y: Optional[float]
    has_full_body: bool


@dataclass(frozen=True)
class BreathingSample:
    timestamp: float
    chest_y: float


@dataclass(frozen=True)
class RepRecord:
    timestamp: float
    duration_ms: float
    form_quality: str  # 'good' or 'poor'


@dataclass(frozen=True)
class Suggestion:
    type: str  # 'fatigue', 'form' or 'encouragement'
    message: str
    priority: Level


@dataclass
class Prediction:
    fatigue_level: Level = Level.LOW
    risk_of_mistake: Level = Level.LOW
    suggestions: List[Suggestion] = field(default_factory=list)


@dataclass
class BreathingState:
    """Latest breathing classification; defaults match a fresh session."""
    rate: BreathingRate = BreathingRate.NORMAL
    consistency: BreathingConsistency = BreathingConsistency.STEADY
    confidence: Level = Level.MEDIUM
