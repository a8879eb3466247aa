import logging
import pandas as pd
from dataclasses import dataclass
from typing import Optional, Sequence

from .types import Level, MotionSample, Prediction, RepRecord, Suggestion

logger = logging.getLogger(__name__)

_LEVEL_ORDER = {Level.LOW: 0, Level.MEDIUM: 1, Level.HIGH: 2}


@dataclass
class PredictiveConfig:
    """Configuration for fatigue and form-breakdown prediction."""
    min_motion_samples: int = 20
    min_reps: int = 3
    trend_reps: int = 5  # Reps used for the baseline average
    recent_reps: int = 3  # Reps compared against the baseline
    slowdown_factor: float = 1.2  # 20% slower counts as slowing down
    good_form_fraction: float = 0.6
    variability_samples: int = 30
    variability_threshold: float = 1000.0
    milestone_every: int = 5


def _escalate(current: Level, proposed: Level) -> Level:
    return proposed if _LEVEL_ORDER[proposed] > _LEVEL_ORDER[current] else current


class PredictiveAnalyzer:
    """
    PredictiveAnalyzer turns rep history trends into coaching suggestions.

    Responsibilities:
    - Rep speed trend (fatigue)
    - Form quality trend (risk of mistakes)
    - Movement variability (instability)
    - Rep milestones (encouragement)
    """

    def __init__(self, config: Optional[PredictiveConfig] = None):
        self.config = config or PredictiveConfig()

    def movement_variance(self, motion_samples: Sequence[MotionSample]) -> float:
        """Population variance of center of mass height over the recent samples."""
        frame = pd.DataFrame({'center_y': [sample.center_y for sample in motion_samples]})
        recent = frame['center_y'].dropna().tail(self.config.variability_samples)
        if recent.empty:
            return 0.0
        return float(recent.var(ddof=0))

    def analyze_and_predict(self, motion_samples: Sequence[MotionSample],
                            reps: Sequence[RepRecord],
                            rep_count: Optional[int] = None) -> Optional[Prediction]:
        """
        Predict fatigue and form breakdown from the current session history.

        Args:
            motion_samples: Motion window, oldest first
            reps: Rep history, oldest first
            rep_count: Reps completed this session (defaults to len(reps))

        Returns:
            Prediction, or None when there is not enough evidence or
            nothing worth saying
        """
        motion_samples = list(motion_samples)
        reps = list(reps)
        config = self.config

        if len(motion_samples) < config.min_motion_samples or len(reps) < config.min_reps:
            return None

        trend = reps[-config.trend_reps:]
        durations = pd.Series([rep.duration_ms for rep in trend], dtype=float)
        avg_duration = durations.mean()
        recent_avg = durations.tail(config.recent_reps).mean()
        speed_increase = bool(recent_avg > avg_duration * config.slowdown_factor)

        good_fraction = sum(1 for rep in trend if rep.form_quality == 'good') / len(trend)
        form_declining = good_fraction < config.good_form_fraction

        variance = self.movement_variance(motion_samples)
        high_variability = variance > config.variability_threshold

        prediction = Prediction()

        if speed_increase:
            prediction.fatigue_level = _escalate(prediction.fatigue_level, Level.MEDIUM)
            prediction.suggestions.append(Suggestion(
                type='fatigue',
                message="You're slowing down. Consider taking a short break soon.",
                priority=Level.MEDIUM,
            ))

        if speed_increase and form_declining:
            prediction.fatigue_level = _escalate(prediction.fatigue_level, Level.HIGH)
            prediction.suggestions.append(Suggestion(
                type='fatigue',
                message="Take a short break to avoid fatigue and maintain good form.",
                priority=Level.HIGH,
            ))

        if form_declining and not speed_increase:
            prediction.risk_of_mistake = _escalate(prediction.risk_of_mistake, Level.MEDIUM)
            prediction.suggestions.append(Suggestion(
                type='form',
                message="Focus on maintaining your form. Slow down if needed.",
                priority=Level.MEDIUM,
            ))

        if high_variability and form_declining:
            prediction.risk_of_mistake = _escalate(prediction.risk_of_mistake, Level.HIGH)
            prediction.suggestions.append(Suggestion(
                type='form',
                message="Your posture may weaken after the next rep. Slow down and focus on form.",
                priority=Level.HIGH,
            ))

        if rep_count is None:
            rep_count = len(reps)
        if rep_count > 0 and rep_count % config.milestone_every == 0:
            prediction.suggestions.append(Suggestion(
                type='encouragement',
                message=f"Great work! You've completed {rep_count} reps. Keep it up!",
                priority=Level.LOW,
            ))

        logger.debug(f"Prediction: speed_increase={speed_increase}, form_declining={form_declining}, "
                     f"variance={variance:.1f}, suggestions={len(prediction.suggestions)}")

        return prediction if prediction.suggestions else None
