import logging
from dataclasses import dataclass, replace
from typing import Any, Dict, Optional, Sequence

from .breathing import BreathingAnalyzer
from .form_classifiers import classify_form
from .geometry import MIN_KEYPOINT_SCORE
from .predictive import PredictiveAnalyzer
from .rep_detector import MAX_REP_HISTORY, RepDetector, RepHistory
from .sample_buffer import TimeWindowBuffer, motion_sample_from_frame
from .scheduler import PeriodicTask, now_ms
from .types import BreathingSample, BreathingState, Exercise, FormResult, Keypoint, MotionSample, Prediction

logger = logging.getLogger(__name__)


@dataclass
class TrackingConfig:
    """Configuration for a tracking session (times in milliseconds)."""
    motion_window_ms: float = 3000
    breathing_window_ms: float = 10000
    breathing_interval_ms: float = 3000
    prediction_interval_ms: float = 5000
    min_keypoint_score: float = MIN_KEYPOINT_SCORE
    max_rep_history: int = MAX_REP_HISTORY

    @classmethod
    def from_settings(cls, settings) -> "TrackingConfig":
        return cls(
            motion_window_ms=settings.MOTION_WINDOW_MS,
            breathing_window_ms=settings.BREATHING_WINDOW_MS,
            breathing_interval_ms=settings.BREATHING_INTERVAL_MS,
            prediction_interval_ms=settings.PREDICTION_INTERVAL_MS,
            min_keypoint_score=settings.MIN_KEYPOINT_SCORE,
            max_rep_history=settings.MAX_REP_HISTORY,
        )


class TrackingSession:
    """
    TrackingSession owns all state of one active tracking session.

    This class orchestrates the per-frame flow:
    1. Derive a MotionSample from the frame
    2. Feed the breathing window (always) and motion window (exercise selected)
    3. Classify form for the selected exercise
    4. Update the rep detector
    5. Run breathing analysis when its interval has elapsed

    Predictions are pulled separately through `get_predictions`, which
    evaluates at most once per prediction interval.

    A session is single-threaded: callers in a multi-threaded host must
    serialize access to one session.
    """

    def __init__(self, exercise=None, config: Optional[TrackingConfig] = None):
        """
        Initialize the tracking session.

        Args:
            exercise: Exercise or exercise name; None/unknown disables rep tracking
            config: Configuration for the session
        """
        self.config = config or TrackingConfig()
        self.exercise: Optional[Exercise] = Exercise.parse(exercise)
        self.is_active = True

        self.motion_buffer: TimeWindowBuffer[MotionSample] = TimeWindowBuffer(self.config.motion_window_ms)
        self.breathing_buffer: TimeWindowBuffer[BreathingSample] = TimeWindowBuffer(self.config.breathing_window_ms)
        self.rep_history = RepHistory(self.config.max_rep_history)
        self.rep_detector = RepDetector(self.exercise, self.rep_history, self.config.min_keypoint_score)
        self.breathing_analyzer = BreathingAnalyzer()
        self.predictive_analyzer = PredictiveAnalyzer()

        self.breathing_task = PeriodicTask(self.config.breathing_interval_ms)
        self.prediction_task = PeriodicTask(self.config.prediction_interval_ms, run_immediately=True)

        self.last_form: FormResult = FormResult.neutral()
        self.prediction: Optional[Prediction] = None

    @property
    def rep_count(self) -> int:
        return self.rep_detector.rep_count

    @property
    def last_rep_timestamp(self) -> Optional[float]:
        return self.rep_detector.last_rep_timestamp

    @property
    def breathing(self) -> BreathingState:
        return self.breathing_analyzer.state

    def reset(self) -> None:
        """Clear all buffers, timers and cached outputs."""
        self.motion_buffer.clear()
        self.breathing_buffer.clear()
        self.rep_detector.reset()
        self.breathing_analyzer.reset()
        self.breathing_task.reset()
        self.prediction_task.reset()
        self.last_form = FormResult.neutral()
        self.prediction = None

    def set_active(self, active: bool) -> None:
        if not active:
            self.reset()
        if active != self.is_active:
            logger.info(f"Tracking {'activated' if active else 'deactivated'}")
        self.is_active = active

    def set_exercise(self, exercise) -> None:
        """Select a new exercise; changing it starts from empty history."""
        parsed = Exercise.parse(exercise)
        if parsed == self.exercise:
            return
        logger.info(f"Exercise changed from {self._exercise_name(self.exercise)} "
                    f"to {self._exercise_name(parsed)}")
        self.exercise = parsed
        self.rep_detector.exercise = parsed
        self.reset()

    def process_frame(self, frame: Optional[Sequence[Optional[Keypoint]]],
                      now: Optional[float] = None) -> FormResult:
        """
        Process one frame of keypoints.

        Args:
            frame: Keypoints of the frame
            now: Frame time in milliseconds (defaults to the wall clock)

        Returns:
            The frame's FormResult (neutral when inactive or nothing is selected)
        """
        if not self.is_active or not frame:
            return FormResult.neutral()

        now = now_ms() if now is None else now
        frame = list(frame)

        form = classify_form(self.exercise, frame, self.config.min_keypoint_score)
        self.last_form = form

        sample = motion_sample_from_frame(frame, now, self.config.min_keypoint_score)
        if sample is not None:
            self.track_movement(sample)
            if self.exercise is not None:
                self.rep_detector.update(list(self.motion_buffer), sample, form, frame)

        self.tick(now)
        return form

    def track_movement(self, sample: MotionSample) -> None:
        """Feed the breathing window and, with an exercise selected, the motion window."""
        if sample.chest_y is not None:
            self.breathing_buffer.append(BreathingSample(timestamp=sample.timestamp, chest_y=sample.chest_y))
        if self.exercise is not None:
            self.motion_buffer.append(sample)

    def tick(self, now: Optional[float] = None) -> None:
        """Run periodic work that is due at `now`."""
        if not self.is_active:
            return
        now = now_ms() if now is None else now
        if self.breathing_task.is_due(now):
            self.breathing_task.mark_run(now)
            self.analyze_breathing()

    def analyze_breathing(self) -> BreathingState:
        return self.breathing_analyzer.analyze(list(self.breathing_buffer))

    def get_predictions(self, now: Optional[float] = None) -> Optional[Prediction]:
        """
        Return the current prediction, recomputing it once per interval.

        Calls inside the interval return the cached prediction. Each
        evaluation replaces the cache entirely, including with None.
        """
        if not self.is_active or self.exercise is None:
            return None

        now = now_ms() if now is None else now
        if not self.prediction_task.is_due(now):
            return self.prediction

        self.prediction_task.mark_run(now)
        self.prediction = self.predictive_analyzer.analyze_and_predict(
            list(self.motion_buffer), list(self.rep_history), self.rep_count
        )
        if self.prediction is not None:
            logger.debug(f"Prediction updated: fatigue={self.prediction.fatigue_level.value}, "
                         f"risk={self.prediction.risk_of_mistake.value}")
        return self.prediction

    def snapshot(self) -> Dict[str, Any]:
        """Read-only view of the session outputs."""
        return {
            'is_active': self.is_active,
            'exercise': self.exercise.value if self.exercise else None,
            'form': self.last_form,
            'rep_count': self.rep_count,
            'recent_reps': list(self.rep_history),
            'breathing': replace(self.breathing),
            'prediction': self.prediction,
            'motion_samples': len(self.motion_buffer),
            'breathing_samples': len(self.breathing_buffer),
        }

    @staticmethod
    def _exercise_name(exercise: Optional[Exercise]) -> str:
        return exercise.value if exercise else "none"
