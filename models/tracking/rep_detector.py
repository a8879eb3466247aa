import logging
from collections import deque
from enum import Enum
from typing import Callable, Deque, Dict, List, Optional, Sequence

from .geometry import MIN_KEYPOINT_SCORE, angle_between, resolve_joint
from .types import Exercise, FormResult, Keypoint, MotionSample, RepRecord

logger = logging.getLogger(__name__)

# Minimum samples in the motion window before detection starts
MIN_HISTORY = 10
# Current position counts as "at the bottom" within this distance of the extremum
BOTTOM_TOLERANCE = 20.0
# A recent sample this much lower than the current one means we just came up
ASCENT_THRESHOLD = 30.0
RECENT_SAMPLES = 5

# Push-up elbow gates: bent at the bottom, extended at the top
ELBOW_BENT_ANGLE = 120.0
ELBOW_EXTENDED_ANGLE = 160.0

MAX_REP_HISTORY = 10


class RepPhase(str, Enum):
    """
    Two-state hysteresis machine around the bottom of the movement.

    ABOVE: away from the bottom; the current cycle was already counted
           (or none has started yet)
    BELOW: the user was seen within BOTTOM_TOLERANCE of the window extremum;
           the next confirmed ascent completes a rep
    """
    ABOVE = "above"
    BELOW = "below"


# Screen-space height each exercise is tracked by (larger y = lower on screen)
TRACKED_SCALARS: Dict[Exercise, Callable[[MotionSample], Optional[float]]] = {
    Exercise.SQUAT: lambda sample: sample.center_y,
    Exercise.PUSH_UP: lambda sample: sample.shoulder_y,
    Exercise.BARBELL_RDL: lambda sample: sample.shoulder_y,
}


class RepHistory:
    """
    Bounded FIFO of the most recent rep records.

    Only the newest `max_reps` records are kept (oldest evicted first);
    `total` keeps counting every record appended since the last clear.
    """

    def __init__(self, max_reps: int = MAX_REP_HISTORY):
        self._reps: Deque[RepRecord] = deque(maxlen=max_reps)
        self.total = 0

    def append(self, rep: RepRecord) -> None:
        self._reps.append(rep)
        self.total += 1

    def recent(self, n: int) -> List[RepRecord]:
        if n <= 0:
            return []
        return list(self._reps)[-n:]

    def clear(self) -> None:
        self._reps.clear()
        self.total = 0

    def __len__(self) -> int:
        return len(self._reps)

    def __iter__(self):
        return iter(self._reps)


class RepDetector:
    """
    RepDetector detects completed repetitions from the motion window.

    Responsibilities:
    - Locating the bottom of the movement (window extremum)
    - Hysteresis between the BELOW and ABOVE phases
    - Recording rep durations and form quality

    This class does NOT handle:
    - Form classification (consumes the frame's FormResult)
    - Sample buffering (consumes the motion window)
    """

    def __init__(self, exercise: Optional[Exercise], history: Optional[RepHistory] = None,
                 min_score: float = MIN_KEYPOINT_SCORE):
        self.exercise = Exercise.parse(exercise)
        self.history = history if history is not None else RepHistory()
        self.min_score = min_score
        self.phase = RepPhase.ABOVE
        self.last_rep_timestamp: Optional[float] = None
        self._min_elbow_angle: Optional[float] = None
        self._bottom_form: Optional[FormResult] = None

    @property
    def rep_count(self) -> int:
        return self.history.total

    def reset(self) -> None:
        self.history.clear()
        self.phase = RepPhase.ABOVE
        self.last_rep_timestamp = None
        self._min_elbow_angle = None
        self._bottom_form = None

    def update(self, window: Sequence[MotionSample], current: MotionSample,
               form: Optional[FormResult], frame: Sequence[Optional[Keypoint]] = ()) -> bool:
        """
        Feed the latest sample and report whether it completed a rep.

        Args:
            window: Motion samples in the active window (current included)
            current: The sample derived from this frame
            form: This frame's form result
            frame: This frame's keypoints (push-up elbow gate)

        Returns:
            True if a repetition was completed on this frame
        """
        scalar = TRACKED_SCALARS.get(self.exercise)
        if scalar is None or len(window) < MIN_HISTORY:
            return False

        position = scalar(current)
        if position is None:
            return False

        tracked = [scalar(sample) for sample in window if scalar(sample) is not None]
        if not tracked:
            return False
        bottom = max(tracked)

        at_bottom = abs(position - bottom) < BOTTOM_TOLERANCE
        recent = list(window)[-RECENT_SAMPLES:]
        was_lower = any(
            scalar(sample) is not None and scalar(sample) > position + ASCENT_THRESHOLD
            for sample in recent
        )

        if at_bottom:
            self.phase = RepPhase.BELOW

        extended = True
        if self.exercise == Exercise.PUSH_UP:
            elbow_angle = self._elbow_angle(frame)
            if elbow_angle is None:
                return False
            if self._min_elbow_angle is None or elbow_angle < self._min_elbow_angle:
                self._min_elbow_angle = elbow_angle
                self._bottom_form = form
            extended = (elbow_angle > ELBOW_EXTENDED_ANGLE
                        and self._min_elbow_angle < ELBOW_BENT_ANGLE)
            # Extended arms grade as an incomplete push-up, so form is judged at the deepest frame
            form = self._bottom_form

        if at_bottom or self.phase != RepPhase.BELOW or not (was_lower and extended):
            return False

        if form is not None and form.is_valid:
            self._complete_rep(current.timestamp, form)
            return True

        if self.exercise == Exercise.PUSH_UP:
            # Back at the top after a faulty bottom: the cycle is over without a rep
            logger.debug("Push-up cycle rejected, form was invalid at the bottom")
            self._end_cycle()

        return False

    def _elbow_angle(self, frame: Sequence[Optional[Keypoint]]) -> Optional[float]:
        shoulder = resolve_joint(frame, 'shoulder', self.min_score)
        elbow = resolve_joint(frame, 'elbow', self.min_score)
        wrist = resolve_joint(frame, 'wrist', self.min_score)
        if shoulder is None or elbow is None or wrist is None:
            return None
        return angle_between(shoulder, elbow, wrist)

    def _end_cycle(self) -> None:
        self.phase = RepPhase.ABOVE
        self._min_elbow_angle = None
        self._bottom_form = None

    def _complete_rep(self, now: float, form: FormResult) -> None:
        self._end_cycle()

        # The first completed cycle only starts the rep timer
        if self.last_rep_timestamp is not None:
            rep = RepRecord(
                timestamp=now,
                duration_ms=now - self.last_rep_timestamp,
                form_quality='good' if form.is_valid else 'poor',
            )
            self.history.append(rep)
            logger.debug(f"Rep {self.history.total} recorded for {self.exercise.value}: "
                         f"{rep.duration_ms:.0f} ms, {rep.form_quality} form")
        else:
            logger.debug(f"First {self.exercise.value} cycle detected, rep timer started")

        self.last_rep_timestamp = now
