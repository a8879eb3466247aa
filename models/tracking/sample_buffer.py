import pandas as pd
from collections import deque
from dataclasses import asdict
from typing import Deque, Generic, Iterator, List, Optional, Sequence, TypeVar

from .geometry import MIN_KEYPOINT_SCORE, prefer_side, select_keypoint
from .types import Keypoint, MotionSample

T = TypeVar('T')

# Chest sits roughly this far below the nose when only the face is visible
NOSE_TO_CHEST_OFFSET = 50.0


class TimeWindowBuffer(Generic[T]):
    """
    Append-only history of timestamped samples bounded by a time window.

    Every insert appends the sample and then evicts everything that is at
    least `window_ms` older than it. Samples are never deduplicated or
    compacted otherwise.
    """

    def __init__(self, window_ms: float):
        self.window_ms = window_ms
        self._samples: Deque[T] = deque()

    def append(self, sample: T) -> None:
        self._samples.append(sample)
        cutoff = sample.timestamp - self.window_ms
        while self._samples and self._samples[0].timestamp <= cutoff:
            self._samples.popleft()

    def tail(self, n: int) -> List[T]:
        """Return the newest n samples, oldest first."""
        if n <= 0:
            return []
        return list(self._samples)[-n:]

    @property
    def latest(self) -> Optional[T]:
        return self._samples[-1] if self._samples else None

    def clear(self) -> None:
        self._samples.clear()

    def to_frame(self) -> pd.DataFrame:
        """Samples as a DataFrame, one row per sample."""
        return pd.DataFrame([asdict(sample) for sample in self._samples])

    def __len__(self) -> int:
        return len(self._samples)

    def __iter__(self) -> Iterator[T]:
        return iter(self._samples)


def motion_sample_from_frame(frame: Sequence[Optional[Keypoint]], timestamp: float,
                             min_score: float = MIN_KEYPOINT_SCORE) -> Optional[MotionSample]:
    """
    Derive the per-frame scalar positions used by rep and breathing tracking.

    Works with only the face or shoulders visible (breathing), and adds the
    lower-body positions when hips are visible (reps).

    Args:
        frame: Keypoints of one frame
        timestamp: Frame time in milliseconds
        min_score: Minimum keypoint confidence

    Returns:
        MotionSample, or None if neither upper nor lower body is visible
    """
    if not frame:
        return None

    def find(name):
        return select_keypoint(frame, name, min_score)

    left_hip, right_hip = find('left_hip'), find('right_hip')
    left_knee, right_knee = find('left_knee'), find('right_knee')
    left_shoulder, right_shoulder = find('left_shoulder'), find('right_shoulder')
    nose = find('nose')

    has_upper_body = left_shoulder is not None or right_shoulder is not None or nose is not None
    has_lower_body = left_hip is not None or right_hip is not None

    if not has_upper_body and not has_lower_body:
        return None

    if left_shoulder is not None and right_shoulder is not None:
        chest_y = (left_shoulder.y + right_shoulder.y) / 2
    elif left_shoulder is not None or right_shoulder is not None:
        chest_y = prefer_side(left_shoulder, right_shoulder).y
    elif nose is not None:
        chest_y = nose.y + NOSE_TO_CHEST_OFFSET
    else:
        chest_y = None

    hip = prefer_side(left_hip, right_hip)
    knee = prefer_side(left_knee, right_knee)
    shoulder = prefer_side(left_shoulder, right_shoulder)

    if has_lower_body:
        # Rough center of mass from hip, knee and shoulder heights
        knee_y = knee.y if knee is not None else hip.y
        shoulder_y = shoulder.y if shoulder is not None else hip.y
        center_y = (hip.y + knee_y + shoulder_y) / 3
    else:
        center_y = chest_y

    return MotionSample(
        timestamp=timestamp,
        hip_y=hip.y if hip is not None else None,
        knee_y=knee.y if knee is not None else None,
        shoulder_y=shoulder.y if shoulder is not None else None,
        chest_y=chest_y,
        center_y=center_y,
        has_full_body=has_lower_body and has_upper_body,
    )
