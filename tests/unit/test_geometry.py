import pytest
import numpy as np
from models.tracking.geometry import (
    angle_between, distance, safe_ratio, select_keypoint, prefer_side, resolve_joint
)
from models.tracking.types import Keypoint

def kp(name, x, y, score=0.9):
    return Keypoint(name=name, x=x, y=y, score=score)

class TestAngleBetween:

    def test_right_angle(self):
        """Test with 90 degree angle."""
        angle = angle_between(kp('a', 1, 0), kp('b', 0, 0), kp('c', 0, 1))
        assert np.isclose(angle, 90.0)

    def test_collinear_is_exactly_180(self):
        """Collinear points with the vertex in the middle give exactly 180."""
        assert angle_between(kp('a', -1, 0), kp('b', 0, 0), kp('c', 1, 0)) == 180.0
        assert angle_between(kp('a', 0, 0), kp('b', 1, 1), kp('c', 3, 3)) == 180.0
        assert angle_between(kp('a', 10, 5), kp('b', 10, 50), kp('c', 10, 400)) == 180.0

    def test_symmetric_in_outer_points(self):
        """Swapping the outer points never changes the angle."""
        rng = np.random.default_rng(7)
        for _ in range(50):
            a, b, c = (kp(n, *rng.uniform(-500, 500, size=2)) for n in 'abc')
            assert angle_between(a, b, c) == angle_between(c, b, a)

    def test_range(self):
        rng = np.random.default_rng(11)
        for _ in range(50):
            a, b, c = (kp(n, *rng.uniform(-10, 10, size=2)) for n in 'abc')
            assert 0.0 <= angle_between(a, b, c) <= 180.0

    def test_same_direction_is_zero(self):
        assert np.isclose(angle_between(kp('a', 2, 0), kp('b', 0, 0), kp('c', 5, 0)), 0.0)

    def test_zero_length_segment_reported_straight(self):
        """Degenerate segments are reported as 180 instead of dividing by zero."""
        assert angle_between(kp('a', 3, 3), kp('b', 3, 3), kp('c', 10, 0)) == 180.0
        assert angle_between(kp('a', 0, 0), kp('b', 5, 5), kp('c', 5, 5)) == 180.0

class TestHelpers:

    def test_distance(self):
        assert np.isclose(distance(kp('a', 0, 0), kp('b', 3, 4)), 5.0)

    def test_safe_ratio_substitutes_one(self):
        assert safe_ratio(5.0, 0.0) == 5.0
        assert safe_ratio(6.0, 3.0) == 2.0

class TestSelectKeypoint:

    def setup_method(self):
        self.frame = [
            kp('nose', 100, 50),
            kp('LEFT_SHOULDER', 80, 120),
            kp('right_shoulder', 120, 118),
            kp('left_hip', 85, 250, score=0.2),
            kp('right_hip', 115, 252, score=0.8),
        ]

    def test_case_insensitive_substring(self):
        assert select_keypoint(self.frame, 'left_shoulder').x == 80
        assert select_keypoint(self.frame, 'Nose').y == 50

    def test_first_match_wins(self):
        """A generic name matches the first confident keypoint in input order."""
        assert select_keypoint(self.frame, 'shoulder').name == 'LEFT_SHOULDER'

    def test_low_confidence_ignored(self):
        assert select_keypoint(self.frame, 'left_hip') is None
        assert select_keypoint(self.frame, 'hip').name == 'right_hip'

    def test_threshold_is_exclusive(self):
        frame = [kp('left_knee', 0, 0, score=0.3)]
        assert select_keypoint(frame, 'left_knee') is None
        frame = [kp('left_knee', 0, 0, score=0.31)]
        assert select_keypoint(frame, 'left_knee') is not None

    def test_skips_empty_entries(self):
        frame = [None, Keypoint(name='', x=0, y=0, score=1.0), kp('left_knee', 1, 2)]
        assert select_keypoint(frame, 'left_knee').x == 1

    def test_empty_frame(self):
        assert select_keypoint([], 'nose') is None
        assert select_keypoint(None, 'nose') is None

class TestPreferSide:

    def test_prefers_left(self):
        left, right = kp('left_knee', 1, 1), kp('right_knee', 2, 2)
        assert prefer_side(left, right) is left

    def test_falls_back_to_right(self):
        right = kp('right_knee', 2, 2)
        assert prefer_side(None, right) is right
        assert prefer_side(None, None) is None

    def test_resolve_joint(self):
        frame = [kp('right_knee', 2, 2), kp('left_knee', 1, 1)]
        assert resolve_joint(frame, 'knee').name == 'left_knee'
        frame = [kp('right_knee', 2, 2), kp('left_knee', 1, 1, score=0.1)]
        assert resolve_joint(frame, 'knee').name == 'right_knee'
