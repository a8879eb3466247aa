import numpy as np
from typing import Iterable, Optional

from .types import Keypoint

# Keypoints at or below this score are ignored
MIN_KEYPOINT_SCORE = 0.3

# Segments shorter than this have no usable direction
MIN_SEGMENT_LENGTH = 1e-6


def angle_between(a: Keypoint, b: Keypoint, c: Keypoint) -> float:
    """
    Calculate the angle at vertex b formed by the rays b->a and b->c.

    Uses atan2(|cross|, dot), which stays accurate for near-collinear points
    and is exactly symmetric in a and c.

    Args:
        a: First point
        b: Vertex point
        c: Third point

    Returns:
        Angle in degrees in [0, 180]. If either segment is shorter than
        MIN_SEGMENT_LENGTH the joint is reported as straight (180.0).
    """
    ba = np.array([a.x - b.x, a.y - b.y], dtype=float)
    bc = np.array([c.x - b.x, c.y - b.y], dtype=float)

    if np.linalg.norm(ba) < MIN_SEGMENT_LENGTH or np.linalg.norm(bc) < MIN_SEGMENT_LENGTH:
        return 180.0

    cross = ba[0] * bc[1] - ba[1] * bc[0]
    dot = float(np.dot(ba, bc))

    return float(np.degrees(np.abs(np.arctan2(cross, dot))))


def distance(a: Keypoint, b: Keypoint) -> float:
    """Euclidean distance between two keypoints."""
    return float(np.hypot(a.x - b.x, a.y - b.y))


def safe_ratio(numerator: float, denominator: float) -> float:
    """Divide, substituting 1 for a zero denominator."""
    return numerator / (denominator or 1)


def select_keypoint(frame: Iterable[Optional[Keypoint]], name: str,
                    min_score: float = MIN_KEYPOINT_SCORE) -> Optional[Keypoint]:
    """
    Find the first confident keypoint whose name contains `name`.

    Args:
        frame: Keypoints in the order the pose source produced them
        name: Canonical joint name, e.g. 'left_hip' or 'shoulder'
        min_score: Scores must be strictly above this value

    Returns:
        The first matching keypoint, or None
    """
    if not frame:
        return None

    needle = name.lower()
    for keypoint in frame:
        if keypoint is None or not keypoint.name:
            continue
        if needle in keypoint.name.lower() and keypoint.score > min_score:
            return keypoint
    return None


def prefer_side(left: Optional[Keypoint], right: Optional[Keypoint]) -> Optional[Keypoint]:
    """Fixed tie-break: use the left side, fall back to the right."""
    return left if left is not None else right


def resolve_joint(frame: Iterable[Optional[Keypoint]], joint: str,
                  min_score: float = MIN_KEYPOINT_SCORE) -> Optional[Keypoint]:
    """Resolve a bilateral joint ('hip', 'knee', ...) using prefer_side."""
    return prefer_side(
        select_keypoint(frame, f"left_{joint}", min_score),
        select_keypoint(frame, f"right_{joint}", min_score),
    )
