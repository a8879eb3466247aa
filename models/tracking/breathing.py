import logging
import numpy as np
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from .types import BreathingConsistency, BreathingRate, BreathingSample, BreathingState, Level

logger = logging.getLogger(__name__)


@dataclass
class BreathingConfig:
    """Configuration for breathing analysis."""
    min_samples: int = 30
    flat_std: float = 5.0  # Below this the chest is not moving enough to trust
    noisy_std: float = 50.0  # Above this the signal is mostly pose jitter
    medium_std: float = 20.0
    slow_rate: float = 10.0  # Cycles per minute
    fast_rate: float = 25.0
    erratic_cv: float = 0.3  # Coefficient of variation of cycle durations


def classify_confidence(std_dev: float, config: Optional[BreathingConfig] = None) -> Level:
    """Signal confidence from the standard deviation of chest height."""
    config = config or BreathingConfig()
    if std_dev < config.flat_std:
        return Level.LOW
    if std_dev > config.noisy_std:
        return Level.LOW
    if std_dev > config.medium_std:
        return Level.MEDIUM
    return Level.HIGH


def classify_rate(cycles_per_minute: float, config: Optional[BreathingConfig] = None) -> BreathingRate:
    config = config or BreathingConfig()
    if cycles_per_minute < config.slow_rate:
        return BreathingRate.SLOW
    if cycles_per_minute > config.fast_rate:
        return BreathingRate.FAST
    return BreathingRate.NORMAL


def classify_consistency(coefficient_of_variation: float,
                         config: Optional[BreathingConfig] = None) -> BreathingConsistency:
    config = config or BreathingConfig()
    if coefficient_of_variation > config.erratic_cv:
        return BreathingConsistency.ERRATIC
    return BreathingConsistency.STEADY


def find_extrema(values: Sequence[float]) -> Tuple[List[int], List[int]]:
    """
    Find strict local maxima and minima.

    Only interior points qualify; plateaus produce neither.

    Returns:
        Tuple of (peak indices, valley indices)
    """
    series = np.asarray(values, dtype=float)
    if len(series) < 3:
        return [], []

    middle = series[1:-1]
    left = series[:-2]
    right = series[2:]

    peaks = np.where((middle > left) & (middle > right))[0] + 1
    valleys = np.where((middle < left) & (middle < right))[0] + 1
    return peaks.tolist(), valleys.tolist()


class BreathingAnalyzer:
    """
    Extracts breathing rate, consistency and signal confidence from the
    vertical movement of the chest.

    Results are used only to adapt coaching tone and timing. Each analysis
    updates `state` in place; fields that cannot be recomputed from the
    current window keep their previous values.
    """

    def __init__(self, config: Optional[BreathingConfig] = None):
        self.config = config or BreathingConfig()
        self.state = BreathingState()

    def reset(self) -> None:
        self.state = BreathingState()

    def analyze(self, samples: Sequence[BreathingSample]) -> BreathingState:
        """
        Analyze the breathing window.

        Args:
            samples: Breathing samples, oldest first

        Returns:
            The updated breathing state
        """
        samples = list(samples)
        if len(samples) < self.config.min_samples:
            self.state.confidence = Level.LOW
            return self.state

        chest = np.array([sample.chest_y for sample in samples], dtype=float)

        # Population standard deviation
        std_dev = float(np.std(chest))
        self.state.confidence = classify_confidence(std_dev, self.config)

        peaks, valleys = find_extrema(chest)
        if len(peaks) < 2 or len(valleys) < 2:
            logger.debug(f"Breathing: {len(peaks)} peaks / {len(valleys)} valleys, "
                         f"keeping previous rate")
            return self.state

        span_ms = samples[-1].timestamp - samples[0].timestamp
        cycles = min(len(peaks), len(valleys))
        cycles_per_minute = cycles / (span_ms or 1) * 60000
        self.state.rate = classify_rate(cycles_per_minute, self.config)

        peak_times = np.array([samples[i].timestamp for i in peaks], dtype=float)
        cycle_durations = np.diff(peak_times)
        if len(cycle_durations) >= 2:
            mean_duration = float(np.mean(cycle_durations))
            cv = float(np.std(cycle_durations)) / (mean_duration or 1)
            self.state.consistency = classify_consistency(cv, self.config)

        logger.debug(f"Breathing: {cycles_per_minute:.1f} cycles/min ({self.state.rate.value}), "
                     f"{self.state.consistency.value}, confidence {self.state.confidence.value}")
        return self.state
