import pytest
import numpy as np
from models.tracking.breathing import (
    BreathingAnalyzer, classify_confidence, classify_consistency, classify_rate, find_extrema
)
from models.tracking.types import (
    BreathingConsistency, BreathingRate, BreathingSample, Level
)

def sine_samples(period_s, duration_s=10.0, amplitude=10.0, step_ms=100, phase=0.3):
    count = int(duration_s * 1000 / step_ms)
    return [
        BreathingSample(
            timestamp=i * step_ms,
            chest_y=300 + amplitude * np.sin(2 * np.pi * (i * step_ms / 1000) / period_s + phase),
        )
        for i in range(count)
    ]

def zigzag_samples(segments, amplitude=20.0, step_ms=100):
    """Triangle wave built from (rise, fall) lengths in samples."""
    values = []
    for rise, fall in segments:
        values.extend(amplitude * i / rise for i in range(rise))
        values.extend(amplitude - amplitude * i / fall for i in range(fall))
    values.append(0.0)
    return [BreathingSample(timestamp=i * step_ms, chest_y=v) for i, v in enumerate(values)]

class TestClassifiers:

    def test_confidence_bands(self):
        assert classify_confidence(4) == Level.LOW
        assert classify_confidence(6) == Level.HIGH
        assert classify_confidence(20) == Level.HIGH
        assert classify_confidence(25) == Level.MEDIUM
        assert classify_confidence(50) == Level.MEDIUM
        assert classify_confidence(60) == Level.LOW

    def test_rate_bands(self):
        assert classify_rate(9) == BreathingRate.SLOW
        assert classify_rate(10) == BreathingRate.NORMAL
        assert classify_rate(25) == BreathingRate.NORMAL
        assert classify_rate(26) == BreathingRate.FAST

    def test_consistency(self):
        assert classify_consistency(0.3) == BreathingConsistency.STEADY
        assert classify_consistency(0.31) == BreathingConsistency.ERRATIC

class TestFindExtrema:

    def test_strict_extrema(self):
        peaks, valleys = find_extrema([0, 2, 1, 3, 0, 1])
        assert peaks == [1, 3]
        assert valleys == [2, 4]

    def test_plateaus_and_ends_are_not_extrema(self):
        assert find_extrema([5, 1, 1, 5, 5, 0]) == ([], [])
        assert find_extrema([1, 2]) == ([], [])

class TestBreathingAnalyzer:

    def setup_method(self):
        self.analyzer = BreathingAnalyzer()

    def test_defaults(self):
        state = self.analyzer.state
        assert state.rate == BreathingRate.NORMAL
        assert state.consistency == BreathingConsistency.STEADY
        assert state.confidence == Level.MEDIUM

    def test_too_few_samples(self):
        state = self.analyzer.analyze(sine_samples(2.0)[:29])
        assert state.confidence == Level.LOW
        assert state.rate == BreathingRate.NORMAL

    def test_fast_steady_breathing(self):
        state = self.analyzer.analyze(sine_samples(2.0))
        assert state.rate == BreathingRate.FAST
        assert state.consistency == BreathingConsistency.STEADY
        assert state.confidence == Level.HIGH

    def test_normal_breathing(self):
        state = self.analyzer.analyze(sine_samples(4.0))
        assert state.rate == BreathingRate.NORMAL
        assert state.consistency == BreathingConsistency.STEADY

    def test_slow_breathing(self):
        state = self.analyzer.analyze(sine_samples(8.0, duration_s=20.0))
        assert state.rate == BreathingRate.SLOW

    def test_erratic_breathing(self):
        samples = zigzag_samples([(3, 3), (3, 3), (15, 15), (3, 3), (15, 15)])
        state = self.analyzer.analyze(samples)
        assert state.consistency == BreathingConsistency.ERRATIC

    def test_flat_signal_keeps_previous_rate(self):
        self.analyzer.analyze(sine_samples(2.0))
        flat = [BreathingSample(timestamp=i * 100, chest_y=300.0) for i in range(40)]
        state = self.analyzer.analyze(flat)
        assert state.confidence == Level.LOW
        assert state.rate == BreathingRate.FAST

    def test_noisy_signal(self):
        state = self.analyzer.analyze(sine_samples(4.0, amplitude=100.0))
        assert state.confidence == Level.LOW

    def test_reset(self):
        self.analyzer.analyze(sine_samples(2.0))
        self.analyzer.reset()
        assert self.analyzer.state.rate == BreathingRate.NORMAL
        assert self.analyzer.state.confidence == Level.MEDIUM
