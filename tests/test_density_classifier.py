# tests/test_density_classifier.py
"""Unit tests for the density classifier."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
from crowdvision.domain import DensityLevel
from crowdvision.errors import InvalidInputError
from crowdvision.services.density_classifier import DensityThresholds, classify, classify_raw

T = DensityThresholds(medium=50, high=100, critical_ceiling=110)


class TestClassify:
    @pytest.mark.parametrize("count,expected", [
        (0, DensityLevel.LOW),
        (50, DensityLevel.LOW),
        (51, DensityLevel.MEDIUM),
        (100, DensityLevel.MEDIUM),
        (101, DensityLevel.HIGH),
        (110, DensityLevel.HIGH),
        (111, DensityLevel.CRITICAL),
        (120, DensityLevel.CRITICAL),
    ])
    def test_boundaries(self, count, expected):
        assert classify(count, T) is expected

    def test_monotonic_in_count(self):
        levels = [classify(c, T) for c in range(0, 300)]
        assert all(a <= b for a, b in zip(levels, levels[1:]))

    def test_raw_classification_never_critical(self):
        assert classify_raw(500, T) is DensityLevel.HIGH
        assert classify_raw(75, T) is DensityLevel.MEDIUM

    def test_uses_configured_thresholds_by_default(self):
        # defaults: 50 / 100 / 110
        assert classify(120) is DensityLevel.CRITICAL
        assert classify(30) is DensityLevel.LOW

    def test_custom_thresholds(self):
        t = DensityThresholds(medium=5, high=10, critical_ceiling=20)
        assert classify(6, t) is DensityLevel.MEDIUM
        assert classify(21, t) is DensityLevel.CRITICAL


class TestInvalidInput:
    @pytest.mark.parametrize("bad", [-1, -100, 1.5, "10", None, True])
    def test_rejects_malformed_counts(self, bad):
        with pytest.raises(InvalidInputError):
            classify(bad, T)

    def test_rejects_unordered_thresholds(self):
        with pytest.raises(InvalidInputError):
            DensityThresholds(medium=100, high=50, critical_ceiling=200)


class TestDensityOrdering:
    def test_levels_totally_ordered(self):
        assert DensityLevel.LOW < DensityLevel.MEDIUM < DensityLevel.HIGH < DensityLevel.CRITICAL

    def test_max_picks_worst(self):
        assert max([DensityLevel.MEDIUM, DensityLevel.CRITICAL, DensityLevel.LOW]) is DensityLevel.CRITICAL
