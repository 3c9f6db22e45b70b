# tests/test_heatmap_service.py
"""Unit tests for the heatmap aggregator."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import random
import pytest
from crowdvision.domain import Zone
from crowdvision.services.heatmap_service import HeatmapAggregator


def make_zones():
    return [
        Zone(id="north-gate", name="North Gate", cells=tuple((x, 0) for x in range(10))),
        Zone(id="plaza", name="Central Plaza", cells=((4, 4), (5, 4), (4, 5), (5, 5))),
    ]


def intensity_at(cells, x, y):
    return next(c.intensity for c in cells if c.x == x and c.y == y)


class TestSnapshot:
    def test_full_grid_before_any_update(self):
        cells = HeatmapAggregator(make_zones()).snapshot()
        assert len(cells) == 100
        assert all(c.intensity == 0 for c in cells)

    def test_no_duplicate_cells(self):
        cells = HeatmapAggregator(make_zones()).snapshot()
        assert len({(c.x, c.y) for c in cells}) == 100

    def test_grid_invariants_under_random_updates(self):
        agg = HeatmapAggregator(make_zones(), rolling_window=5)
        rng = random.Random(7)
        for _ in range(200):
            agg.update(rng.choice(["north-gate", "plaza"]), rng.randint(0, 500))
            cells = agg.snapshot()
            assert len(cells) == 100
            assert all(0.0 <= c.intensity <= 1.0 for c in cells)


class TestUpdate:
    def test_first_update_saturates_zone(self):
        agg = HeatmapAggregator(make_zones())
        agg.update("plaza", 40)
        cells = agg.snapshot()
        assert intensity_at(cells, 4, 4) == 1.0
        assert intensity_at(cells, 0, 0) == 0.0   # other zone untouched

    def test_normalised_against_rolling_max(self):
        agg = HeatmapAggregator(make_zones())
        agg.update("plaza", 80)
        agg.update("plaza", 20)
        assert intensity_at(agg.snapshot(), 5, 5) == pytest.approx(0.25)

    def test_rolling_max_forgets_old_peaks(self):
        agg = HeatmapAggregator(make_zones(), rolling_window=2)
        agg.update("plaza", 100)
        agg.update("plaza", 10)
        agg.update("plaza", 10)
        assert agg.rolling_max("plaza") == 10
        assert intensity_at(agg.snapshot(), 4, 5) == 1.0

    def test_zero_count_is_zero_intensity(self):
        agg = HeatmapAggregator(make_zones())
        agg.update("north-gate", 0)
        assert intensity_at(agg.snapshot(), 3, 0) == 0.0

    def test_unknown_zone_ignored(self):
        agg = HeatmapAggregator(make_zones())
        agg.update("no-such-zone", 50)
        assert all(c.intensity == 0 for c in agg.snapshot())

    def test_malformed_count_ignored(self):
        agg = HeatmapAggregator(make_zones())
        agg.update("plaza", -5)
        agg.update("plaza", "lots")
        assert agg.rolling_max("plaza") == 0

    def test_cells_outside_grid_are_clipped(self):
        agg = HeatmapAggregator([Zone(id="edge", name="Edge", cells=((9, 9), (10, 10)))])
        agg.update("edge", 5)
        cells = agg.snapshot()
        assert len(cells) == 100
        assert intensity_at(cells, 9, 9) == 1.0
