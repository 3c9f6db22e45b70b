# crowdvision/services/heatmap_service.py
"""
Heatmap Aggregator — fixed 10×10 projection of the facility.

Each zone owns a rectangle of cells. On update, every cell of the zone gets
intensity = min(1, count / rolling_max), where rolling_max is the largest count
among the zone's most recent HEATMAP_ROLLING_WINDOW samples.
Unknown zones are logged and ignored; update() never raises.
"""

import threading
from collections import deque

from crowdvision.domain import HeatmapCell
from crowdvision.utils.logger import get_logger

logger = get_logger(__name__)

GRID_SIZE = 10


class HeatmapAggregator:
    def __init__(self, zones, rolling_window: int = 50):
        self._lock = threading.Lock()
        self._zone_cells = {}
        for zone in zones:
            cells = tuple((x, y) for x, y in zone.cells if 0 <= x < GRID_SIZE and 0 <= y < GRID_SIZE)
            if len(cells) != len(zone.cells):
                logger.warning(f"[HEATMAP] Zone {zone.id} has cells outside the {GRID_SIZE}x{GRID_SIZE} grid — clipped")
            self._zone_cells[zone.id] = cells
        self._history = {zone_id: deque(maxlen=rolling_window) for zone_id in self._zone_cells}
        self._grid = [[0.0] * GRID_SIZE for _ in range(GRID_SIZE)]

    def update(self, zone_id, count) -> None:
        cells = self._zone_cells.get(zone_id)
        if cells is None:
            logger.warning(f"[HEATMAP] Ignoring update for unmapped zone {zone_id!r}")
            return
        if isinstance(count, bool) or not isinstance(count, int) or count < 0:
            logger.warning(f"[HEATMAP] Ignoring malformed count {count!r} for zone {zone_id}")
            return

        with self._lock:
            history = self._history[zone_id]
            history.append(count)
            rolling_max = max(history)
            intensity = min(1.0, count / rolling_max) if rolling_max else 0.0
            for x, y in cells:
                self._grid[y][x] = intensity

        logger.debug(f"[HEATMAP] {zone_id}: count={count} rolling_max={rolling_max} intensity={intensity:.2f}")

    def rolling_max(self, zone_id) -> int:
        with self._lock:
            history = self._history.get(zone_id)
            return max(history) if history else 0

    def snapshot(self) -> list[HeatmapCell]:
        """All 100 cells, row-major (y, then x). Always complete."""
        with self._lock:
            return [
                HeatmapCell(x=x, y=y, intensity=self._grid[y][x])
                for y in range(GRID_SIZE)
                for x in range(GRID_SIZE)
            ]

    def reset(self) -> None:
        with self._lock:
            for history in self._history.values():
                history.clear()
            self._grid = [[0.0] * GRID_SIZE for _ in range(GRID_SIZE)]
