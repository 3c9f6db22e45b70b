# crowdvision/services/trend_service.py
"""
Temporal Trend Store — bounded, time-ordered (observed, expected) series.

Timestamps are floored to TREND_BUCKET_SECONDS. Appending into an existing
bucket replaces that point instead of growing the window; a full window
evicts its oldest point (FIFO).
"""

import threading
from collections import deque
from datetime import datetime, timezone

from crowdvision.domain import CrowdDataPoint
from crowdvision.errors import InvalidInputError
from crowdvision.utils.logger import get_logger

logger = get_logger(__name__)


class ConstantBaseline:
    """Expected-count baseline that always returns the configured value."""

    def __init__(self, expected: int):
        self.expected = expected

    def __call__(self, timestamp: datetime) -> int:
        return self.expected


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TemporalTrendStore:
    def __init__(self, window: int = 13, bucket_seconds: int = 60, clock=_utcnow):
        if window < 1:
            raise InvalidInputError(f"Trend window must be positive, got {window}")
        self.window = window
        self.bucket_seconds = bucket_seconds
        self._clock = clock
        self._points = deque(maxlen=window)
        self._lock = threading.Lock()

    def _bucket(self, ts: datetime) -> datetime:
        # naive timestamps are treated as UTC
        if ts.tzinfo is None:
            ts = ts.replace(tzinfo=timezone.utc)
        if self.bucket_seconds <= 1:
            return ts.replace(microsecond=0)
        epoch = int(ts.timestamp())
        floored = epoch - (epoch % self.bucket_seconds)
        return datetime.fromtimestamp(floored, tz=ts.tzinfo)

    def append(self, observed: int, expected: int, timestamp: datetime = None) -> CrowdDataPoint:
        for name, value in (("observed", observed), ("expected", expected)):
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise InvalidInputError(f"Trend {name} count must be a non-negative integer, got {value!r}")

        ts = self._bucket(timestamp or self._clock())
        point = CrowdDataPoint(timestamp=ts, observed_count=observed, expected_count=expected)

        with self._lock:
            for i, existing in enumerate(self._points):
                if existing.timestamp == ts:
                    self._points[i] = point
                    return point
            if self._points and ts < self._points[-1].timestamp:
                raise InvalidInputError(
                    f"Trend sample at {ts.isoformat()} is older than the newest point "
                    f"{self._points[-1].timestamp.isoformat()}"
                )
            if len(self._points) == self.window:
                logger.debug(f"[TREND] Evicting {self._points[0].timestamp.isoformat()}")
            self._points.append(point)
        return point

    def series(self) -> list[CrowdDataPoint]:
        with self._lock:
            return list(self._points)

    def newest(self):
        """Timestamp of the newest point, or None when empty."""
        with self._lock:
            return self._points[-1].timestamp if self._points else None

    def is_rising(self) -> bool:
        """True if observed counts strictly increased over the last two points."""
        with self._lock:
            if len(self._points) < 2:
                return False
            return self._points[-1].observed_count > self._points[-2].observed_count

    def clear(self) -> None:
        with self._lock:
            self._points.clear()
