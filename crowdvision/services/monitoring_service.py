# crowdvision/services/monitoring_service.py
"""
Monitoring Orchestrator — composes the analytics components and serves
consistent snapshots to the API layer.

All live state is held by a MonitoringState created at startup, handed to the
orchestrator, and closed at shutdown. Every write path (detection ingest,
safety report, parking command, alert dismissal, refresh cycle) republishes a
MonitoringSnapshot under one lock, so overview() never mixes two cycles.
"""

import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from crowdvision.config import settings
from crowdvision.domain import DensityLevel, DetectionSample, ReportKind, SafetyReport, Zone
from crowdvision.errors import EmptyFleetError, InvalidInputError, UnknownZoneError
from crowdvision.services.alert_service import AlertEngine
from crowdvision.services.density_classifier import DensityThresholds, classify
from crowdvision.services.heatmap_service import HeatmapAggregator
from crowdvision.services.parking_service import ParkingStateManager
from crowdvision.services.prediction_service import PredictiveRiskAdapter
from crowdvision.services.trend_service import ConstantBaseline, TemporalTrendStore
from crowdvision.utils.logger import get_logger

logger = get_logger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def build_zones(zone_configs) -> list[Zone]:
    zones = []
    for z in zone_configs:
        cells = tuple((x, y) for y in range(z.y0, z.y1 + 1) for x in range(z.x0, z.x1 + 1))
        zones.append(Zone(id=z.id, name=z.name, cells=cells))
    return zones


class MonitoringState:
    """Lifecycle-scoped store that owns every live component."""

    def __init__(self, zones, thresholds: DensityThresholds, heatmap: HeatmapAggregator,
                 trend: TemporalTrendStore, parking: ParkingStateManager, alerts: AlertEngine,
                 predictor: PredictiveRiskAdapter, baseline=None):
        self.zones = list(zones)
        self.thresholds = thresholds
        self.heatmap = heatmap
        self.trend = trend
        self.parking = parking
        self.alerts = alerts
        self.predictor = predictor
        self.baseline = baseline or ConstantBaseline(settings.TREND_EXPECTED_COUNT)
        self.closed = False

    @classmethod
    def from_settings(cls, cfg=settings, parking: ParkingStateManager = None,
                      predictor: PredictiveRiskAdapter = None, clock=_utcnow) -> "MonitoringState":
        zones = build_zones(cfg.FACILITY_ZONES)
        return cls(
            zones=zones,
            thresholds=DensityThresholds.from_settings(cfg),
            heatmap=HeatmapAggregator(zones, rolling_window=cfg.HEATMAP_ROLLING_WINDOW),
            trend=TemporalTrendStore(window=cfg.TREND_WINDOW_SIZE, bucket_seconds=cfg.TREND_BUCKET_SECONDS,
                                     clock=clock),
            parking=parking or ParkingStateManager.provision(cfg.PARKING_SLOT_COUNT, cfg.PARKING_SECTOR_SIZE),
            alerts=AlertEngine(cooldown_seconds=cfg.ALERT_COOLDOWN_SECONDS,
                               parking_threshold=cfg.PARKING_ALERT_THRESHOLD, clock=clock),
            predictor=predictor or PredictiveRiskAdapter(),
            baseline=ConstantBaseline(cfg.TREND_EXPECTED_COUNT),
        )

    def close(self):
        if self.closed:
            return
        self.closed = True
        self.heatmap.reset()
        self.trend.clear()
        logger.info("[MONITOR] Monitoring state closed")


@dataclass(frozen=True)
class MonitoringSnapshot:
    current_count: int
    density: DensityLevel
    alert_count: int
    parking_occupancy: float
    zone_counts: dict = field(default_factory=dict)
    cycle: int = 0
    taken_at: Optional[datetime] = None


@dataclass(frozen=True)
class IngestResult:
    zone: Zone
    count: int
    density: DensityLevel
    alerts: tuple = ()
    sample: Optional[DetectionSample] = None


class MonitoringOrchestrator:
    def __init__(self, state: MonitoringState, clock=_utcnow):
        self.state = state
        self._clock = clock
        self._lock = threading.RLock()
        self._refresh_lock = threading.Lock()
        self._zone_counts = {}
        self._zone_density = {}
        self._cycle = 0
        self._snapshot = None
        self._publish()

    # ── Zones ──────────────────────────────────────────────────────────────

    def zones(self) -> list[Zone]:
        return list(self.state.zones)

    def resolve_zone(self, zone_ref) -> Zone:
        """Look a zone up by id, falling back to its display name."""
        if not isinstance(zone_ref, str) or not zone_ref.strip():
            raise InvalidInputError(f"Zone id must be a non-empty string, got {zone_ref!r}")
        for zone in self.state.zones:
            if zone.id == zone_ref:
                return zone
        for zone in self.state.zones:
            if zone.name == zone_ref:
                return zone
        raise UnknownZoneError(zone_ref)

    # ── Commands ───────────────────────────────────────────────────────────

    def ingest(self, zone_ref, detections, timestamp: datetime = None) -> IngestResult:
        """Count a detection batch for one zone; the count is the batch length."""
        if detections is None:
            raise InvalidInputError("Detections must be a sequence, got None")
        return self.ingest_count(zone_ref, len(detections), timestamp)

    def ingest_count(self, zone_ref, count: int, timestamp: datetime = None) -> IngestResult:
        zone = self.resolve_zone(zone_ref)
        density = classify(count, self.state.thresholds)
        sample = DetectionSample(zone_id=zone.id, count=count, timestamp=timestamp or self._clock())

        with self._lock:
            counts = dict(self._zone_counts)
            counts[zone.id] = count
            self._append_trend(sample.timestamp, counts)
            self.state.heatmap.update(zone.id, count)
            self._zone_counts = counts
            self._zone_density[zone.id] = density
            alert = self.state.alerts.evaluate_zone(zone.name, density, self.state.trend.is_rising())
            self._publish()

        logger.info(f"[DETECT] {zone.name}: count={count} density={density.value}")
        return IngestResult(zone=zone, count=count, density=density,
                            alerts=(alert,) if alert is not None else (), sample=sample)

    def report(self, zone_ref, kind=ReportKind.IRREGULAR_FLOW, message: str = None):
        """External safety signal (e.g. irregular flow) from a sensor collaborator."""
        zone = self.resolve_zone(zone_ref)
        try:
            kind = ReportKind(kind)
        except ValueError:
            raise InvalidInputError(f"Unknown report kind '{kind}'") from None
        report = SafetyReport(zone=zone.name, kind=kind, message=message, received_at=self._clock())
        with self._lock:
            emitted = self.state.alerts.evaluate(zone_densities={}, reports=[report])
            self._publish()
        return emitted[0] if emitted else None

    def refresh_alerts(self) -> bool:
        """
        One full evaluation cycle. Returns False without doing anything if a
        previous cycle is still running.
        """
        if not self._refresh_lock.acquire(blocking=False):
            logger.warning("[MONITOR] Refresh already in progress — tick skipped")
            return False
        try:
            with self._lock:
                self._append_trend(None)
                densities = {
                    zone.name: self._zone_density[zone.id]
                    for zone in self.state.zones if zone.id in self._zone_density
                }
                emitted = self.state.alerts.evaluate(
                    zone_densities=densities,
                    trend_rising=self.state.trend.is_rising(),
                    sector_rates=self.state.parking.sector_rates(),
                )
                self._cycle += 1
                self._publish()
            logger.debug(f"[MONITOR] Cycle {self._cycle} complete — {len(emitted)} new alerts")
            return True
        finally:
            self._refresh_lock.release()

    def toggle_slot(self, slot_id):
        with self._lock:
            slot = self.state.parking.toggle(slot_id)
            self._publish()
        return slot

    def reserve_slot(self, slot_id):
        with self._lock:
            slot = self.state.parking.reserve(slot_id)
            self._publish()
        return slot

    def release_slot(self, slot_id):
        with self._lock:
            slot = self.state.parking.release(slot_id)
            self._publish()
        return slot

    def refresh_parking(self, readings) -> int:
        with self._lock:
            changed = self.state.parking.refresh(readings)
            self._publish()
        return changed

    def dismiss_alert(self, alert_id: int) -> bool:
        with self._lock:
            changed = self.state.alerts.dismiss(alert_id)
            self._publish()
        return changed

    async def predict(self, current_count, density, recent_trend=None):
        """Returns (PredictionResult, degraded). Runs outside every lock."""
        if recent_trend is None:
            recent_trend = self.state.trend.series()
        return await self.state.predictor.predict_with_status(current_count, density, recent_trend)

    # ── Reads ──────────────────────────────────────────────────────────────

    def overview(self) -> MonitoringSnapshot:
        with self._lock:
            return self._snapshot

    def heatmap(self):
        return self.state.heatmap.snapshot()

    def temporal(self):
        return self.state.trend.series()

    def parking(self, slot_type="ALL"):
        return self.state.parking.filtered_view(slot_type)

    def alerts(self, alert_type=None, open_only=False, limit=None):
        return self.state.alerts.alerts(alert_type=alert_type, open_only=open_only, limit=limit)

    def close(self):
        with self._lock:
            self.state.close()
            self._zone_counts.clear()
            self._zone_density.clear()

    # ── Internals ──────────────────────────────────────────────────────────

    def _trend_timestamp(self, timestamp) -> datetime:
        """
        Where a sample lands in the trend: never ahead of the wall clock and
        never behind the newest point. Late batches fold into the newest bucket.
        """
        now = self._clock()
        ts = timestamp or now
        if ts.tzinfo is None:
            ts = ts.replace(tzinfo=timezone.utc)
        if ts > now:
            logger.warning(f"[MONITOR] Sample stamped {ts.isoformat()} is ahead of the clock; trended at now")
            ts = now
        newest = self.state.trend.newest()
        if newest is not None and ts < newest:
            logger.debug(f"[MONITOR] Late sample {ts.isoformat()} folded into {newest.isoformat()}")
            ts = newest
        return ts

    def _append_trend(self, timestamp, zone_counts=None):
        # caller holds self._lock
        ts = self._trend_timestamp(timestamp)
        observed = sum((zone_counts if zone_counts is not None else self._zone_counts).values())
        self.state.trend.append(observed, self.state.baseline(ts), ts)

    def _publish(self):
        # caller holds self._lock (or is __init__)
        try:
            parking_rate = self.state.parking.occupancy_rate()
        except EmptyFleetError:
            parking_rate = 0.0
        density = max(self._zone_density.values(), default=DensityLevel.LOW)
        self._snapshot = MonitoringSnapshot(
            current_count=sum(self._zone_counts.values()),
            density=density,
            alert_count=self.state.alerts.open_count(),
            parking_occupancy=parking_rate,
            zone_counts=dict(self._zone_counts),
            cycle=self._cycle,
            taken_at=self._clock(),
        )
