# crowdvision/services/alert_service.py
"""
Alert Engine — turns classifier / trend / parking output and external reports
into deduplicated, severity-ranked alerts.

Rules (first match per category and zone wins, categories fire independently):
  density CRITICAL                      → CONGESTION / DANGER
  density HIGH and trend rising         → CONGESTION / WARNING
  irregular-flow report                 → SAFETY     / WARNING
  sector occupancy ≥ parking threshold  → PARKING    / INFO

An alert with the same (type, zone) as an open alert raised inside the
cool-down window is suppressed. Alerts are never mutated or deleted; dismissal
lives in a side table.
"""

import itertools
import threading
from datetime import datetime, timedelta, timezone
from typing import Optional

from crowdvision.domain import Alert, AlertType, DensityLevel, ReportKind, SafetyReport, Severity
from crowdvision.errors import UnknownAlertError
from crowdvision.utils.logger import get_logger

logger = get_logger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AlertEngine:
    def __init__(self, cooldown_seconds: float = 300, parking_threshold: float = 0.95, clock=_utcnow):
        self.cooldown = timedelta(seconds=cooldown_seconds)
        self.parking_threshold = parking_threshold
        self._clock = clock
        self._lock = threading.Lock()
        self._ids = itertools.count(1)
        self._history: list[Alert] = []
        self._by_id: dict[int, Alert] = {}
        self._latest_by_key: dict[tuple, Alert] = {}
        self._dismissed: dict[int, datetime] = {}

    # ── Rule evaluation ────────────────────────────────────────────────────

    def evaluate_zone(self, zone: str, density: DensityLevel, trend_rising: bool) -> Optional[Alert]:
        if density is DensityLevel.CRITICAL:
            return self.raise_alert(AlertType.CONGESTION, Severity.DANGER, zone,
                                    f"Extreme density detected at {zone}.")
        if density is DensityLevel.HIGH and trend_rising:
            return self.raise_alert(AlertType.CONGESTION, Severity.WARNING, zone,
                                    f"High and rising density at {zone}.")
        return None

    def evaluate_report(self, report: SafetyReport) -> Optional[Alert]:
        if report.kind is ReportKind.IRREGULAR_FLOW:
            message = report.message or f"Irregular flow pattern identified in {report.zone}."
            return self.raise_alert(AlertType.SAFETY, Severity.WARNING, report.zone, message)
        return None

    def evaluate_parking(self, sector: str, rate: float) -> Optional[Alert]:
        if rate >= self.parking_threshold:
            return self.raise_alert(AlertType.PARKING, Severity.INFO, sector,
                                    f"Parking {sector} is reaching full capacity ({rate:.0%}).")
        return None

    def evaluate(self, zone_densities: dict, trend_rising: bool = False,
                 reports=(), sector_rates: dict = None) -> list[Alert]:
        """Run every rule over one cycle's inputs. Returns the alerts actually emitted."""
        emitted = []
        for zone, density in zone_densities.items():
            emitted.append(self.evaluate_zone(zone, density, trend_rising))
        seen = set()
        for report in reports:
            # first report per zone wins
            if report.zone in seen:
                continue
            seen.add(report.zone)
            emitted.append(self.evaluate_report(report))
        for sector, rate in (sector_rates or {}).items():
            emitted.append(self.evaluate_parking(sector, rate))
        return [a for a in emitted if a is not None]

    # ── Emission / dedup ───────────────────────────────────────────────────

    def raise_alert(self, alert_type: AlertType, severity: Severity, zone: str, message: str) -> Optional[Alert]:
        """Create an alert unless an open one with the same (type, zone) is inside the cool-down."""
        with self._lock:
            now = self._clock()
            key = (alert_type, zone)
            previous = self._latest_by_key.get(key)
            if (previous is not None
                    and previous.id not in self._dismissed
                    and now - previous.timestamp < self.cooldown):
                logger.debug(f"[ALERT] Suppressed duplicate {alert_type.value} for {zone} (open alert {previous.id})")
                return None

            alert = Alert(id=next(self._ids), timestamp=now, type=alert_type,
                          severity=severity, message=message, zone=zone)
            self._history.append(alert)
            self._by_id[alert.id] = alert
            self._latest_by_key[key] = alert

        logger.warning(f"[ALERT][{alert_type.value}][{severity.value}] {zone}: {message}")
        return alert

    def dismiss(self, alert_id: int) -> bool:
        """Mark an alert closed. Returns False if it was already dismissed."""
        with self._lock:
            if alert_id not in self._by_id:
                raise UnknownAlertError(alert_id)
            if alert_id in self._dismissed:
                return False
            self._dismissed[alert_id] = self._clock()
        logger.info(f"[ALERT] Alert {alert_id} dismissed")
        return True

    # ── Reads ──────────────────────────────────────────────────────────────

    def get(self, alert_id: int) -> Alert:
        with self._lock:
            alert = self._by_id.get(alert_id)
        if alert is None:
            raise UnknownAlertError(alert_id)
        return alert

    def is_dismissed(self, alert_id: int) -> bool:
        with self._lock:
            return alert_id in self._dismissed

    def dismissed_at(self, alert_id: int) -> Optional[datetime]:
        with self._lock:
            return self._dismissed.get(alert_id)

    def alerts(self, alert_type: Optional[AlertType] = None, open_only: bool = False,
               limit: Optional[int] = None) -> list[Alert]:
        """Most recent first."""
        with self._lock:
            result = [
                a for a in reversed(self._history)
                if (alert_type is None or a.type is alert_type)
                and not (open_only and a.id in self._dismissed)
            ]
        return result[:limit] if limit is not None else result

    def open_alerts(self) -> list[Alert]:
        return self.alerts(open_only=True)

    def open_count(self) -> int:
        with self._lock:
            return len(self._history) - len(self._dismissed)
