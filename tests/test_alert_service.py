# tests/test_alert_service.py
"""Unit tests for the alert engine — rules, cool-down dedup and dismissal."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import logging
from datetime import datetime, timedelta, timezone

import pytest
from crowdvision.domain import AlertType, DensityLevel, ReportKind, SafetyReport, Severity
from crowdvision.errors import UnknownAlertError
from crowdvision.services.alert_service import AlertEngine
from crowdvision.utils.logger import LOG_DIR


class FakeClock:
    def __init__(self, start=datetime(2026, 3, 14, 18, 0, tzinfo=timezone.utc)):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def engine(clock):
    return AlertEngine(cooldown_seconds=300, parking_threshold=0.95, clock=clock)


class TestRules:
    def test_critical_density_is_danger(self, engine):
        alert = engine.evaluate_zone("North Gate", DensityLevel.CRITICAL, trend_rising=False)
        assert alert.type is AlertType.CONGESTION
        assert alert.severity is Severity.DANGER
        assert alert.zone == "North Gate"
        assert alert.message == "Extreme density detected at North Gate."

    def test_high_and_rising_is_warning(self, engine):
        alert = engine.evaluate_zone("Central Plaza", DensityLevel.HIGH, trend_rising=True)
        assert alert.severity is Severity.WARNING

    def test_high_but_flat_is_quiet(self, engine):
        assert engine.evaluate_zone("Central Plaza", DensityLevel.HIGH, trend_rising=False) is None

    @pytest.mark.parametrize("level", [DensityLevel.LOW, DensityLevel.MEDIUM])
    def test_low_levels_never_alert(self, engine, level):
        assert engine.evaluate_zone("North Gate", level, trend_rising=True) is None

    def test_irregular_flow_report(self, engine):
        alert = engine.evaluate_report(SafetyReport(zone="West Concourse", kind=ReportKind.IRREGULAR_FLOW))
        assert alert.type is AlertType.SAFETY
        assert alert.severity is Severity.WARNING
        assert alert.message == "Irregular flow pattern identified in West Concourse."

    def test_parking_threshold(self, engine):
        assert engine.evaluate_parking("Sector A", 0.94) is None
        alert = engine.evaluate_parking("Sector A", 0.95)
        assert alert.type is AlertType.PARKING
        assert alert.severity is Severity.INFO
        assert "95%" in alert.message

    def test_evaluate_first_report_per_zone_wins(self, engine):
        reports = [
            SafetyReport(zone="South Exit", kind=ReportKind.IRREGULAR_FLOW, message="first"),
            SafetyReport(zone="South Exit", kind=ReportKind.IRREGULAR_FLOW, message="second"),
        ]
        emitted = engine.evaluate(zone_densities={}, reports=reports)
        assert len(emitted) == 1
        assert emitted[0].message == "first"

    def test_evaluate_categories_fire_independently(self, engine):
        emitted = engine.evaluate(
            zone_densities={"North Gate": DensityLevel.CRITICAL},
            reports=[SafetyReport(zone="North Gate", kind=ReportKind.IRREGULAR_FLOW)],
            sector_rates={"Sector A": 1.0},
        )
        assert {a.type for a in emitted} == {AlertType.CONGESTION, AlertType.SAFETY, AlertType.PARKING}


class TestDeduplication:
    def test_suppressed_inside_cooldown(self, engine, clock):
        assert engine.evaluate_zone("North Gate", DensityLevel.CRITICAL, False) is not None
        clock.advance(seconds=1)
        assert engine.evaluate_zone("North Gate", DensityLevel.CRITICAL, False) is None
        assert len(engine.alerts()) == 1

    def test_other_zone_not_suppressed(self, engine):
        engine.evaluate_zone("North Gate", DensityLevel.CRITICAL, False)
        assert engine.evaluate_zone("South Exit", DensityLevel.CRITICAL, False) is not None

    def test_reraised_after_cooldown(self, engine, clock):
        engine.evaluate_zone("North Gate", DensityLevel.CRITICAL, False)
        clock.advance(seconds=300)
        assert engine.evaluate_zone("North Gate", DensityLevel.CRITICAL, False) is not None

    def test_reraised_after_dismissal(self, engine, clock):
        first = engine.evaluate_zone("North Gate", DensityLevel.CRITICAL, False)
        engine.dismiss(first.id)
        clock.advance(seconds=1)
        second = engine.evaluate_zone("North Gate", DensityLevel.CRITICAL, False)
        assert second is not None
        assert second.id != first.id

    def test_warning_then_danger_same_zone_suppressed(self, engine):
        engine.evaluate_zone("North Gate", DensityLevel.HIGH, True)
        assert engine.evaluate_zone("North Gate", DensityLevel.CRITICAL, False) is None


class TestHistory:
    def test_most_recent_first(self, engine, clock):
        a = engine.evaluate_zone("North Gate", DensityLevel.CRITICAL, False)
        clock.advance(seconds=5)
        b = engine.evaluate_parking("Sector B", 1.0)
        assert [x.id for x in engine.alerts()] == [b.id, a.id]

    def test_ids_unique_and_increasing(self, engine):
        ids = [engine.evaluate_parking(f"Sector {c}", 1.0).id for c in "ABCD"]
        assert ids == sorted(set(ids))

    def test_filters(self, engine):
        a = engine.evaluate_zone("North Gate", DensityLevel.CRITICAL, False)
        engine.evaluate_parking("Sector A", 1.0)
        engine.dismiss(a.id)
        assert [x.type for x in engine.alerts(alert_type=AlertType.PARKING)] == [AlertType.PARKING]
        assert all(x.id != a.id for x in engine.alerts(open_only=True))
        assert len(engine.alerts(limit=1)) == 1
        assert engine.open_count() == 1
        assert engine.open_alerts() == engine.alerts(open_only=True)


class TestDismiss:
    def test_dismiss_is_idempotent(self, engine, clock):
        alert = engine.evaluate_parking("Sector A", 1.0)
        assert engine.dismiss(alert.id) is True
        first_at = engine.dismissed_at(alert.id)
        clock.advance(seconds=30)
        assert engine.dismiss(alert.id) is False
        assert engine.dismissed_at(alert.id) == first_at
        assert engine.is_dismissed(alert.id)

    def test_dismissed_alert_stays_in_history(self, engine):
        alert = engine.evaluate_parking("Sector A", 1.0)
        engine.dismiss(alert.id)
        assert engine.get(alert.id) == alert
        assert engine.alerts()[0].id == alert.id

    def test_unknown_alert(self, engine):
        with pytest.raises(UnknownAlertError):
            engine.dismiss(999)
        with pytest.raises(UnknownAlertError):
            engine.get(999)


class TestAuditLog:
    def read_audit_log(self):
        for handler in logging.getLogger().handlers:
            handler.flush()
        with open(os.path.join(LOG_DIR, "alerts.log"), encoding="utf-8") as f:
            return f.read()

    def test_emitted_alert_is_audited(self, engine):
        engine.evaluate_zone("Audit Gate", DensityLevel.CRITICAL, trend_rising=False)
        assert "Extreme density detected at Audit Gate." in self.read_audit_log()

    def test_other_warnings_stay_out(self, engine):
        logging.getLogger("crowdvision.services.heatmap_service").warning("not an alert: Audit Plaza")
        assert "Audit Plaza" not in self.read_audit_log()
