# crowdvision/routers/detections.py
"""
Sensor-facing endpoints.
POST /detect   — detection batch for one zone; count = len(detections).
POST /reports  — external safety signal (irregular flow).
GET  /detections — persisted detection log, newest first.
"""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from crowdvision.database import get_db
from crowdvision.dependencies import get_monitor
from crowdvision.models.detection_record import DetectionRecord
from crowdvision.schemas.monitoring import DetectIn, DetectOut, DetectionRecordOut, ReportIn, ReportOut
from crowdvision.services.monitoring_service import MonitoringOrchestrator
from crowdvision.utils.logger import get_logger

router = APIRouter()
logger = get_logger(__name__)


@router.post("/detect", response_model=DetectOut, summary="Ingest a detection batch for a zone")
def detect(body: DetectIn, monitor: MonitoringOrchestrator = Depends(get_monitor),
           db: Session = Depends(get_db)):
    """Classifies the batch, updates heatmap + trend, evaluates congestion rules, logs the batch."""
    result = monitor.ingest(body.zone_id, body.detections, body.timestamp)

    sample = result.sample
    db.add(DetectionRecord(
        zone_id=sample.zone_id,
        zone_name=result.zone.name,
        count=sample.count,
        density_level=result.density.value,
        detected_at=sample.timestamp,
        created_at=datetime.now(timezone.utc),
    ))
    db.commit()

    return DetectOut(count=result.count, density=result.density)


@router.get("/detections", response_model=list[DetectionRecordOut], summary="Detection log")
def list_detections(limit: int = 50, zone_id: str = None, db: Session = Depends(get_db)):
    """Returns the detection log with an optional zone_id filter."""
    q = db.query(DetectionRecord)
    if zone_id:
        q = q.filter(DetectionRecord.zone_id == zone_id)
    return q.order_by(DetectionRecord.detected_at.desc(), DetectionRecord.id.desc()).limit(limit).all()


@router.post("/reports", response_model=ReportOut, summary="External safety report")
def submit_report(body: ReportIn, monitor: MonitoringOrchestrator = Depends(get_monitor)):
    alert = monitor.report(body.zone_id, body.kind, body.message)
    if alert is None:
        return ReportOut(status="suppressed")
    return ReportOut(status="alerted", alert_id=alert.id)
