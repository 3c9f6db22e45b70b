# crowdvision/routers/alerts.py
from fastapi import APIRouter, Depends
from fastapi.responses import Response
from typing import Optional

from crowdvision.dependencies import get_monitor
from crowdvision.domain import AlertType
from crowdvision.schemas.alert import AlertOut, DismissOut
from crowdvision.services.monitoring_service import MonitoringOrchestrator
from crowdvision.utils.csv_export import alerts_to_csv, export_filename

router = APIRouter()


@router.get("/alerts", response_model=list[AlertOut], summary="All alerts — most recent first")
def get_all_alerts(
    alert_type: Optional[AlertType] = None,
    open_only: bool = False,
    limit: int = 50,
    monitor: MonitoringOrchestrator = Depends(get_monitor),
):
    """Combined alerts endpoint. Filter by alert_type or open_only."""
    engine = monitor.state.alerts
    return [
        AlertOut.from_alert(a, dismissed=engine.is_dismissed(a.id))
        for a in monitor.alerts(alert_type=alert_type, open_only=open_only, limit=limit)
    ]


@router.get("/alerts/export", summary="Alert log as CSV")
def export_alerts(monitor: MonitoringOrchestrator = Depends(get_monitor)):
    """Timestamp,Type,Severity,Message,Zone — one row per alert, most recent first."""
    return Response(
        content=alerts_to_csv(monitor.alerts()),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{export_filename()}"'},
    )


@router.post("/alerts/{alert_id}/dismiss", response_model=DismissOut, summary="Dismiss an alert")
def dismiss_alert(alert_id: int, monitor: MonitoringOrchestrator = Depends(get_monitor)):
    """Dismissing twice is not an error. History is never deleted."""
    changed = monitor.dismiss_alert(alert_id)
    return DismissOut(id=alert_id, status="dismissed" if changed else "already_dismissed")
