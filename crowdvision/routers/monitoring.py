# crowdvision/routers/monitoring.py
"""Read models for the dashboard: overview, temporal trend, heatmap, zones, refresh status."""

from fastapi import APIRouter, Depends

from crowdvision.dependencies import get_monitor, get_scheduler
from crowdvision.schemas.monitoring import CrowdDataPointOut, HeatmapCellOut, OverviewOut, ZoneOut
from crowdvision.services.monitoring_service import MonitoringOrchestrator
from crowdvision.services.refresh_scheduler import RefreshScheduler

router = APIRouter()


@router.get("/overview", response_model=OverviewOut, summary="Current count, density, alerts, parking")
def get_overview(monitor: MonitoringOrchestrator = Depends(get_monitor)):
    """Served from the last published snapshot."""
    snap = monitor.overview()
    return OverviewOut(
        current_count=snap.current_count,
        density=snap.density,
        alert_count=snap.alert_count,
        parking_occupancy=snap.parking_occupancy,
    )


@router.get("/temporal", response_model=list[CrowdDataPointOut], summary="Observed vs expected trend window")
def get_temporal(monitor: MonitoringOrchestrator = Depends(get_monitor)):
    return [
        CrowdDataPointOut(timestamp=p.timestamp, observed_count=p.observed_count, expected_count=p.expected_count)
        for p in monitor.temporal()
    ]


@router.get("/heatmap", response_model=list[HeatmapCellOut], summary="10×10 intensity grid (100 cells)")
def get_heatmap(monitor: MonitoringOrchestrator = Depends(get_monitor)):
    return [HeatmapCellOut(x=c.x, y=c.y, intensity=c.intensity) for c in monitor.heatmap()]


@router.get("/zones", response_model=list[ZoneOut], summary="Configured facility zones")
def get_zones(monitor: MonitoringOrchestrator = Depends(get_monitor)):
    return [ZoneOut(id=z.id, name=z.name, cell_count=len(z.cells)) for z in monitor.zones()]


@router.get("/status", summary="Alert refresh scheduler state")
def get_status(scheduler: RefreshScheduler = Depends(get_scheduler)):
    """IDLE between cycles, ACQUIRING while a cycle runs, STOPPED after shutdown."""
    return scheduler.status()
