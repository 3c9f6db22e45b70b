# crowdvision/routers/parking.py
"""Parking slots — filtered view, occupancy, sensor resync and operator overrides."""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from crowdvision.dependencies import get_monitor
from crowdvision.schemas.parking import OccupancyOut, ParkingRefresh, ParkingSlotOut, SlotToggle
from crowdvision.services.monitoring_service import MonitoringOrchestrator

router = APIRouter()


@router.get("/parking", response_model=list[ParkingSlotOut], summary="Parking slots, filterable by type")
def get_parking(
    slot_type: str = Query("ALL", alias="type", description="ALL | STANDARD | DISABLED | EV"),
    monitor: MonitoringOrchestrator = Depends(get_monitor),
):
    return [ParkingSlotOut.from_slot(s) for s in monitor.parking(slot_type.upper())]


@router.get("/parking/occupancy", response_model=OccupancyOut, summary="Occupancy rate (fleet or sector)")
def get_occupancy(sector: Optional[str] = None, monitor: MonitoringOrchestrator = Depends(get_monitor)):
    """Reserved slots count as occupied. 409 if the fleet or sector has no slots."""
    occupied, total = monitor.state.parking.occupancy(sector)
    return OccupancyOut(sector=sector, occupancy_rate=occupied / total, occupied=occupied, total=total)


@router.post("/parking/refresh", summary="Bulk sensor resync")
def refresh_parking(body: ParkingRefresh, monitor: MonitoringOrchestrator = Depends(get_monitor)):
    """Unknown slot ids reject the whole batch (404); slots missing from the feed keep their state."""
    changed = monitor.refresh_parking((r.slot_id, r.occupied) for r in body.slots)
    return {"status": "ok", "readings": len(body.slots), "changed": changed}


@router.post("/parking/toggle", response_model=ParkingSlotOut, summary="Operator toggle")
def toggle_slot(body: SlotToggle, monitor: MonitoringOrchestrator = Depends(get_monitor)):
    """OCCUPIED/RESERVED → VACANT, VACANT → OCCUPIED."""
    return ParkingSlotOut.from_slot(monitor.toggle_slot(body.slot_id))


@router.post("/parking/{slot_id}/reserve", response_model=ParkingSlotOut, summary="Operator reserve")
def reserve_slot(slot_id: str, monitor: MonitoringOrchestrator = Depends(get_monitor)):
    """Only a VACANT slot can be reserved (409 otherwise)."""
    return ParkingSlotOut.from_slot(monitor.reserve_slot(slot_id))


@router.post("/parking/{slot_id}/release", response_model=ParkingSlotOut, summary="Operator release")
def release_slot(slot_id: str, monitor: MonitoringOrchestrator = Depends(get_monitor)):
    return ParkingSlotOut.from_slot(monitor.release_slot(slot_id))
