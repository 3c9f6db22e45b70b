# crowdvision/schemas/parking.py
from pydantic import BaseModel
from pydantic.alias_generators import to_camel
from datetime import datetime
from typing import Optional

from crowdvision.domain import SlotState, SlotType


class ParkingSlotOut(BaseModel):
    id: str
    type: SlotType
    occupied: bool
    state: SlotState
    sector: str
    changed_at: Optional[datetime] = None
    changed_by: Optional[str] = None

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True

    @classmethod
    def from_slot(cls, slot) -> "ParkingSlotOut":
        return cls(id=slot.id, type=slot.type, occupied=slot.occupied, state=slot.state,
                   sector=slot.sector, changed_at=slot.changed_at, changed_by=slot.changed_by)


class SlotToggle(BaseModel):
    slot_id: str

    class Config:
        alias_generator = to_camel
        populate_by_name = True


class SlotReading(BaseModel):
    slot_id: str
    occupied: bool

    class Config:
        alias_generator = to_camel
        populate_by_name = True


class ParkingRefresh(BaseModel):
    slots: list[SlotReading]


class OccupancyOut(BaseModel):
    sector: Optional[str] = None
    occupancy_rate: float
    occupied: int
    total: int

    class Config:
        alias_generator = to_camel
        populate_by_name = True
