# crowdvision/schemas/monitoring.py
from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel
from datetime import datetime
from typing import Any, Optional

from crowdvision.domain import DensityLevel, ReportKind


class _CamelModel(BaseModel):
    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True


class OverviewOut(_CamelModel):
    current_count: int
    density: DensityLevel
    alert_count: int
    parking_occupancy: float


class CrowdDataPointOut(_CamelModel):
    timestamp: datetime
    observed_count: int
    expected_count: int


class HeatmapCellOut(_CamelModel):
    x: int = Field(ge=0, le=9)
    y: int = Field(ge=0, le=9)
    intensity: float = Field(ge=0, le=1)


class ZoneOut(_CamelModel):
    id: str
    name: str
    cell_count: int


class DetectIn(_CamelModel):
    zone_id: str
    detections: list[Any]
    timestamp: Optional[datetime] = None


class DetectOut(_CamelModel):
    count: int
    density: DensityLevel


class DetectionRecordOut(_CamelModel):
    id: int
    zone_id: str
    zone_name: Optional[str]
    count: int
    density_level: str
    detected_at: datetime
    created_at: Optional[datetime]


class ReportIn(_CamelModel):
    zone_id: str
    kind: ReportKind = ReportKind.IRREGULAR_FLOW
    message: Optional[str] = None


class ReportOut(_CamelModel):
    status: str
    alert_id: Optional[int] = None
