# crowdvision/domain.py
"""
Closed vocabularies and immutable value objects shared by the services.
Enums are str-based so they serialise directly into API responses.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional


class _OrderedEnum(str, Enum):
    """Enum ordered by declaration order instead of by string value."""

    @property
    def rank(self) -> int:
        return list(type(self)).index(self)

    def __lt__(self, other):
        if type(other) is not type(self):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other):
        if type(other) is not type(self):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other):
        if type(other) is not type(self):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other):
        if type(other) is not type(self):
            return NotImplemented
        return self.rank >= other.rank


class DensityLevel(_OrderedEnum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


class AlertType(str, Enum):
    CONGESTION = "CONGESTION"
    SAFETY = "SAFETY"
    PARKING = "PARKING"


class Severity(_OrderedEnum):
    INFO = "INFO"
    WARNING = "WARNING"
    DANGER = "DANGER"


class SlotType(str, Enum):
    STANDARD = "STANDARD"
    DISABLED = "DISABLED"
    EV = "EV"


class SlotState(str, Enum):
    VACANT = "VACANT"
    OCCUPIED = "OCCUPIED"
    RESERVED = "RESERVED"   # operator hold; counts as occupied


class ReportKind(str, Enum):
    IRREGULAR_FLOW = "IRREGULAR_FLOW"


@dataclass(frozen=True)
class Zone:
    id: str
    name: str
    cells: tuple = ()         # ((x, y), ...) heatmap cells this zone projects onto


@dataclass(frozen=True)
class DetectionSample:
    zone_id: str
    count: int
    timestamp: datetime


@dataclass(frozen=True)
class HeatmapCell:
    x: int
    y: int
    intensity: float


@dataclass(frozen=True)
class CrowdDataPoint:
    timestamp: datetime
    observed_count: int
    expected_count: int


@dataclass(frozen=True)
class Alert:
    id: int
    timestamp: datetime
    type: AlertType
    severity: Severity
    message: str
    zone: str

    @property
    def key(self) -> tuple:
        return (self.type, self.zone)


@dataclass(frozen=True)
class ParkingSlot:
    id: str
    type: SlotType
    state: SlotState = SlotState.VACANT
    sector: str = "Sector A"
    # audit trail only; two slots in the same state compare equal
    changed_at: Optional[datetime] = field(default=None, compare=False)
    changed_by: str = field(default="provisioning", compare=False)   # provisioning | sensor | operator

    @property
    def occupied(self) -> bool:
        return self.state is not SlotState.VACANT


@dataclass(frozen=True)
class SafetyReport:
    zone: str
    kind: ReportKind
    message: Optional[str] = None
    received_at: Optional[datetime] = None


@dataclass
class PredictionResult:
    risk_score: float
    forecasted_count: int
    recommendations: list = field(default_factory=list)
