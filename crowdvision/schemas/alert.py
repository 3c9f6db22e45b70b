# crowdvision/schemas/alert.py
from pydantic import BaseModel
from pydantic.alias_generators import to_camel
from datetime import datetime

from crowdvision.domain import AlertType, Severity


class AlertOut(BaseModel):
    id: int
    timestamp: datetime
    type: AlertType
    severity: Severity
    message: str
    zone: str
    dismissed: bool = False

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True

    @classmethod
    def from_alert(cls, alert, dismissed: bool = False) -> "AlertOut":
        return cls(id=alert.id, timestamp=alert.timestamp, type=alert.type, severity=alert.severity,
                   message=alert.message, zone=alert.zone, dismissed=dismissed)


class DismissOut(BaseModel):
    id: int
    status: str
