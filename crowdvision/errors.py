# crowdvision/errors.py
"""
Error taxonomy shared by every service.
Routers never catch these. The handlers in main.py map them to HTTP status codes.
"""


class CrowdVisionError(Exception):
    """Base class for all domain errors."""


class InvalidInputError(CrowdVisionError):
    """Malformed count or identifier at the boundary. Never retried."""


class InvalidTransitionError(InvalidInputError):
    """A parking slot state change that the state machine forbids."""

    def __init__(self, slot_id, current, requested):
        self.slot_id = slot_id
        self.current = current
        self.requested = requested
        super().__init__(f"Slot '{slot_id}' cannot go from {current} to {requested}")


class UnknownSlotError(CrowdVisionError):
    def __init__(self, slot_id):
        self.slot_id = slot_id
        super().__init__(f"Parking slot '{slot_id}' not found")


class UnknownZoneError(CrowdVisionError):
    def __init__(self, zone_id):
        self.zone_id = zone_id
        super().__init__(f"Zone '{zone_id}' not found")


class UnknownAlertError(CrowdVisionError):
    def __init__(self, alert_id):
        self.alert_id = alert_id
        super().__init__(f"Alert '{alert_id}' not found")


class EmptyFleetError(CrowdVisionError):
    def __init__(self, sector=None):
        self.sector = sector
        where = f"sector '{sector}'" if sector else "the parking fleet"
        super().__init__(f"No parking slots in {where}; occupancy is undefined")


class RemoteInferenceError(CrowdVisionError):
    """Raised inside the prediction adapter only; always converted to the fallback."""
