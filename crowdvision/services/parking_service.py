# crowdvision/services/parking_service.py
"""
Parking State Manager — authoritative occupancy state of every slot.

States: VACANT, OCCUPIED, RESERVED.
  VACANT   → OCCUPIED   sensor detection or operator toggle
  OCCUPIED → VACANT     sensor clear or operator toggle (force release)
  VACANT   → RESERVED   operator only (reserve)
  RESERVED → VACANT     operator only (toggle / release)
Sensor feeds never touch a RESERVED slot. OCCUPIED → RESERVED is refused.

Writes swap in a rebuilt slot table under the lock, so a reader always sees
either the state before a bulk refresh or the state after it.
"""

import string
import threading
from dataclasses import replace
from datetime import datetime, timezone
from typing import Iterable, Optional

from crowdvision.domain import ParkingSlot, SlotState, SlotType
from crowdvision.errors import EmptyFleetError, InvalidInputError, InvalidTransitionError, UnknownSlotError
from crowdvision.utils.logger import get_logger

logger = get_logger(__name__)

FILTER_ALL = "ALL"


def _now():
    return datetime.now(timezone.utc)


def sector_name(index: int) -> str:
    letters = string.ascii_uppercase
    name = ""
    index += 1
    while index:
        index, rem = divmod(index - 1, 26)
        name = letters[rem] + name
    return f"Sector {name}"


def provision_slots(count: int, sector_size: int = 12) -> list[ParkingSlot]:
    """Default fleet: P-0..P-{count-1}; every 10th DISABLED, every 8th EV."""
    if count < 0 or sector_size < 1:
        raise InvalidInputError(f"Cannot provision {count} slots with sector size {sector_size}")
    slots = []
    for i in range(count):
        if i % 10 == 0:
            slot_type = SlotType.DISABLED
        elif i % 8 == 0:
            slot_type = SlotType.EV
        else:
            slot_type = SlotType.STANDARD
        slots.append(ParkingSlot(id=f"P-{i}", type=slot_type, sector=sector_name(i // sector_size)))
    return slots


class ParkingStateManager:
    def __init__(self, slots: Iterable[ParkingSlot] = ()):
        self._lock = threading.Lock()
        self._slots = {}
        for slot in slots:
            if slot.id in self._slots:
                raise InvalidInputError(f"Duplicate parking slot id '{slot.id}'")
            self._slots[slot.id] = slot
        self._order = list(self._slots)   # provisioning order, ids never reused

    @classmethod
    def provision(cls, count: int, sector_size: int = 12) -> "ParkingStateManager":
        return cls(provision_slots(count, sector_size))

    # ── Reads ──────────────────────────────────────────────────────────────

    def get(self, slot_id) -> ParkingSlot:
        with self._lock:
            slot = self._slots.get(slot_id)
        if slot is None:
            raise UnknownSlotError(slot_id)
        return slot

    def slots(self) -> list[ParkingSlot]:
        with self._lock:
            return [self._slots[i] for i in self._order]

    def filtered_view(self, slot_type=FILTER_ALL) -> list[ParkingSlot]:
        if slot_type in (None, FILTER_ALL):
            return self.slots()
        try:
            wanted = SlotType(slot_type)
        except ValueError:
            raise InvalidInputError(f"Unknown slot type filter '{slot_type}'") from None
        return [s for s in self.slots() if s.type is wanted]

    def occupancy(self, sector: Optional[str] = None) -> tuple:
        """(occupied-or-reserved, total) from one consistent read."""
        slots = self.slots()
        if sector is not None:
            slots = [s for s in slots if s.sector == sector]
        if not slots:
            raise EmptyFleetError(sector)
        return sum(1 for s in slots if s.occupied), len(slots)

    def occupancy_rate(self, sector: Optional[str] = None) -> float:
        occupied, total = self.occupancy(sector)
        return occupied / total

    def sector_rates(self) -> dict:
        """Occupancy rate per sector, in provisioning order."""
        totals, taken = {}, {}
        for s in self.slots():
            totals[s.sector] = totals.get(s.sector, 0) + 1
            taken[s.sector] = taken.get(s.sector, 0) + (1 if s.occupied else 0)
        return {sector: taken[sector] / total for sector, total in totals.items()}

    def counts(self) -> dict:
        counts = {state: 0 for state in SlotState}
        for s in self.slots():
            counts[s.state] += 1
        return counts

    # ── Writes ─────────────────────────────────────────────────────────────

    def refresh(self, source) -> int:
        """
        Bulk sensor resync from (slot_id, occupied) pairs.
        Rejects the whole batch on any unknown id. Returns the number of slots changed.
        """
        updates = list(source)
        with self._lock:
            for slot_id, _ in updates:
                if slot_id not in self._slots:
                    raise UnknownSlotError(slot_id)

            now = _now()
            table = dict(self._slots)
            changed = 0
            for slot_id, occupied in updates:
                slot = table[slot_id]
                if slot.state is SlotState.RESERVED:
                    continue
                target = SlotState.OCCUPIED if occupied else SlotState.VACANT
                if slot.state is not target:
                    table[slot_id] = replace(slot, state=target, changed_at=now, changed_by="sensor")
                    changed += 1
            self._slots = table

        logger.info(f"[PARKING] Sensor refresh: {len(updates)} readings, {changed} slots changed")
        return changed

    def toggle(self, slot_id) -> ParkingSlot:
        """Operator override: OCCUPIED/RESERVED → VACANT, VACANT → OCCUPIED."""
        with self._lock:
            slot = self._slots.get(slot_id)
            if slot is None:
                raise UnknownSlotError(slot_id)
            target = SlotState.OCCUPIED if slot.state is SlotState.VACANT else SlotState.VACANT
            updated = self._set(slot, target)
        logger.info(f"[PARKING] {slot_id} toggled {slot.state.value} → {target.value}")
        return updated

    def reserve(self, slot_id) -> ParkingSlot:
        with self._lock:
            slot = self._slots.get(slot_id)
            if slot is None:
                raise UnknownSlotError(slot_id)
            if slot.state is SlotState.RESERVED:
                return slot
            if slot.state is not SlotState.VACANT:
                raise InvalidTransitionError(slot_id, slot.state.value, SlotState.RESERVED.value)
            updated = self._set(slot, SlotState.RESERVED)
        logger.info(f"[PARKING] {slot_id} reserved by operator")
        return updated

    def release(self, slot_id) -> ParkingSlot:
        with self._lock:
            slot = self._slots.get(slot_id)
            if slot is None:
                raise UnknownSlotError(slot_id)
            if slot.state is SlotState.VACANT:
                return slot
            updated = self._set(slot, SlotState.VACANT)
        logger.info(f"[PARKING] {slot_id} released by operator ({slot.state.value} → VACANT)")
        return updated

    def _set(self, slot: ParkingSlot, state: SlotState) -> ParkingSlot:
        # caller holds the lock
        updated = replace(slot, state=state, changed_at=_now(), changed_by="operator")
        table = dict(self._slots)
        table[slot.id] = updated
        self._slots = table
        return updated
