"""
Pickup lifecycle

    scheduled ──> in_progress ──> completed
        │              │
        └──────────────┴──> cancelled | missed

completed, cancelled and missed are terminal. A pickup may also be completed
straight from scheduled. Requesting the state a pickup is already in is a
no-op; every other change outside this table raises InvalidTransitionError.
"""
import enum
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Dict, FrozenSet, Optional

from app.core.exceptions import InvalidTransitionError, StateConflictError, ValidationError


class PickupStatus(str, enum.Enum):
    SCHEDULED = "scheduled"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    MISSED = "missed"


class TimeSlot(str, enum.Enum):
    MORNING = "morning"
    AFTERNOON = "afternoon"
    EVENING = "evening"


class WasteType(str, enum.Enum):
    GENERAL = "general"
    RECYCLABLE = "recyclable"
    ORGANIC = "organic"
    HAZARDOUS = "hazardous"
    ELECTRONIC = "electronic"


class PickupPriority(str, enum.Enum):
    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"
    URGENT = "urgent"


TRANSITIONS: Dict[PickupStatus, FrozenSet[PickupStatus]] = {
    PickupStatus.SCHEDULED: frozenset({
        PickupStatus.IN_PROGRESS, PickupStatus.COMPLETED, PickupStatus.CANCELLED, PickupStatus.MISSED,
    }),
    PickupStatus.IN_PROGRESS: frozenset({
        PickupStatus.COMPLETED, PickupStatus.CANCELLED, PickupStatus.MISSED,
    }),
    PickupStatus.COMPLETED: frozenset(),
    PickupStatus.CANCELLED: frozenset(),
    PickupStatus.MISSED: frozenset(),
}

ACTIVE_STATUSES = frozenset({PickupStatus.SCHEDULED, PickupStatus.IN_PROGRESS})
TERMINAL_STATUSES = frozenset({PickupStatus.COMPLETED, PickupStatus.CANCELLED, PickupStatus.MISSED})

TIME_SLOT_DISPLAY = {
    TimeSlot.MORNING: "8:00 AM - 12:00 PM",
    TimeSlot.AFTERNOON: "12:00 PM - 4:00 PM",
    TimeSlot.EVENING: "4:00 PM - 8:00 PM",
}

STATUS_DISPLAY = {
    PickupStatus.SCHEDULED: "Scheduled",
    PickupStatus.IN_PROGRESS: "In Progress",
    PickupStatus.COMPLETED: "Completed",
    PickupStatus.CANCELLED: "Cancelled",
    PickupStatus.MISSED: "Missed",
}


@dataclass(frozen=True)
class PickupSnapshot:
    """The lifecycle-relevant slice of a pickup"""
    status: PickupStatus
    completed_at: Optional[datetime] = None
    notes: Optional[str] = None
    driver_id: Optional[str] = None
    vehicle: Optional[str] = None
    actual_weight: Optional[float] = None


def can_transition(current: PickupStatus, target: PickupStatus) -> bool:
    return current == target or target in TRANSITIONS[current]


def append_note(notes: Optional[str], line: str) -> str:
    if not notes:
        return line
    return f"{notes}\n{line}"


def transition(snapshot: PickupSnapshot, target: PickupStatus, now: datetime) -> PickupSnapshot:
    """Move to `target`, keeping completed_at set exactly when the status is completed"""
    target = PickupStatus(target)
    if snapshot.status == target:
        return snapshot
    if not can_transition(snapshot.status, target):
        raise InvalidTransitionError("pickup", snapshot.status.value, target.value)
    completed_at = now if target == PickupStatus.COMPLETED else None
    return replace(snapshot, status=target, completed_at=completed_at)


def complete(
    snapshot: PickupSnapshot,
    now: datetime,
    driver_id: Optional[str] = None,
    vehicle: Optional[str] = None,
    actual_weight: Optional[float] = None,
    notes: Optional[str] = None,
) -> PickupSnapshot:
    if snapshot.status == PickupStatus.COMPLETED:
        raise StateConflictError("Pickup is already completed", current_state=snapshot.status.value)
    done = transition(snapshot, PickupStatus.COMPLETED, now)
    return replace(
        done,
        driver_id=driver_id or snapshot.driver_id,
        vehicle=vehicle or snapshot.vehicle,
        actual_weight=actual_weight if actual_weight is not None else snapshot.actual_weight,
        notes=append_note(snapshot.notes, f"Completion notes: {notes}") if notes else snapshot.notes,
    )


def cancel(snapshot: PickupSnapshot, reason: str, now: datetime) -> PickupSnapshot:
    """Cancel an active pickup and record why; the route slot is not released"""
    if snapshot.status not in ACTIVE_STATUSES:
        raise StateConflictError(
            f"Cannot cancel a {snapshot.status.value} pickup", current_state=snapshot.status.value
        )
    cancelled = transition(snapshot, PickupStatus.CANCELLED, now)
    return replace(cancelled, notes=append_note(snapshot.notes, f"Cancelled: {reason}"))


def ensure_future_date(scheduled_date: datetime, now: datetime) -> None:
    if scheduled_date <= now:
        raise ValidationError("Scheduled date must be in the future", field="scheduledDate")


def ensure_reschedulable(snapshot: PickupSnapshot, new_date: datetime, now: datetime) -> None:
    """A scheduled pickup cannot be moved into the past"""
    if snapshot.status == PickupStatus.SCHEDULED:
        ensure_future_date(new_date, now)


def time_slot_display(slot: TimeSlot) -> str:
    return TIME_SLOT_DISPLAY.get(TimeSlot(slot), str(slot))


def status_display(status: PickupStatus) -> str:
    return STATUS_DISPLAY.get(PickupStatus(status), str(status))
