"""
Issue lifecycle

    new ──> acknowledged ──> in_progress ──> resolved ──> closed
     └───────────┴───────────────┴──> rejected

Status only moves forward along the main line (steps may be skipped).
rejected is reachable from any state before resolved. resolved may only be
closed; closed and rejected are final.
"""
import enum
import re
from dataclasses import dataclass, replace
from datetime import date, datetime
from typing import Dict, Optional, Tuple

from app.core.exceptions import InvalidTransitionError, StateConflictError


class IssueStatus(str, enum.Enum):
    NEW = "new"
    ACKNOWLEDGED = "acknowledged"
    IN_PROGRESS = "in_progress"
    RESOLVED = "resolved"
    CLOSED = "closed"
    REJECTED = "rejected"


class IssueType(str, enum.Enum):
    MISSED_PICKUP = "missed_pickup"
    OVERFLOWING_BIN = "overflowing_bin"
    DAMAGED_BIN = "damaged_bin"
    ILLEGAL_DUMPING = "illegal_dumping"
    VEHICLE_ISSUE = "vehicle_issue"
    ROUTE_PROBLEM = "route_problem"
    OTHER = "other"


class IssuePriority(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class IssueCategory(str, enum.Enum):
    COLLECTION = "collection"
    EQUIPMENT = "equipment"
    ENVIRONMENTAL = "environmental"
    SERVICE = "service"
    COMPLAINT = "complaint"
    SUGGESTION = "suggestion"


MAIN_LINE = (
    IssueStatus.NEW,
    IssueStatus.ACKNOWLEDGED,
    IssueStatus.IN_PROGRESS,
    IssueStatus.RESOLVED,
    IssueStatus.CLOSED,
)
TERMINAL_STATUSES = frozenset({IssueStatus.RESOLVED, IssueStatus.CLOSED, IssueStatus.REJECTED})
FINAL_STATUSES = frozenset({IssueStatus.CLOSED, IssueStatus.REJECTED})

ISSUE_ID_PREFIX = "ISS"
ISSUE_ID_PATTERN = re.compile(r"^ISS\d{9,}$")


@dataclass(frozen=True)
class IssueSnapshot:
    """The lifecycle-relevant slice of an issue"""
    status: IssueStatus
    resolved_at: Optional[datetime] = None
    resolved_by_id: Optional[str] = None
    solution: Optional[str] = None
    follow_up_required: bool = False
    follow_up_date: Optional[datetime] = None


@dataclass(frozen=True)
class UpdateEntry:
    """One append-only log line to persist alongside the new snapshot"""
    user_id: str
    message: str
    status_from: Optional[IssueStatus] = None
    status_to: Optional[IssueStatus] = None
    is_internal: bool = False


def can_transition(current: IssueStatus, target: IssueStatus) -> bool:
    current, target = IssueStatus(current), IssueStatus(target)
    if current == target:
        return True
    if current in FINAL_STATUSES:
        return False
    if target == IssueStatus.REJECTED:
        return current not in TERMINAL_STATUSES
    return MAIN_LINE.index(target) > MAIN_LINE.index(current)


def is_editable_by_owner(status: IssueStatus) -> bool:
    return IssueStatus(status) == IssueStatus.NEW


def ensure_owner_editable(status: IssueStatus) -> None:
    if not is_editable_by_owner(status):
        raise StateConflictError(
            "Issue can only be edited by its reporter while it is new",
            current_state=IssueStatus(status).value,
        )


def resolve(
    snapshot: IssueSnapshot,
    resolver_id: str,
    solution: str,
    now: datetime,
    follow_up_required: bool = False,
    follow_up_date: Optional[datetime] = None,
    message: Optional[str] = None,
    is_internal: bool = False,
) -> Tuple[IssueSnapshot, Optional[UpdateEntry]]:
    """
    Mark the issue resolved.

    resolved_at is stamped only on the first resolve; repeating the call on a
    resolved issue refreshes the resolution text but keeps the timestamp.
    `message` replaces the generated log text when given.
    """
    previous = snapshot.status
    if not can_transition(previous, IssueStatus.RESOLVED):
        raise InvalidTransitionError("issue", previous.value, IssueStatus.RESOLVED.value)

    resolved = replace(
        snapshot,
        status=IssueStatus.RESOLVED,
        resolved_at=snapshot.resolved_at or now,
        resolved_by_id=resolver_id,
        solution=solution,
        follow_up_required=follow_up_required,
        follow_up_date=follow_up_date,
    )

    if previous == IssueStatus.RESOLVED:
        if snapshot.solution == solution:
            return resolved, None
        return resolved, UpdateEntry(
            user_id=resolver_id,
            message=message or f"Resolution updated: {solution}",
            is_internal=is_internal,
        )

    return resolved, UpdateEntry(
        user_id=resolver_id,
        message=message or f"Issue resolved: {solution}",
        status_from=previous,
        status_to=IssueStatus.RESOLVED,
        is_internal=is_internal,
    )


def change_status(
    snapshot: IssueSnapshot,
    target: IssueStatus,
    actor_id: str,
    now: datetime,
    message: Optional[str] = None,
    is_internal: bool = False,
) -> Tuple[IssueSnapshot, Optional[UpdateEntry]]:
    """Apply a validated status change and describe it as an update entry"""
    target = IssueStatus(target)
    if target == IssueStatus.RESOLVED:
        # The resolution text is only set through resolve() itself
        return resolve(
            snapshot, actor_id, snapshot.solution or "Resolved", now,
            follow_up_required=snapshot.follow_up_required,
            follow_up_date=snapshot.follow_up_date,
            message=message,
            is_internal=is_internal,
        )
    if snapshot.status == target:
        return snapshot, None
    if not can_transition(snapshot.status, target):
        raise InvalidTransitionError("issue", snapshot.status.value, target.value)

    entry = UpdateEntry(
        user_id=actor_id,
        message=message or f"Status changed from {snapshot.status.value} to {target.value}",
        status_from=snapshot.status,
        status_to=target,
        is_internal=is_internal,
    )
    return replace(snapshot, status=target), entry


def format_issue_id(day: date, sequence: int) -> str:
    """ISS + YYMMDD + sequence within the day, zero padded to three digits"""
    if sequence < 1:
        raise ValueError("Issue sequence starts at 1")
    return f"{ISSUE_ID_PREFIX}{day:%y%m%d}{sequence:03d}"


def resolution_time_hours(created_at: datetime, resolved_at: Optional[datetime]) -> Optional[int]:
    if resolved_at is None:
        return None
    return round((resolved_at - created_at).total_seconds() / 3600)


STATUS_LABELS: Dict[IssueStatus, str] = {
    IssueStatus.NEW: "New",
    IssueStatus.ACKNOWLEDGED: "Acknowledged",
    IssueStatus.IN_PROGRESS: "In Progress",
    IssueStatus.RESOLVED: "Resolved",
    IssueStatus.CLOSED: "Closed",
    IssueStatus.REJECTED: "Rejected",
}
