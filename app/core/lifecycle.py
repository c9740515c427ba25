"""Status enumerations and transition tables for queue items and visits.

Statuses are persisted as plain strings; these enums are the only place the
allowed values and edges are defined.
"""
from enum import Enum
from typing import Dict, FrozenSet

from app.core.exceptions import InvalidTransitionError, ValidationError


class QueueStatus(str, Enum):
    WAITING = "waiting"
    SERVING = "serving"
    COMPLETED = "completed"
    SKIPPED = "skipped"
    CANCELLED = "cancelled"


class VisitStatus(str, Enum):
    SCHEDULED = "Scheduled"
    IN_PROGRESS = "In-Progress"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"


class VisitType(str, Enum):
    CONSULTATION = "Consultation"
    DENTAL = "Dental"
    GYNECOLOGY = "Gynecology"
    FOLLOW_UP = "Follow-up"
    EMERGENCY = "Emergency"


class StaffRole(str, Enum):
    ADMIN = "admin"
    HEAD_DOCTOR = "head_doctor"
    DOCTOR = "doctor"
    RECEPTIONIST = "receptionist"
    USER = "user"


DOCTOR_ROLES = (StaffRole.DOCTOR.value, StaffRole.HEAD_DOCTOR.value)
STAFF_MANAGER_ROLES = (StaffRole.ADMIN.value, StaffRole.HEAD_DOCTOR.value)

QUEUE_TRANSITIONS: Dict[QueueStatus, FrozenSet[QueueStatus]] = {
    QueueStatus.WAITING: frozenset({QueueStatus.SERVING, QueueStatus.CANCELLED}),
    QueueStatus.SERVING: frozenset({QueueStatus.COMPLETED, QueueStatus.SKIPPED, QueueStatus.CANCELLED}),
    QueueStatus.COMPLETED: frozenset(),
    QueueStatus.SKIPPED: frozenset(),
    QueueStatus.CANCELLED: frozenset(),
}

VISIT_TRANSITIONS: Dict[VisitStatus, FrozenSet[VisitStatus]] = {
    VisitStatus.SCHEDULED: frozenset({VisitStatus.IN_PROGRESS, VisitStatus.COMPLETED, VisitStatus.CANCELLED}),
    VisitStatus.IN_PROGRESS: frozenset({VisitStatus.COMPLETED, VisitStatus.CANCELLED}),
    VisitStatus.COMPLETED: frozenset(),
    VisitStatus.CANCELLED: frozenset(),
}

# Visit status a linked visit must take when its queue item reaches a terminal status
QUEUE_VISIT_CASCADE: Dict[QueueStatus, VisitStatus] = {
    QueueStatus.COMPLETED: VisitStatus.COMPLETED,
    QueueStatus.SKIPPED: VisitStatus.CANCELLED,
    QueueStatus.CANCELLED: VisitStatus.CANCELLED,
}

ACTIVE_QUEUE_STATUSES = (QueueStatus.WAITING.value, QueueStatus.SERVING.value)


def parse_queue_status(value) -> QueueStatus:
    try:
        return QueueStatus(value)
    except ValueError:
        allowed = ", ".join(s.value for s in QueueStatus)
        raise ValidationError(
            f"Invalid queue status '{value}'",
            details={"status": f"must be one of: {allowed}"},
        )


def parse_visit_status(value) -> VisitStatus:
    try:
        return VisitStatus(value)
    except ValueError:
        allowed = ", ".join(s.value for s in VisitStatus)
        raise ValidationError(
            f"Invalid visit status '{value}'",
            details={"status": f"must be one of: {allowed}"},
        )


def is_terminal_visit_status(status) -> bool:
    return not VISIT_TRANSITIONS[parse_visit_status(status)]


def ensure_queue_transition(current, target) -> QueueStatus:
    """Return ``target`` as a QueueStatus if ``current -> target`` is an edge."""
    current = parse_queue_status(current)
    target = parse_queue_status(target)
    if target not in QUEUE_TRANSITIONS[current]:
        raise InvalidTransitionError(
            f"Queue item cannot move from '{current.value}' to '{target.value}'",
            details={"from": current.value, "to": target.value},
        )
    return target


def ensure_visit_transition(current, target) -> VisitStatus:
    current = parse_visit_status(current)
    target = parse_visit_status(target)
    if target not in VISIT_TRANSITIONS[current]:
        raise InvalidTransitionError(
            f"Visit cannot move from '{current.value}' to '{target.value}'",
            details={"from": current.value, "to": target.value},
        )
    return target
