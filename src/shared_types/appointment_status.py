"""
Appointment status vocabulary and its transition table.

There is exactly one status enumeration. Every status change made through the
services is checked against ``ALLOWED_TRANSITIONS``; anything not listed is an
illegal transition.
"""

from enum import Enum
from typing import Dict, FrozenSet, Union


class AppointmentStatus(str, Enum):
    """Lifecycle status of an appointment."""
    PENDING = "pending"
    CONFIRMED = "confirmed"
    WAITING_ROOM = "waiting_room"
    IN_PROGRESS = "in_progress"
    FINISHED = "finished"
    CANCELLED = "cancelled"
    BLOCKED = "blocked"  # synthetic appointment owned by the block sentinel patient


class AppointmentReason(str, Enum):
    """Why the appointment was booked."""
    FIRST_VISIT = "first-visit"
    FOLLOW_UP = "follow-up"
    SPECIFIC_SERVICE = "specific-service"  # carries a free-text service description


ALLOWED_TRANSITIONS: Dict[AppointmentStatus, FrozenSet[AppointmentStatus]] = {
    AppointmentStatus.PENDING: frozenset({AppointmentStatus.CONFIRMED, AppointmentStatus.CANCELLED}),
    AppointmentStatus.CONFIRMED: frozenset({
        AppointmentStatus.WAITING_ROOM,
        AppointmentStatus.FINISHED,
        AppointmentStatus.CANCELLED,
    }),
    AppointmentStatus.WAITING_ROOM: frozenset({AppointmentStatus.IN_PROGRESS, AppointmentStatus.CANCELLED}),
    AppointmentStatus.IN_PROGRESS: frozenset({AppointmentStatus.FINISHED}),
    AppointmentStatus.FINISHED: frozenset(),
    AppointmentStatus.CANCELLED: frozenset(),
    # Unblocking a slot is a cancellation of the synthetic appointment
    AppointmentStatus.BLOCKED: frozenset({AppointmentStatus.CANCELLED}),
}


def can_transition(
    current: Union[AppointmentStatus, str],
    target: Union[AppointmentStatus, str]
) -> bool:
    """
    Whether ``current`` may move to ``target``.

    Re-applying the current status is allowed (no-op). Unknown status strings
    raise ValueError.
    """
    current_status = AppointmentStatus(current)
    target_status = AppointmentStatus(target)
    if current_status == target_status:
        return True
    return target_status in ALLOWED_TRANSITIONS[current_status]


def occupies_slot(status: Union[AppointmentStatus, str]) -> bool:
    """Every status except cancelled keeps its slot(s) taken."""
    return AppointmentStatus(status) != AppointmentStatus.CANCELLED
