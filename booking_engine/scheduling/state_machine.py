"""
Finite state machine for the appointment lifecycle.

Defines the appointment statuses, the actions that move between them, and
a single transition table. Every status change goes through
``transition()``; callers never write the status field directly.

    pending   --confirm------> confirmed --complete-----> completed
    pending   --cancel-------> cancelled
    confirmed --cancel-------> cancelled
    confirmed --mark_no_show-> no_show

``completed``, ``cancelled`` and ``no_show`` are terminal.

Usage:
    appointment = new_appointment(...)
    appointment = transition(appointment, LifecycleAction.CONFIRM)
    assert appointment.status == AppointmentStatus.CONFIRMED
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Any, Optional

from booking_engine.errors import BookingError
from booking_engine.schemas.appointment_schema import (
    Appointment,
    AppointmentStatus,
    CancelledBy,
)
from booking_engine.schemas.service_schema import Service

logger = logging.getLogger(__name__)


class LifecycleAction(str, Enum):
    """Events that cause status transitions."""

    CONFIRM = "confirm"
    COMPLETE = "complete"
    CANCEL = "cancel"
    MARK_NO_SHOW = "mark_no_show"


@dataclass(frozen=True)
class Transition:
    """A single valid status transition."""

    from_status: AppointmentStatus
    to_status: AppointmentStatus
    action: LifecycleAction


TERMINAL_STATUSES = frozenset({
    AppointmentStatus.COMPLETED,
    AppointmentStatus.CANCELLED,
    AppointmentStatus.NO_SHOW,
})

TRANSITIONS: list[Transition] = [
    Transition(AppointmentStatus.PENDING, AppointmentStatus.CONFIRMED,
               LifecycleAction.CONFIRM),
    Transition(AppointmentStatus.PENDING, AppointmentStatus.CANCELLED,
               LifecycleAction.CANCEL),
    Transition(AppointmentStatus.CONFIRMED, AppointmentStatus.COMPLETED,
               LifecycleAction.COMPLETE),
    Transition(AppointmentStatus.CONFIRMED, AppointmentStatus.CANCELLED,
               LifecycleAction.CANCEL),
    Transition(AppointmentStatus.CONFIRMED, AppointmentStatus.NO_SHOW,
               LifecycleAction.MARK_NO_SHOW),
]

# Timestamp field stamped when an appointment enters each status
_STATUS_TIMESTAMPS: dict[AppointmentStatus, str] = {
    AppointmentStatus.CONFIRMED: "confirmed_at",
    AppointmentStatus.COMPLETED: "completed_at",
    AppointmentStatus.CANCELLED: "cancelled_at",
}

# Fields new_appointment derives itself or that only transitions may set
_CREATION_FIELDS = frozenset({
    "id", "business_id", "service_id", "service_name", "customer_id",
    "scheduled_date", "scheduled_time", "duration", "buffer_time", "price",
    "created_at", "updated_at", "cancelled_by", "cancel_reason",
    *_STATUS_TIMESTAMPS.values(),
})


class InvalidTransitionError(BookingError):
    """Raised when an action is not valid from the appointment's current status."""

    def __init__(self, message: str, current_status: AppointmentStatus) -> None:
        super().__init__(message)
        self.current_status = current_status


class TerminalStateError(InvalidTransitionError):
    """Raised when an action targets an appointment in a terminal status."""


def is_terminal(status: AppointmentStatus) -> bool:
    return status in TERMINAL_STATUSES


def valid_actions(status: AppointmentStatus) -> list[LifecycleAction]:
    """Return all actions valid from ``status``."""
    return [t.action for t in TRANSITIONS if t.from_status == status]


def new_appointment(
    *,
    service: Service,
    customer_id: str,
    scheduled_date: date,
    scheduled_time: str,
    now: Optional[datetime] = None,
    appointment_id: Optional[str] = None,
    **details: Any,
) -> Appointment:
    """
    Build a fresh appointment for ``service``.

    Duration, buffer, price and name are copied from the service so later
    catalog edits never rewrite history. The status is always ``pending``;
    a ``status`` passed in ``details`` is ignored.

    Raises:
        ValueError: If ``details`` sets a field derived here or owned by
            a lifecycle transition.
    """
    if now is None:
        now = datetime.now()
    details.pop("status", None)
    reserved = sorted(_CREATION_FIELDS.intersection(details))
    if reserved:
        raise ValueError(f"Cannot set {', '.join(reserved)} when creating an appointment")
    return Appointment(
        id=appointment_id or f"APT-{uuid.uuid4().hex[:10].upper()}",
        business_id=service.business_id,
        service_id=service.id,
        service_name=service.name,
        customer_id=customer_id,
        scheduled_date=scheduled_date,
        scheduled_time=scheduled_time,
        duration=service.duration,
        buffer_time=service.buffer_time,
        price=service.price,
        status=AppointmentStatus.PENDING,
        created_at=now,
        updated_at=now,
        **details,
    )


def transition(
    appointment: Appointment,
    action: LifecycleAction,
    *,
    now: Optional[datetime] = None,
    cancelled_by: Optional[CancelledBy] = None,
    reason: Optional[str] = None,
) -> Appointment:
    """
    Apply a lifecycle action and return the updated appointment.

    Args:
        appointment: The current record.
        action: The lifecycle event.
        now: Timestamp for ``updated_at`` and the status timestamp.
        cancelled_by: Who cancelled (only used for ``CANCEL``).
        reason: Cancellation reason (only used for ``CANCEL``).

    Returns:
        A new ``Appointment``; the input is left untouched.

    Raises:
        TerminalStateError: If the appointment is already terminal.
        InvalidTransitionError: If no transition matches the action.
    """
    current = appointment.status
    if is_terminal(current):
        raise TerminalStateError(
            f"Appointment {appointment.id} is '{current.value}' and cannot be changed "
            f"(attempted '{action.value}')",
            current_status=current,
        )

    for t in TRANSITIONS:
        if t.from_status == current and t.action == action:
            now = now or datetime.now()
            update: dict[str, Any] = {"status": t.to_status, "updated_at": now}
            stamp = _STATUS_TIMESTAMPS.get(t.to_status)
            if stamp:
                update[stamp] = now
            if action == LifecycleAction.CANCEL:
                update["cancelled_by"] = cancelled_by
                update["cancel_reason"] = reason

            logger.debug(
                "Appointment %s: %s -> %s (action: %s)",
                appointment.id, current.value, t.to_status.value, action.value,
            )
            return appointment.model_copy(update=update)

    valid = [a.value for a in valid_actions(current)]
    raise InvalidTransitionError(
        f"No valid transition from '{current.value}' with action '{action.value}'. "
        f"Valid actions: {valid}",
        current_status=current,
    )


def action_for(current: AppointmentStatus, target: AppointmentStatus) -> LifecycleAction:
    """Resolve the action that moves ``current`` to ``target``.

    Raises:
        TerminalStateError: If ``current`` is terminal.
        InvalidTransitionError: If ``target`` is not reachable in one step.
    """
    if is_terminal(current):
        raise TerminalStateError(
            f"Status '{current.value}' is terminal; cannot move to '{target.value}'",
            current_status=current,
        )
    for t in TRANSITIONS:
        if t.from_status == current and t.to_status == target:
            return t.action
    raise InvalidTransitionError(
        f"No valid transition from '{current.value}' to '{target.value}'",
        current_status=current,
    )


def transition_to(
    appointment: Appointment,
    target: AppointmentStatus,
    **kwargs: Any,
) -> Appointment:
    """Move an appointment to ``target`` status via the matching action."""
    return transition(appointment, action_for(appointment.status, target), **kwargs)


def with_business_notes(
    appointment: Appointment,
    notes: Optional[str],
    now: Optional[datetime] = None,
) -> Appointment:
    """Return a copy with updated business-private notes.

    Notes stay editable after the appointment reaches a terminal status.
    """
    return appointment.model_copy(
        update={"business_notes": notes, "updated_at": now or datetime.now()}
    )
