from booking_engine.scheduling.conflicts import conflicts, find_conflicts
from booking_engine.scheduling.slot_generator import available_dates, available_slots
from booking_engine.scheduling.state_machine import (
    InvalidTransitionError,
    LifecycleAction,
    TerminalStateError,
    transition,
    transition_to,
)

__all__ = [
    "available_slots",
    "available_dates",
    "conflicts",
    "find_conflicts",
    "LifecycleAction",
    "InvalidTransitionError",
    "TerminalStateError",
    "transition",
    "transition_to",
]
