"""Availability — calendar scrubbing, true slot generation, privacy masking."""

from .energy import (
    CalendarFilters,
    calculate_energy_drain,
    categorize,
    interruptible_by,
    process_events,
)
from .mask import PrivacyMask, derived_from
from .slots import generate_true_slots

__all__ = [
    "CalendarFilters",
    "calculate_energy_drain",
    "categorize",
    "interruptible_by",
    "process_events",
    "PrivacyMask",
    "derived_from",
    "generate_true_slots",
]
