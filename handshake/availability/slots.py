"""
Calendar slot generator — a participant's true availability.

Pure and deterministic: the same participant snapshot, tier, reference
time and horizon always give the same slots.

Hours are wall-clock hours in the tzinfo of the reference time; the
engine passes UTC.
"""

from __future__ import annotations

from datetime import datetime, timedelta

from ..core.models import (
    AvailabilitySlot,
    AvailabilityStatus,
    ConnectionTier,
    EnergyBlock,
    Participant,
    SlotKind,
)

DEFAULT_LOOKAHEAD_DAYS = 3
SLOT_LENGTH = timedelta(hours=1)


def _blocks(block: EnergyBlock, tier: ConnectionTier | None) -> bool:
    if tier is None:
        return block.is_blocking
    return not block.allows(tier)


def candidate_hours(participant: Participant) -> range:
    """Hours of the day a slot may start. Focused participants only offer evenings."""
    hours = participant.waking_hours
    start = hours.start_hour
    if participant.status == AvailabilityStatus.FOCUSED:
        start = max(start, hours.focused_start_hour)
    return range(start, hours.end_hour)


def generate_true_slots(
    participant: Participant,
    reference: datetime,
    *,
    tier: ConnectionTier | None = None,
    lookahead_days: int = DEFAULT_LOOKAHEAD_DAYS,
) -> list[AvailabilitySlot]:
    """
    Enumerate hourly windows on each of the next ``lookahead_days`` days.

    A window is dropped when it starts inside a blackout window, or when
    it overlaps a blocking calendar block that ``tier`` may not interrupt.
    With no tier, every blocking block blocks.
    """
    midnight = reference.replace(hour=0, minute=0, second=0, microsecond=0)
    blackouts = participant.policy.blackout_windows
    slots: list[AvailabilitySlot] = []

    for offset in range(1, lookahead_days + 1):
        day = midnight + timedelta(days=offset)
        for hour in candidate_hours(participant):
            start = day.replace(hour=hour)
            end = start + SLOT_LENGTH

            if any(window.covers(start) for window in blackouts):
                continue
            if any(
                block.overlaps(start, end) and _blocks(block, tier)
                for block in participant.calendar
            ):
                continue

            slots.append(AvailabilitySlot(start=start, kind=SlotKind.TRUE))

    return sorted(slots)
