"""
Energy heuristics — turn raw calendar events into scrubbed EnergyBlocks.

A raw event carries PII (titles, attendees). The scrubber keeps only the
time range, a coarse category, a generic privacy label, and a drain score
that decides who may interrupt the block.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Iterable

from ..core.errors import SnapshotError
from ..core.models import ConnectionTier, EnergyBlock, EnergyCategory, as_utc

logger = logging.getLogger(__name__)

PANIC_WORDS = ("deadline", "urgent", "important", "review", "fire", "negotiation")
CHILL_WORDS = ("lunch", "coffee", "gym", "walk", "break")
WELLNESS_DRAIN_WORDS = ("therapy", "doctor", "meditation", "yoga")

WELLNESS_WORDS = ("therapy", "doctor", "medical", "gym", "yoga")
SOCIAL_WORDS = ("lunch", "dinner", "drinks", "date", "party")
TRAVEL_WORDS = ("flight", "train", "commute")
WORK_WORDS = ("review", "sync", "meeting", "call", "deadline", "client")
WORK_SOURCES = ("google_work",)

BASELINE_DRAIN = 50
HIGH_DRAIN_THRESHOLD = 70
FRIEND_INTERRUPT_BELOW = 30
INNER_CIRCLE_INTERRUPT_BELOW = 60


@dataclass(frozen=True)
class CalendarFilters:
    """Ghost filters applied before scoring."""
    ignore_all_day: bool = True
    focus_time_is_free: bool = False


def _has_any(text: str, words: Iterable[str]) -> bool:
    return any(w in text for w in words)


def calculate_energy_drain(title: str, duration_minutes: float) -> int:
    """Score how taxing an event is, 0 (restful) to 100 (draining)."""
    t = title.lower()
    score = BASELINE_DRAIN

    if _has_any(t, PANIC_WORDS):
        score += 40
    if _has_any(t, CHILL_WORDS):
        score -= 30
    if _has_any(t, WELLNESS_DRAIN_WORDS):
        score -= 10  # restorative, but still emotionally costly

    if duration_minutes > 90:
        score += 20
    if duration_minutes < 30:
        score -= 10

    return min(max(score, 0), 100)


def categorize(title: str, drain_score: int, source: str = "") -> tuple[EnergyCategory, str]:
    """Return (category, privacy label) for an event."""
    t = title.lower()
    if _has_any(t, WELLNESS_WORDS):
        return EnergyCategory.WELLNESS, "Health/Wellness"
    if _has_any(t, SOCIAL_WORDS):
        return EnergyCategory.SOCIAL, "Social"
    if _has_any(t, TRAVEL_WORDS):
        return EnergyCategory.TRAVEL, "Transit"
    if _has_any(t, WORK_WORDS) or source in WORK_SOURCES:
        if drain_score > HIGH_DRAIN_THRESHOLD:
            return EnergyCategory.WORK_HIGH, "Deep Work"
        return EnergyCategory.WORK_LOW, "Work"
    return EnergyCategory.MISC, "Busy"


def interruptible_by(drain_score: int) -> frozenset[ConnectionTier]:
    """Tiers allowed to interrupt a block. Monotonic: more drain, fewer tiers."""
    if drain_score < FRIEND_INTERRUPT_BELOW:
        return frozenset({ConnectionTier.INNER_CIRCLE, ConnectionTier.FRIEND})
    if drain_score < INNER_CIRCLE_INTERRUPT_BELOW:
        return frozenset({ConnectionTier.INNER_CIRCLE})
    return frozenset()


def score_event(
    block_id: str,
    title: str,
    start: datetime,
    end: datetime,
    source: str = "",
) -> EnergyBlock:
    duration_minutes = (end - start) / timedelta(minutes=1)
    drain = calculate_energy_drain(title, duration_minutes)
    category, label = categorize(title, drain, source)
    return EnergyBlock(
        block_id=block_id,
        start=start,
        end=end,
        category=category,
        privacy_label=label,
        drain_score=drain,
        interruptible_by=interruptible_by(drain),
    )


def _parse_time(value: Any, field_name: str) -> datetime:
    if isinstance(value, datetime):
        return as_utc(value)
    try:
        return as_utc(datetime.fromisoformat(str(value)))
    except ValueError as exc:
        raise SnapshotError(f"Invalid event {field_name}: {value!r}") from exc


def process_events(
    raw_events: list[dict[str, Any]],
    filters: CalendarFilters | None = None,
) -> list[EnergyBlock]:
    """
    Scrub raw events into EnergyBlocks.

    Each raw event is a dict with ``summary``, ``start``, ``end`` and
    optionally ``all_day`` and ``source``. Timestamps without an offset
    are taken as UTC. Block ids number the events that survive the
    filters, so they have no gaps.
    """
    filters = filters or CalendarFilters()
    blocks: list[EnergyBlock] = []

    for event in raw_events:
        summary = str(event.get("summary", ""))
        if event.get("all_day") and filters.ignore_all_day:
            continue
        if "focus time" in summary.lower() and filters.focus_time_is_free:
            continue

        blocks.append(
            score_event(
                block_id=f"block_{len(blocks)}",
                title=summary,
                start=_parse_time(event.get("start"), "start"),
                end=_parse_time(event.get("end"), "end"),
                source=str(event.get("source", "")),
            )
        )

    logger.debug("Scrubbed %d raw events into %d blocks", len(raw_events), len(blocks))
    return blocks
