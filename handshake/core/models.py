"""
Core data models for the handshake protocol.

These are the fundamental data structures shared across all modules.
They define WHAT the system works with, not HOW it processes them.

Participant, policy and relationship records are frozen: the engine reads
them as snapshots taken at session start. Only NegotiationSession is
mutable, and only through the state machine.
"""

from __future__ import annotations

import copy
import uuid
from dataclasses import dataclass, field
from datetime import datetime, time, timedelta, timezone
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping, Optional

from .errors import EngineError, SnapshotError


# ============ ID / Clock ============

def generate_id(prefix: str = "") -> str:
    """Generate a unique ID with optional prefix."""
    uid = uuid.uuid4().hex[:12]
    return f"{prefix}_{uid}" if prefix else uid


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(moment: datetime) -> datetime:
    """Attach UTC to a naive datetime; aware ones pass through unchanged."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")


# ============ Enumerations ============

class AvailabilityStatus(str, Enum):
    OPEN = "open"
    RECHARGING = "recharging"
    FOCUSED = "focused"
    TRAVELING = "traveling"


class ConnectionTier(str, Enum):
    """Trust tiers, most exclusive first."""
    INNER_CIRCLE = "inner_circle"
    FRIEND = "friend"
    ACQUAINTANCE = "acquaintance"


class InteractionMode(str, Enum):
    IRL_ONLY = "irl_only"
    DIGITAL_OK = "digital_ok"
    ANY = "any"


class EnergyLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class EnergyCategory(str, Enum):
    WORK_HIGH = "work_high"
    WORK_LOW = "work_low"
    SOCIAL = "social"
    WELLNESS = "wellness"
    TRAVEL = "travel"
    MISC = "misc"


class SlotKind(str, Enum):
    TRUE = "true"    # generator output, never leaves the receiver
    BLIND = "blind"  # post-mask, offered to the initiator


# ============ Policy ============

@dataclass(frozen=True)
class BlackoutWindow:
    """A recurring weekly window during which no social slot is offered."""
    day: str      # e.g. "Monday"
    start: str    # "09:00"
    end: str      # "18:00"
    reason: str = ""

    def __post_init__(self) -> None:
        if self.day.lower() not in WEEKDAYS:
            raise SnapshotError(f"Unknown blackout day: {self.day!r}")
        try:
            time.fromisoformat(self.start)
            time.fromisoformat(self.end)
        except ValueError as exc:
            raise SnapshotError(f"Invalid blackout bounds: {self.start}-{self.end}") from exc

    def covers(self, moment: datetime) -> bool:
        if WEEKDAYS[moment.weekday()] != self.day.lower():
            return False
        clock = moment.time().replace(tzinfo=None)
        return time.fromisoformat(self.start) <= clock < time.fromisoformat(self.end)


@dataclass(frozen=True)
class SocialPolicy:
    """A receiver's personal rules for accepting social requests."""
    max_social_events_per_week: int = 3
    blackout_windows: tuple[BlackoutWindow, ...] = ()
    accepted_tiers: frozenset[ConnectionTier] = frozenset(ConnectionTier)
    cooldown_days: int = 0  # 0 disables the cooldown gate


@dataclass(frozen=True)
class WakingHours:
    start_hour: int = 10
    end_hour: int = 21
    focused_start_hour: int = 19

    def __post_init__(self) -> None:
        for hour in (self.start_hour, self.end_hour, self.focused_start_hour):
            if not 0 <= hour <= 24:
                raise SnapshotError(f"Hour out of range: {hour}")
        if self.start_hour > self.end_hour:
            raise SnapshotError(
                f"Waking hours start after they end: {self.start_hour} > {self.end_hour}"
            )


# ============ Calendar ============

@dataclass(frozen=True)
class EnergyBlock:
    """
    A scrubbed calendar event: no title, only how taxing it is.

    interruptible_by shrinks as drain_score grows (see
    handshake.availability.energy.interruptible_by).
    """
    block_id: str
    start: datetime
    end: datetime
    category: EnergyCategory
    privacy_label: str
    drain_score: int
    interruptible_by: frozenset[ConnectionTier] = frozenset()
    is_blocking: bool = True

    def __post_init__(self) -> None:
        if not 0 <= self.drain_score <= 100:
            raise SnapshotError(f"drain_score out of range: {self.drain_score}")
        if self.end < self.start:
            raise SnapshotError(f"Block {self.block_id} ends before it starts")

    def overlaps(self, start: datetime, end: datetime) -> bool:
        return self.start < end and start < self.end

    def allows(self, tier: ConnectionTier) -> bool:
        return not self.is_blocking or tier in self.interruptible_by

    def to_dict(self) -> dict[str, Any]:
        return {
            "block_id": self.block_id,
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
            "category": self.category.value,
            "privacy_label": self.privacy_label,
            "drain_score": self.drain_score,
            "interruptible_by": sorted(t.value for t in self.interruptible_by),
            "is_blocking": self.is_blocking,
        }


@dataclass(frozen=True, order=True)
class AvailabilitySlot:
    """A one-hour social window starting at ``start``."""
    start: datetime
    kind: SlotKind = SlotKind.TRUE

    def to_dict(self) -> dict[str, Any]:
        return {"start": self.start.isoformat(), "kind": self.kind.value}


# ============ Participants ============

@dataclass(frozen=True)
class Participant:
    participant_id: str
    display_name: str
    status: AvailabilityStatus = AvailabilityStatus.OPEN
    policy: SocialPolicy = field(default_factory=SocialPolicy)
    waking_hours: WakingHours = field(default_factory=WakingHours)
    calendar: tuple[EnergyBlock, ...] = ()


@dataclass(frozen=True)
class Relationship:
    """Directional relationship snapshot, initiator -> target."""
    initiator_id: str
    target_id: str
    tier: ConnectionTier
    drift_threshold_days: int = 30
    interaction_mode: InteractionMode = InteractionMode.ANY
    last_interaction: Optional[datetime] = None
    energy_requirement: EnergyLevel = EnergyLevel.MEDIUM
    reflection_insight: Optional[str] = None

    def validate(self, initiator_id: str, receiver_id: str) -> None:
        """Raise SnapshotError unless this snapshot describes initiator -> receiver."""
        if (self.initiator_id, self.target_id) != (initiator_id, receiver_id):
            raise SnapshotError(
                f"Relationship {self.initiator_id}->{self.target_id} does not match "
                f"{initiator_id}->{receiver_id}"
            )
        if not isinstance(self.tier, ConnectionTier):
            raise SnapshotError(f"Unknown tier: {self.tier!r}")
        if not isinstance(self.interaction_mode, InteractionMode):
            raise SnapshotError(f"Unknown interaction mode: {self.interaction_mode!r}")
        if self.drift_threshold_days < 0:
            raise SnapshotError("drift_threshold_days must be >= 0")

    def days_since_interaction(self, now: datetime) -> Optional[float]:
        if self.last_interaction is None:
            return None
        return (now - self.last_interaction) / timedelta(days=1)

    def is_drifted(self, now: datetime) -> bool:
        """True once silence has outlasted the threshold (never met counts as drifted)."""
        days = self.days_since_interaction(now)
        return days is None or days > self.drift_threshold_days


# ============ Protocol Vocabulary ============

class HandshakeState(str, Enum):
    """
    Session lifecycle states.

    Linear happy path; every non-terminal state may jump to TERMINATED.
    COMMITTED and TERMINATED are absorbing.
    """
    INIT = "init"
    INTENT_SENT = "intent_sent"
    ACKNOWLEDGED = "acknowledged"
    PROPOSAL_SENT = "proposal_sent"
    COMMITTED = "committed"
    TERMINATED = "terminated"


class LogStep(str, Enum):
    INTENT_SENT = "intent_sent"
    ACKNOWLEDGED = "acknowledged"
    PROPOSAL_SENT = "proposal_sent"
    COMMIT = "commit"
    TERMINATE = "terminate"


TERMINAL_STEPS = frozenset({LogStep.COMMIT, LogStep.TERMINATE})


class Actor(str, Enum):
    INITIATOR = "initiator"
    RECEIVER = "receiver"


class ProtocolCode(str, Enum):
    SUCCESS = "success"
    HARD_REJECT = "hard_reject"          # blocked / incompatible / internal fault
    BATTERY_REJECT = "battery_reject"    # receiver capacity unavailable
    CALENDAR_REJECT = "calendar_reject"  # no viable slot after masking
    QUOTA_REJECT = "quota_reject"        # weekly cap reached
    DRIFT_REJECT = "drift_reject"        # cooldown not yet elapsed


class Signal(str, Enum):
    GREEN = "green"
    YELLOW = "yellow"
    RED = "red"


# ============ Session Log ============

@dataclass(frozen=True)
class LogEntry:
    """A single transition record. Payload is a read-only deep copy."""
    step: LogStep
    actor: Actor
    payload: Mapping[str, Any]
    timestamp: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "step": self.step.value,
            "actor": self.actor.value,
            "payload": copy.deepcopy(dict(self.payload)),
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass
class NegotiationSession:
    """
    One initiator -> receiver negotiation.

    The log is a tuple rebuilt on every append, so anything handed out
    earlier (a pushed event, a previous ``log`` reference) never changes.
    Once a terminal entry is written the session rejects further writes.
    """
    session_id: str
    initiator_id: str
    receiver_id: str
    state: HandshakeState = HandshakeState.INIT
    log: tuple[LogEntry, ...] = ()
    offered_slots: tuple[AvailabilitySlot, ...] = ()
    code: Optional[ProtocolCode] = None
    committed_slot: Optional[AvailabilitySlot] = None
    created_at: datetime = field(default_factory=utc_now)
    completed_at: Optional[datetime] = None

    @property
    def is_terminal(self) -> bool:
        return self.state in (HandshakeState.COMMITTED, HandshakeState.TERMINATED)

    @property
    def steps(self) -> list[LogStep]:
        return [entry.step for entry in self.log]

    def record(
        self,
        step: LogStep,
        actor: Actor,
        payload: Mapping[str, Any],
        timestamp: datetime,
    ) -> LogEntry:
        """Append one entry. Timestamps never go backwards."""
        if self.log and self.log[-1].step in TERMINAL_STEPS:
            raise EngineError(f"Session {self.session_id} is closed; cannot log {step.value}")
        if self.log and timestamp < self.log[-1].timestamp:
            timestamp = self.log[-1].timestamp
        entry = LogEntry(
            step=step,
            actor=actor,
            payload=MappingProxyType(copy.deepcopy(dict(payload))),
            timestamp=timestamp,
        )
        self.log = self.log + (entry,)
        return entry

    def log_dicts(self) -> list[dict[str, Any]]:
        return [entry.to_dict() for entry in self.log]
