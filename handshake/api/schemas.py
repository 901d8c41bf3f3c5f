"""
Pydantic request/response models for the handshake API.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator

from handshake.core.models import (
    AvailabilityStatus,
    BlackoutWindow,
    ConnectionTier,
    EnergyLevel,
    InteractionMode,
    Relationship,
    SocialPolicy,
    WakingHours,
    as_utc,
)


# ============ Participant ============

class BlackoutWindowModel(BaseModel):
    day: str
    start: str
    end: str
    reason: str = ""

    def to_model(self) -> BlackoutWindow:
        return BlackoutWindow(day=self.day, start=self.start, end=self.end, reason=self.reason)


class CalendarEventModel(BaseModel):
    """A raw calendar event. Titles are scrubbed on arrival and never stored."""
    summary: str
    start: datetime
    end: datetime
    all_day: bool = False
    source: str = ""

    @field_validator("start", "end")
    @classmethod
    def _assume_utc(cls, v: datetime) -> datetime:
        return as_utc(v)


class RegisterParticipantRequest(BaseModel):
    participant_id: str
    display_name: str
    status: AvailabilityStatus = AvailabilityStatus.OPEN
    max_social_events_per_week: int = Field(default=3, ge=0)
    blackout_windows: list[BlackoutWindowModel] = Field(default_factory=list)
    accepted_tiers: Optional[list[ConnectionTier]] = None
    cooldown_days: int = Field(default=0, ge=0)
    start_hour: int = 10
    end_hour: int = 21
    focused_start_hour: int = 19
    calendar_events: list[CalendarEventModel] = Field(default_factory=list)
    ignore_all_day: bool = True
    focus_time_is_free: bool = False

    def to_policy(self) -> SocialPolicy:
        tiers = frozenset(self.accepted_tiers) if self.accepted_tiers is not None else frozenset(ConnectionTier)
        return SocialPolicy(
            max_social_events_per_week=self.max_social_events_per_week,
            blackout_windows=tuple(w.to_model() for w in self.blackout_windows),
            accepted_tiers=tiers,
            cooldown_days=self.cooldown_days,
        )

    def to_waking_hours(self) -> WakingHours:
        return WakingHours(
            start_hour=self.start_hour,
            end_hour=self.end_hour,
            focused_start_hour=self.focused_start_hour,
        )


class ParticipantResponse(BaseModel):
    participant_id: str
    display_name: str
    status: str
    max_social_events_per_week: int
    energy_blocks: list[dict[str, Any]] = Field(default_factory=list)


# ============ Relationship ============

class RelationshipModel(BaseModel):
    initiator_id: str
    target_id: str
    tier: ConnectionTier
    drift_threshold_days: int = Field(default=30, ge=0)
    interaction_mode: InteractionMode = InteractionMode.ANY
    last_interaction: Optional[datetime] = None
    energy_requirement: EnergyLevel = EnergyLevel.MEDIUM
    reflection_insight: Optional[str] = None

    @field_validator("last_interaction")
    @classmethod
    def _assume_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return as_utc(v) if v is not None else None

    def to_model(self) -> Relationship:
        return Relationship(
            initiator_id=self.initiator_id,
            target_id=self.target_id,
            tier=self.tier,
            drift_threshold_days=self.drift_threshold_days,
            interaction_mode=self.interaction_mode,
            last_interaction=self.last_interaction,
            energy_requirement=self.energy_requirement,
            reflection_insight=self.reflection_insight,
        )


# ============ Handshake ============

class NegotiateRequest(BaseModel):
    initiator_id: str
    receiver_id: str
    relationship: Optional[RelationshipModel] = None


class HandshakeResponse(BaseModel):
    session_id: str
    success: bool
    code: str
    signal: str
    human_message: str
    committed_slot: Optional[str] = None
    log: list[dict[str, Any]] = Field(default_factory=list)
    suggestion: Optional[dict[str, str]] = None
