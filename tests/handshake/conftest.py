"""
Shared test fixtures for handshake tests.

Provides a fake clock, a pre-populated in-memory directory, a recording
event pusher, and factories for participants and relationships.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

import numpy as np
import pytest

from handshake.availability.mask import PrivacyMask
from handshake.core.engine import HandshakeEngine
from handshake.core.events import HandshakeEvent
from handshake.core.models import (
    AvailabilityStatus,
    ConnectionTier,
    InteractionMode,
    Participant,
    Relationship,
)
from handshake.infra.directory import InMemoryParticipantDirectory


# Wednesday. The default 3-day horizon is Thu/Fri/Sat, 11 hourly slots each.
FIXED_NOW = datetime(2026, 10, 14, 9, 0, tzinfo=timezone.utc)
DEFAULT_TRUE_SLOT_COUNT = 33


# ============ Clock ============

class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime = FIXED_NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now = self.now + delta


# ============ Mock Event Pusher ============

class MockEventPusher:
    """Collects all pushed events for assertions."""

    def __init__(self) -> None:
        self.events: list[HandshakeEvent] = []

    async def push(self, event: HandshakeEvent) -> None:
        self.events.append(event)


# ============ Factories ============

def _make_participant(
    participant_id: str = "bob",
    display_name: str = "Bob",
    status: AvailabilityStatus = AvailabilityStatus.OPEN,
    **kwargs: Any,
) -> Participant:
    return Participant(
        participant_id=participant_id,
        display_name=display_name,
        status=status,
        **kwargs,
    )


def _make_relationship(
    initiator_id: str = "alice",
    target_id: str = "bob",
    tier: ConnectionTier = ConnectionTier.FRIEND,
    **kwargs: Any,
) -> Relationship:
    kwargs.setdefault("interaction_mode", InteractionMode.IRL_ONLY)
    kwargs.setdefault("last_interaction", FIXED_NOW - timedelta(days=10))
    return Relationship(initiator_id=initiator_id, target_id=target_id, tier=tier, **kwargs)


# ============ Fixtures ============

@pytest.fixture
def make_participant():
    return _make_participant


@pytest.fixture
def make_relationship():
    return _make_relationship


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def make_clock():
    return FakeClock


@pytest.fixture
def pusher() -> MockEventPusher:
    return MockEventPusher()


@pytest.fixture
def directory() -> InMemoryParticipantDirectory:
    d = InMemoryParticipantDirectory()
    d.register(_make_participant("alice", "Alice"))
    d.register(_make_participant("bob", "Bob"))
    return d


@pytest.fixture
def relationship() -> Relationship:
    return _make_relationship()


@pytest.fixture
def transparent_mask() -> PrivacyMask:
    """Mask that hides nothing and never jitters, so selection is predictable."""
    return PrivacyMask(conceal_fraction=0.0, jitter_probability=0.0)


@pytest.fixture
def engine(directory, pusher, clock) -> HandshakeEngine:
    return HandshakeEngine(
        directory=directory,
        event_pusher=pusher,
        privacy_mask=PrivacyMask(rng=np.random.default_rng()),
        clock=clock,
    )
