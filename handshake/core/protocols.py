"""
Module-boundary Protocol definitions — the contracts between the engine
and its collaborators.

Any implementation that satisfies the Protocol can be used interchangeably.
The engine only ever sees these shapes, which keeps it testable without a
database, a network, or an LLM.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Protocol, runtime_checkable

from .events import HandshakeEvent
from .models import Participant


# ============ Persistence / Caller Layer ============

@runtime_checkable
class ParticipantDirectory(Protocol):
    """
    Read-side view of participant state owned by the caller.

    The engine only reads. Recording commitments after a committed
    outcome is the caller's job.
    """

    async def get_participant(self, participant_id: str) -> Participant:
        """Return the participant snapshot. Raise SnapshotError if unknown."""
        ...

    async def count_commitments(self, participant_id: str, since: datetime) -> int:
        """Number of committed sessions involving the participant at or after ``since``."""
        ...


# ============ Event Pusher ============

@runtime_checkable
class EventPusher(Protocol):
    """Pushes handshake events to the product layer."""

    async def push(self, event: HandshakeEvent) -> None:
        """Push a single event."""
        ...


# ============ Enrichment ============

@runtime_checkable
class Renderer(Protocol):
    """
    Renders flavor text for a committed handshake.

    Non-authoritative: whatever it returns (or raises) never changes
    the protocol outcome.
    """

    @property
    def name(self) -> str:
        ...

    async def render(self, context: dict[str, Any]) -> str:
        """Return text for ``context``. May raise RendererError."""
        ...
