"""
InMemoryParticipantDirectory — the caller-side store for participants,
relationships and committed bookings.

Implements the ParticipantDirectory protocol the engine reads from, plus
the write side the caller uses after a COMMITTED outcome. The engine
itself never writes here.

Usage::

    directory = InMemoryParticipantDirectory()
    directory.register(alice)
    directory.register(bob)
    directory.put_relationship(rel)

    outcome = await engine.negotiate("alice", "bob", directory.get_relationship("alice", "bob"))
    if outcome.success:
        directory.record_commitment(outcome, "alice", "bob")
"""

from __future__ import annotations

import dataclasses
import logging
from datetime import datetime
from typing import Optional

from handshake.core.errors import SnapshotError
from handshake.core.models import Participant, Relationship
from handshake.core.outcome import ProtocolOutcome

logger = logging.getLogger(__name__)


class CommitmentRecord:
    """One committed handshake as seen by the persistence layer."""

    __slots__ = ("session_id", "initiator_id", "receiver_id", "slot_start", "committed_at")

    def __init__(
        self,
        session_id: str,
        initiator_id: str,
        receiver_id: str,
        slot_start: datetime,
        committed_at: datetime,
    ):
        self.session_id = session_id
        self.initiator_id = initiator_id
        self.receiver_id = receiver_id
        self.slot_start = slot_start
        self.committed_at = committed_at

    def involves(self, participant_id: str) -> bool:
        return participant_id in (self.initiator_id, self.receiver_id)


class InMemoryParticipantDirectory:
    """Dict-backed directory. One instance per process; not shared across workers."""

    def __init__(self) -> None:
        self._participants: dict[str, Participant] = {}
        self._relationships: dict[tuple[str, str], Relationship] = {}
        self._commitments: list[CommitmentRecord] = []

    # ── participants ──

    def register(self, participant: Participant) -> None:
        """Add or replace a participant snapshot."""
        self._participants[participant.participant_id] = participant
        logger.info("Registered participant %s", participant.participant_id)

    def has_participant(self, participant_id: str) -> bool:
        return participant_id in self._participants

    @property
    def participant_ids(self) -> list[str]:
        return list(self._participants)

    async def get_participant(self, participant_id: str) -> Participant:
        participant = self._participants.get(participant_id)
        if participant is None:
            raise SnapshotError(f"Unknown participant: {participant_id}")
        return participant

    # ── relationships ──

    def put_relationship(self, relationship: Relationship) -> None:
        key = (relationship.initiator_id, relationship.target_id)
        self._relationships[key] = relationship

    def get_relationship(self, initiator_id: str, target_id: str) -> Optional[Relationship]:
        return self._relationships.get((initiator_id, target_id))

    # ── commitments ──

    async def count_commitments(self, participant_id: str, since: datetime) -> int:
        return sum(
            1 for c in self._commitments
            if c.involves(participant_id) and c.committed_at >= since
        )

    def record_commitment(
        self,
        outcome: ProtocolOutcome,
        initiator_id: str,
        receiver_id: str,
    ) -> CommitmentRecord:
        """
        Persist a committed outcome: bump quota counters for both sides and
        stamp last_interaction on both directions of the relationship.
        """
        if not outcome.success or outcome.committed_slot is None:
            raise SnapshotError(f"Outcome {outcome.session_id} was not committed")

        committed_at = outcome.log[-1].timestamp
        record = CommitmentRecord(
            session_id=outcome.session_id,
            initiator_id=initiator_id,
            receiver_id=receiver_id,
            slot_start=outcome.committed_slot.start,
            committed_at=committed_at,
        )
        self._commitments.append(record)

        for key in ((initiator_id, receiver_id), (receiver_id, initiator_id)):
            rel = self._relationships.get(key)
            if rel is not None:
                self._relationships[key] = dataclasses.replace(rel, last_interaction=committed_at)

        logger.info(
            "Recorded commitment %s: %s <-> %s at %s",
            outcome.session_id, initiator_id, receiver_id, record.slot_start.isoformat(),
        )
        return record

    def commitments_for(self, participant_id: str) -> list[CommitmentRecord]:
        return [c for c in self._commitments if c.involves(participant_id)]
