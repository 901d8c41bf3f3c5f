"""
Handshake engine — the state machine that drives one initiator -> receiver
negotiation from intent to commit or termination.

This is the protocol layer's core. Every step is a coroutine so a real
deployment can suspend on network or database round trips; nothing here
runs in parallel within a session, and nothing here is shared between
sessions except read-only collaborators.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Callable, Optional

from ..availability.mask import PrivacyMask, derived_from
from ..availability.slots import DEFAULT_LOOKAHEAD_DAYS, generate_true_slots
from .errors import EngineError, SnapshotError
from .events import HandshakeEvent, outcome_ready, step_logged
from .gates import GATE_CALENDAR, PolicyGateEvaluator, week_start
from .models import (
    Actor,
    AvailabilitySlot,
    AvailabilityStatus,
    HandshakeState,
    LogEntry,
    LogStep,
    NegotiationSession,
    Participant,
    ProtocolCode,
    Relationship,
    generate_id,
    utc_now,
)
from .outcome import ProtocolOutcome, report
from .protocols import EventPusher, ParticipantDirectory

logger = logging.getLogger(__name__)

# ============ State Machine ============

# Valid state transitions. Key = current state, value = set of allowed next states.
VALID_TRANSITIONS: dict[HandshakeState, set[HandshakeState]] = {
    HandshakeState.INIT: {HandshakeState.INTENT_SENT, HandshakeState.TERMINATED},
    HandshakeState.INTENT_SENT: {HandshakeState.ACKNOWLEDGED, HandshakeState.TERMINATED},
    HandshakeState.ACKNOWLEDGED: {HandshakeState.PROPOSAL_SENT, HandshakeState.TERMINATED},
    HandshakeState.PROPOSAL_SENT: {HandshakeState.COMMITTED, HandshakeState.TERMINATED},
    HandshakeState.COMMITTED: set(),   # Terminal
    HandshakeState.TERMINATED: set(),  # Terminal
}

INTENT_CATEGORY = "social_catchup"
GATE_INTERNAL = "internal"

VIBE_SOCIAL = "social"
VIBE_LOW_KEY = "low_key"

Clock = Callable[[], datetime]


class HandshakeEngine:
    """
    Drives a NegotiationSession through its state machine:
    INIT -> INTENT_SENT -> ACKNOWLEDGED -> PROPOSAL_SENT -> COMMITTED

    Any gate or availability failure jumps to TERMINATED. Any unexpected
    fault also terminates, as HARD_REJECT: the engine never commits on
    an error path.
    """

    def __init__(
        self,
        directory: ParticipantDirectory,
        event_pusher: Optional[EventPusher] = None,
        gate_evaluator: Optional[PolicyGateEvaluator] = None,
        privacy_mask: Optional[PrivacyMask] = None,
        lookahead_days: int = DEFAULT_LOOKAHEAD_DAYS,
        clock: Clock = utc_now,
    ):
        self._directory = directory
        self._event_pusher = event_pusher
        self._gates = gate_evaluator or PolicyGateEvaluator()
        self._mask = privacy_mask or PrivacyMask()
        self._lookahead_days = lookahead_days
        self._clock = clock

    # ============ State Transition ============

    def _transition(self, session: NegotiationSession, new_state: HandshakeState) -> None:
        """
        Move the session to a new state.

        Raises EngineError if the transition is not valid.
        """
        current = session.state
        allowed = VALID_TRANSITIONS.get(current, set())
        if new_state not in allowed:
            raise EngineError(
                f"Invalid state transition: {current.value} -> {new_state.value}"
            )
        logger.info(
            "Handshake %s: %s -> %s",
            session.session_id,
            current.value,
            new_state.value,
        )
        session.state = new_state

    # ============ Log + Push ============

    async def _push(self, event: HandshakeEvent) -> None:
        if self._event_pusher is None:
            return
        try:
            await self._event_pusher.push(event)
        except Exception as exc:
            # The session log is authoritative; a lost live event is not.
            logger.warning("Event push failed for %s: %s", event.session_id, exc)

    async def _log(
        self,
        session: NegotiationSession,
        step: LogStep,
        actor: Actor,
        payload: dict[str, Any],
    ) -> LogEntry:
        entry = session.record(step, actor, payload, self._clock())
        await self._push(step_logged(session.session_id, entry))
        return entry

    async def _terminate(
        self,
        session: NegotiationSession,
        actor: Actor,
        code: ProtocolCode,
        reason: str,
        gate: Optional[str] = None,
    ) -> None:
        self._transition(session, HandshakeState.TERMINATED)
        session.code = code
        session.completed_at = self._clock()
        await self._log(
            session,
            LogStep.TERMINATE,
            actor,
            {"code": code.value, "reason": reason, "gate": gate},
        )

    # ============ Main Flow ============

    def open_session(self, initiator_id: str, receiver_id: str) -> NegotiationSession:
        return NegotiationSession(
            session_id=generate_id("hs"),
            initiator_id=initiator_id,
            receiver_id=receiver_id,
            created_at=self._clock(),
        )

    async def negotiate(
        self,
        initiator_id: str,
        receiver_id: str,
        relationship: Optional[Relationship],
    ) -> ProtocolOutcome:
        """Run a complete handshake and return its outcome."""
        session = self.open_session(initiator_id, receiver_id)
        return await self.run(session, relationship)

    async def run(
        self,
        session: NegotiationSession,
        relationship: Optional[Relationship],
    ) -> ProtocolOutcome:
        """
        Drive ``session`` to a terminal state.

        Cancellation (asyncio.CancelledError) propagates untouched: only
        COMMITTED has an external effect, so an abandoned session needs
        no rollback.
        """
        if session.state != HandshakeState.INIT:
            raise EngineError(f"Session {session.session_id} was already run")

        receiver_name = session.receiver_id
        try:
            initiator, receiver = await self._load_snapshots(session)
            receiver_name = receiver.display_name
            if relationship is None:
                raise SnapshotError("Missing relationship snapshot")
            relationship.validate(initiator.participant_id, receiver.participant_id)

            await self._run_protocol(session, initiator, receiver, relationship)

        except Exception as exc:
            logger.error(
                "Handshake %s failed: %s",
                session.session_id,
                exc,
                exc_info=True,
            )
            if session.is_terminal:
                raise EngineError(f"Fault after terminal step: {exc}") from exc
            # Fail closed
            await self._terminate(
                session,
                Actor.RECEIVER,
                ProtocolCode.HARD_REJECT,
                f"Internal fault: {exc}",
                gate=GATE_INTERNAL,
            )

        outcome = report(session, receiver_name)
        await self._push(
            outcome_ready(
                session.session_id,
                outcome.code,
                outcome.signal,
                outcome.committed_slot.start.isoformat() if outcome.committed_slot else None,
            )
        )
        logger.info(
            "Handshake %s finished: %s (%s), %d steps",
            session.session_id,
            outcome.code.value,
            outcome.signal.value,
            len(outcome.log),
        )
        return outcome

    async def _load_snapshots(
        self, session: NegotiationSession,
    ) -> tuple[Participant, Participant]:
        initiator = await self._directory.get_participant(session.initiator_id)
        receiver = await self._directory.get_participant(session.receiver_id)
        if session.initiator_id == session.receiver_id:
            raise SnapshotError("Initiator and receiver must differ")
        return initiator, receiver

    async def _run_protocol(
        self,
        session: NegotiationSession,
        initiator: Participant,
        receiver: Participant,
        relationship: Relationship,
    ) -> None:
        await self._send_intent(session, receiver, relationship)

        if not await self._acknowledge(session, initiator, receiver, relationship):
            return

        selected = await self._propose(session, relationship)
        if selected is None:
            return

        await self._commit(session, selected)

    # ============ Step 1: Intent (initiator) ============

    async def _send_intent(
        self,
        session: NegotiationSession,
        receiver: Participant,
        relationship: Relationship,
    ) -> None:
        self._transition(session, HandshakeState.INTENT_SENT)
        payload: dict[str, Any] = {
            "target_id": receiver.participant_id,
            "intent": {
                "category": INTENT_CATEGORY,
                "proposed_mode": relationship.interaction_mode.value,
                "energy_cost": relationship.energy_requirement.value,
            },
            "drifted": relationship.is_drifted(session.created_at),
        }
        if relationship.reflection_insight:
            payload["reflection_insight"] = relationship.reflection_insight
        await self._log(session, LogStep.INTENT_SENT, Actor.INITIATOR, payload)

    # ============ Step 2: Acknowledge (receiver) ============

    async def _acknowledge(
        self,
        session: NegotiationSession,
        initiator: Participant,
        receiver: Participant,
        relationship: Relationship,
    ) -> bool:
        """Gates, then slots, then mask. Returns False if the session terminated."""
        now = session.created_at
        committed = await self._directory.count_commitments(
            receiver.participant_id, week_start(now),
        )
        decision = self._gates.evaluate(
            initiator,
            receiver,
            relationship,
            committed_this_week=committed,
            now=now,
        )
        if not decision.passed:
            await self._terminate(
                session, Actor.RECEIVER, decision.code, decision.reason, gate=decision.gate,
            )
            return False

        true_slots = generate_true_slots(
            receiver, now, tier=relationship.tier, lookahead_days=self._lookahead_days,
        )
        blind_slots = self._mask.apply(true_slots)
        if not all(derived_from(slot, true_slots) for slot in blind_slots):
            raise EngineError("Mask offered a slot outside true availability")
        session.offered_slots = tuple(blind_slots)
        logger.debug(
            "Handshake %s: %d true slots, %d blind slots",
            session.session_id, len(true_slots), len(blind_slots),
        )

        if not blind_slots:
            await self._terminate(
                session,
                Actor.RECEIVER,
                ProtocolCode.CALENDAR_REJECT,
                "No available slots after masking",
                gate=GATE_CALENDAR,
            )
            return False

        self._transition(session, HandshakeState.ACKNOWLEDGED)
        vibe = VIBE_SOCIAL if receiver.status == AvailabilityStatus.OPEN else VIBE_LOW_KEY
        await self._log(
            session,
            LogStep.ACKNOWLEDGED,
            Actor.RECEIVER,
            {
                "status": "negotiating",
                "vibe": vibe,
                "blind_slot_count": len(blind_slots),
            },
        )
        return True

    # ============ Step 3: Propose (initiator) ============

    def _select_slot(
        self, offered: tuple[AvailabilitySlot, ...], now: datetime,
    ) -> Optional[AvailabilitySlot]:
        """Earliest offered slot that has not started yet."""
        upcoming = [slot for slot in offered if slot.start > now]
        return min(upcoming, default=None)

    async def _propose(
        self, session: NegotiationSession, relationship: Relationship,
    ) -> Optional[AvailabilitySlot]:
        selected = self._select_slot(session.offered_slots, self._clock())
        if selected is None:
            await self._terminate(
                session,
                Actor.INITIATOR,
                ProtocolCode.CALENDAR_REJECT,
                "Initiator could not match any blind slots",
                gate=GATE_CALENDAR,
            )
            return None

        self._transition(session, HandshakeState.PROPOSAL_SENT)
        await self._log(
            session,
            LogStep.PROPOSAL_SENT,
            Actor.INITIATOR,
            {
                "selected_slot": selected.start.isoformat(),
                "interaction_mode": relationship.interaction_mode.value,
            },
        )
        return selected

    # ============ Step 4: Commit (receiver) ============

    async def _commit(self, session: NegotiationSession, selected: AvailabilitySlot) -> None:
        if selected not in session.offered_slots:
            raise EngineError("Proposed slot was never offered")
        self._transition(session, HandshakeState.COMMITTED)
        session.code = ProtocolCode.SUCCESS
        session.committed_slot = selected
        session.completed_at = self._clock()
        await self._log(
            session,
            LogStep.COMMIT,
            Actor.RECEIVER,
            {
                "status": "confirmed",
                "slot": selected.start.isoformat(),
                "notification_triggered": True,
            },
        )
