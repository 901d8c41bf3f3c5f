"""
Policy gate evaluator — the receiver's ordered accept/reject rules.

Gates run in a fixed order and stop at the first rejection:

1. status   — recharging always rejects; focused rejects all but inner circle
2. quota    — committed sessions this week vs. max_social_events_per_week
3. tier     — relationship tier must be one the receiver accepts
4. cooldown — minimum days since the last interaction

The calendar gate is not here: it needs blind slots, so the state
machine evaluates it after masking.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from .models import (
    AvailabilityStatus,
    ConnectionTier,
    Participant,
    ProtocolCode,
    Relationship,
)

logger = logging.getLogger(__name__)

GATE_STATUS = "status"
GATE_QUOTA = "quota"
GATE_TIER = "tier"
GATE_COOLDOWN = "cooldown"
GATE_CALENDAR = "calendar"


@dataclass(frozen=True)
class GateDecision:
    passed: bool
    code: Optional[ProtocolCode] = None
    reason: str = ""
    gate: Optional[str] = None

    @classmethod
    def accept(cls) -> GateDecision:
        return cls(passed=True)

    @classmethod
    def reject(cls, gate: str, code: ProtocolCode, reason: str) -> GateDecision:
        return cls(passed=False, code=code, reason=reason, gate=gate)


def week_start(now: datetime) -> datetime:
    """Monday 00:00 of the week containing ``now`` (same tzinfo)."""
    midnight = now.replace(hour=0, minute=0, second=0, microsecond=0)
    return midnight - timedelta(days=now.weekday())


class PolicyGateEvaluator:
    """Applies the receiver's policy to an incoming request."""

    def evaluate(
        self,
        initiator: Participant,
        receiver: Participant,
        relationship: Relationship,
        *,
        committed_this_week: int,
        now: datetime,
    ) -> GateDecision:
        checks = (
            lambda: self._status_gate(receiver, relationship),
            lambda: self._quota_gate(receiver, committed_this_week),
            lambda: self._tier_gate(receiver, relationship),
            lambda: self._cooldown_gate(receiver, relationship, now),
        )
        for check in checks:
            decision = check()
            if not decision.passed:
                logger.info(
                    "Gate %s rejected %s -> %s: %s",
                    decision.gate,
                    initiator.participant_id,
                    receiver.participant_id,
                    decision.code.value,
                )
                return decision
        return GateDecision.accept()

    # ============ Gates ============

    @staticmethod
    def _status_gate(receiver: Participant, relationship: Relationship) -> GateDecision:
        status = receiver.status
        if status == AvailabilityStatus.RECHARGING:
            return GateDecision.reject(
                GATE_STATUS, ProtocolCode.BATTERY_REJECT, "Receiver status is recharging",
            )
        if status == AvailabilityStatus.FOCUSED:
            if relationship.tier != ConnectionTier.INNER_CIRCLE:
                return GateDecision.reject(
                    GATE_STATUS,
                    ProtocolCode.BATTERY_REJECT,
                    "Receiver is focused, only inner circle allowed",
                )
            return GateDecision.accept()
        if status in (AvailabilityStatus.OPEN, AvailabilityStatus.TRAVELING):
            return GateDecision.accept()
        # Unreachable for a well-formed snapshot; fail closed.
        return GateDecision.reject(
            GATE_STATUS, ProtocolCode.HARD_REJECT, f"Unknown receiver status: {status!r}",
        )

    @staticmethod
    def _quota_gate(receiver: Participant, committed_this_week: int) -> GateDecision:
        limit = receiver.policy.max_social_events_per_week
        if committed_this_week >= limit:
            return GateDecision.reject(
                GATE_QUOTA,
                ProtocolCode.QUOTA_REJECT,
                f"Weekly social quota reached ({committed_this_week}/{limit})",
            )
        return GateDecision.accept()

    @staticmethod
    def _tier_gate(receiver: Participant, relationship: Relationship) -> GateDecision:
        if relationship.tier not in receiver.policy.accepted_tiers:
            return GateDecision.reject(
                GATE_TIER,
                ProtocolCode.HARD_REJECT,
                f"Receiver does not accept {relationship.tier.value} requests",
            )
        return GateDecision.accept()

    @staticmethod
    def _cooldown_gate(
        receiver: Participant, relationship: Relationship, now: datetime,
    ) -> GateDecision:
        cooldown = receiver.policy.cooldown_days
        days = relationship.days_since_interaction(now)
        if cooldown > 0 and days is not None and days < cooldown:
            return GateDecision.reject(
                GATE_COOLDOWN,
                ProtocolCode.DRIFT_REJECT,
                f"Cooldown not elapsed ({days:.1f}/{cooldown} days)",
            )
        return GateDecision.accept()
