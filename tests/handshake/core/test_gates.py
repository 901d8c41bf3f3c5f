"""Tests for the policy gate evaluator — ordering, short-circuit, each gate."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from handshake.core.gates import (
    GATE_COOLDOWN,
    GATE_QUOTA,
    GATE_STATUS,
    GATE_TIER,
    PolicyGateEvaluator,
    week_start,
)
from handshake.core.models import (
    AvailabilityStatus,
    ConnectionTier,
    ProtocolCode,
    SocialPolicy,
)

NOW = datetime(2026, 10, 14, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def gates() -> PolicyGateEvaluator:
    return PolicyGateEvaluator()


def _evaluate(gates, make_participant, make_relationship, *, receiver=None, relationship=None, committed=0):
    return gates.evaluate(
        make_participant("alice", "Alice"),
        receiver or make_participant(),
        relationship or make_relationship(),
        committed_this_week=committed,
        now=NOW,
    )


class TestStatusGate:
    @pytest.mark.parametrize("tier", list(ConnectionTier))
    def test_recharging_always_battery_reject(self, gates, make_participant, make_relationship, tier):
        decision = _evaluate(
            gates, make_participant, make_relationship,
            receiver=make_participant(status=AvailabilityStatus.RECHARGING),
            relationship=make_relationship(tier=tier),
        )
        assert not decision.passed
        assert decision.code == ProtocolCode.BATTERY_REJECT
        assert decision.gate == GATE_STATUS

    @pytest.mark.parametrize("tier", [ConnectionTier.FRIEND, ConnectionTier.ACQUAINTANCE])
    def test_focused_rejects_outside_inner_circle(self, gates, make_participant, make_relationship, tier):
        decision = _evaluate(
            gates, make_participant, make_relationship,
            receiver=make_participant(status=AvailabilityStatus.FOCUSED),
            relationship=make_relationship(tier=tier),
        )
        assert decision.code == ProtocolCode.BATTERY_REJECT

    def test_focused_admits_inner_circle(self, gates, make_participant, make_relationship):
        decision = _evaluate(
            gates, make_participant, make_relationship,
            receiver=make_participant(status=AvailabilityStatus.FOCUSED),
            relationship=make_relationship(tier=ConnectionTier.INNER_CIRCLE),
        )
        assert decision.passed

    @pytest.mark.parametrize("status", [AvailabilityStatus.OPEN, AvailabilityStatus.TRAVELING])
    def test_open_and_traveling_pass(self, gates, make_participant, make_relationship, status):
        decision = _evaluate(
            gates, make_participant, make_relationship,
            receiver=make_participant(status=status),
        )
        assert decision.passed
        assert decision.code is None


class TestQuotaGate:
    def test_rejects_when_quota_reached(self, gates, make_participant, make_relationship):
        receiver = make_participant(policy=SocialPolicy(max_social_events_per_week=2))
        decision = _evaluate(gates, make_participant, make_relationship, receiver=receiver, committed=2)
        assert decision.code == ProtocolCode.QUOTA_REJECT
        assert decision.gate == GATE_QUOTA

    def test_passes_below_quota(self, gates, make_participant, make_relationship):
        receiver = make_participant(policy=SocialPolicy(max_social_events_per_week=2))
        decision = _evaluate(gates, make_participant, make_relationship, receiver=receiver, committed=1)
        assert decision.passed

    def test_deterministic(self, gates, make_participant, make_relationship):
        receiver = make_participant(policy=SocialPolicy(max_social_events_per_week=1))
        results = {
            _evaluate(gates, make_participant, make_relationship, receiver=receiver, committed=0).passed
            for _ in range(50)
        }
        assert results == {True}

    def test_zero_quota_always_rejects(self, gates, make_participant, make_relationship):
        receiver = make_participant(policy=SocialPolicy(max_social_events_per_week=0))
        decision = _evaluate(gates, make_participant, make_relationship, receiver=receiver)
        assert decision.code == ProtocolCode.QUOTA_REJECT


class TestTierGate:
    def test_unaccepted_tier_hard_rejects(self, gates, make_participant, make_relationship):
        receiver = make_participant(
            policy=SocialPolicy(accepted_tiers=frozenset({ConnectionTier.INNER_CIRCLE, ConnectionTier.FRIEND})),
        )
        decision = _evaluate(
            gates, make_participant, make_relationship,
            receiver=receiver,
            relationship=make_relationship(tier=ConnectionTier.ACQUAINTANCE),
        )
        assert decision.code == ProtocolCode.HARD_REJECT
        assert decision.gate == GATE_TIER


class TestCooldownGate:
    def test_rejects_inside_cooldown(self, gates, make_participant, make_relationship):
        receiver = make_participant(policy=SocialPolicy(cooldown_days=14))
        rel = make_relationship(last_interaction=NOW - timedelta(days=3))
        decision = _evaluate(gates, make_participant, make_relationship, receiver=receiver, relationship=rel)
        assert decision.code == ProtocolCode.DRIFT_REJECT
        assert decision.gate == GATE_COOLDOWN

    def test_passes_after_cooldown(self, gates, make_participant, make_relationship):
        receiver = make_participant(policy=SocialPolicy(cooldown_days=14))
        rel = make_relationship(last_interaction=NOW - timedelta(days=30))
        decision = _evaluate(gates, make_participant, make_relationship, receiver=receiver, relationship=rel)
        assert decision.passed

    def test_never_met_passes(self, gates, make_participant, make_relationship):
        receiver = make_participant(policy=SocialPolicy(cooldown_days=14))
        rel = make_relationship(last_interaction=None)
        decision = _evaluate(gates, make_participant, make_relationship, receiver=receiver, relationship=rel)
        assert decision.passed


class TestOrdering:
    def test_status_checked_before_quota(self, gates, make_participant, make_relationship):
        receiver = make_participant(
            status=AvailabilityStatus.RECHARGING,
            policy=SocialPolicy(max_social_events_per_week=0),
        )
        decision = _evaluate(gates, make_participant, make_relationship, receiver=receiver)
        assert decision.code == ProtocolCode.BATTERY_REJECT

    def test_quota_checked_before_tier(self, gates, make_participant, make_relationship):
        receiver = make_participant(
            policy=SocialPolicy(max_social_events_per_week=0, accepted_tiers=frozenset()),
        )
        decision = _evaluate(gates, make_participant, make_relationship, receiver=receiver)
        assert decision.code == ProtocolCode.QUOTA_REJECT


class TestWeekStart:
    def test_monday_midnight(self):
        start = week_start(NOW)
        assert start == datetime(2026, 10, 12, 0, 0, tzinfo=timezone.utc)
        assert start.weekday() == 0

    def test_monday_is_its_own_start(self):
        monday = datetime(2026, 10, 12, 15, 30, tzinfo=timezone.utc)
        assert week_start(monday) == datetime(2026, 10, 12, 0, 0, tzinfo=timezone.utc)
