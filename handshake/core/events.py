"""
Events pushed to the product layer while a handshake runs.

The session log is the audit trail; events are a live mirror of it
so a presentation layer can render steps as they happen.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from .models import LogEntry, ProtocolCode, Signal, generate_id, utc_now


class EventType(str, Enum):
    STEP_LOGGED = "handshake.step_logged"
    OUTCOME_READY = "handshake.outcome_ready"


@dataclass
class HandshakeEvent:
    event_type: EventType
    session_id: str
    data: dict[str, Any] = field(default_factory=dict)
    event_id: str = field(default_factory=lambda: generate_id("evt"))
    timestamp: datetime = field(default_factory=utc_now)

    def to_dict(self) -> dict[str, Any]:
        return {
            "event_id": self.event_id,
            "event_type": self.event_type.value,
            "session_id": self.session_id,
            "timestamp": self.timestamp.isoformat(),
            "data": self.data,
        }


# ============ Factories ============

def step_logged(session_id: str, entry: LogEntry) -> HandshakeEvent:
    return HandshakeEvent(
        event_type=EventType.STEP_LOGGED,
        session_id=session_id,
        data=entry.to_dict(),
    )


def outcome_ready(
    session_id: str,
    code: ProtocolCode,
    signal: Signal,
    committed_slot: str | None = None,
) -> HandshakeEvent:
    return HandshakeEvent(
        event_type=EventType.OUTCOME_READY,
        session_id=session_id,
        data={
            "code": code.value,
            "signal": signal.value,
            "committed_slot": committed_slot,
        },
    )
