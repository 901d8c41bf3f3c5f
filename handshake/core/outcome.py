"""
Outcome reporter — reduce a finished session to a stable signal.

SIGNALS and MESSAGES are the single source of truth for severity and
wording. Callers must read the signal, never guess it from the code name.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from .errors import EngineError
from .models import (
    AvailabilitySlot,
    LogEntry,
    NegotiationSession,
    ProtocolCode,
    Signal,
)

SIGNALS: dict[ProtocolCode, Signal] = {
    ProtocolCode.SUCCESS: Signal.GREEN,
    ProtocolCode.CALENDAR_REJECT: Signal.YELLOW,
    ProtocolCode.QUOTA_REJECT: Signal.YELLOW,
    ProtocolCode.BATTERY_REJECT: Signal.RED,
    ProtocolCode.HARD_REJECT: Signal.RED,
    ProtocolCode.DRIFT_REJECT: Signal.RED,
}

MESSAGES: dict[ProtocolCode, str] = {
    ProtocolCode.SUCCESS: "Connection secure. Time slot found.",
    ProtocolCode.HARD_REJECT: "Unable to sync schedules right now.",
    ProtocolCode.BATTERY_REJECT: "{name} is taking some downtime. Try later.",
    ProtocolCode.CALENDAR_REJECT: "Schedules didn't align this week.",
    ProtocolCode.QUOTA_REJECT: "{name} is fully booked this week.",
    ProtocolCode.DRIFT_REJECT: "Let's give it a few weeks before reconnecting.",
}


def signal_for(code: ProtocolCode) -> Signal:
    return SIGNALS[code]


def is_retry_worthy(code: ProtocolCode) -> bool:
    """Yellow outcomes may succeed on a later attempt; red ones should not be retried now."""
    return SIGNALS[code] == Signal.YELLOW


def human_message(code: ProtocolCode, receiver_name: str) -> str:
    return MESSAGES[code].format(name=receiver_name)


@dataclass(frozen=True)
class ProtocolOutcome:
    session_id: str
    success: bool
    code: ProtocolCode
    signal: Signal
    human_message: str
    log: tuple[LogEntry, ...]
    committed_slot: Optional[AvailabilitySlot] = None

    @property
    def retry_worthy(self) -> bool:
        return is_retry_worthy(self.code)

    def to_dict(self) -> dict[str, Any]:
        return {
            "session_id": self.session_id,
            "success": self.success,
            "code": self.code.value,
            "signal": self.signal.value,
            "human_message": self.human_message,
            "committed_slot": (
                self.committed_slot.start.isoformat() if self.committed_slot else None
            ),
            "log": [entry.to_dict() for entry in self.log],
        }


def report(session: NegotiationSession, receiver_name: str) -> ProtocolOutcome:
    """Package a terminal session for the caller."""
    if not session.is_terminal or session.code is None:
        raise EngineError(f"Session {session.session_id} has no terminal outcome yet")
    return ProtocolOutcome(
        session_id=session.session_id,
        success=session.code == ProtocolCode.SUCCESS,
        code=session.code,
        signal=signal_for(session.code),
        human_message=human_message(session.code, receiver_name),
        log=session.log,
        committed_slot=session.committed_slot,
    )
