"""
EventPusher implementations — push handshake events to the product layer.

- RecordingEventPusher: keeps events per session so the API can replay them
- LoggingEventPusher: one log line per step or outcome (debugging / CI)

The two compose: a RecordingEventPusher can forward every event to a
LoggingEventPusher, which is how the API wires HANDSHAKE_LOG_EVENTS.
"""

from __future__ import annotations

import logging
from typing import Optional

from handshake.core.events import EventType, HandshakeEvent
from handshake.core.protocols import EventPusher

logger = logging.getLogger(__name__)


class LoggingEventPusher:
    """Logs each step as `session step actor` and each outcome as `session code signal`."""

    def __init__(self, level: int = logging.INFO):
        self._level = level

    async def push(self, event: HandshakeEvent) -> None:
        data = event.data
        if event.event_type == EventType.STEP_LOGGED:
            logger.log(
                self._level,
                "Handshake %s step %s by %s",
                event.session_id,
                data.get("step"),
                data.get("actor"),
            )
        else:
            logger.log(
                self._level,
                "Handshake %s outcome %s (%s) slot=%s",
                event.session_id,
                data.get("code"),
                data.get("signal"),
                data.get("committed_slot"),
            )


class RecordingEventPusher:
    """
    EventPusher that keeps every event, grouped by session.

    The API layer uses this so GET /handshakes/{id}/events can replay
    a session for late subscribers.
    """

    def __init__(self, forward: Optional[EventPusher] = None) -> None:
        self._events: dict[str, list[HandshakeEvent]] = {}
        self._forward = forward

    async def push(self, event: HandshakeEvent) -> None:
        self._events.setdefault(event.session_id, []).append(event)
        if self._forward is not None:
            await self._forward.push(event)

    def history(self, session_id: str) -> list[HandshakeEvent]:
        return list(self._events.get(session_id, []))
