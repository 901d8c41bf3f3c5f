from .config import HandshakeConfig
from .directory import InMemoryParticipantDirectory
from .event_pusher import LoggingEventPusher, RecordingEventPusher

__all__ = [
    "HandshakeConfig",
    "InMemoryParticipantDirectory",
    "LoggingEventPusher",
    "RecordingEventPusher",
]
