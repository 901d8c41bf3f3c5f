"""Core protocol layer — handshake rules, gates, events, models, errors."""

from .errors import (
    HandshakeError,
    EngineError,
    SnapshotError,
    RendererError,
    ConfigError,
)
from .events import EventType, HandshakeEvent
from .gates import GateDecision, PolicyGateEvaluator
from .models import (
    Actor,
    AvailabilitySlot,
    AvailabilityStatus,
    BlackoutWindow,
    ConnectionTier,
    EnergyBlock,
    EnergyCategory,
    EnergyLevel,
    HandshakeState,
    InteractionMode,
    LogEntry,
    LogStep,
    NegotiationSession,
    Participant,
    ProtocolCode,
    Relationship,
    Signal,
    SlotKind,
    SocialPolicy,
    WakingHours,
    generate_id,
)
from .outcome import ProtocolOutcome
from .protocols import EventPusher, ParticipantDirectory, Renderer

__all__ = [
    "HandshakeError", "EngineError", "SnapshotError", "RendererError", "ConfigError",
    "EventType", "HandshakeEvent",
    "GateDecision", "PolicyGateEvaluator",
    "Actor", "AvailabilitySlot", "AvailabilityStatus", "BlackoutWindow",
    "ConnectionTier", "EnergyBlock", "EnergyCategory", "EnergyLevel",
    "HandshakeState", "InteractionMode", "LogEntry", "LogStep",
    "NegotiationSession", "Participant", "ProtocolCode", "Relationship",
    "Signal", "SlotKind", "SocialPolicy", "WakingHours", "generate_id",
    "ProtocolOutcome",
    "EventPusher", "ParticipantDirectory", "Renderer",
]
