"""
Handshake — two-party social scheduling negotiation engine.

Public API surface. Import everything you need from here::

    from handshake import HandshakeEngine, InMemoryParticipantDirectory

Extension points (implement these Protocols to customize):

- ``ParticipantDirectory`` — connect your own participant / booking store
- ``EventPusher`` — custom event transport
- ``Renderer`` — custom suggestion text backend
"""

# -- Core engine --
from handshake.core.engine import HandshakeEngine

# -- Data models --
from handshake.core.models import (
    Actor,
    AvailabilitySlot,
    AvailabilityStatus,
    BlackoutWindow,
    ConnectionTier,
    EnergyBlock,
    EnergyCategory,
    InteractionMode,
    LogStep,
    NegotiationSession,
    Participant,
    ProtocolCode,
    Relationship,
    Signal,
    SocialPolicy,
    WakingHours,
)
from handshake.core.outcome import ProtocolOutcome

# -- Errors --
from handshake.core.errors import (
    ConfigError,
    EngineError,
    HandshakeError,
    RendererError,
    SnapshotError,
)

# -- Protocols --
from handshake.core.protocols import EventPusher, ParticipantDirectory, Renderer

# -- Components --
from handshake.availability import PrivacyMask, generate_true_slots, process_events
from handshake.core.gates import PolicyGateEvaluator

# -- Default implementations --
from handshake.enrichment import ClaudeRenderer, StaticRenderer, SuggestionService
from handshake.infra import (
    HandshakeConfig,
    InMemoryParticipantDirectory,
    LoggingEventPusher,
    RecordingEventPusher,
)

__all__ = [
    # Engine
    "HandshakeEngine",
    # Models
    "Actor",
    "AvailabilitySlot",
    "AvailabilityStatus",
    "BlackoutWindow",
    "ConnectionTier",
    "EnergyBlock",
    "EnergyCategory",
    "InteractionMode",
    "LogStep",
    "NegotiationSession",
    "Participant",
    "ProtocolCode",
    "ProtocolOutcome",
    "Relationship",
    "Signal",
    "SocialPolicy",
    "WakingHours",
    # Errors
    "HandshakeError",
    "EngineError",
    "SnapshotError",
    "RendererError",
    "ConfigError",
    # Protocols
    "EventPusher",
    "ParticipantDirectory",
    "Renderer",
    # Components
    "PolicyGateEvaluator",
    "PrivacyMask",
    "generate_true_slots",
    "process_events",
    # Default implementations
    "ClaudeRenderer",
    "StaticRenderer",
    "SuggestionService",
    "HandshakeConfig",
    "InMemoryParticipantDirectory",
    "LoggingEventPusher",
    "RecordingEventPusher",
]
