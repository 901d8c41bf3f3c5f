"""
Unified exception hierarchy for the handshake engine.

All exceptions inherit from HandshakeError. Protocol rejections
(battery, quota, calendar, ...) are NOT exceptions; they are
outcomes. These types cover faults.
"""


class HandshakeError(Exception):
    """Base exception for all handshake errors."""
    pass


class EngineError(HandshakeError):
    """State machine internal error (invalid transition, write after terminal, etc.)."""
    pass


class SnapshotError(HandshakeError):
    """Missing or malformed participant / relationship snapshot."""
    pass


class RendererError(HandshakeError):
    """Enrichment backend failure (LLM unavailable, empty output, etc.)."""
    pass


class ConfigError(HandshakeError):
    """Configuration error (missing env vars, invalid config, etc.)."""
    pass
