"""
Configuration management using pydantic-settings.

All handshake settings are loaded from environment variables
with the HANDSHAKE_ prefix.
"""

from __future__ import annotations

from pydantic_settings import BaseSettings


class HandshakeConfig(BaseSettings):
    """
    Handshake engine configuration.

    Environment variables are prefixed with HANDSHAKE_, e.g.:
    - HANDSHAKE_LOOKAHEAD_DAYS=5
    - HANDSHAKE_ANTHROPIC_API_KEY=sk-...
    """

    model_config = {"env_prefix": "HANDSHAKE_"}

    # Slot generation
    lookahead_days: int = 3

    # Privacy mask
    conceal_fraction: float = 0.3
    jitter_probability: float = 0.5

    # Mirror every handshake event to the log
    log_events: bool = False

    # Enrichment LLM (optional, static fallback when unset)
    anthropic_api_key: str = ""
    anthropic_base_url: str = ""
    default_model: str = "claude-sonnet-4-5-20250929"
    max_tokens: int = 512

    def get_base_url(self) -> str | None:
        """Return base URL or None for Anthropic default."""
        return self.anthropic_base_url or None

    @property
    def enrichment_enabled(self) -> bool:
        return bool(self.anthropic_api_key)
