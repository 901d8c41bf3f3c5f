"""
Suggestion renderers — flavor text for a committed handshake.

Enrichment is non-authoritative. It runs only after COMMITTED, and any
failure (missing key, API error, empty text) falls back to a static
template. Nothing here can change a ProtocolOutcome.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

import anthropic

from ..core.errors import RendererError
from ..core.models import InteractionMode, Participant, Relationship
from ..core.outcome import ProtocolOutcome
from ..core.protocols import Renderer

logger = logging.getLogger(__name__)

SOURCE_LLM = "llm"
SOURCE_STATIC = "static"

STATIC_NOTES: dict[InteractionMode, str] = {
    InteractionMode.IRL_ONLY: (
        "{initiator} and {receiver} are set for {slot}. "
        "A quiet spot with booths keeps it low-key."
    ),
    InteractionMode.DIGITAL_OK: (
        "{initiator} and {receiver} are set for {slot}. "
        "A short video call is enough to reconnect."
    ),
    InteractionMode.ANY: (
        "{initiator} and {receiver} are set for {slot}. "
        "Coffee nearby or a call, whichever is easier on the day."
    ),
}

SYSTEM_PROMPT = """\
You are a social planner. Two people have agreed on a time to meet.
Write ONE short sentence suggesting what kind of place or format fits them.

Rules:
1. If either person is focused or traveling, prefer quiet or remote options.
2. Respect the interaction mode: irl_only means in person, digital_ok allows a call.
3. Do not invent names of real venues. Output only the sentence.
"""


def build_context(
    outcome: ProtocolOutcome,
    initiator: Participant,
    receiver: Participant,
    relationship: Relationship,
) -> dict[str, Any]:
    """Everything a renderer may see. No calendar contents, only the agreed slot."""
    slot = outcome.committed_slot.start.isoformat() if outcome.committed_slot else ""
    return {
        "initiator": initiator.display_name,
        "receiver": receiver.display_name,
        "initiator_status": initiator.status.value,
        "receiver_status": receiver.status.value,
        "slot": slot,
        "interaction_mode": relationship.interaction_mode.value,
        "tier": relationship.tier.value,
    }


class StaticRenderer:
    """Deterministic offline renderer. Never raises for a well-formed context."""

    @property
    def name(self) -> str:
        return "static"

    async def render(self, context: dict[str, Any]) -> str:
        mode = InteractionMode(context.get("interaction_mode", InteractionMode.ANY.value))
        return STATIC_NOTES[mode].format(
            initiator=context.get("initiator", "You"),
            receiver=context.get("receiver", "your friend"),
            slot=context.get("slot", "the agreed time"),
        )


class ClaudeRenderer:
    """Renderer backed by the Anthropic Messages API."""

    def __init__(
        self,
        api_key: str,
        model: str = "claude-sonnet-4-5-20250929",
        max_tokens: int = 512,
        base_url: str | None = None,
    ):
        client_kwargs: dict[str, Any] = {}
        if base_url:
            client_kwargs["base_url"] = base_url
        self._client = anthropic.AsyncAnthropic(api_key=api_key, **client_kwargs)
        self._model = model
        self._max_tokens = max_tokens

    @property
    def name(self) -> str:
        return "claude"

    def _build_messages(self, context: dict[str, Any]) -> list[dict[str, str]]:
        lines = [f"{key}: {value}" for key, value in sorted(context.items())]
        return [{"role": "user", "content": "\n".join(lines)}]

    async def render(self, context: dict[str, Any]) -> str:
        try:
            response = await self._client.messages.create(
                model=self._model,
                max_tokens=self._max_tokens,
                system=SYSTEM_PROMPT,
                messages=self._build_messages(context),
            )
        except anthropic.APIError as e:
            logger.error("Claude render failed: %s", e)
            raise RendererError(f"Claude render failed: {e}") from e

        text = "".join(block.text for block in response.content if block.type == "text").strip()
        if not text:
            raise RendererError("Claude returned empty text")
        return text


@dataclass(frozen=True)
class Suggestion:
    text: str
    source: str  # SOURCE_LLM or SOURCE_STATIC

    def to_dict(self) -> dict[str, str]:
        return {"text": self.text, "source": self.source}


class SuggestionService:
    """Try the primary renderer, fall back to the static one."""

    def __init__(self, renderer: Optional[Renderer] = None, fallback: Optional[StaticRenderer] = None):
        self._renderer = renderer
        self._fallback = fallback or StaticRenderer()

    async def suggest(
        self,
        outcome: ProtocolOutcome,
        initiator: Participant,
        receiver: Participant,
        relationship: Relationship,
    ) -> Optional[Suggestion]:
        """Return a suggestion for a committed outcome, or None for any rejection."""
        if not outcome.success:
            return None

        context = build_context(outcome, initiator, receiver, relationship)
        if self._renderer is not None:
            try:
                text = await self._renderer.render(context)
                if text and text.strip():
                    return Suggestion(text=text.strip(), source=SOURCE_LLM)
                logger.warning("Renderer %s returned empty text, using fallback", self._renderer.name)
            except Exception as e:
                logger.warning(
                    "Renderer %s failed for %s, using fallback: %s",
                    self._renderer.name, outcome.session_id, e,
                )

        text = await self._fallback.render(context)
        return Suggestion(text=text, source=SOURCE_STATIC)
