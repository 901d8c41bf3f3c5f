"""
FastAPI application for the handshake engine.

Start with: uvicorn handshake.api.app:app --reload --port 8081
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from handshake.availability.mask import PrivacyMask
from handshake.core.engine import HandshakeEngine
from handshake.enrichment.renderer import ClaudeRenderer, SuggestionService
from handshake.infra.config import HandshakeConfig
from handshake.infra.directory import InMemoryParticipantDirectory
from handshake.infra.event_pusher import LoggingEventPusher, RecordingEventPusher

from .routes import router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize all dependencies on startup."""
    config = HandshakeConfig()

    # In-memory stores
    app.state.directory = InMemoryParticipantDirectory()
    app.state.outcomes = {}

    app.state.event_pusher = RecordingEventPusher(
        forward=LoggingEventPusher() if config.log_events else None,
    )

    app.state.engine = HandshakeEngine(
        directory=app.state.directory,
        event_pusher=app.state.event_pusher,
        privacy_mask=PrivacyMask(
            conceal_fraction=config.conceal_fraction,
            jitter_probability=config.jitter_probability,
        ),
        lookahead_days=config.lookahead_days,
    )

    renderer = None
    if config.enrichment_enabled:
        renderer = ClaudeRenderer(
            api_key=config.anthropic_api_key,
            model=config.default_model,
            max_tokens=config.max_tokens,
            base_url=config.get_base_url(),
        )
        logger.info("ClaudeRenderer initialized")
    else:
        logger.warning("No HANDSHAKE_ANTHROPIC_API_KEY set, suggestions use static templates")
    app.state.suggestions = SuggestionService(renderer)

    app.state.config = config
    logger.info("Handshake API started")
    yield
    logger.info("Handshake API shutdown")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="Handshake API",
        description="Two-party social scheduling negotiation engine",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(router)
    return app


app = create_app()
