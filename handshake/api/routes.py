"""
API endpoints for the handshake engine.

The routes are the caller layer: they own persistence. The engine
decides; the routes record commitments and stamp last_interaction.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, Request

from handshake.availability.energy import CalendarFilters, process_events
from handshake.core.errors import SnapshotError
from handshake.core.models import Participant

from .schemas import (
    HandshakeResponse,
    NegotiateRequest,
    ParticipantResponse,
    RegisterParticipantRequest,
    RelationshipModel,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


def _participant_response(participant: Participant) -> ParticipantResponse:
    return ParticipantResponse(
        participant_id=participant.participant_id,
        display_name=participant.display_name,
        status=participant.status.value,
        max_social_events_per_week=participant.policy.max_social_events_per_week,
        energy_blocks=[block.to_dict() for block in participant.calendar],
    )


# ============ Participant Endpoints ============

@router.post("/participants", response_model=ParticipantResponse, status_code=201)
async def register_participant(req: RegisterParticipantRequest, request: Request):
    state = request.app.state
    try:
        blocks = process_events(
            [event.model_dump() for event in req.calendar_events],
            CalendarFilters(
                ignore_all_day=req.ignore_all_day,
                focus_time_is_free=req.focus_time_is_free,
            ),
        )
        participant = Participant(
            participant_id=req.participant_id,
            display_name=req.display_name,
            status=req.status,
            policy=req.to_policy(),
            waking_hours=req.to_waking_hours(),
            calendar=tuple(blocks),
        )
    except SnapshotError as e:
        raise HTTPException(422, str(e))

    state.directory.register(participant)
    return _participant_response(participant)


@router.get("/participants/{participant_id}", response_model=ParticipantResponse)
async def get_participant(participant_id: str, request: Request):
    try:
        participant = await request.app.state.directory.get_participant(participant_id)
    except SnapshotError:
        raise HTTPException(404, f"Participant {participant_id} not found")
    return _participant_response(participant)


# ============ Relationship Endpoints ============

@router.put("/relationships", response_model=RelationshipModel)
async def put_relationship(req: RelationshipModel, request: Request):
    directory = request.app.state.directory
    for pid in (req.initiator_id, req.target_id):
        if not directory.has_participant(pid):
            raise HTTPException(404, f"Participant {pid} not found")
    directory.put_relationship(req.to_model())
    return req


# ============ Handshake Endpoints ============

@router.post("/handshakes", response_model=HandshakeResponse, status_code=201)
async def negotiate(req: NegotiateRequest, request: Request):
    state = request.app.state
    directory = state.directory

    if req.relationship is not None:
        relationship = req.relationship.to_model()
    else:
        relationship = directory.get_relationship(req.initiator_id, req.receiver_id)

    # Missing participants / relationship fail closed inside the engine.
    outcome = await state.engine.negotiate(req.initiator_id, req.receiver_id, relationship)

    suggestion = None
    if outcome.success:
        directory.record_commitment(outcome, req.initiator_id, req.receiver_id)
        initiator = await directory.get_participant(req.initiator_id)
        receiver = await directory.get_participant(req.receiver_id)
        result = await state.suggestions.suggest(outcome, initiator, receiver, relationship)
        suggestion = result.to_dict() if result else None

    response = HandshakeResponse(**outcome.to_dict(), suggestion=suggestion)
    state.outcomes[outcome.session_id] = response
    return response


@router.get("/handshakes/{session_id}", response_model=HandshakeResponse)
async def get_handshake(session_id: str, request: Request):
    response = request.app.state.outcomes.get(session_id)
    if response is None:
        raise HTTPException(404, f"Handshake {session_id} not found")
    return response


@router.get("/handshakes/{session_id}/events")
async def get_handshake_events(session_id: str, request: Request):
    if session_id not in request.app.state.outcomes:
        raise HTTPException(404, f"Handshake {session_id} not found")
    events = request.app.state.event_pusher.history(session_id)
    return {"session_id": session_id, "events": [e.to_dict() for e in events]}
