from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, Request

from propbot.errors import ConcurrentUpdateError, ValidationError
from propbot.logging.flight_recorder import recorder_for
from propbot.models.api import ChatMessageRequest, ConversationSnapshot, DialogReply, SessionClosed
from propbot.services.orchestrator import DialogOrchestrator

logger = logging.getLogger(__name__)

router = APIRouter()


def _orchestrator(request: Request) -> DialogOrchestrator:
    return request.app.state.orchestrator


@router.post("/message", response_model=DialogReply)
async def post_message(body: ChatMessageRequest, request: Request) -> DialogReply:
    try:
        return await _orchestrator(request).handle_message(
            body.message,
            session_id=body.session_id,
            user_id=body.user_id,
            recorder=recorder_for(request),
        )
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except ConcurrentUpdateError as exc:
        logger.warning("chat.conflict err=%s", exc)
        raise HTTPException(status_code=409, detail=str(exc)) from exc


@router.get("/sessions/{session_id}", response_model=ConversationSnapshot)
async def get_session(session_id: str, request: Request) -> ConversationSnapshot:
    return await _orchestrator(request).get_history(session_id)


@router.post("/sessions/{session_id}/close", response_model=SessionClosed)
async def close_session(session_id: str, request: Request) -> SessionClosed:
    try:
        closed = await _orchestrator(request).end_session(session_id)
    except ConcurrentUpdateError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    return SessionClosed(session_id=session_id, closed=closed)
