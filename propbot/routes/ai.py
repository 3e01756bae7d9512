from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator

from fastapi import APIRouter, HTTPException, Request

from propbot.errors import ExternalServiceError, GatewayNotConfiguredError, MalformedResponseError, ValidationError
from propbot.logging.flight_recorder import recorder_for
from propbot.models.api import (
    AiChatRequest,
    AiChatResponse,
    DescriptionRequest,
    DescriptionResponse,
    RecommendRequest,
    RecommendResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@contextmanager
def _llm_errors(action: str) -> Iterator[None]:
    try:
        yield
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except GatewayNotConfiguredError as exc:
        raise HTTPException(status_code=503, detail="API key not configured") from exc
    except MalformedResponseError as exc:
        logger.warning("ai.malformed action=%s raw=%r", action, exc.raw[:200])
        raise HTTPException(status_code=502, detail="Failed to understand query") from exc
    except ExternalServiceError as exc:
        logger.error("ai.upstream_failed action=%s err=%s cause=%s", action, exc, exc.last_error)
        raise HTTPException(status_code=502, detail=f"Failed to {action}") from exc


@router.post("/chat", response_model=AiChatResponse)
async def chat(body: AiChatRequest, request: Request) -> AiChatResponse:
    with recorder_for(request).stage("LLM", feature="chat"), _llm_errors("get AI response"):
        reply = await request.app.state.copywriter.chat(body.message)
    return AiChatResponse(reply=reply)


@router.post("/description", response_model=DescriptionResponse)
async def description(body: DescriptionRequest, request: Request) -> DescriptionResponse:
    with recorder_for(request).stage("LLM", feature="description"), _llm_errors("generate description"):
        text = await request.app.state.copywriter.generate_description(body)
    return DescriptionResponse(description=text)


@router.post("/recommend", response_model=RecommendResponse)
async def recommend(body: RecommendRequest, request: Request) -> RecommendResponse:
    with recorder_for(request).stage("LLM", feature="recommend"), _llm_errors("get recommendations"):
        return await request.app.state.recommender.recommend(body.query)
