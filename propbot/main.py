from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager, suppress
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from propbot.config import Settings, settings as default_settings
from propbot.logging.flight_recorder import register_log_middleware
from propbot.routes import ai, chat, health
from propbot.services.conversation_store import ConversationStore, InMemoryConversationStore
from propbot.services.copywriter import Copywriter
from propbot.services.model_gateway import ModelGateway
from propbot.services.orchestrator import DialogOrchestrator
from propbot.services.portfolio import InMemoryPropertyRepository, PropertyRepository
from propbot.services.recommender import PropertyRecommender
from propbot.services.response_composer import ResponseComposer

logger = logging.getLogger(__name__)


async def sweep_periodically(store: ConversationStore, retention_days: int, interval: float) -> None:
    while True:
        await asyncio.sleep(interval)
        try:
            await store.sweep_inactive(retention_days)
        except Exception:  # noqa: BLE001
            logger.exception("main.sweep_failed")


def create_app(
    config: Optional[Settings] = None,
    repository: Optional[PropertyRepository] = None,
    store: Optional[ConversationStore] = None,
    gateway: Optional[ModelGateway] = None,
) -> FastAPI:
    config = config or default_settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.repository = repository or InMemoryPropertyRepository.from_fixture(config.PROPERTY_FIXTURE)
        app.state.store = store or InMemoryConversationStore()
        app.state.gateway = gateway or ModelGateway.from_settings(config)

        composer = ResponseComposer(
            app.state.repository,
            gateway=app.state.gateway,
            platform_name=config.PLATFORM_NAME,
            search_limit=config.SEARCH_RESULT_LIMIT,
        )
        app.state.orchestrator = DialogOrchestrator(app.state.store, composer)
        app.state.recommender = PropertyRecommender(
            app.state.gateway, app.state.repository, limit=config.RECOMMEND_RESULT_LIMIT
        )
        app.state.copywriter = Copywriter(app.state.gateway, platform_name=config.PLATFORM_NAME)

        sweeper = asyncio.create_task(
            sweep_periodically(app.state.store, config.CONVERSATION_RETENTION_DAYS, config.SWEEP_INTERVAL_SECONDS)
        )
        logger.info("main.startup ai_configured=%s platform=%s", app.state.gateway.configured, config.PLATFORM_NAME)
        try:
            yield
        finally:
            sweeper.cancel()
            with suppress(asyncio.CancelledError):
                await sweeper
            await composer.wait_pending()
            await app.state.gateway.close()
            await app.state.store.close()
            logger.info("main.shutdown")

    app = FastAPI(title="Propbot", version="0.1.0", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_log_middleware(app)

    app.include_router(health.router, prefix="/health", tags=["health"])
    app.include_router(chat.router, prefix="/chat", tags=["chat"])
    app.include_router(ai.router, prefix="/ai", tags=["ai"])

    return app


app = create_app()
