"""One dialog exchange from inbound text to persisted reply.

load -> extract + classify -> transition -> compose -> append turns -> persist
"""

from __future__ import annotations

import logging
import time
import uuid
from typing import Optional

from propbot.errors import ValidationError
from propbot.logging.flight_recorder import FlightRecorder
from propbot.models.api import ConversationSnapshot, DialogReply
from propbot.models.conversation import ConversationState, Preferences, PropertyView, SuggestedProperty, Turn
from propbot.services import entity_extractor
from propbot.services.conversation_store import ConversationStore
from propbot.services.intent_classifier import IntentClassifier
from propbot.services.response_composer import ResponseComposer
from propbot.services.state_machine import ConversationStateMachine

logger = logging.getLogger(__name__)


def new_session_id() -> str:
    return f"session_{int(time.time() * 1000)}_{uuid.uuid4().hex[:9]}"


class DialogOrchestrator:
    def __init__(
        self,
        store: ConversationStore,
        composer: ResponseComposer,
        classifier: Optional[IntentClassifier] = None,
        state_machine: Optional[ConversationStateMachine] = None,
    ) -> None:
        self.store = store
        self.composer = composer
        self.classifier = classifier or IntentClassifier()
        self.state_machine = state_machine or ConversationStateMachine()

    async def handle_message(
        self,
        message: Optional[str],
        session_id: Optional[str] = None,
        user_id: Optional[str] = None,
        recorder: Optional[FlightRecorder] = None,
    ) -> DialogReply:
        if not message or not message.strip():
            raise ValidationError("Message is required")
        recorder = recorder or FlightRecorder()
        session_id = session_id or new_session_id()

        with recorder.stage("STORE", op="load", session_id=session_id):
            conversation = await self.store.load_or_create_active(session_id, user_id)

        with recorder.stage("EXTRACT"):
            data = entity_extractor.extract(message)
        with recorder.stage("CLASSIFY"):
            result = self.classifier.classify(message)
        with recorder.stage("TRANSITION", intent=result.intent.value):
            self.state_machine.transition(conversation, result.intent, data)
        with recorder.stage("COMPOSE", state=conversation.state.value):
            composed = await self.composer.generate(conversation, result.intent, data, message, recorder=recorder)
        recorder.log(
            "COMPOSE",
            "reply composed",
            reply_type=composed.reply_type,
            properties=len(composed.properties),
            viewed_property_id=composed.viewed_property_id,
        )

        conversation.append_turn(
            Turn(
                role="user",
                content=message,
                intent=result.intent.value,
                extracted_data=data.as_record(),
            )
        )
        conversation.append_turn(
            Turn(
                role="assistant",
                content=composed.content,
                suggested_properties=[SuggestedProperty(property_id=item.id) for item in composed.properties],
            )
        )
        if composed.viewed_property_id:
            conversation.properties_viewed.append(PropertyView(property_id=composed.viewed_property_id))
        conversation.total_messages += 1
        conversation.touch()

        with recorder.stage("STORE", op="persist", session_id=session_id):
            await self.store.persist(conversation)

        logger.info(
            "orchestrator.reply intent=%s state=%s reply_type=%s properties=%d",
            result.intent.value,
            conversation.state.value,
            composed.reply_type,
            len(composed.properties),
        )
        return DialogReply(
            reply=composed.content,
            reply_type=composed.reply_type,
            session_id=session_id,
            state=conversation.state,
            intent=result.intent.value,
            confidence=result.confidence,
            properties=composed.properties,
        )

    async def get_history(self, session_id: str) -> ConversationSnapshot:
        conversation = await self.store.get_active(session_id)
        if conversation is None:
            return ConversationSnapshot(
                session_id=session_id,
                state=ConversationState.GREETING,
                preferences=Preferences(),
            )
        return ConversationSnapshot(
            session_id=conversation.session_id,
            state=conversation.state,
            preferences=conversation.preferences,
            messages=conversation.message_history,
            total_messages=conversation.total_messages,
            last_activity=conversation.last_activity,
        )

    async def end_session(self, session_id: str) -> bool:
        conversation = await self.store.get_active(session_id)
        if conversation is None:
            return False
        conversation.is_active = False
        await self.store.persist(conversation)
        logger.info("orchestrator.session_closed total_messages=%d", conversation.total_messages)
        return True
