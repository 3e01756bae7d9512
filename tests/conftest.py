"""Shared fixtures: seeded repository, fresh store, and scripted LLM clients."""

from types import SimpleNamespace
from typing import Any, Dict, List

import httpx
import openai
import pytest

from propbot.services.conversation_store import InMemoryConversationStore
from propbot.services.model_gateway import ModelGateway
from propbot.services.orchestrator import DialogOrchestrator
from propbot.services.portfolio import InMemoryPropertyRepository
from propbot.services.response_composer import ResponseComposer


class FakeCompletions:
    """Stands in for ``client.chat.completions``.

    ``script`` maps model name to the outcome of calling that model: a string
    (or None for an empty completion), an exception to raise, or an async
    callable producing either.
    """

    def __init__(self, script: Dict[str, Any]) -> None:
        self.script = script
        self.calls: List[Dict[str, Any]] = []

    async def create(self, **kwargs: Any) -> SimpleNamespace:
        self.calls.append(kwargs)
        outcome = self.script.get(kwargs["model"], RuntimeError(f"unscripted model {kwargs['model']}"))
        if callable(outcome):
            outcome = await outcome()
        if isinstance(outcome, BaseException):
            raise outcome
        return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=outcome))])


class FakeOpenAIClient:
    def __init__(self, script: Dict[str, Any]) -> None:
        self.completions = FakeCompletions(script)
        self.chat = SimpleNamespace(completions=self.completions)
        self.closed = False

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def auth_error() -> openai.AuthenticationError:
    request = httpx.Request("POST", "https://openrouter.ai/api/v1/chat/completions")
    return openai.AuthenticationError(
        "Invalid API key",
        response=httpx.Response(401, request=request),
        body=None,
    )


@pytest.fixture
def make_gateway():
    def _make(script: Dict[str, Any], models=("model-a", "model-b", "model-c"), **kwargs: Any) -> ModelGateway:
        return ModelGateway(FakeOpenAIClient(script), list(models), **kwargs)

    return _make


@pytest.fixture
def offline_gateway() -> ModelGateway:
    return ModelGateway(None, ["model-a"])


@pytest.fixture
def repository() -> InMemoryPropertyRepository:
    return InMemoryPropertyRepository.from_fixture()


@pytest.fixture
def store() -> InMemoryConversationStore:
    return InMemoryConversationStore()


@pytest.fixture
def composer(repository, offline_gateway) -> ResponseComposer:
    return ResponseComposer(repository, gateway=offline_gateway)


@pytest.fixture
def orchestrator(store, composer) -> DialogOrchestrator:
    return DialogOrchestrator(store, composer)
