"""Chat-completion client that walks an ordered list of models.

Every call goes to the first model; on failure the next one is tried, except
when the provider rejects the credential, which would fail identically for
every model. Each attempt and the whole call are bounded by timeouts.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Dict, List, Optional, Sequence

import httpx
import openai
from openai import AsyncOpenAI

from propbot.config import Settings
from propbot.errors import ExternalServiceError, GatewayNotConfiguredError, MalformedResponseError
from propbot.utils.fallback import NoCandidatesError, first_success

logger = logging.getLogger(__name__)

Message = Dict[str, str]


class EmptyCompletionError(RuntimeError):
    pass


def is_auth_error(exc: BaseException) -> bool:
    if isinstance(exc, openai.AuthenticationError):
        return True
    return getattr(exc, "status_code", None) == 401


def strip_code_fences(raw: str) -> str:
    return raw.replace("```json", "").replace("```", "").strip()


def parse_json_payload(raw: str) -> Dict[str, Any]:
    cleaned = strip_code_fences(raw or "")
    try:
        payload = json.loads(cleaned)
    except json.JSONDecodeError as exc:
        logger.warning("gateway.json_parse_failed raw=%r", cleaned[:200])
        raise MalformedResponseError("Model returned invalid JSON", raw=cleaned) from exc
    if not isinstance(payload, dict):
        raise MalformedResponseError("Model returned JSON that is not an object", raw=cleaned)
    return payload


class ModelGateway:
    def __init__(
        self,
        client: Optional[Any],
        models: Sequence[str],
        temperature: float = 0.7,
        attempt_timeout: float = 20.0,
        request_timeout: float = 60.0,
    ) -> None:
        self._client = client
        self.models: List[str] = list(models)
        self.temperature = temperature
        self.attempt_timeout = attempt_timeout
        self.request_timeout = request_timeout

    @classmethod
    def from_settings(cls, settings: Settings) -> "ModelGateway":
        client: Optional[AsyncOpenAI] = None
        if settings.LLM_API_KEY:
            client = AsyncOpenAI(
                api_key=settings.LLM_API_KEY,
                base_url=settings.LLM_BASE_URL,
                default_headers={
                    "HTTP-Referer": settings.LLM_SITE_URL,
                    "X-Title": settings.LLM_APP_TITLE,
                },
                timeout=httpx.Timeout(settings.LLM_ATTEMPT_TIMEOUT, connect=5.0),
                max_retries=0,
            )
        else:
            logger.warning("gateway.no_api_key llm features disabled")
        return cls(
            client,
            settings.llm_models,
            temperature=settings.LLM_TEMPERATURE,
            attempt_timeout=settings.LLM_ATTEMPT_TIMEOUT,
            request_timeout=settings.llm_request_timeout,
        )

    @property
    def configured(self) -> bool:
        return self._client is not None and bool(self.models)

    async def complete(self, messages: List[Message], json_mode: bool = False) -> str:
        if self._client is None:
            raise GatewayNotConfiguredError("LLM API key not configured")

        async def attempt(model: str) -> str:
            kwargs: Dict[str, Any] = {
                "model": model,
                "messages": messages,
                "temperature": self.temperature,
                "timeout": self.attempt_timeout,
            }
            if json_mode:
                kwargs["response_format"] = {"type": "json_object"}
            completion = await self._client.chat.completions.create(**kwargs)
            content = completion.choices[0].message.content if completion.choices else None
            if not content:
                raise EmptyCompletionError(f"Model {model} returned an empty completion")
            logger.info("gateway.completed model=%s json_mode=%s chars=%d", model, json_mode, len(content))
            return content

        try:
            return await asyncio.wait_for(
                first_success(self.models, attempt, is_terminal=is_auth_error),
                timeout=self.request_timeout,
            )
        except NoCandidatesError as exc:
            raise GatewayNotConfiguredError("No LLM models configured") from exc
        except asyncio.TimeoutError as exc:
            logger.warning("gateway.request_timeout timeout=%.1fs", self.request_timeout)
            raise ExternalServiceError("LLM request timed out", last_error=exc) from exc
        except Exception as exc:  # noqa: BLE001
            if is_auth_error(exc):
                logger.error("gateway.unauthorized err=%s", exc)
                raise ExternalServiceError("LLM provider rejected the API key", last_error=exc) from exc
            logger.error("gateway.all_models_failed models=%s err=%s", self.models, exc)
            raise ExternalServiceError("All LLM models failed", last_error=exc) from exc

    async def complete_json(self, messages: List[Message]) -> Dict[str, Any]:
        raw = await self.complete(messages, json_mode=True)
        return parse_json_payload(raw)

    async def close(self) -> None:
        if self._client is not None and hasattr(self._client, "close"):
            await self._client.close()
