"""Groq chat provider for the LLM planner.

Planner calls are short and frequent, so the client is created once and
reused; transport retries are delegated to the Groq SDK.
"""

import logging
import os
import time
from typing import Any

from ..config import LLMConfig
from ..exceptions import LLMError
from .base import ChatMessage, ChatResponse, LLMProvider, ModelTier, to_api_messages

logger = logging.getLogger(__name__)

DEFAULT_PLANNER_MODEL = "llama-3.3-70b-versatile"
DEFAULT_FAST_MODEL = "llama-3.1-8b-instant"


class GroqLLM(LLMProvider):
    """Groq-hosted chat models.

    ModelTier.COMPLEX (the planner's tier) maps to ``model``,
    ModelTier.LOCAL to ``fast_model``.

    Usage:
        llm = GroqLLM(api_key="gsk_...")
        planner = LLMPlanner(llm)
    """

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        fast_model: str = DEFAULT_FAST_MODEL,
        timeout_seconds: float = 60.0,
        max_retries: int = 3,
    ):
        self.api_key = api_key or os.environ.get("GROQ_API_KEY")
        if not self.api_key:
            raise LLMError("Groq API key required. Set GROQ_API_KEY or pass api_key.")
        self.models = {
            ModelTier.COMPLEX: model or DEFAULT_PLANNER_MODEL,
            ModelTier.LOCAL: fast_model,
        }
        self.timeout_seconds = timeout_seconds
        self.max_retries = max_retries
        self._client = None

    @classmethod
    def from_config(cls, config: LLMConfig) -> "GroqLLM":
        return cls(api_key=config.api_key, model=config.model)

    @property
    def client(self):
        if self._client is None:
            from groq import AsyncGroq

            self._client = AsyncGroq(
                api_key=self.api_key,
                timeout=self.timeout_seconds,
                max_retries=self.max_retries,
            )
        return self._client

    async def chat(
        self,
        messages: list[ChatMessage] | list[dict[str, Any]],
        *,
        system_prompt: str | None = None,
        temperature: float = 0.7,
        max_tokens: int = 1024,
        tier: ModelTier = ModelTier.LOCAL,
        response_format: dict[str, Any] | None = None,
    ) -> ChatResponse:
        """Run one chat completion.

        Raises:
            LLMError: The API call failed after the SDK's own retries
        """
        from groq import APIError

        model = self.models[tier]
        request: dict[str, Any] = {
            "model": model,
            "messages": to_api_messages(messages, system_prompt),
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        if response_format:
            request["response_format"] = response_format

        started = time.perf_counter()
        try:
            completion = await self.client.chat.completions.create(**request)
        except APIError as e:
            logger.warning(f"[GROQ] {model} request failed: {e}")
            raise LLMError(f"Groq completion with '{model}' failed", cause=e) from e

        choice = completion.choices[0]
        usage = completion.usage
        return ChatResponse(
            content=choice.message.content or "",
            role=choice.message.role,
            finish_reason=choice.finish_reason,
            model=completion.model,
            usage={
                "prompt_tokens": usage.prompt_tokens,
                "completion_tokens": usage.completion_tokens,
                "total_tokens": usage.total_tokens,
            } if usage else None,
            latency_ms=(time.perf_counter() - started) * 1000,
        )
