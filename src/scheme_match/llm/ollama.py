"""Ollama provider: planner chat and query embeddings from one server."""

import logging
import time
from typing import Any

from ..config import EmbeddingConfig, LLMConfig
from ..exceptions import LLMError
from .base import (
    ChatMessage,
    ChatResponse,
    LLMProvider,
    ModelTier,
    to_api_messages,
)

logger = logging.getLogger(__name__)

DEFAULT_HOST = "http://localhost:11434"


class OllamaLLM(LLMProvider):
    """Chat and embeddings served by Ollama.

    Both tiers use ``model`` unless ``fast_model`` is given. Ollama's JSON
    mode is enabled whenever a response_format is requested.

    Usage:
        llm = OllamaLLM(model="qwen2.5:7b")
        vector = await llm.embed("drip irrigation subsidy for cotton")
    """

    def __init__(
        self,
        base_url: str | None = None,
        model: str | None = None,
        fast_model: str | None = None,
        embedding_model: str = "nomic-embed-text",
        embedding_dimension: int = 768,
        timeout_seconds: float = 120.0,
        num_ctx: int = 8192,
    ):
        self.base_url = base_url or DEFAULT_HOST
        planner_model = model or "llama3.1:8b"
        self.models = {
            ModelTier.COMPLEX: planner_model,
            ModelTier.LOCAL: fast_model or planner_model,
        }
        self.embedding_model = embedding_model
        self._embedding_dimension = embedding_dimension
        self.timeout_seconds = timeout_seconds
        self.num_ctx = num_ctx
        self._client = None

    @classmethod
    def from_config(
        cls,
        config: LLMConfig,
        embedding: EmbeddingConfig | None = None,
    ) -> "OllamaLLM":
        embedding = embedding or EmbeddingConfig()
        return cls(
            base_url=config.base_url,
            model=config.model,
            embedding_model=embedding.model,
            embedding_dimension=embedding.dimensions,
        )

    @property
    def client(self):
        if self._client is None:
            from ollama import AsyncClient

            self._client = AsyncClient(host=self.base_url, timeout=self.timeout_seconds)
        return self._client

    @property
    def embedding_dimension(self) -> int:
        return self._embedding_dimension

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
            LLMError: The server is unreachable or rejected the request
        """
        model = self.models[tier]
        started = time.perf_counter()
        try:
            response = await self.client.chat(
                model=model,
                messages=to_api_messages(messages, system_prompt),
                format="json" if response_format else "",
                options={
                    "temperature": temperature,
                    "num_predict": max_tokens,
                    "num_ctx": self.num_ctx,
                },
            )
        except Exception as e:
            logger.warning(f"[OLLAMA] {model} chat failed: {e}")
            raise LLMError(f"Ollama chat with '{model}' failed", cause=e) from e

        prompt_tokens = response.get("prompt_eval_count") or 0
        completion_tokens = response.get("eval_count") or 0
        return ChatResponse(
            content=response["message"]["content"],
            finish_reason=response.get("done_reason") or "stop",
            model=model,
            usage={
                "prompt_tokens": prompt_tokens,
                "completion_tokens": completion_tokens,
                "total_tokens": prompt_tokens + completion_tokens,
            },
            latency_ms=(time.perf_counter() - started) * 1000,
        )

    async def embed(self, text: str) -> list[float]:
        """Embed one text with the configured embedding model."""
        response = await self.client.embed(model=self.embedding_model, input=text)
        return list(response["embeddings"][0])
