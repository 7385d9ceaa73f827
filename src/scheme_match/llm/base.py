"""Abstract base class for planner LLM providers.

The planner depends on LLMProvider; concrete backends live next to this
module. Query embedding is typed by the EmbeddingProvider protocol in
scheme_match.retrieval.
"""

import json
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Literal


JSON_OBJECT_FORMAT = {"type": "json_object"}


class ModelTier(str, Enum):
    """Model capability tiers.

    The planner asks for COMPLEX by default; providers map tiers to models.
    """

    LOCAL = "local"  # Fast, small models
    COMPLEX = "complex"  # Multi-step planning


@dataclass
class ChatMessage:
    """A message in a conversation."""

    role: Literal["system", "user", "assistant"]
    content: str


@dataclass
class ChatResponse:
    """Response from a chat completion."""

    content: str
    role: str = "assistant"
    finish_reason: str | None = None
    model: str | None = None
    usage: dict[str, int] | None = None

    # Timing
    latency_ms: float | None = None


class LLMProvider(ABC):
    """Abstract interface for LLM chat providers."""

    @abstractmethod
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
        """Complete a chat conversation.

        Args:
            messages: Conversation history
            system_prompt: Optional system prompt to prepend
            temperature: Sampling temperature (0-1)
            max_tokens: Maximum tokens in response
            tier: Model tier to use for this request
            response_format: Optional structured output format

        Returns:
            ChatResponse with the model's reply
        """
        ...

    async def chat_json(
        self,
        messages: list[ChatMessage] | list[dict[str, Any]],
        *,
        system_prompt: str | None = None,
        max_tokens: int = 1024,
        temperature: float = 0.1,
        tier: ModelTier = ModelTier.LOCAL,
        json_mode: bool = True,
    ) -> dict[str, Any]:
        """Chat with JSON output parsing.

        json_mode asks providers that support it to constrain the reply to
        a single JSON object; the reply is parsed leniently either way.

        Returns:
            Dict with 'parsed' (the JSON object or None), 'content' (raw)
        """
        response = await self.chat(
            messages=messages,
            system_prompt=system_prompt,
            max_tokens=max_tokens,
            temperature=temperature,
            tier=tier,
            response_format=JSON_OBJECT_FORMAT if json_mode else None,
        )
        return {"content": response.content, "parsed": extract_json(response.content)}


def to_api_messages(
    messages: list[ChatMessage] | list[dict[str, Any]],
    system_prompt: str | None = None,
) -> list[dict[str, str]]:
    """Role/content dicts as chat APIs expect, system prompt first."""
    converted = [{"role": "system", "content": system_prompt}] if system_prompt else []
    for message in messages:
        if isinstance(message, ChatMessage):
            converted.append({"role": message.role, "content": message.content})
        else:
            converted.append({
                "role": message.get("role", "user"),
                "content": message.get("content", ""),
            })
    return converted


def extract_json(content: str) -> Any:
    """Pull a JSON value out of model output.

    Tries a fenced ```json block first, then the whole text, then the
    outermost {...} span.
    """
    fenced = re.search(r"```(?:json)?\s*(.*?)\s*```", content, re.DOTALL)
    candidates = [fenced.group(1)] if fenced else []
    candidates.append(content.strip())

    start, end = content.find("{"), content.rfind("}")
    if 0 <= start < end:
        candidates.append(content[start:end + 1])

    for candidate in candidates:
        try:
            return json.loads(candidate)
        except json.JSONDecodeError:
            continue
    return None
