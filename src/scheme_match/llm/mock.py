"""Scripted chat provider for exercising the planner offline."""

from typing import Any

from .base import ChatMessage, ChatResponse, LLMProvider, ModelTier


class MockLLM(LLMProvider):
    """Replies from a script instead of a model.

    ``responses`` are returned in order and the last one repeats; with no
    script every call gets ``default_response``. Each call is appended to
    ``calls`` so tests can inspect the prompts the planner built.

    Usage:
        llm = MockLLM(responses=[
            '{"action": "lookup_by_region", "args": {"region": "Punjab"}}',
            '{"action": "finalize", "args": {"suggestions": [...]}}',
        ])
    """

    def __init__(self, default_response: str = "{}", responses: list[str] | None = None):
        self.default_response = default_response
        self.responses = list(responses or [])
        self.calls: list[dict[str, Any]] = []

    def _next_reply(self) -> str:
        if not self.responses:
            return self.default_response
        return self.responses[min(len(self.calls), len(self.responses)) - 1]

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
        self.calls.append({
            "messages": messages,
            "system_prompt": system_prompt,
            "temperature": temperature,
            "tier": tier,
            "response_format": response_format,
        })
        return ChatResponse(content=self._next_reply(), model="mock", latency_ms=0.0)
