"""Planner LLM construction by provider name."""

import os
from typing import Any

from ..config import LLMConfig
from .base import LLMProvider

PROVIDERS = ("groq", "ollama", "mock")


def create_llm(provider: str = "auto", **kwargs: Any) -> LLMProvider:
    """Create a chat provider.

    "auto" picks Groq when GROQ_API_KEY is set and a local Ollama server
    otherwise. Keyword arguments go to the provider's constructor.

    Examples:
        llm = create_llm("groq", api_key="gsk_...")
        llm = create_llm("ollama", model="qwen2.5:7b")
        llm = create_llm("mock", responses=['{"action": "finalize", "args": {...}}'])

    Raises:
        ValueError: Unknown provider name
    """
    if provider == "auto":
        provider = "groq" if os.environ.get("GROQ_API_KEY") else "ollama"

    if provider == "groq":
        from .groq import GroqLLM
        return GroqLLM(**kwargs)
    if provider == "ollama":
        from .ollama import OllamaLLM
        return OllamaLLM(**kwargs)
    if provider == "mock":
        from .mock import MockLLM
        return MockLLM(**kwargs)
    raise ValueError(f"Unknown provider: {provider} (expected one of {', '.join(PROVIDERS)})")


def create_llm_from_config(config: LLMConfig) -> LLMProvider | None:
    """Planner LLM described by config, or None for provider "none"."""
    if config.provider == "none":
        return None
    if config.provider == "groq":
        from .groq import GroqLLM
        return GroqLLM.from_config(config)
    if config.provider == "ollama":
        from .ollama import OllamaLLM
        return OllamaLLM.from_config(config)
    return create_llm(config.provider)
