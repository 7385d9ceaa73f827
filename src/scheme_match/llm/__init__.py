"""LLM abstraction layer for scheme-match.

Implementations:
    - GroqLLM: Hosted inference via Groq API (planner)
    - OllamaLLM: Local models via Ollama (planner and query embeddings)
    - MockLLM: Scripted responses for unit tests

Usage:
    from scheme_match.llm import create_llm

    llm = create_llm("groq", api_key="your-key")
"""

from scheme_match.llm.base import (
    LLMProvider,
    ModelTier,
    ChatMessage,
    ChatResponse,
    extract_json,
    to_api_messages,
)
from scheme_match.llm.factory import create_llm, create_llm_from_config
from scheme_match.llm.groq import GroqLLM
from scheme_match.llm.ollama import OllamaLLM
from scheme_match.llm.mock import MockLLM

__all__ = [
    # Abstract
    "LLMProvider",
    "ModelTier",
    "ChatMessage",
    "ChatResponse",
    "extract_json",
    "to_api_messages",
    # Factory
    "create_llm",
    "create_llm_from_config",
    # Implementations
    "GroqLLM",
    "OllamaLLM",
    "MockLLM",
]
