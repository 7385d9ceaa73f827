"""Embedding provider for query vectors.

Example:
    from scheme_match.retrieval.embedding import OllamaEmbeddingProvider

    embedder = OllamaEmbeddingProvider(
        base_url="http://localhost:11434",
        model="nomic-embed-text",
    )

    vector = await embedder.embed("crop insurance for paddy farmers")
    # Returns: [0.23, 0.87, 0.12, ... 768 numbers]
"""

from ..config import EmbeddingConfig
from ..exceptions import ConfigurationError, RetrievalUnavailable
from ..llm.ollama import OllamaLLM


class OllamaEmbeddingProvider:
    """Ollama-based embedding provider for hybrid search.

    Client failures are reported as RetrievalUnavailable so the caller's
    retry policy and the orchestrator's fallback logic can act on them. A
    vector of the wrong size means the model does not match the index; that
    is a ConfigurationError and is never retried.

    Args:
        base_url: Ollama server URL (default: http://localhost:11434)
        model: Embedding model name (default: nomic-embed-text)
        dimension: Expected embedding dimension (default: 768)
    """

    def __init__(
        self,
        base_url: str = "http://localhost:11434",
        model: str = "nomic-embed-text",
        dimension: int = 768,
        llm: OllamaLLM | None = None,
    ):
        self.base_url = base_url
        self.model = model
        self.dimension = dimension
        self._llm = llm or OllamaLLM(
            base_url=base_url,
            embedding_model=model,
            embedding_dimension=dimension,
        )

    @classmethod
    def from_config(cls, config: EmbeddingConfig) -> "OllamaEmbeddingProvider":
        return cls(base_url=config.url, model=config.model, dimension=config.dimensions)

    async def embed(self, text: str) -> list[float]:
        """Generate embedding for text.

        Raises:
            RetrievalUnavailable: If the embedding service fails
            ConfigurationError: If the model returns the wrong dimension
        """
        try:
            vector = await self._llm.embed(text)
        except Exception as e:
            raise RetrievalUnavailable(
                f"Embedding model '{self.model}' unavailable",
                source="embedding",
                cause=e,
            ) from e

        if len(vector) != self.dimension:
            raise ConfigurationError(
                f"Embedding model '{self.model}' returned {len(vector)} dimensions, "
                f"expected {self.dimension}",
            )
        return vector
