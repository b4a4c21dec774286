"""Protocol interfaces for the embedding and scoring oracles."""

from typing import Protocol, runtime_checkable


@runtime_checkable
class EmbeddingClient(Protocol):
    """Protocol for text embedding oracles.

    Implementations must be idempotent for identical text and model.
    """

    async def embed(self, text: str, *, model: str) -> list[float]:
        """Embed a single text.

        Args:
            text: Text to embed.
            model: Named embedding model.

        Returns:
            Dense vector.

        Raises:
            LlmApiError: If the API call fails.
        """
        ...


@runtime_checkable
class LlmClient(Protocol):
    """Protocol for LLM content generation clients.

    Any client implementing ``generate_content`` can back the relevance
    scorer, regardless of provider.
    """

    async def generate_content(
        self,
        prompt: str,
        system_instruction: str | None = None,
    ) -> str:
        """Generate text from a prompt.

        Args:
            prompt: User prompt text.
            system_instruction: Optional system-level instruction.

        Returns:
            Generated text from the model.

        Raises:
            LlmApiError: If the API call fails.
        """
        ...
