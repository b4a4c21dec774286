"""Clients for the embedding and relevance-scoring oracles."""

from personal_feed.llm.errors import LlmApiError, LlmAuthError, LlmProcessingError
from personal_feed.llm.factory import create_embedding_client, create_llm_client
from personal_feed.llm.protocols import EmbeddingClient, LlmClient


__all__ = [
    "EmbeddingClient",
    "LlmApiError",
    "LlmAuthError",
    "LlmClient",
    "LlmProcessingError",
    "create_embedding_client",
    "create_llm_client",
]
