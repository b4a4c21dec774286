"""Factory for creating oracle clients from the available credentials."""

import httpx
import structlog

from personal_feed.llm.errors import LlmAuthError
from personal_feed.llm.gemini_client import GeminiApiKeyClient
from personal_feed.llm.openai_client import OpenAiClient
from personal_feed.llm.protocols import EmbeddingClient, LlmClient
from personal_feed.settings import AppSettings, ScoringProvider


logger = structlog.get_logger()


def create_embedding_client(
    settings: AppSettings,
    *,
    http_client: httpx.AsyncClient | None = None,
) -> EmbeddingClient:
    """Create the embedding oracle client.

    Story vectors in the store were produced by OpenAI embedding models,
    so the query side must use the same provider.

    Raises:
        LlmAuthError: If no OpenAI key is configured.
    """
    if not settings.openai_api_key:
        msg = "No embedding credentials configured (need OPENAI_API_KEY)"
        raise LlmAuthError(msg)
    return OpenAiClient(
        api_key=settings.openai_api_key,
        base_url=settings.openai_base_url,
        http_client=http_client,
    )


def create_llm_client(
    settings: AppSettings,
    *,
    model: str | None = None,
    temperature: float = 0.1,
    http_client: httpx.AsyncClient | None = None,
) -> LlmClient | None:
    """Create the scoring oracle client using the best available credentials.

    With ``SCORING_PROVIDER=auto`` OpenAI is preferred over Gemini. Returns
    None when no credentials exist, in which case the scorer runs in
    fallback mode.

    Args:
        settings: Environment settings.
        model: Model identifier override.
        temperature: Sampling temperature.
        http_client: Shared async HTTP client.

    Returns:
        An LlmClient implementation, or None.

    Raises:
        LlmAuthError: If a provider is forced but its key is missing.
    """
    log = logger.bind(component="llm", subcomponent="factory")
    provider = settings.scoring_provider

    use_openai = provider == ScoringProvider.OPENAI or (
        provider == ScoringProvider.AUTO and settings.openai_api_key
    )
    if use_openai:
        if not settings.openai_api_key:
            msg = "SCORING_PROVIDER=openai but OPENAI_API_KEY is not set"
            raise LlmAuthError(msg)
        log.info("llm_client_created", provider="openai")
        return OpenAiClient(
            api_key=settings.openai_api_key,
            model=model or "gpt-4o-mini",
            base_url=settings.openai_base_url,
            temperature=temperature,
            http_client=http_client,
        )

    if provider in (ScoringProvider.GEMINI, ScoringProvider.AUTO):
        if settings.gemini_api_key:
            log.info("llm_client_created", provider="gemini")
            return GeminiApiKeyClient(
                api_key=settings.gemini_api_key,
                model=model if model and model.startswith("gemini") else "gemini-2.5-flash",
                temperature=temperature,
                http_client=http_client,
            )
        if provider == ScoringProvider.GEMINI:
            msg = "SCORING_PROVIDER=gemini but GEMINI_API_KEY is not set"
            raise LlmAuthError(msg)

    log.warning("llm_client_unavailable", provider=provider.value)
    return None
