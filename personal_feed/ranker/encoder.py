"""Profile encoder: turns a reader profile into a query vector."""

import asyncio
import math

import structlog

from personal_feed.config import EncoderConfig
from personal_feed.errors import EncodingError
from personal_feed.llm import EmbeddingClient
from personal_feed.observability import FeedLogger
from personal_feed.ranker.models import UserProfile


logger = structlog.get_logger()


def build_profile_text(profile: UserProfile) -> str:
    """Render the profile as the single text sent to the embedding oracle.

    Field order is fixed so identical profiles always embed identically.
    """
    return (
        f"Professional role: {profile.role}. "
        f"Key interests and technologies: {', '.join(profile.interests)}. "
        f"Current projects and priorities: {profile.projects}"
    )


class ProfileEncoder:
    """Encodes profiles with a named embedding model."""

    def __init__(
        self,
        client: EmbeddingClient,
        config: EncoderConfig,
        log: FeedLogger | None = None,
    ) -> None:
        """Initialize the encoder.

        Args:
            client: Embedding oracle.
            config: Model, expected dimensionality and timeout.
            log: Logger; defaults to the module logger.
        """
        self._client = client
        self._config = config
        self._log = (log or logger).bind(component="ranker", subcomponent="encoder")

    async def encode(self, profile: UserProfile) -> tuple[float, ...]:
        """Embed the profile.

        Args:
            profile: Validated reader profile.

        Returns:
            Query vector with the configured dimensionality.

        Raises:
            EncodingError: If the oracle fails, times out, or returns a
                malformed vector.
        """
        text = build_profile_text(profile)
        try:
            raw = await asyncio.wait_for(
                self._client.embed(text, model=self._config.model),
                timeout=self._config.timeout_seconds,
            )
        except TimeoutError as exc:
            self._log.error("encoding_timeout", timeout_s=self._config.timeout_seconds)
            msg = f"Embedding call timed out after {self._config.timeout_seconds}s"
            raise EncodingError(msg) from exc
        except Exception as exc:
            self._log.error("encoding_failed", error=str(exc))
            msg = f"Embedding call failed: {exc}"
            raise EncodingError(msg) from exc

        vector = self._validate(raw)
        self._log.info(
            "profile_encoded",
            model=self._config.model,
            dimensions=len(vector),
            interest_count=len(profile.interests),
        )
        return vector

    def _validate(self, raw: object) -> tuple[float, ...]:
        if not isinstance(raw, list | tuple) or not raw:
            msg = "Embedding oracle returned an empty vector"
            raise EncodingError(msg)

        if len(raw) != self._config.dimensions:
            msg = (
                f"Embedding has {len(raw)} dimensions, "
                f"expected {self._config.dimensions}"
            )
            raise EncodingError(msg)

        vector: list[float] = []
        for component in raw:
            if isinstance(component, bool) or not isinstance(component, int | float):
                msg = "Embedding contains a non-numeric component"
                raise EncodingError(msg)
            if not math.isfinite(component):
                msg = "Embedding contains a NaN or infinite component"
                raise EncodingError(msg)
            vector.append(float(component))
        return tuple(vector)
