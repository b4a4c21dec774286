"""OpenAI API client for embeddings and JSON-mode chat completions."""

from http import HTTPStatus

import httpx
import structlog

from personal_feed.llm.errors import LlmApiError, LlmProcessingError, is_transient_llm_error
from personal_feed.retry import RetryExhaustedError, RetryPolicy, call_with_retry


logger = structlog.get_logger()

_DEFAULT_BASE_URL = "https://api.openai.com/v1"
_DEFAULT_RETRY_POLICY = RetryPolicy(
    max_attempts=4, base_delay_ms=1000, exponential_base=2.0, jitter_factor=0.1
)


class OpenAiClient:
    """Client for the OpenAI REST API.

    Serves as both the embedding oracle (``embed``) and a scoring oracle
    (``generate_content``). Retries 429 and 5xx responses with exponential
    backoff; other failures raise ``LlmApiError`` immediately.

    Attributes:
        model: Chat model identifier used by ``generate_content``.
    """

    def __init__(  # noqa: PLR0913
        self,
        api_key: str,
        model: str = "gpt-4o-mini",
        *,
        base_url: str = _DEFAULT_BASE_URL,
        temperature: float = 0.1,
        timeout_seconds: float = 60.0,
        retry_policy: RetryPolicy = _DEFAULT_RETRY_POLICY,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            api_key: OpenAI API key.
            model: Chat model identifier.
            base_url: API root, overridable for compatible gateways.
            temperature: Sampling temperature for chat completions.
            timeout_seconds: Per-request HTTP timeout.
            retry_policy: Retry policy for transient failures.
            http_client: Shared async HTTP client; one is created if omitted.
        """
        self._api_key = api_key
        self.model = model
        self._base_url = base_url.rstrip("/")
        self._temperature = temperature
        self._retry_policy = retry_policy
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient(timeout=timeout_seconds)
        self._log = logger.bind(component="llm", subcomponent="openai")

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._owns_client:
            await self._http.aclose()

    async def __aenter__(self) -> "OpenAiClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def embed(self, text: str, *, model: str) -> list[float]:
        """Embed a single text with the embeddings endpoint.

        Args:
            text: Text to embed.
            model: Embedding model identifier.

        Returns:
            Embedding vector as returned by the API.

        Raises:
            LlmApiError: If the call fails.
            LlmProcessingError: If the response has no vector.
        """
        data = await self._post("/embeddings", {"model": model, "input": text})

        items = data.get("data")
        if not isinstance(items, list) or not items:
            msg = "No data in embeddings response"
            raise LlmProcessingError(msg)
        embedding = items[0].get("embedding") if isinstance(items[0], dict) else None
        if not isinstance(embedding, list):
            msg = "Embeddings response item has no vector"
            raise LlmProcessingError(msg)
        return embedding

    async def generate_content(
        self,
        prompt: str,
        system_instruction: str | None = None,
    ) -> str:
        """Run a JSON-mode chat completion.

        Args:
            prompt: User prompt text.
            system_instruction: Optional system message.

        Returns:
            Content of the first choice.

        Raises:
            LlmApiError: If the call fails.
            LlmProcessingError: If the response has no content.
        """
        messages: list[dict[str, str]] = []
        if system_instruction:
            messages.append({"role": "system", "content": system_instruction})
        messages.append({"role": "user", "content": prompt})

        data = await self._post(
            "/chat/completions",
            {
                "model": self.model,
                "messages": messages,
                "temperature": self._temperature,
                "response_format": {"type": "json_object"},
            },
        )

        choices = data.get("choices")
        if not isinstance(choices, list) or not choices:
            msg = "No choices in chat completion response"
            raise LlmProcessingError(msg)
        first = choices[0] if isinstance(choices[0], dict) else {}
        message = first.get("message")
        content = message.get("content", "") if isinstance(message, dict) else ""
        if not isinstance(content, str) or not content:
            msg = "Empty content in chat completion response"
            raise LlmProcessingError(msg)
        return content

    async def _post(self, path: str, body: dict[str, object]) -> dict[str, object]:
        """POST with retries and return the decoded JSON body.

        Raises:
            LlmApiError: On non-retryable errors or when retries run out.
        """
        try:
            return await call_with_retry(
                lambda: self._send(path, body),
                policy=self._retry_policy,
                is_retryable=is_transient_llm_error,
                log=self._log,
            )
        except RetryExhaustedError as exc:
            last = exc.last_error
            status = last.status_code if isinstance(last, LlmApiError) else 0
            msg = f"OpenAI {path} failed after {exc.attempts} attempts: {last}"
            raise LlmApiError(msg, status_code=status) from exc

    async def _send(self, path: str, body: dict[str, object]) -> dict[str, object]:
        try:
            response = await self._http.post(
                f"{self._base_url}{path}",
                headers={
                    "Authorization": f"Bearer {self._api_key}",
                    "Content-Type": "application/json",
                },
                json=body,
            )
        except httpx.TimeoutException as exc:
            msg = f"OpenAI {path} timed out: {exc}"
            raise LlmApiError(msg, transient=True) from exc
        except httpx.HTTPError as exc:
            msg = f"OpenAI {path} request failed: {exc}"
            raise LlmApiError(msg, transient=True) from exc

        if response.status_code != HTTPStatus.OK:
            msg = f"OpenAI {path} returned {response.status_code}"
            raise LlmApiError(msg, status_code=response.status_code)

        try:
            data = response.json()
        except ValueError as exc:
            msg = f"OpenAI {path} returned invalid JSON"
            raise LlmProcessingError(msg) from exc
        if not isinstance(data, dict):
            msg = f"OpenAI {path} returned unexpected payload type"
            raise LlmProcessingError(msg)
        return data
