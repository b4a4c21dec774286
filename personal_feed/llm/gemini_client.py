"""Standard Gemini API client using API key authentication."""

from http import HTTPStatus

import httpx
import structlog

from personal_feed.llm.errors import LlmApiError, LlmProcessingError, is_transient_llm_error
from personal_feed.retry import RetryExhaustedError, RetryPolicy, call_with_retry


logger = structlog.get_logger()

_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/models"
_DEFAULT_RETRY_POLICY = RetryPolicy(
    max_attempts=4, base_delay_ms=2000, exponential_base=2.0, jitter_factor=0.2
)


class GeminiApiKeyClient:
    """Client for the standard Gemini API using API key authentication.

    Uses the ``generativelanguage.googleapis.com`` endpoint with an
    ``x-goog-api-key`` header and requests a JSON response MIME type.
    """

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-2.5-flash",
        *,
        temperature: float = 0.1,
        timeout_seconds: float = 60.0,
        retry_policy: RetryPolicy = _DEFAULT_RETRY_POLICY,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            api_key: Gemini API key.
            model: Gemini model identifier.
            temperature: Sampling temperature.
            timeout_seconds: Per-request HTTP timeout.
            retry_policy: Retry policy for 429/5xx responses.
            http_client: Shared async HTTP client; one is created if omitted.
        """
        self._api_key = api_key
        self.model = model
        self._temperature = temperature
        self._retry_policy = retry_policy
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient(timeout=timeout_seconds)
        self._log = logger.bind(component="llm", subcomponent="gemini_api_key")

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._owns_client:
            await self._http.aclose()

    async def generate_content(
        self,
        prompt: str,
        system_instruction: str | None = None,
    ) -> str:
        """Send a generate content request to the Gemini API.

        Args:
            prompt: User prompt text.
            system_instruction: Optional system instruction.

        Returns:
            Generated text from the model response.

        Raises:
            LlmApiError: If the API call fails after all retries.
            LlmProcessingError: If the response carries no text.
        """
        request_body: dict[str, object] = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": {
                "temperature": self._temperature,
                "responseMimeType": "application/json",
            },
        }
        if system_instruction:
            request_body["systemInstruction"] = {
                "parts": [{"text": system_instruction}]
            }

        try:
            response = await call_with_retry(
                lambda: self._send(request_body),
                policy=self._retry_policy,
                is_retryable=is_transient_llm_error,
                log=self._log,
            )
        except RetryExhaustedError as exc:
            last = exc.last_error
            status = last.status_code if isinstance(last, LlmApiError) else 0
            msg = f"Gemini API failed after {exc.attempts} attempts: {last}"
            raise LlmApiError(msg, status_code=status) from exc

        return self._extract_text(response)

    async def _send(self, request_body: dict[str, object]) -> httpx.Response:
        url = f"{_BASE_URL}/{self.model}:generateContent"
        try:
            response = await self._http.post(
                url,
                headers={
                    "x-goog-api-key": self._api_key,
                    "Content-Type": "application/json",
                },
                json=request_body,
            )
        except httpx.HTTPError as exc:
            msg = f"Gemini API request failed: {exc}"
            raise LlmApiError(msg, transient=True) from exc

        if response.status_code != HTTPStatus.OK:
            msg = f"Gemini API returned {response.status_code}"
            raise LlmApiError(msg, status_code=response.status_code)
        return response

    @staticmethod
    def _extract_text(response: httpx.Response) -> str:
        """Extract generated text from the API response.

        Raises:
            LlmProcessingError: If the response is missing expected fields.
        """
        try:
            data = response.json()
        except ValueError as exc:
            msg = "Gemini API returned invalid JSON"
            raise LlmProcessingError(msg) from exc
        if not isinstance(data, dict):
            msg = "Gemini API returned unexpected payload type"
            raise LlmProcessingError(msg)

        candidates = data.get("candidates", [])
        if not isinstance(candidates, list) or not candidates:
            msg = "No candidates in Gemini API response"
            raise LlmProcessingError(msg)

        parts = candidates[0].get("content", {}).get("parts", [])
        if not parts:
            msg = "No parts in first candidate"
            raise LlmProcessingError(msg)

        text: str = parts[0].get("text", "")
        if not text:
            msg = "Empty text in response"
            raise LlmProcessingError(msg)

        return text
