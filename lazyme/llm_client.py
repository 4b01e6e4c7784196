"""Text completion over an OpenAI-compatible endpoint (Groq by default)."""
from __future__ import annotations

from dataclasses import dataclass

from openai import (
    APIConnectionError,
    APITimeoutError,
    InternalServerError,
    OpenAI,
    OpenAIError,
    RateLimitError,
)

from lazyme.config import get_env, load_settings
from lazyme.errors import ErrorKind, TailoringError
from lazyme.log import get_logger
from lazyme.retry import retry

log = get_logger(__name__)

_TRANSIENT = (APIConnectionError, APITimeoutError, RateLimitError, InternalServerError)


@dataclass(frozen=True)
class TextCompletionRequest:
    system_instruction: str
    user_prompt: str
    temperature: float = 0.3


def service_error(exc: OpenAIError) -> TailoringError:
    """Plain-language ``TailoringError`` for a failed completion call."""
    status = getattr(exc, "status_code", None)
    if status in (401, 403):
        message = "The text generation service rejected the API key."
    elif isinstance(exc, RateLimitError):
        message = "The text generation service is rate limiting requests. Please try again shortly."
    elif isinstance(exc, (APIConnectionError, APITimeoutError)):
        message = "Could not reach the text generation service."
    elif status:
        message = f"The text generation service returned an error ({status})."
    else:
        message = "The text generation service returned an error."
    return TailoringError(ErrorKind.RESUME_GENERATION_FAILED, message)


class LLMClient:
    """Thin wrapper around ``chat.completions``; returns the text only."""

    def __init__(
        self,
        api_key: str | None = None,
        *,
        model: str | None = None,
        base_url: str | None = None,
        max_tokens: int = 4096,
        client: OpenAI | None = None,
    ) -> None:
        tailoring = load_settings()["tailoring"]
        self.model = model or tailoring["model"]
        self.max_tokens = max_tokens
        if client is not None:
            self._client = client
            return
        api_key = api_key or get_env("GROQ_API_KEY")
        if not api_key:
            raise TailoringError(
                ErrorKind.RESUME_GENERATION_FAILED,
                "GROQ_API_KEY is not configured.",
            )
        self._client = OpenAI(api_key=api_key, base_url=base_url or tailoring["base_url"])

    @retry(max_attempts=3, base_delay=2.0, retryable=_TRANSIENT)
    def _create(self, request: TextCompletionRequest):
        messages = []
        if request.system_instruction:
            messages.append({"role": "system", "content": request.system_instruction})
        messages.append({"role": "user", "content": request.user_prompt})
        return self._client.chat.completions.create(
            model=self.model,
            messages=messages,
            temperature=request.temperature,
            max_tokens=self.max_tokens,
        )

    def complete(self, request: TextCompletionRequest) -> str:
        try:
            response = self._create(request)
        except OpenAIError as exc:
            log.error("Completion request failed: %s", exc)
            raise service_error(exc) from exc
        choices = getattr(response, "choices", None) or []
        if not choices:
            raise TailoringError(
                ErrorKind.RESUME_GENERATION_FAILED,
                "Invalid or empty response from the text generation service",
            )
        text = (choices[0].message.content or "").strip()
        if not text:
            raise TailoringError(
                ErrorKind.RESUME_GENERATION_FAILED,
                "No text content found in the text generation response",
            )
        log.debug("Completion received (%d chars, model=%s)", len(text), self.model)
        return text
