"""
Google Gemini client for LLM move advisors (primary advisor).

Talks to Gemini through the google-genai SDK's async interface. The SDK
raises its own error types, so failures are classified by their message.
"""

import asyncio
import logging
import os
import random
from typing import Optional

from .base_llm import BaseAdvisor, RateLimitedError, TransientAPIError
from .prompts import SYSTEM_PROMPT

logger = logging.getLogger(__name__)

RATE_LIMIT_MARKERS = ("429", "resource_exhausted", "rate limit", "quota")
RETRY_MARKERS = (
    "500", "502", "503", "504",
    "unavailable", "deadline_exceeded", "internal", "timeout",
)

# A direction is a single word
MAX_OUTPUT_TOKENS = 16


def classify_error(error: Exception) -> str:
    """Return "rate_limit", "retry" or "fatal" for an SDK exception."""
    message = str(error).lower()
    if any(marker in message for marker in RATE_LIMIT_MARKERS):
        return "rate_limit"
    if any(marker in message for marker in RETRY_MARKERS):
        return "retry"
    return "fatal"


class GeminiAdvisor(BaseAdvisor):
    """
    LLM advisor using the Google Gemini API.

    Rate limits are reported immediately rather than retried, so the panel
    can start its cooldown.
    """

    def __init__(
        self,
        advisor_id: str,
        model_name: str = "gemini-2.0-flash",
        api_key: Optional[str] = None,
        temperature: float = 0.0,
        timeout: int = 30,
        max_retries: int = 2,
    ):
        """
        Initialize the Gemini advisor.

        Args:
            advisor_id: Unique identifier for this advisor
            model_name: Gemini model identifier
            api_key: API key (defaults to GEMINI_API_KEY env var)
            temperature: Sampling temperature
            timeout: HTTP timeout in seconds
            max_retries: Attempts for transient server errors

        Raises:
            ValueError: If no API key is available
        """
        super().__init__(advisor_id, model_name)
        self.api_key = api_key or os.environ.get("GEMINI_API_KEY")
        if not self.api_key:
            raise ValueError("Gemini API key required (set GEMINI_API_KEY)")
        self.temperature = temperature
        self.timeout = timeout
        self.max_retries = max(1, max_retries)

        from google import genai
        self._genai = genai
        self._types = genai.types
        # Created lazily: the SDK's async transport is bound to one event loop
        self._client = None
        self._client_loop: Optional[asyncio.AbstractEventLoop] = None

    def _create_client(self):
        return self._genai.Client(
            api_key=self.api_key,
            http_options=self._types.HttpOptions(timeout=self.timeout * 1000),
        )

    def _get_client(self):
        loop = asyncio.get_running_loop()
        if self._client is not None and self._client_loop is not loop:
            logger.debug(f"{self.advisor_id}: event loop changed, creating a new client")
            self._client.close()
            self._client = None
        if self._client is None:
            self._client = self._create_client()
            self._client_loop = loop
        return self._client

    def _record_usage(self, response) -> None:
        usage = getattr(response, "usage_metadata", None)
        if not usage:
            return
        self.prompt_tokens += usage.prompt_token_count or 0
        self.completion_tokens += usage.candidates_token_count or 0
        self.total_tokens += usage.total_token_count or 0

    @staticmethod
    def _reply_text(response) -> str:
        # .text raises on safety-blocked candidates
        try:
            return response.text or ""
        except (ValueError, AttributeError):
            return ""

    async def suggest(self, prompt: str) -> str:
        """
        Ask Gemini for a move.

        Raises:
            RateLimitedError: If Gemini reports a rate limit or exhausted quota
            TransientAPIError: On any other failure once retries are used up
        """
        self.last_prompt = prompt
        self.last_raw_response = ""
        config = self._types.GenerateContentConfig(
            temperature=self.temperature,
            system_instruction=SYSTEM_PROMPT,
            max_output_tokens=MAX_OUTPUT_TOKENS,
        )

        backoff = 0.5
        for attempt in range(1, self.max_retries + 1):
            try:
                response = await self._get_client().aio.models.generate_content(
                    model=self.model_name,
                    contents=prompt,
                    config=config,
                )
            except asyncio.CancelledError:
                raise
            except Exception as e:
                kind = classify_error(e)
                if kind == "rate_limit":
                    raise RateLimitedError(f"Gemini rate limited: {e}") from e
                if kind == "fatal" or attempt == self.max_retries:
                    raise TransientAPIError(
                        f"Gemini call failed on attempt {attempt}: {type(e).__name__}: {e}"
                    ) from e
                delay = backoff * (1 + random.uniform(0, 0.1))
                logger.warning(f"{self.advisor_id}: {e}; retrying in {delay:.1f}s")
                await asyncio.sleep(delay)
                backoff *= 2
                continue

            self._record_usage(response)
            text = self._reply_text(response)
            self.last_raw_response = text
            logger.debug(f"{self.advisor_id} replied {text[:200]!r}")
            return text

        raise TransientAPIError("Gemini call made no attempts")

    async def close(self) -> None:
        """Close the SDK's HTTP clients."""
        client, self._client = self._client, None
        if client is None:
            return
        try:
            if self._client_loop is asyncio.get_running_loop():
                await client.aio.aclose()
        finally:
            client.close()
