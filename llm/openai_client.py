"""
OpenAI chat completions client for LLM move advisors (backup advisor).

One POST per attempt. HTTP 429 is surfaced at once as RateLimitedError;
5xx replies and connection problems are retried with jittered backoff.
"""

import asyncio
import json
import logging
import os
import random
from typing import Optional

import aiohttp

from .base_llm import BaseAdvisor, RateLimitedError, TransientAPIError
from .prompts import SYSTEM_PROMPT

logger = logging.getLogger(__name__)

RETRYABLE_STATUSES = frozenset({500, 502, 503, 504})


class _RetryableStatus(Exception):
    """Server-side failure worth another attempt."""

    def __init__(self, status: int, body: str):
        super().__init__(f"HTTP {status}: {body[:200]}")
        self.status = status


class OpenAIAdvisor(BaseAdvisor):
    """
    LLM advisor using the OpenAI chat completions API.
    """

    OPENAI_API_URL = "https://api.openai.com/v1/chat/completions"

    def __init__(
        self,
        advisor_id: str,
        model_name: str = "gpt-4o-mini",
        api_key: Optional[str] = None,
        temperature: float = 0.4,
        max_tokens: int = 5,
        timeout: int = 30,
        max_retries: int = 2,
    ):
        """
        Initialize OpenAI advisor.

        Args:
            advisor_id: Unique identifier for this advisor
            model_name: OpenAI model identifier (e.g., "gpt-4o-mini")
            api_key: OpenAI API key (defaults to OPENAI_API_KEY env var)
            temperature: Sampling temperature
            max_tokens: Reply length cap; a direction needs one or two tokens
            timeout: Total timeout per HTTP request in seconds
            max_retries: Attempts for transient server and network errors

        Raises:
            ValueError: If no API key is available
        """
        super().__init__(advisor_id, model_name)
        self.api_key = api_key or os.environ.get("OPENAI_API_KEY")
        if not self.api_key:
            raise ValueError("OpenAI API key required (set OPENAI_API_KEY)")
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.timeout = timeout
        self.max_retries = max(1, max_retries)
        self._session: Optional[aiohttp.ClientSession] = None
        self._session_loop: Optional[asyncio.AbstractEventLoop] = None

    async def _get_session(self) -> aiohttp.ClientSession:
        # A session is bound to the loop it was created on; async web views
        # run each request on a fresh loop
        loop = asyncio.get_running_loop()
        if self._session is not None and self._session_loop is not loop:
            logger.debug(f"{self.advisor_id}: event loop changed, opening a new session")
            self._session = None
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                headers={"Authorization": f"Bearer {self.api_key}"},
                timeout=aiohttp.ClientTimeout(total=self.timeout),
            )
            self._session_loop = loop
        return self._session

    def _payload(self, prompt: str) -> dict:
        payload = {
            "model": self.model_name,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            "temperature": self.temperature,
        }
        if self.max_tokens > 0:
            payload["max_tokens"] = self.max_tokens
        return payload

    async def _post(self, payload: dict) -> dict:
        """Send one completion request and return the decoded body."""
        session = await self._get_session()
        async with session.post(self.OPENAI_API_URL, json=payload) as response:
            if response.status == 200:
                return await response.json()

            body = await response.text()
            self.last_raw_response = f"[HTTP {response.status}] {body[:500]}"
            if response.status == 429:
                raise RateLimitedError(f"OpenAI rate limited: {body[:200]}")
            if response.status in RETRYABLE_STATUSES:
                raise _RetryableStatus(response.status, body)
            raise TransientAPIError(f"OpenAI API error {response.status}: {body[:200]}")

    def _record_usage(self, data: dict) -> None:
        usage = data.get("usage") or {}
        self.prompt_tokens += usage.get("prompt_tokens", 0)
        self.completion_tokens += usage.get("completion_tokens", 0)
        self.total_tokens += usage.get("total_tokens", 0)

    async def suggest(self, prompt: str) -> str:
        """
        Ask the OpenAI model for a move.

        Raises:
            RateLimitedError: On HTTP 429
            TransientAPIError: On other API errors, or when retries run out
        """
        self.last_prompt = prompt
        self.last_raw_response = ""
        payload = self._payload(prompt)

        backoff = 0.5
        attempt = 1
        while True:
            try:
                data = await self._post(payload)
                break
            except (_RetryableStatus, aiohttp.ClientError, asyncio.TimeoutError,
                    ConnectionError, json.JSONDecodeError) as e:
                if attempt >= self.max_retries:
                    raise TransientAPIError(
                        f"OpenAI call failed after {attempt} attempt(s): {e}"
                    ) from e
                delay = backoff * (1 + random.uniform(0, 0.1))
                logger.warning(
                    f"{self.advisor_id}: attempt {attempt} failed ({type(e).__name__}: {e}), "
                    f"retrying in {delay:.1f}s"
                )
                await asyncio.sleep(delay)
                backoff *= 2
                attempt += 1
                # A fresh session drops a possibly stale connection
                await self.close()

        self._record_usage(data)
        try:
            text = data["choices"][0]["message"]["content"] or ""
        except (KeyError, IndexError, TypeError) as e:
            self.last_raw_response = f"[Unexpected body] {str(data)[:500]}"
            raise TransientAPIError(f"Unexpected OpenAI response shape: {str(data)[:200]}") from e

        self.last_raw_response = text
        logger.debug(f"{self.advisor_id} replied {text[:200]!r}")
        return text

    async def close(self) -> None:
        """Close the HTTP session."""
        session, self._session = self._session, None
        if session is None or session.closed:
            return
        if self._session_loop is not asyncio.get_running_loop():
            # Its loop has finished; there is nothing left to close it on
            return
        await session.close()
