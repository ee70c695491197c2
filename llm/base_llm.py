"""
Base class for LLM move advisors.
"""

import abc


class AdvisorError(Exception):
    """Base class for advisor failures."""
    pass


class TransientAPIError(AdvisorError):
    """Raised when an advisor call fails due to network, server or timeout issues."""
    pass


class RateLimitedError(TransientAPIError):
    """Raised when the provider reports a rate limit (HTTP 429 or equivalent)."""
    pass


class BaseAdvisor(abc.ABC):
    """
    Abstract base class for LLM advisors.

    An advisor turns a prompt into a raw text reply. Interpreting and
    validating the reply is the caller's job.
    """

    def __init__(self, advisor_id: str, model_name: str):
        """
        Initialize the advisor.

        Args:
            advisor_id: Unique identifier for this advisor
            model_name: Model identifier for the LLM API
        """
        self.advisor_id = advisor_id
        self.model_name = model_name
        # Token usage tracking
        self.prompt_tokens = 0
        self.completion_tokens = 0
        self.total_tokens = 0
        # Last request/response for debugging rejected replies
        self.last_prompt: str = ""
        self.last_raw_response: str = ""

    def get_token_usage(self) -> dict:
        """Get current token usage stats."""
        return {
            "prompt_tokens": self.prompt_tokens,
            "completion_tokens": self.completion_tokens,
            "total_tokens": self.total_tokens,
        }

    @abc.abstractmethod
    async def suggest(self, prompt: str) -> str:
        """
        Ask the model for a move.

        Args:
            prompt: Fully rendered prompt

        Returns:
            The model's raw reply text

        Raises:
            RateLimitedError: If the provider rate-limited the request
            TransientAPIError: If the call failed for any other transport reason
        """
        ...

    @abc.abstractmethod
    async def close(self) -> None:
        """Clean up resources."""
        ...

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
        return False
