"""
LLM adapter: asks an ordered list of advisors for a move and keeps only
replies that parse to a direction and pass the deep-safety check.
"""

import asyncio
import logging
from typing import Callable, List, Optional, Tuple

from game.models import Direction
from .base_llm import BaseAdvisor, RateLimitedError, TransientAPIError
from .cooldown import RateLimitCooldown, primary_cooldown
from .prompts import normalize_direction

logger = logging.getLogger(__name__)

# Outcome labels recorded per consulted advisor
ACCEPTED = "accepted"
SKIPPED_COOLDOWN = "skipped_cooldown"
RATE_LIMITED = "rate_limited"
TRANSIENT = "transient"
GARBLED = "garbled"
UNSAFE = "unsafe"


class AdvisorPanel:
    """
    Consults advisors in order; the first is the primary.

    A rate-limit failure of the primary starts the cooldown, during which the
    primary is not called at all. Every other failure just moves on to the
    next advisor.
    """

    def __init__(
        self,
        advisors: List[BaseAdvisor],
        cooldown: Optional[RateLimitCooldown] = None,
        cooldown_seconds: float = 30.0,
        timeout: Optional[float] = 10.0,
    ):
        """
        Args:
            advisors: Ordered advisors, primary first
            cooldown: Rate-limit cooldown shared across decisions
            cooldown_seconds: Cooldown length after a primary rate limit
            timeout: Per-call deadline in seconds (None for no deadline)
        """
        self.advisors = list(advisors)
        self.cooldown = cooldown if cooldown is not None else primary_cooldown
        self.cooldown_seconds = cooldown_seconds
        self.timeout = timeout

    async def _ask(self, advisor: BaseAdvisor, prompt: str) -> str:
        if self.timeout is None:
            return await advisor.suggest(prompt)
        return await asyncio.wait_for(advisor.suggest(prompt), timeout=self.timeout)

    async def suggest_move(
        self,
        prompt: str,
        is_safe: Callable[[Direction], bool],
        outcomes: Optional[List[Tuple[str, str]]] = None,
    ) -> Optional[Tuple[Direction, str]]:
        """
        Get the first acceptable suggestion.

        Args:
            prompt: Rendered move prompt
            is_safe: Deep-safety gate for a parsed direction
            outcomes: Optional list that receives (advisor_id, outcome) per advisor consulted

        Returns:
            Tuple of (direction, advisor_id) or None if no advisor delivered
        """
        if outcomes is None:
            outcomes = []

        for index, advisor in enumerate(self.advisors):
            is_primary = index == 0
            if is_primary and self.cooldown.active():
                logger.debug(
                    f"Skipping {advisor.advisor_id}: rate-limit cooldown "
                    f"({self.cooldown.remaining():.0f}s left)"
                )
                outcomes.append((advisor.advisor_id, SKIPPED_COOLDOWN))
                continue

            try:
                reply = await self._ask(advisor, prompt)
            except RateLimitedError as e:
                logger.warning(f"Advisor {advisor.advisor_id} rate limited: {e}")
                if is_primary:
                    self.cooldown.trigger(self.cooldown_seconds)
                outcomes.append((advisor.advisor_id, RATE_LIMITED))
                continue
            except asyncio.TimeoutError:
                logger.warning(f"Advisor {advisor.advisor_id} missed its {self.timeout}s deadline")
                outcomes.append((advisor.advisor_id, TRANSIENT))
                continue
            except TransientAPIError as e:
                logger.warning(f"Advisor {advisor.advisor_id} failed: {e}")
                outcomes.append((advisor.advisor_id, TRANSIENT))
                continue
            except Exception as e:
                # Provider SDKs raise their own exception types
                logger.warning(f"Advisor {advisor.advisor_id} raised {type(e).__name__}: {e}")
                outcomes.append((advisor.advisor_id, TRANSIENT))
                continue

            direction = normalize_direction(reply)
            if direction is None:
                logger.info(f"Advisor {advisor.advisor_id} gave garbled reply: {(reply or '')[:50]!r}")
                outcomes.append((advisor.advisor_id, GARBLED))
                continue
            if not is_safe(direction):
                logger.info(f"Advisor {advisor.advisor_id} suggested unsafe {direction.value}")
                outcomes.append((advisor.advisor_id, UNSAFE))
                continue

            outcomes.append((advisor.advisor_id, ACCEPTED))
            return direction, advisor.advisor_id

        return None

    async def close(self) -> None:
        for advisor in self.advisors:
            await advisor.close()
