"""
Process-wide rate-limit cooldown for the primary advisor.
"""

import time
from typing import Callable


class RateLimitCooldown:
    """
    Monotonic deadline before which the primary advisor is skipped.

    Reads and writes are plain attribute accesses; concurrent decisions may
    race, and the last writer wins. A stale read costs at most one extra
    advisor call or one extra cooldown window.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._deadline = 0.0

    def trigger(self, seconds: float) -> None:
        self._deadline = self._clock() + seconds

    def active(self) -> bool:
        return self._clock() < self._deadline

    def remaining(self) -> float:
        return max(0.0, self._deadline - self._clock())

    def reset(self) -> None:
        self._deadline = 0.0


# Shared by every decider in the process
primary_cooldown = RateLimitCooldown()
