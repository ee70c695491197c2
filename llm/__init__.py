# LLM advisors
from .base_llm import AdvisorError, BaseAdvisor, RateLimitedError, TransientAPIError
from .advisor_panel import AdvisorPanel
from .cooldown import RateLimitCooldown, primary_cooldown

__all__ = [
    "AdvisorError",
    "AdvisorPanel",
    "BaseAdvisor",
    "RateLimitCooldown",
    "RateLimitedError",
    "TransientAPIError",
    "primary_cooldown",
]
