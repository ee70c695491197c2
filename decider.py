"""
Hybrid move decider for the Tron bot.

Pipeline per call:
1. Build the occupancy matrix, read recent history, derive the learned prior
2. Exact-state cache over history
3. LLM advisors in order (primary skipped during rate-limit cooldown)
4. Local fallback planner

Every candidate from steps 2-3 must pass the deep-safety check, so the
answer is legal whenever a legal move exists. The decider never raises for
advisor, history or serialisation trouble; it logs and falls through.
"""

import logging
import random
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Tuple

import yaml

from engines.fallback_engine import FallbackEngine
from game.board import build_occupancy, is_deep_safe
from game.encoding import SerialisationError, encode
from game.models import AdvisorConfig, DeciderConfig, Direction, Snapshot
from game.play_store import HistoryUnavailableError, PlayStore
from learning.aggregator import LearningStats
from learning.state_cache import StateCache
from llm.advisor_panel import AdvisorPanel
from llm.base_llm import BaseAdvisor
from llm.cooldown import RateLimitCooldown
from llm.gemini_client import GeminiAdvisor
from llm.openai_client import OpenAIAdvisor
from llm.prompts import build_move_prompt

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "config/tron.yaml"

SOURCE_CACHE = "cache"
SOURCE_FALLBACK = "fallback"


def load_config(config_path: str = DEFAULT_CONFIG_PATH) -> DeciderConfig:
    """Load decider configuration from a YAML file (defaults if absent)."""
    path = Path(config_path)
    if not path.exists():
        logger.info(f"No config at {path}, using defaults")
        return DeciderConfig()
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    return DeciderConfig(**data.get("decider", data))


def create_advisor(cfg: AdvisorConfig) -> BaseAdvisor:
    """
    Build one advisor from its config.

    Raises:
        ValueError: If the provider is unknown or its API key is missing
    """
    advisor_id = f"{cfg.provider}:{cfg.model_name}"
    if cfg.provider == "gemini":
        return GeminiAdvisor(
            advisor_id=advisor_id,
            model_name=cfg.model_name,
            temperature=cfg.temperature,
            timeout=cfg.timeout,
            max_retries=cfg.max_retries,
        )
    elif cfg.provider == "openai":
        return OpenAIAdvisor(
            advisor_id=advisor_id,
            model_name=cfg.model_name,
            temperature=cfg.temperature,
            timeout=cfg.timeout,
            max_retries=cfg.max_retries,
        )
    raise ValueError(f"Unknown advisor provider: '{cfg.provider}'")


def create_advisors(config: DeciderConfig) -> List[BaseAdvisor]:
    """Build the configured advisors, leaving out any that cannot be set up."""
    advisors = []
    for cfg in config.advisors:
        try:
            advisors.append(create_advisor(cfg))
        except ValueError as e:
            logger.warning(f"Advisor {cfg.provider}:{cfg.model_name} disabled: {e}")
    return advisors


@dataclass
class Decision:
    """A decided move and how it was reached."""
    direction: Direction
    source: str
    advisor_outcomes: List[Tuple[str, str]] = field(default_factory=list)


class Decider:
    """
    Chooses the bot's next move.

    Holds no per-decision state: all grids and candidate maps live inside a
    single call, so one instance can serve concurrent requests.
    """

    def __init__(
        self,
        store: Optional[PlayStore] = None,
        config: Optional[DeciderConfig] = None,
        advisors: Optional[List[BaseAdvisor]] = None,
        cooldown: Optional[RateLimitCooldown] = None,
        rng: Optional[random.Random] = None,
        seed: Optional[int] = None,
    ):
        """
        Initialize the decider.

        Args:
            store: History store (None means no history at all)
            config: Tunables; defaults when omitted
            advisors: Ordered LLM advisors, primary first (None or [] disables them)
            cooldown: Rate-limit cooldown (process-wide one when omitted)
            rng: Random generator for fallback tie-breaking
            seed: Seed for a private generator (ignored when rng is given)
        """
        self.store = store
        self.config = config or DeciderConfig()
        self.panel = AdvisorPanel(
            advisors or [],
            cooldown=cooldown,
            cooldown_seconds=self.config.cooldown_seconds,
            timeout=self.config.advisor_timeout,
        )
        self.state_cache = (
            StateCache(store, self.config.cache_limit, self.config.cache_safety_depth)
            if store is not None else None
        )
        self.fallback = FallbackEngine(
            rollout_depth=self.config.fallback_rollout_depth,
            survival_weight=self.config.survival_weight,
            area_weight=self.config.area_weight,
            learning_weight=self.config.learning_weight,
            seed=seed,
            rng=rng,
        )

    def _load_learning(self) -> Tuple[LearningStats, bool]:
        """Aggregate recent history; an unreadable store counts as empty."""
        if self.store is None:
            return LearningStats(), False
        try:
            plays = self.store.top_n_by_id_desc(self.config.history_limit)
        except HistoryUnavailableError as e:
            logger.warning(f"History unavailable, deciding without it: {e}")
            return LearningStats(), False
        return LearningStats.from_plays(plays), True

    async def decide(self, snapshot: Snapshot) -> Direction:
        """Decide the bot's next move. Always returns a direction."""
        decision = await self.decide_with_details(snapshot)
        return decision.direction

    async def decide_with_details(self, snapshot: Snapshot) -> Decision:
        """
        Decide the bot's next move and report where it came from.

        Args:
            snapshot: Current board state

        Returns:
            Decision with the direction, its source ("cache", an advisor id
            or "fallback") and the outcome of every advisor consulted
        """
        grid = build_occupancy(snapshot)
        stats, history_ok = self._load_learning()
        learned = stats.scores()

        try:
            state_json = encode(snapshot)
        except SerialisationError as e:
            logger.warning(f"Skipping cache and advisors: {e}")
            return self._fallback(snapshot, learned, grid)

        if history_ok and self.state_cache is not None:
            try:
                cached = self.state_cache.lookup(snapshot, state_json, grid)
            except HistoryUnavailableError as e:
                logger.warning(f"State cache unavailable: {e}")
                cached = None
            if cached is not None:
                logger.debug(f"Turn {snapshot.turn}: {cached.value} from cache")
                return Decision(cached, SOURCE_CACHE)

        outcomes: List[Tuple[str, str]] = []
        if self.panel.advisors:
            prompt = build_move_prompt(snapshot, state_json, stats.summary())
            depth = self.config.llm_safety_depth
            suggestion = await self.panel.suggest_move(
                prompt,
                lambda d: is_deep_safe(snapshot, d, depth, grid),
                outcomes,
            )
            if suggestion is not None:
                direction, advisor_id = suggestion
                logger.debug(f"Turn {snapshot.turn}: {direction.value} from {advisor_id}")
                return Decision(direction, advisor_id, outcomes)

        decision = self._fallback(snapshot, learned, grid)
        decision.advisor_outcomes = outcomes
        return decision

    def _fallback(self, snapshot: Snapshot, learned, grid) -> Decision:
        direction = self.fallback.select_move(snapshot, learned, grid)
        logger.debug(f"Turn {snapshot.turn}: {direction.value} from fallback")
        return Decision(direction, SOURCE_FALLBACK)

    async def close(self) -> None:
        await self.panel.close()
