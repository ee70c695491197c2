"""
Exact-state cache over the play history.

If the bot has been in precisely this position before, the outcomes of the
moves it tried there are the strongest evidence available.
"""

import logging
from typing import Optional

from game.board import Grid, is_deep_safe
from game.models import Direction, Snapshot
from game.play_store import PlayStore
from .aggregator import LearningStats

logger = logging.getLogger(__name__)


class StateCache:
    """Looks up the best historically-successful action for a canonical state."""

    def __init__(self, store: PlayStore, limit: int = 50, safety_depth: int = 6):
        self.store = store
        self.limit = limit
        self.safety_depth = safety_depth

    def lookup(self, snapshot: Snapshot, state_json: str, grid: Grid) -> Optional[Direction]:
        """
        Find the cached action for this state.

        Directions are ranked by their shrunken score over the matching plays
        only; the best one that passes the deep-safety check wins.

        Args:
            snapshot: Current board state
            state_json: Canonical encoding of the snapshot
            grid: Occupancy matrix of the snapshot

        Returns:
            A deep-safe direction, or None on a miss

        Raises:
            HistoryUnavailableError: If the store cannot be read
        """
        plays = self.store.top_n_by_state_json_desc(state_json, self.limit)
        if not plays:
            return None

        stats = LearningStats.from_plays(plays)
        scores = stats.scores()
        ranked = sorted(Direction, key=lambda d: scores[d], reverse=True)
        for direction in ranked:
            if scores[direction] <= 0:
                # Only moves that have won more than they lost are worth replaying
                break
            if is_deep_safe(snapshot, direction, self.safety_depth, grid):
                logger.debug(f"State cache hit: {direction.value} (score {scores[direction]:+.3f})")
                return direction
        return None
