"""
Fallback engine - the advisor-free planner behind every decision.

Strategy:
1. Score each legal move by how long a greedy rollout survives after it,
   how much free space it can reach and what history says about it.
2. Survival dominates; space and the learned prior only break near-ties.
3. Exact ties are broken uniformly at random.
4. With no legal move left, pick any on-board non-reversing move at random
   rather than always dying the same way.
"""

import logging
import random
from typing import Dict, Optional

from game.board import (
    Grid,
    build_occupancy,
    free_area,
    in_bounds,
    legal,
    simulate_to_death,
    step,
)
from game.models import Direction, Snapshot
from .base_engine import BaseEngine

logger = logging.getLogger(__name__)

# Returned only when every non-reversing move leaves the board
LAST_RESORT = Direction.UP


class FallbackEngine(BaseEngine):
    """
    Survival-first local planner.
    """

    def __init__(
        self,
        engine_id: str = "fallback",
        rollout_depth: int = 20,
        survival_weight: float = 1000.0,
        area_weight: float = 5.0,
        learning_weight: float = 10.0,
        seed: Optional[int] = None,
        rng: Optional[random.Random] = None,
    ):
        """
        Initialize the fallback engine.

        Args:
            engine_id: Unique identifier
            rollout_depth: Step cap of the survival rollout
            survival_weight: Weight of survived rollout steps
            area_weight: Weight of reachable free area
            learning_weight: Weight of the learned prior
            seed: Random seed for tie-breaking (ignored when rng is given)
            rng: Random generator for tie-breaking
        """
        super().__init__(engine_id)
        self.rollout_depth = rollout_depth
        self.survival_weight = survival_weight
        self.area_weight = area_weight
        self.learning_weight = learning_weight
        self._rng = rng if rng is not None else random.Random(seed)

    def score_moves(self, snapshot: Snapshot, grid: Grid,
                    learned: Optional[Dict[Direction, float]] = None) -> Dict[Direction, float]:
        """
        Weighted score of every legal move.

        Returns:
            Dict mapping each legal direction to its score (empty when trapped)
        """
        learned = learned or {}
        scores = {}
        for direction in Direction:
            if not legal(snapshot, direction, grid):
                continue
            nx, ny = step(snapshot.bot_x, snapshot.bot_y, direction)
            area = free_area(nx, ny, grid)
            survived = simulate_to_death(nx, ny, direction, grid, self.rollout_depth)
            prior = learned.get(direction, 0.0)
            scores[direction] = (
                self.survival_weight * survived
                + self.area_weight * area
                + self.learning_weight * prior
            )
            logger.debug(
                f"  {direction.value}: survived={survived} area={area} "
                f"learned={prior:+.3f} score={scores[direction]:.1f}"
            )
        return scores

    def select_move(self, snapshot: Snapshot,
                    learned: Optional[Dict[Direction, float]] = None,
                    grid: Optional[Grid] = None) -> Direction:
        """Select the best-scoring legal move, or a desperate one when trapped."""
        if grid is None:
            grid = build_occupancy(snapshot)

        scores = self.score_moves(snapshot, grid, learned)
        if scores:
            best = max(scores.values())
            tied = [d for d, s in scores.items() if s == best]
            return self._rng.choice(tied)

        desperate = [
            d for d in Direction
            if not d.is_opposite(snapshot.bot_direction)
            and in_bounds(*step(snapshot.bot_x, snapshot.bot_y, d), snapshot.board_size)
        ]
        if desperate:
            choice = self._rng.choice(desperate)
            logger.info(f"No legal move; fighting to the end with {choice.value}")
            return choice

        logger.info("No on-board move left; returning last resort")
        return LAST_RESORT
