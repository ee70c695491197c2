"""
Random move engine - plays a random legal move each turn.
"""

import random
from typing import Dict, Optional

from game.board import build_occupancy, legal_moves
from game.models import Direction, Snapshot
from .base_engine import BaseEngine


class RandomEngine(BaseEngine):
    """
    Engine that plays random legal moves.

    Useful as a weak sparring opponent for local matches.
    """

    def __init__(self, engine_id: str = "random", seed: int = None):
        """
        Initialize random engine.

        Args:
            engine_id: Unique identifier
            seed: Optional random seed for reproducibility
        """
        super().__init__(engine_id)
        self._rng = random.Random(seed)

    def select_move(self, snapshot: Snapshot,
                    learned: Optional[Dict[Direction, float]] = None) -> Direction:
        """Select a random legal move, or keep the heading when trapped."""
        moves = legal_moves(snapshot, build_occupancy(snapshot))
        if not moves:
            return snapshot.bot_direction or Direction.UP
        return self._rng.choice(moves)
