"""
Base class for local move engines.
"""

import abc
from typing import Dict, Optional

from game.models import Direction, Snapshot


class BaseEngine(abc.ABC):
    """Abstract base class for engines that pick a move without any advisor."""

    def __init__(self, engine_id: str):
        """
        Initialize the engine.

        Args:
            engine_id: Unique identifier for this engine
        """
        self.engine_id = engine_id

    @abc.abstractmethod
    def select_move(self, snapshot: Snapshot,
                    learned: Optional[Dict[Direction, float]] = None) -> Direction:
        """
        Select a move for the bot in the given snapshot.

        Args:
            snapshot: Current board state, seen from the bot
            learned: Optional learned prior per direction

        Returns:
            A direction (legal whenever a legal move exists)
        """
        ...

    def close(self) -> None:
        """Clean up engine resources."""
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
