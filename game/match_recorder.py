"""
Match lifecycle bookkeeping.

Plays are recorded with a MID result while the match runs; when the match
ends every play is rewritten to the bot's final outcome, which is what the
learning aggregator feeds on.
"""

import logging
from typing import Optional

from .encoding import encode
from .models import Direction, Match, PlayResult, Snapshot
from .play_store import PlayStore

logger = logging.getLogger(__name__)

PLAYER_WINNER = "PLAYER"
BOT_WINNER = "BOT"


class MatchNotFoundError(KeyError):
    """Raised for an unknown match id."""
    pass


class MatchRecorder:
    """Creates matches, records bot plays and finalises results."""

    def __init__(self, store: PlayStore):
        self.store = store

    def new_match(self) -> int:
        match = self.store.create_match()
        logger.info(f"Match {match.id} started")
        return match.id

    def _require_match(self, match_id: int) -> Match:
        match = self.store.get_match(match_id)
        if match is None:
            raise MatchNotFoundError(match_id)
        return match

    def record_play(self, match_id: int, snapshot: Snapshot, action: Direction) -> None:
        """Store the bot's decision for this snapshot with a MID result."""
        self._require_match(match_id)
        self.store.add_play(match_id, snapshot.turn, encode(snapshot), action)

    def finish_match(self, match_id: int, winner: str, turns: int,
                     result: Optional[PlayResult] = None) -> PlayResult:
        """
        Close a match and rewrite its plays to the bot's outcome.

        Args:
            match_id: Match to close
            winner: "PLAYER" or "BOT" (anything but PLAYER counts as a bot win)
            turns: Match length in turns
            result: Result to write instead of the one derived from `winner`

        Returns:
            The result written to every play of the match
        """
        match = self._require_match(match_id)
        winner = (winner or "").strip().upper()
        self.store.update_match(match.model_copy(update={"winner": winner, "turns": turns}))

        if result is None:
            result = PlayResult.LOSE if winner == PLAYER_WINNER else PlayResult.WIN
        count = self.store.update_results(match_id, result)
        logger.info(f"Match {match_id} finished: winner={winner}, {count} plays marked {result.value}")
        return result
