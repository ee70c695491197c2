"""
Game runner that plays a headless Tron match between the decider and a
local engine.

Handles:
- Simultaneous moves on an N x N board
- Collisions with walls, trails and head-on meetings
- Recording every bot play and finalising the match so history accumulates
"""

import logging
from dataclasses import dataclass
from typing import Optional, Set, Tuple

from engines.base_engine import BaseEngine
from .board import in_bounds, step
from .match_recorder import BOT_WINNER, PLAYER_WINNER, MatchRecorder
from .models import Direction, PlayResult, Snapshot

logger = logging.getLogger(__name__)

DRAW = "DRAW"


@dataclass
class MatchOutcome:
    """Result of a single local match."""
    match_id: Optional[int]
    winner: str                 # "BOT", "PLAYER" or "DRAW"
    turns: int
    termination: str            # "collision", "head_on", "max_turns"


class GameRunner:
    """
    Runs a single Tron match: the decider plays the bot, the engine plays
    the opponent ("player").
    """

    def __init__(
        self,
        decider,
        opponent: BaseEngine,
        recorder: Optional[MatchRecorder] = None,
        board_size: int = 30,
        max_turns: int = 2000,
        verbose: bool = False,
    ):
        """
        Initialize the game runner.

        Args:
            decider: Decider choosing the bot's moves
            opponent: Engine choosing the opponent's moves
            recorder: Match recorder; matches are not persisted when None
            board_size: Side of the square board
            max_turns: Turns before the match is called a draw
            verbose: Print moves as they happen
        """
        self.decider = decider
        self.opponent = opponent
        self.recorder = recorder
        self.board_size = board_size
        self.max_turns = max_turns
        self.verbose = verbose

    def _start_positions(self) -> Tuple[Tuple[int, int], Tuple[int, int]]:
        n = self.board_size
        row = n // 2
        return (n - 1 - n // 6, row), (n // 6, row)

    def _snapshot(self, me, my_dir, them, turn, occupied) -> Snapshot:
        return Snapshot(
            board_size=self.board_size,
            bot_x=me[0],
            bot_y=me[1],
            player_x=them[0],
            player_y=them[1],
            bot_direction=my_dir,
            turn=turn,
            occupied=occupied,
        )

    def _crashes(self, cell, move: Direction, heading: Optional[Direction],
                 occupied: Set[Tuple[int, int]]) -> bool:
        if move.is_opposite(heading):
            return True
        return not in_bounds(cell[0], cell[1], self.board_size) or cell in occupied

    async def play_game(self) -> MatchOutcome:
        """
        Play a complete match.

        Returns:
            MatchOutcome of the match
        """
        match_id = self.recorder.new_match() if self.recorder else None
        bot, player = self._start_positions()
        bot_dir: Optional[Direction] = None
        player_dir: Optional[Direction] = None
        occupied = {bot, player}

        bot_dead = player_dead = False
        termination = "max_turns"
        turn = 0

        while turn < self.max_turns:
            bot_view = self._snapshot(bot, bot_dir, player, turn, occupied)
            bot_move = await self.decider.decide(bot_view)
            if self.recorder:
                self.recorder.record_play(match_id, bot_view, bot_move)

            player_view = self._snapshot(player, player_dir, bot, turn, occupied)
            player_move = self.opponent.select_move(player_view)

            new_bot = step(bot[0], bot[1], bot_move)
            new_player = step(player[0], player[1], player_move)
            bot_dead = self._crashes(new_bot, bot_move, bot_dir, occupied)
            player_dead = self._crashes(new_player, player_move, player_dir, occupied)
            if new_bot == new_player:
                bot_dead = player_dead = True
                termination = "head_on"

            if self.verbose:
                print(f"  {turn}. bot {bot_move.value} -> {new_bot}, player {player_move.value} -> {new_player}")

            bot, player = new_bot, new_player
            bot_dir, player_dir = bot_move, player_move
            occupied |= {bot, player}
            turn += 1

            if bot_dead or player_dead:
                if termination != "head_on":
                    termination = "collision"
                break

        if bot_dead:
            winner = PLAYER_WINNER
        elif player_dead:
            winner = BOT_WINNER
        else:
            winner = DRAW

        if self.recorder:
            # Only an outright bot win counts as WIN; draws teach like losses
            result = PlayResult.WIN if winner == BOT_WINNER else PlayResult.LOSE
            self.recorder.finish_match(match_id, winner, turn, result)
        logger.info(f"Match {match_id}: winner={winner} after {turn} turns ({termination})")
        return MatchOutcome(match_id=match_id, winner=winner, turns=turn, termination=termination)
