"""
Tests for the local fallback planner and the random sparring engine.
"""

import random

import pytest

from engines.fallback_engine import LAST_RESORT, FallbackEngine
from engines.random_engine import RandomEngine
from game.board import build_occupancy, legal, legal_moves
from game.models import Direction, Snapshot


def test_open_board_is_deterministic_under_seed(snapshot_factory):
    snapshot = snapshot_factory(bot=(15, 15), player=(5, 5), direction=Direction.RIGHT)
    first = FallbackEngine(seed=3).select_move(snapshot)
    second = FallbackEngine(seed=3).select_move(snapshot)
    assert first == second
    assert first in (Direction.UP, Direction.DOWN, Direction.RIGHT)
    assert legal(snapshot, first)


def test_forced_corridor(snapshot_factory):
    row = [(x, 1) for x in range(30)]
    snapshot = snapshot_factory(bot=(0, 0), player=(5, 5), direction=Direction.RIGHT, occupied=row)
    engine = FallbackEngine(seed=0)
    assert engine.select_move(snapshot) == Direction.RIGHT

    scores = engine.score_moves(snapshot, build_occupancy(snapshot))
    # 20 survived steps and the 29 free cells of row 0
    assert scores == {Direction.RIGHT: pytest.approx(1000 * 20 + 5 * 29)}


def test_trap_fights_to_the_end(snapshot_factory):
    snapshot = snapshot_factory(bot=(0, 0), player=(5, 5), direction=Direction.RIGHT,
                                occupied=[(1, 0), (0, 1)])
    assert legal_moves(snapshot) == []
    seen = {FallbackEngine(seed=s).select_move(snapshot) for s in range(20)}
    assert seen <= {Direction.RIGHT, Direction.DOWN}


def test_last_resort_when_nothing_is_on_board():
    snapshot = Snapshot.model_construct(
        board_size=1, bot_x=0, bot_y=0, player_x=0, player_y=0,
        bot_direction=Direction.RIGHT, turn=0, occupied=frozenset({(0, 0)}),
    )
    assert FallbackEngine(seed=1).select_move(snapshot) == LAST_RESORT == Direction.UP


def test_prefers_open_space(snapshot_factory):
    # Row 1 is closed except (0,1): RIGHT runs into a dead end, DOWN opens the board
    row = [(x, 1) for x in range(1, 10)]
    snapshot = snapshot_factory(bot=(0, 0), player=(7, 7), direction=Direction.RIGHT,
                                occupied=row, board_size=10)
    for seed in range(5):
        assert FallbackEngine(seed=seed).select_move(snapshot) == Direction.DOWN


def test_learned_prior_breaks_ties(snapshot_factory):
    snapshot = snapshot_factory(bot=(15, 15), player=(5, 5), direction=Direction.UP)
    learned = {Direction.RIGHT: 0.5, Direction.LEFT: -0.5}
    for seed in range(5):
        assert FallbackEngine(seed=seed).select_move(snapshot, learned) == Direction.RIGHT


def test_survival_dominates_learning(snapshot_factory):
    pocket = [(13, 15), (14, 14), (14, 16)]
    snapshot = snapshot_factory(bot=(15, 15), player=(5, 5), direction=Direction.UP, occupied=pocket)
    learned = {Direction.LEFT: 1.0, Direction.UP: -1.0, Direction.RIGHT: -1.0}
    assert FallbackEngine(seed=0).select_move(snapshot, learned) != Direction.LEFT


def test_fallback_is_total_and_legal_when_possible():
    rng = random.Random(99)
    engine = FallbackEngine(rollout_depth=10, seed=5)
    for trial in range(60):
        n = rng.randint(4, 10)
        bot = (rng.randrange(n), rng.randrange(n))
        player = (rng.randrange(n), rng.randrange(n))
        occupied = {(rng.randrange(n), rng.randrange(n)) for _ in range(rng.randint(0, n * n))}
        occupied |= {bot, player}
        direction = rng.choice([None] + list(Direction))
        snapshot = Snapshot(board_size=n, bot_x=bot[0], bot_y=bot[1],
                            player_x=player[0], player_y=player[1],
                            bot_direction=direction, turn=trial, occupied=occupied)
        move = engine.select_move(snapshot)
        assert isinstance(move, Direction)
        assert not move.is_opposite(direction) or move == LAST_RESORT
        if legal_moves(snapshot):
            assert legal(snapshot, move)


def test_random_engine_plays_legal_moves(snapshot_factory):
    engine = RandomEngine(seed=4)
    snapshot = snapshot_factory(bot=(0, 5), player=(20, 20), direction=Direction.DOWN, occupied=[(1, 5)])
    for _ in range(10):
        assert engine.select_move(snapshot) == Direction.DOWN


def test_random_engine_keeps_heading_when_trapped(snapshot_factory):
    snapshot = snapshot_factory(bot=(0, 0), player=(5, 5), direction=Direction.RIGHT,
                                occupied=[(1, 0), (0, 1)])
    assert RandomEngine(seed=1).select_move(snapshot) == Direction.RIGHT
