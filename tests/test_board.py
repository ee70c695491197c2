"""
Tests for board legality, rollouts, deep safety and flood fill.
"""

import random

from game.board import (
    build_occupancy,
    free_area,
    in_bounds,
    is_deep_safe,
    is_free,
    legal,
    legal_moves,
    simulate_to_death,
    step,
)
from game.models import Direction, Snapshot


def test_direction_algebra():
    assert step(3, 3, Direction.UP) == (3, 2)
    assert step(3, 3, Direction.DOWN) == (3, 4)
    assert step(3, 3, Direction.LEFT) == (2, 3)
    assert step(3, 3, Direction.RIGHT) == (4, 3)
    assert Direction.UP.opposite() == Direction.DOWN
    assert Direction.LEFT.is_opposite(Direction.RIGHT)
    assert not Direction.LEFT.is_opposite(Direction.UP)
    assert not Direction.LEFT.is_opposite(None)
    assert Direction.RIGHT.perpendiculars() == [Direction.UP, Direction.DOWN]
    assert Direction.UP.perpendiculars() == [Direction.LEFT, Direction.RIGHT]


def test_in_bounds():
    assert in_bounds(0, 0, 4)
    assert in_bounds(3, 3, 4)
    assert not in_bounds(-1, 0, 4)
    assert not in_bounds(0, 4, 4)


def test_build_occupancy_drops_out_of_range_cells(snapshot_factory):
    snapshot = snapshot_factory(bot=(1, 1), player=(2, 2), board_size=4,
                                occupied=[(0, 3), (9, 9), (-1, 2), (0, 3)])
    grid = build_occupancy(snapshot)
    assert len(grid) == 4 and all(len(row) == 4 for row in grid)
    assert grid[3][0] and grid[1][1] and grid[2][2]
    assert sum(cell for row in grid for cell in row) == 3


def test_legal_rejects_reversal_wall_and_trail(snapshot_factory):
    snapshot = snapshot_factory(bot=(0, 5), player=(20, 20), direction=Direction.DOWN,
                                occupied=[(1, 5)])
    assert not legal(snapshot, Direction.UP)      # reversal
    assert not legal(snapshot, Direction.LEFT)    # wall
    assert not legal(snapshot, Direction.RIGHT)   # trail
    assert legal(snapshot, Direction.DOWN)
    assert legal_moves(snapshot) == [Direction.DOWN]


def test_unknown_heading_forbids_no_reversal(snapshot_factory):
    snapshot = snapshot_factory(bot=(10, 10), player=(20, 20), direction=None)
    assert legal_moves(snapshot) == list(Direction)


def test_deep_safe_counts_corridor_length(snapshot_factory):
    # Row 1 walled off: RIGHT leads along a corridor of 5 cells on a 6x6 board
    wall = [(x, 1) for x in range(6)]
    snapshot = snapshot_factory(bot=(0, 0), player=(3, 4), direction=Direction.RIGHT,
                                occupied=wall, board_size=6)
    assert is_deep_safe(snapshot, Direction.RIGHT, 8)
    assert is_deep_safe(snapshot, Direction.RIGHT, 10)
    assert not is_deep_safe(snapshot, Direction.RIGHT, 12)
    assert not is_deep_safe(snapshot, Direction.DOWN, 8)


def test_deep_safe_rejects_pocket(snapshot_factory):
    # (1,2) is free but closed on three sides
    pocket = [(0, 2), (1, 1), (1, 3)]
    snapshot = snapshot_factory(bot=(2, 2), player=(8, 8), direction=Direction.UP,
                                occupied=pocket, board_size=10)
    assert legal(snapshot, Direction.LEFT)
    assert not is_deep_safe(snapshot, Direction.LEFT, 6)
    assert is_deep_safe(snapshot, Direction.LEFT, 1)
    assert is_deep_safe(snapshot, Direction.RIGHT, 6)


def test_deep_safe_rejects_reversal(snapshot_factory):
    snapshot = snapshot_factory(bot=(10, 10), player=(2, 2), direction=Direction.UP)
    assert not is_deep_safe(snapshot, Direction.DOWN, 8)


def test_deep_safe_does_not_touch_caller_grid(snapshot_factory):
    snapshot = snapshot_factory(bot=(10, 10), player=(2, 2), direction=Direction.UP)
    grid = build_occupancy(snapshot)
    before = [row[:] for row in grid]
    is_deep_safe(snapshot, Direction.UP, 8, grid)
    assert grid == before


def test_simulate_to_death_caps_and_stops(snapshot_factory):
    snapshot = snapshot_factory(bot=(0, 0), player=(4, 4), board_size=5)
    grid = build_occupancy(snapshot)
    assert simulate_to_death(1, 0, Direction.RIGHT, grid, 10) == 10
    full = simulate_to_death(1, 0, Direction.RIGHT, grid, 1000)
    # Never more steps than free cells besides the start
    assert 0 < full <= 25 - 3
    assert not grid[0][1]


def test_simulate_to_death_boxed_in():
    grid = [[True] * 4 for _ in range(4)]
    grid[1][1] = False
    assert simulate_to_death(1, 1, Direction.UP, grid, 20) == 0


def test_free_area(snapshot_factory):
    snapshot = snapshot_factory(bot=(0, 0), player=(3, 3), board_size=4)
    grid = build_occupancy(snapshot)
    assert free_area(1, 0, grid) == 14
    assert free_area(0, 0, grid) == 0
    assert free_area(-1, 0, grid) == 0


def test_free_area_respects_walls(snapshot_factory):
    wall = [(2, y) for y in range(6)]
    snapshot = snapshot_factory(bot=(0, 0), player=(5, 5), occupied=wall, board_size=6)
    grid = build_occupancy(snapshot)
    assert free_area(1, 0, grid) == 11    # columns 0-1 minus the bot head
    assert free_area(3, 0, grid) == 17    # columns 3-5 minus the player head


def _random_walk_length(grid, x, y, rng) -> int:
    """Cells visited by a random self-avoiding walk from a free cell."""
    visited = {(x, y)}
    while True:
        options = []
        for d in Direction:
            nx, ny = step(x, y, d)
            if is_free(grid, nx, ny) and (nx, ny) not in visited:
                options.append((nx, ny))
        if not options:
            return len(visited)
        x, y = rng.choice(options)
        visited.add((x, y))


def test_free_area_bounds_every_simple_walk():
    rng = random.Random(1234)
    for _ in range(40):
        n = rng.randint(4, 12)
        occupied = {(rng.randrange(n), rng.randrange(n)) for _ in range(rng.randint(0, n * n // 2))}
        free_cells = [(x, y) for x in range(n) for y in range(n) if (x, y) not in occupied]
        if not free_cells:
            continue
        bot = rng.choice(free_cells)
        snapshot = Snapshot(board_size=n, bot_x=bot[0], bot_y=bot[1],
                            player_x=bot[0], player_y=bot[1], occupied=occupied)
        grid = build_occupancy(snapshot)
        grid[bot[1]][bot[0]] = False
        area = free_area(bot[0], bot[1], grid)
        for _ in range(10):
            assert _random_walk_length(grid, bot[0], bot[1], rng) <= area
