"""
Board model, legality checks and local search primitives.

All grids built here are private to one decision: they are created per call
and indexed as grid[y][x].
"""

from collections import deque
from typing import List, Optional, Tuple

from .models import Direction, Snapshot

Grid = List[List[bool]]


def step(x: int, y: int, direction: Direction) -> Tuple[int, int]:
    """Apply a direction's delta to a cell."""
    dx, dy = direction.delta
    return x + dx, y + dy


def in_bounds(x: int, y: int, board_size: int) -> bool:
    return 0 <= x < board_size and 0 <= y < board_size


def build_occupancy(snapshot: Snapshot) -> Grid:
    """
    Build the N x N occupancy matrix for a snapshot.

    Cells outside the board are dropped silently; duplicates are harmless.
    """
    n = snapshot.board_size
    grid = [[False] * n for _ in range(n)]
    for x, y in snapshot.occupied:
        if in_bounds(x, y, n):
            grid[y][x] = True
    return grid


def copy_grid(grid: Grid) -> Grid:
    return [row[:] for row in grid]


def is_free(grid: Grid, x: int, y: int) -> bool:
    n = len(grid)
    return in_bounds(x, y, n) and not grid[y][x]


def legal(snapshot: Snapshot, direction: Direction, grid: Optional[Grid] = None) -> bool:
    """
    Check whether the bot may move in `direction` this turn.

    A move is legal when it is not a reversal of the current heading, stays
    on the board and lands on a free cell.

    Args:
        snapshot: Current board state
        direction: Candidate move
        grid: Occupancy matrix, built from the snapshot when omitted
    """
    if direction.is_opposite(snapshot.bot_direction):
        return False
    if grid is None:
        grid = build_occupancy(snapshot)
    nx, ny = step(snapshot.bot_x, snapshot.bot_y, direction)
    return is_free(grid, nx, ny)


def legal_moves(snapshot: Snapshot, grid: Optional[Grid] = None) -> List[Direction]:
    """All legal directions, in declaration order."""
    if grid is None:
        grid = build_occupancy(snapshot)
    return [d for d in Direction if legal(snapshot, d, grid)]


def simulate_to_death(x: int, y: int, heading: Direction, grid: Grid, max_steps: int) -> int:
    """
    Greedy rollout from a cell the cycle already stands on.

    Each step keeps the heading if possible, otherwise takes the first free
    perpendicular. Works on a private copy of `grid`; the start cell is
    marked occupied.

    Returns:
        Number of steps survived, at most max_steps
    """
    sim = copy_grid(grid)
    sim[y][x] = True
    survived = 0
    while survived < max_steps:
        for option in [heading] + heading.perpendiculars():
            nx, ny = step(x, y, option)
            if is_free(sim, nx, ny):
                x, y, heading = nx, ny, option
                sim[y][x] = True
                survived += 1
                break
        else:
            break
    return survived


def is_deep_safe(snapshot: Snapshot, direction: Direction, depth: int,
                 grid: Optional[Grid] = None) -> bool:
    """
    Decide whether `direction` keeps the bot alive beyond the immediate step.

    The first step must be legal; a greedy rollout of depth - 1 further steps
    follows. The move passes when the total number of completed steps,
    first step included, reaches max(1, depth // 2).

    Args:
        snapshot: Current board state
        direction: Candidate move
        depth: Rollout horizon
        grid: Occupancy matrix, built from the snapshot when omitted

    Returns:
        True if the move is legal and survives long enough
    """
    if grid is None:
        grid = build_occupancy(snapshot)
    if not legal(snapshot, direction, grid):
        return False
    nx, ny = step(snapshot.bot_x, snapshot.bot_y, direction)
    completed = 1 + simulate_to_death(nx, ny, direction, grid, max(0, depth - 1))
    return completed >= max(1, depth // 2)


def free_area(x: int, y: int, grid: Grid) -> int:
    """
    Count free cells reachable from (x, y) over 4-neighbours.

    The seed cell counts when it is free; an occupied or off-board seed
    yields 0.
    """
    if not is_free(grid, x, y):
        return 0
    n = len(grid)
    seen = [[False] * n for _ in range(n)]
    seen[y][x] = True
    queue = deque([(x, y)])
    count = 0
    while queue:
        cx, cy = queue.popleft()
        count += 1
        for d in Direction:
            nx, ny = step(cx, cy, d)
            if is_free(grid, nx, ny) and not seen[ny][nx]:
                seen[ny][nx] = True
                queue.append((nx, ny))
    return count
