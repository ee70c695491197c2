"""
Data models for the Tron bot decision engine.
"""

from enum import Enum
from typing import FrozenSet, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class Direction(str, Enum):
    """Cardinal move of a light cycle."""
    UP = "UP"
    DOWN = "DOWN"
    LEFT = "LEFT"
    RIGHT = "RIGHT"

    @property
    def delta(self) -> Tuple[int, int]:
        return _DELTAS[self]

    def opposite(self) -> "Direction":
        dx, dy = self.delta
        for d in Direction:
            if d.delta == (-dx, -dy):
                return d
        raise AssertionError(f"no opposite for {self}")

    def is_opposite(self, other: Optional["Direction"]) -> bool:
        if other is None:
            return False
        ax, ay = self.delta
        bx, by = other.delta
        return ax + bx == 0 and ay + by == 0

    def perpendiculars(self) -> List["Direction"]:
        """The two directions at a right angle, in declaration order."""
        return [d for d in Direction if d != self and not d.is_opposite(self)]


_DELTAS = {
    Direction.UP: (0, -1),
    Direction.DOWN: (0, 1),
    Direction.LEFT: (-1, 0),
    Direction.RIGHT: (1, 0),
}

# Wire value of a heading that is not known yet (first move)
UNKNOWN_DIRECTION = "UNKNOWN"


class PlayResult(str, Enum):
    """Outcome attached to a recorded play."""
    WIN = "WIN"
    LOSE = "LOSE"
    MID = "MID"  # Match still running


class Snapshot(BaseModel):
    """
    Immutable board state reported by the client for one bot turn.

    Accepts the browser's camelCase field names. `occupied` may arrive as
    [{"x": 1, "y": 2}, ...] or [[1, 2], ...]; both head cells are always
    part of it after validation.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    board_size: int = Field(alias="boardSize", ge=4)
    bot_x: int = Field(alias="botX")
    bot_y: int = Field(alias="botY")
    player_x: int = Field(alias="playerX")
    player_y: int = Field(alias="playerY")
    bot_direction: Optional[Direction] = Field(default=None, alias="botDirection")
    turn: int = Field(default=0, ge=0)
    occupied: FrozenSet[Tuple[int, int]] = frozenset()

    @field_validator("bot_direction", mode="before")
    @classmethod
    def _parse_direction(cls, value):
        if value is None:
            return None
        if isinstance(value, Direction):
            return value
        text = str(value).strip().upper()
        if not text or text == UNKNOWN_DIRECTION:
            return None
        return text

    @field_validator("occupied", mode="before")
    @classmethod
    def _parse_occupied(cls, value):
        if value is None:
            return frozenset()
        cells = []
        for cell in value:
            if isinstance(cell, dict):
                cells.append((int(cell["x"]), int(cell["y"])))
            else:
                x, y = cell
                cells.append((int(x), int(y)))
        return frozenset(cells)

    @model_validator(mode="after")
    def _check_heads(self) -> "Snapshot":
        n = self.board_size
        for name, x, y in (("bot", self.bot_x, self.bot_y),
                           ("player", self.player_x, self.player_y)):
            if not (0 <= x < n and 0 <= y < n):
                raise ValueError(f"{name} head ({x},{y}) outside {n}x{n} board")
        heads = {(self.bot_x, self.bot_y), (self.player_x, self.player_y)}
        if not heads <= self.occupied:
            # Frozen model: bypass __setattr__ to fold the heads in
            object.__setattr__(self, "occupied", self.occupied | heads)
        return self

    @property
    def bot_position(self) -> Tuple[int, int]:
        return (self.bot_x, self.bot_y)

    @property
    def player_position(self) -> Tuple[int, int]:
        return (self.player_x, self.player_y)


class Play(BaseModel):
    """One recorded bot decision (history entry)."""
    id: int
    match_id: int
    turn: int
    state_json: str
    action: Direction
    result: PlayResult = PlayResult.MID

    def to_json(self) -> dict:
        """Convert to JSON-serializable dict."""
        return self.model_dump(mode="json")

    @classmethod
    def from_json(cls, data: dict) -> "Play":
        """Create from JSON dict."""
        return cls(**data)


class Match(BaseModel):
    """A single game between a human player and the bot."""
    id: int
    created_at: str             # ISO timestamp
    winner: Optional[str] = None  # "PLAYER" or "BOT", None while running
    turns: int = 0

    def to_json(self) -> dict:
        return self.model_dump(mode="json")

    @classmethod
    def from_json(cls, data: dict) -> "Match":
        return cls(**data)


class AdvisorConfig(BaseModel):
    """Configuration for one LLM advisor."""
    provider: str               # "gemini" or "openai"
    model_name: str
    temperature: float = 0.0
    timeout: int = 30
    max_retries: int = 2


class DeciderConfig(BaseModel):
    """Tunables of the decision engine."""
    history_limit: int = 300
    cache_limit: int = 50
    llm_safety_depth: int = 8
    cache_safety_depth: int = 6
    fallback_rollout_depth: int = 20
    survival_weight: float = 1000.0
    area_weight: float = 5.0
    learning_weight: float = 10.0
    cooldown_seconds: float = 30.0
    advisor_timeout: float = 10.0   # Per-call deadline for each advisor
    advisors: List[AdvisorConfig] = Field(default_factory=list)
