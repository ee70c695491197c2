"""
Learned prior over actions, aggregated from recorded play outcomes.

For each direction d:

    score(d) = (wins(d) - losses(d)) / (wins(d) + losses(d) + 1)

The +1 shrinks directions with little data towards zero. MID plays belong
to matches that have not finished yet and carry no signal.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable

from game.models import Direction, PlayResult


@dataclass
class DirectionStats:
    wins: int = 0
    losses: int = 0

    @property
    def score(self) -> float:
        return (self.wins - self.losses) / (self.wins + self.losses + 1)


@dataclass
class LearningStats:
    """Per-direction win/loss tallies over a slice of history."""
    total: int = 0
    pending: int = 0
    by_direction: Dict[Direction, DirectionStats] = field(
        default_factory=lambda: {d: DirectionStats() for d in Direction}
    )

    @classmethod
    def from_plays(cls, plays: Iterable) -> "LearningStats":
        stats = cls()
        for play in plays:
            stats.total += 1
            if play.result == PlayResult.WIN:
                stats.by_direction[play.action].wins += 1
            elif play.result == PlayResult.LOSE:
                stats.by_direction[play.action].losses += 1
            else:
                stats.pending += 1
        return stats

    def scores(self) -> Dict[Direction, float]:
        """Total mapping Direction -> shrunken score (0.0 where no data)."""
        return {d: s.score for d, s in self.by_direction.items()}

    def summary(self) -> str:
        """Human-readable digest used as prompt context."""
        wins = sum(s.wins for s in self.by_direction.values())
        losses = sum(s.losses for s in self.by_direction.values())
        lines = [
            f"Recent plays: {self.total} (wins: {wins}, losses: {losses}, unfinished: {self.pending})"
        ]
        for d, s in self.by_direction.items():
            lines.append(f"- {d.value}: W={s.wins} L={s.losses} score={s.score:+.3f}")
        return "\n".join(lines)


def learning_scores(plays: Iterable) -> Dict[Direction, float]:
    """Shortcut for LearningStats.from_plays(plays).scores()."""
    return LearningStats.from_plays(plays).scores()
