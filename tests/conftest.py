"""
Shared pytest fixtures for the Tron bot tests.
"""

import asyncio

import pytest

from game.models import Snapshot
from game.play_store import PlayStore
from llm.base_llm import BaseAdvisor


def make_snapshot(bot=(15, 15), player=(5, 5), direction=None, occupied=(),
                  board_size=30, turn=0) -> Snapshot:
    """Snapshot with both heads added to the occupied cells."""
    cells = set(occupied) | {bot, player}
    return Snapshot(
        board_size=board_size,
        bot_x=bot[0],
        bot_y=bot[1],
        player_x=player[0],
        player_y=player[1],
        bot_direction=direction,
        turn=turn,
        occupied=cells,
    )


class FakeAdvisor(BaseAdvisor):
    """Advisor returning canned replies (or raising) without any network."""

    def __init__(self, advisor_id="fake", reply="", error=None, delay=0.0):
        super().__init__(advisor_id, "fake-model")
        self.reply = reply
        self.error = error
        self.delay = delay
        self.calls = 0
        self.closed = False

    async def suggest(self, prompt: str) -> str:
        self.calls += 1
        self.last_prompt = prompt
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.reply

    async def close(self) -> None:
        self.closed = True


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def snapshot_factory():
    return make_snapshot


@pytest.fixture
def advisor_factory():
    return FakeAdvisor


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(tmp_path):
    return PlayStore(path=str(tmp_path / "history.json"), use_firestore=False)
