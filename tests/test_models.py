"""
Tests for snapshot validation and canonical encoding.
"""

import json

import pytest
from pydantic import ValidationError

from game.encoding import SerialisationError, decode, encode
from game.models import Direction, Snapshot


def _browser_state(**overrides) -> dict:
    state = {
        "boardSize": 30,
        "botX": 25, "botY": 15,
        "playerX": 5, "playerY": 15,
        "botDirection": "LEFT",
        "turn": 3,
        "occupied": [{"x": 25, "y": 15}, {"x": 5, "y": 15}, {"x": 26, "y": 15}],
    }
    state.update(overrides)
    return state


def test_snapshot_accepts_browser_payload():
    snapshot = Snapshot.model_validate(_browser_state())
    assert snapshot.board_size == 30
    assert snapshot.bot_position == (25, 15)
    assert snapshot.player_position == (5, 15)
    assert snapshot.bot_direction == Direction.LEFT
    assert (26, 15) in snapshot.occupied


def test_snapshot_direction_parsing():
    assert Snapshot.model_validate(_browser_state(botDirection="UNKNOWN")).bot_direction is None
    assert Snapshot.model_validate(_browser_state(botDirection=None)).bot_direction is None
    assert Snapshot.model_validate(_browser_state(botDirection="")).bot_direction is None
    assert Snapshot.model_validate(_browser_state(botDirection="up")).bot_direction == Direction.UP
    with pytest.raises(ValidationError):
        Snapshot.model_validate(_browser_state(botDirection="SIDEWAYS"))


def test_snapshot_adds_missing_heads():
    snapshot = Snapshot.model_validate(_browser_state(occupied=[]))
    assert {(25, 15), (5, 15)} <= snapshot.occupied


def test_snapshot_rejects_bad_geometry():
    with pytest.raises(ValidationError):
        Snapshot.model_validate(_browser_state(boardSize=3, botX=1, playerX=0, botY=1, playerY=1))
    with pytest.raises(ValidationError):
        Snapshot.model_validate(_browser_state(botX=30))
    with pytest.raises(ValidationError):
        Snapshot.model_validate(_browser_state(playerY=-1))
    with pytest.raises(ValidationError):
        Snapshot.model_validate(_browser_state(turn=-1))


def test_snapshot_is_immutable():
    snapshot = Snapshot.model_validate(_browser_state())
    with pytest.raises(ValidationError):
        snapshot.bot_x = 3


def test_encode_is_canonical():
    a = Snapshot.model_validate(_browser_state(
        occupied=[{"x": 26, "y": 15}, {"x": 5, "y": 15}, {"x": 25, "y": 15}, {"x": 0, "y": 2}]
    ))
    b = Snapshot.model_validate(_browser_state(
        occupied=[[0, 2], [25, 15], [25, 15], [26, 15], [5, 15], [99, 99]]
    ))
    assert encode(a) == encode(b)

    text = encode(a)
    assert " " not in text
    data = json.loads(text)
    assert list(data) == sorted(data)
    assert data["occupied"] == [[0, 2], [5, 15], [25, 15], [26, 15]]
    assert data["botDirection"] == "LEFT"


def test_encode_covers_every_field():
    base = Snapshot.model_validate(_browser_state())
    assert encode(base) != encode(Snapshot.model_validate(_browser_state(turn=4)))
    assert encode(base) != encode(Snapshot.model_validate(_browser_state(botDirection="UP")))
    unknown = json.loads(encode(Snapshot.model_validate(_browser_state(botDirection=None))))
    assert unknown["botDirection"] == "UNKNOWN"


def test_decode_round_trip():
    snapshot = Snapshot.model_validate(_browser_state())
    assert decode(encode(snapshot)) == snapshot


def test_encode_wraps_failures():
    broken = Snapshot.model_construct(
        board_size=30, bot_x=1, bot_y=1, player_x=2, player_y=2,
        bot_direction=None, turn=float("nan"), occupied=frozenset(),
    )
    with pytest.raises(SerialisationError):
        encode(broken)
