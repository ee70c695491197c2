"""
Canonical serialisation of snapshots.

The encoded form is used both as the stored `state_json` of a play and as
the lookup key of the state cache, so it must be byte-stable: sorted keys,
no whitespace, and the occupied cells ordered by (y, x).
"""

import json

from .models import UNKNOWN_DIRECTION, Snapshot


class SerialisationError(Exception):
    """Raised when a snapshot cannot be canonically encoded."""
    pass


def canonical_occupied(snapshot: Snapshot) -> list:
    """In-bounds occupied cells as [x, y] pairs sorted by (y, x)."""
    n = snapshot.board_size
    cells = {(x, y) for x, y in snapshot.occupied if 0 <= x < n and 0 <= y < n}
    return [[x, y] for x, y in sorted(cells, key=lambda c: (c[1], c[0]))]


def encode(snapshot: Snapshot) -> str:
    """
    Encode a snapshot to its canonical JSON string.

    Raises:
        SerialisationError: If the snapshot holds values JSON cannot represent
    """
    try:
        payload = {
            "boardSize": int(snapshot.board_size),
            "botDirection": snapshot.bot_direction.value if snapshot.bot_direction else UNKNOWN_DIRECTION,
            "botX": int(snapshot.bot_x),
            "botY": int(snapshot.bot_y),
            "occupied": canonical_occupied(snapshot),
            "playerX": int(snapshot.player_x),
            "playerY": int(snapshot.player_y),
            "turn": int(snapshot.turn),
        }
        return json.dumps(payload, sort_keys=True, separators=(",", ":"), allow_nan=False)
    except (TypeError, ValueError, AttributeError) as e:
        raise SerialisationError(f"Cannot encode snapshot: {e}") from e


def decode(state_json: str) -> Snapshot:
    """Rebuild a snapshot from its canonical JSON."""
    return Snapshot.model_validate(json.loads(state_json))
