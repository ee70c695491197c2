"""
Prompt templates and reply normalisation for LLM move advisors.
"""

import re
from typing import Optional

from game.models import Direction, Snapshot

SYSTEM_PROMPT = """You are a TRON light-cycle bot.
Always answer with exactly one of the words: UP, DOWN, LEFT or RIGHT.
Do not explain and do not write sentences."""


MOVE_PROMPT_TEMPLATE = """You control the BOT light cycle in a game of TRON on a {board_size}x{board_size} grid.

Rules:
- Every cycle leaves a permanent trail behind it.
- Moving into a wall, any trail or the other cycle loses the game.
- You cannot reverse: your current heading is {heading}, so {forbidden} is forbidden.
- Coordinates are (x, y); x grows to the RIGHT, y grows DOWN.

Your position: ({bot_x},{bot_y})
Opponent position: ({player_x},{player_y})

What past games taught us about each move:
{learning_summary}

Current state (JSON, occupied cells listed as [x, y]):
{state_json}

Your task:
- Choose the move that keeps you alive longest and leaves you the most space.
- Answer with exactly ONE of: UP, DOWN, LEFT, RIGHT.
- Do NOT include any commentary, explanations, or additional text.

Output format:
- Only the direction, e.g.:
UP"""


def build_move_prompt(snapshot: Snapshot, state_json: str, learning_summary: str) -> str:
    """
    Build the prompt to send to an advisor.

    Args:
        snapshot: Current board state
        state_json: Canonical encoding of the snapshot
        learning_summary: Digest of per-direction outcomes from history

    Returns:
        The formatted prompt string
    """
    heading = snapshot.bot_direction
    return MOVE_PROMPT_TEMPLATE.format(
        board_size=snapshot.board_size,
        heading=heading.value if heading else "not set yet",
        forbidden=heading.opposite().value if heading else "nothing",
        bot_x=snapshot.bot_x,
        bot_y=snapshot.bot_y,
        player_x=snapshot.player_x,
        player_y=snapshot.player_y,
        learning_summary=learning_summary or "(no finished games yet)",
        state_json=state_json,
    )


def normalize_direction(response_text: Optional[str]) -> Optional[Direction]:
    """
    Parse a direction from an advisor reply.

    The reply is trimmed, uppercased and stripped of everything but letters;
    what remains must be exactly one of the four direction names.

    Returns:
        Direction or None if the reply is garbled
    """
    if not response_text:
        return None
    letters = re.sub(r"[^A-Z]", "", response_text.strip().upper())
    try:
        return Direction(letters)
    except ValueError:
        return None
