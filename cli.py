#!/usr/bin/env python3
"""
CLI for the Tron bot.

Commands:
- decide: Decide the bot's move for a state stored in a JSON file
- play: Play local matches between the bot and an engine to build history
- history: Show match history and what the bot has learned
- serve: Run the web API
"""

import argparse
import asyncio
import json
import logging
import sys
from collections import Counter

from pydantic import ValidationError

from decider import DEFAULT_CONFIG_PATH, Decider, create_advisors, load_config
from engines.fallback_engine import FallbackEngine
from engines.random_engine import RandomEngine
from game.game_runner import GameRunner
from game.match_recorder import MatchRecorder
from game.models import Snapshot
from game.play_store import HistoryUnavailableError, PlayStore
from learning.aggregator import LearningStats


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


async def run_decide(args) -> int:
    """Decide one move."""
    try:
        with open(args.state) as f:
            snapshot = Snapshot.model_validate(json.load(f))
    except (OSError, json.JSONDecodeError) as e:
        print(f"Error: cannot read state file: {e}")
        return 1
    except ValidationError as e:
        print(f"Error: invalid state: {e}")
        return 1

    config = load_config(args.config)
    store = PlayStore(path=args.history) if not args.no_history else None
    advisors = [] if args.no_llm else create_advisors(config)
    decider = Decider(store=store, config=config, advisors=advisors, seed=args.seed)
    try:
        decision = await decider.decide_with_details(snapshot)
    finally:
        await decider.close()

    print(decision.direction.value)
    if args.verbose:
        print(f"Source: {decision.source}")
        for advisor_id, outcome in decision.advisor_outcomes:
            print(f"  {advisor_id}: {outcome}")
    return 0


async def run_play(args) -> int:
    """Play local matches."""
    if args.games < 1:
        print("Error: --games must be at least 1")
        return 1
    if args.board_size < 4:
        print("Error: --board-size must be at least 4")
        return 1

    config = load_config(args.config)
    store = PlayStore(path=args.history)
    recorder = MatchRecorder(store) if args.save else None
    advisors = create_advisors(config) if args.llm else []
    decider = Decider(store=store, config=config, advisors=advisors, seed=args.seed)

    if args.opponent == "random":
        opponent = RandomEngine(seed=args.seed)
    else:
        opponent = FallbackEngine(
            engine_id="fallback-opponent",
            rollout_depth=config.fallback_rollout_depth,
            seed=args.seed,
        )

    results = Counter()
    try:
        for game_num in range(args.games):
            runner = GameRunner(
                decider,
                opponent,
                recorder=recorder,
                board_size=args.board_size,
                max_turns=args.max_turns,
                verbose=args.verbose,
            )
            outcome = await runner.play_game()
            results[outcome.winner] += 1
            print(f"Game {game_num + 1}: {outcome.winner} after {outcome.turns} turns ({outcome.termination})")
    finally:
        await decider.close()

    print(f"Bot wins: {results['BOT']}, Player wins: {results['PLAYER']}, Draws: {results['DRAW']}")
    return 0


def show_history(args) -> int:
    """Print match history and the learned prior."""
    try:
        store = PlayStore(path=args.history)
        matches = store.list_matches()
        plays = store.top_n_by_id_desc(args.limit)
    except HistoryUnavailableError as e:
        print(f"Error: {e}")
        return 1

    print(f"{'ID':>6}  {'Started':<32}  {'Winner':<8}  Turns")
    for match in matches[:args.matches]:
        print(f"{match.id:>6}  {match.created_at:<32}  {match.winner or '-':<8}  {match.turns}")
    print()
    print(LearningStats.from_plays(plays).summary())
    return 0


def run_server(args) -> int:
    """Run the web API."""
    from web.app import create_app

    app = create_app()
    app.run(host=args.host, port=args.port, debug=args.debug)
    return 0


def main():
    parser = argparse.ArgumentParser(description="Tron bot")
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Verbose output",
    )
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    decide_parser = subparsers.add_parser("decide", help="Decide a move for a state file")
    decide_parser.add_argument(
        "--state", "-s",
        required=True,
        help="Path to a JSON snapshot",
    )
    decide_parser.add_argument(
        "--config", "-c",
        default=DEFAULT_CONFIG_PATH,
        help="Path to config file",
    )
    decide_parser.add_argument(
        "--history",
        default="data/history.json",
        help="Path to the local history file",
    )
    decide_parser.add_argument(
        "--no-history",
        action="store_true",
        help="Decide without reading history",
    )
    decide_parser.add_argument(
        "--no-llm",
        action="store_true",
        help="Do not consult LLM advisors",
    )
    decide_parser.add_argument(
        "--seed",
        type=int,
        help="Random seed for tie-breaking",
    )

    play_parser = subparsers.add_parser("play", help="Play local matches")
    play_parser.add_argument(
        "--games",
        type=int,
        default=1,
        help="Number of matches to play",
    )
    play_parser.add_argument(
        "--opponent",
        choices=["random", "fallback"],
        default="random",
        help="Engine playing against the bot",
    )
    play_parser.add_argument(
        "--board-size",
        type=int,
        default=30,
        help="Side of the square board",
    )
    play_parser.add_argument(
        "--max-turns",
        type=int,
        default=2000,
        help="Turns before a match is drawn",
    )
    play_parser.add_argument(
        "--llm",
        action="store_true",
        help="Let the bot consult LLM advisors (costs API calls)",
    )
    play_parser.add_argument(
        "--config", "-c",
        default=DEFAULT_CONFIG_PATH,
        help="Path to config file",
    )
    play_parser.add_argument(
        "--history",
        default="data/history.json",
        help="Path to the local history file",
    )
    play_parser.add_argument(
        "--seed",
        type=int,
        help="Random seed",
    )
    play_parser.add_argument(
        "--no-save",
        action="store_false",
        dest="save",
        help="Don't record the matches (records by default)",
    )
    play_parser.set_defaults(save=True)

    history_parser = subparsers.add_parser("history", help="Show match history")
    history_parser.add_argument(
        "--history",
        default="data/history.json",
        help="Path to the local history file",
    )
    history_parser.add_argument(
        "--matches",
        type=int,
        default=20,
        help="Number of matches to list",
    )
    history_parser.add_argument(
        "--limit",
        type=int,
        default=300,
        help="Plays to aggregate for the learning summary",
    )

    serve_parser = subparsers.add_parser("serve", help="Run the web API")
    serve_parser.add_argument("--host", default="127.0.0.1")
    serve_parser.add_argument("--port", type=int, default=5000)
    serve_parser.add_argument("--debug", action="store_true")

    args = parser.parse_args()
    _setup_logging(args.verbose)

    if args.command == "decide":
        return asyncio.run(run_decide(args))
    elif args.command == "play":
        return asyncio.run(run_play(args))
    elif args.command == "history":
        return show_history(args)
    elif args.command == "serve":
        return run_server(args)
    else:
        parser.print_help()
        return 0


if __name__ == "__main__":
    sys.exit(main())
