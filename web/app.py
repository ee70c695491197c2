"""
Flask web application for the Tron bot.

JSON API used by the browser client: match lifecycle, bot moves, history.
"""

import logging
import os
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from flask import Flask, abort, jsonify, request
from pydantic import ValidationError

from decider import Decider, create_advisors, load_config
from game.match_recorder import MatchNotFoundError, MatchRecorder
from game.models import Snapshot
from game.play_store import HistoryUnavailableError, PlayStore
from learning.aggregator import LearningStats

# Configure logging
logging.basicConfig(level=logging.INFO)

DATA_DIR = Path(__file__).parent.parent / "data"
CONFIG_PATH = Path(__file__).parent.parent / "config" / "tron.yaml"
HISTORY_PATH = DATA_DIR / "history.json"


def create_app(store: PlayStore = None, decider: Decider = None) -> Flask:
    """
    Build the Flask app.

    Args:
        store: History store (local JSON or Firestore, auto-detected when omitted)
        decider: Move decider (built from config/tron.yaml when omitted)
    """
    app = Flask(__name__)

    if store is None:
        store = PlayStore(path=str(HISTORY_PATH))
    if decider is None:
        config = load_config(str(CONFIG_PATH))
        decider = Decider(store=store, config=config, advisors=create_advisors(config))
    recorder = MatchRecorder(store)
    history_limit = decider.config.history_limit

    @app.after_request
    def set_security_headers(response):
        """Add security headers to all responses."""
        response.headers['X-Content-Type-Options'] = 'nosniff'
        response.headers['X-Frame-Options'] = 'DENY'
        response.headers['X-XSS-Protection'] = '1; mode=block'
        return response

    @app.errorhandler(400)
    def bad_request(error):
        return jsonify({"error": error.description}), 400

    @app.errorhandler(404)
    def not_found(error):
        return jsonify({"error": error.description}), 404

    @app.errorhandler(503)
    def unavailable(error):
        return jsonify({"error": error.description}), 503

    @app.route("/api/matches", methods=["POST"])
    def api_new_match():
        """Start a new match."""
        return jsonify({"match_id": recorder.new_match()})

    @app.route("/api/matches", methods=["GET"])
    def api_list_matches():
        """Match history, newest first."""
        return jsonify([m.to_json() for m in store.list_matches()])

    @app.route("/api/bot/move", methods=["POST"])
    async def api_bot_move():
        """Decide the bot's move for the posted state and record it."""
        body = request.get_json(silent=True) or {}
        match_id = body.get("match_id")
        if isinstance(match_id, bool) or not isinstance(match_id, int):
            abort(400, description="match_id (integer) required")
        if store.get_match(match_id) is None:
            abort(404, description=f"Unknown match {match_id}")
        try:
            snapshot = Snapshot.model_validate(body.get("state") or {})
        except ValidationError as e:
            abort(400, description=f"Invalid state: {e.errors(include_url=False)}")

        try:
            action = await decider.decide(snapshot)
        finally:
            # Advisor connections belong to this request's event loop
            await decider.close()
        recorder.record_play(match_id, snapshot, action)
        return jsonify({"action": action.value})

    @app.route("/api/matches/<int:match_id>/finish", methods=["POST"])
    def api_finish_match(match_id: int):
        """Close a match and mark every bot play with the outcome."""
        body = request.get_json(silent=True) or {}
        winner = body.get("winner")
        turns = body.get("turns", 0)
        if not isinstance(winner, str) or isinstance(turns, bool) or not isinstance(turns, int):
            abort(400, description="winner (string) and turns (integer) required")
        try:
            recorder.finish_match(match_id, winner, turns)
        except MatchNotFoundError:
            abort(404, description=f"Unknown match {match_id}")
        return "", 204

    @app.route("/api/learning")
    def api_learning():
        """Current learned prior over moves."""
        try:
            plays = store.top_n_by_id_desc(history_limit)
        except HistoryUnavailableError as e:
            app.logger.error(f"Error loading history: {e}")
            abort(503, description="History unavailable")
        stats = LearningStats.from_plays(plays)
        return jsonify({
            "plays": stats.total,
            "scores": {d.value: s for d, s in stats.scores().items()},
            "summary": stats.summary(),
        })

    return app


if __name__ == "__main__":
    port = int(os.environ.get("PORT", 5000))
    create_app().run(host="0.0.0.0", port=port, debug=os.environ.get("FLASK_DEBUG") == "1")
