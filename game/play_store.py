"""
Persistence of matches and plays (the decision history).

Supports both a local JSON file and Firestore backends.
"""

import json
import logging
import threading
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from .models import Match, Play, PlayResult

logger = logging.getLogger(__name__)

FIRESTORE_BATCH_LIMIT = 500


class HistoryUnavailableError(Exception):
    """Raised when the history backend cannot be read."""
    pass


class PlayStore:
    """
    Stores matches and the bot plays recorded during them.

    Reads are served newest first. Writers serialise on a lock; readers take
    whatever snapshot of the history is current.
    """

    def __init__(self, path: str = "data/history.json", use_firestore: bool = None):
        """
        Initialize the store.

        Args:
            path: Path to the history JSON file (used for local storage)
            use_firestore: If True, use Firestore. If None, auto-detect based on
                          FIREBASE_ENABLED env var or presence of firebase-key.json
        """
        self.path = Path(path)
        self._lock = threading.Lock()
        self._matches: List[Match] = []
        self._plays: List[Play] = []
        self._next_id = 1

        if use_firestore is None:
            use_firestore = self._should_use_firestore()
        self._use_firestore = use_firestore

        if self._use_firestore:
            self._init_firestore()
        else:
            self._load()

    def _should_use_firestore(self) -> bool:
        """Check if we should use Firestore."""
        from firebase_client import firestore_configured
        return firestore_configured()

    def _init_firestore(self) -> None:
        """Initialize Firestore connection."""
        from firebase_client import get_firestore_client, MATCHES_COLLECTION, PLAYS_COLLECTION
        self._db = get_firestore_client()
        self._matches_collection = MATCHES_COLLECTION
        self._plays_collection = PLAYS_COLLECTION

    # -- local file backend -------------------------------------------------

    def _load(self) -> None:
        """Load history from the local file."""
        if not self.path.exists():
            return
        try:
            with open(self.path) as f:
                data = json.load(f)
            self._matches = [Match.from_json(m) for m in data.get("matches", [])]
            self._plays = [Play.from_json(p) for p in data.get("plays", [])]
            self._next_id = data.get("next_id", 1)
        except (json.JSONDecodeError, OSError, KeyError, TypeError, ValueError) as e:
            logger.error(f"Could not load history from {self.path}: {e}")
            raise HistoryUnavailableError(f"Corrupted history file {self.path}") from e

    def _save(self) -> None:
        """Write history to the local file. Caller holds the lock."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        data = {
            "next_id": self._next_id,
            "matches": [m.to_json() for m in self._matches],
            "plays": [p.to_json() for p in self._plays],
        }
        tmp_path = self.path.with_suffix(".tmp")
        with open(tmp_path, "w") as f:
            json.dump(data, f)
        tmp_path.replace(self.path)

    def _allocate_id(self) -> int:
        if self._use_firestore:
            # Microsecond clock gives increasing ids without a counter document
            return time.time_ns() // 1000
        new_id = self._next_id
        self._next_id += 1
        return new_id

    # -- matches -------------------------------------------------------------

    def create_match(self) -> Match:
        """Create and persist a new running match."""
        with self._lock:
            match = Match(
                id=self._allocate_id(),
                created_at=datetime.now(timezone.utc).isoformat(),
            )
            if self._use_firestore:
                self._db.collection(self._matches_collection).document(str(match.id)).set(
                    match.to_json()
                )
            else:
                self._matches.append(match)
                self._save()
        return match

    def get_match(self, match_id: int) -> Optional[Match]:
        """
        Load a match by ID.

        Returns:
            Match or None if not found
        """
        if self._use_firestore:
            doc = self._db.collection(self._matches_collection).document(str(match_id)).get()
            if not doc.exists:
                return None
            return Match.from_json(doc.to_dict())
        for match in self._matches:
            if match.id == match_id:
                return match
        return None

    def update_match(self, match: Match) -> None:
        """Persist changes to an existing match."""
        with self._lock:
            if self._use_firestore:
                self._db.collection(self._matches_collection).document(str(match.id)).set(
                    match.to_json()
                )
                return
            self._matches = [match if m.id == match.id else m for m in self._matches]
            self._save()

    def list_matches(self) -> List[Match]:
        """All matches, newest first."""
        if self._use_firestore:
            from google.cloud import firestore
            docs = (
                self._db.collection(self._matches_collection)
                .order_by("id", direction=firestore.Query.DESCENDING)
                .stream()
            )
            return [Match.from_json(doc.to_dict()) for doc in docs]
        return sorted(self._matches, key=lambda m: m.id, reverse=True)

    # -- plays ---------------------------------------------------------------

    def add_play(self, match_id: int, turn: int, state_json: str, action) -> Play:
        """Record a play with a MID result."""
        with self._lock:
            play = Play(
                id=self._allocate_id(),
                match_id=match_id,
                turn=turn,
                state_json=state_json,
                action=action,
                result=PlayResult.MID,
            )
            if self._use_firestore:
                self._db.collection(self._plays_collection).document(str(play.id)).set(
                    play.to_json()
                )
            else:
                self._plays.append(play)
                self._save()
        return play

    def plays_for_match(self, match_id: int) -> List[Play]:
        if self._use_firestore:
            docs = (
                self._db.collection(self._plays_collection)
                .where("match_id", "==", match_id)
                .stream()
            )
            return [Play.from_json(doc.to_dict()) for doc in docs]
        return [p for p in self._plays if p.match_id == match_id]

    def update_results(self, match_id: int, result: PlayResult) -> int:
        """
        Rewrite the result of every play of a match.

        Returns:
            Number of plays updated
        """
        with self._lock:
            if self._use_firestore:
                docs = (
                    self._db.collection(self._plays_collection)
                    .where("match_id", "==", match_id)
                    .stream()
                )
                batch = self._db.batch()
                count = 0
                for doc in docs:
                    batch.update(doc.reference, {"result": result.value})
                    count += 1
                    # Firestore caps a batch at 500 writes
                    if count % FIRESTORE_BATCH_LIMIT == 0:
                        batch.commit()
                        batch = self._db.batch()
                batch.commit()
                return count

            count = 0
            updated = []
            for play in self._plays:
                if play.match_id == match_id:
                    play = play.model_copy(update={"result": result})
                    count += 1
                updated.append(play)
            self._plays = updated
            self._save()
            return count

    def top_n_by_id_desc(self, n: int) -> List[Play]:
        """
        The n most recent plays.

        Raises:
            HistoryUnavailableError: If the backend cannot be read
        """
        if self._use_firestore:
            try:
                from google.cloud import firestore
                docs = (
                    self._db.collection(self._plays_collection)
                    .order_by("id", direction=firestore.Query.DESCENDING)
                    .limit(n)
                    .stream(timeout=10)
                )
                return [Play.from_json(doc.to_dict()) for doc in docs]
            except Exception as e:
                raise HistoryUnavailableError(f"Firestore read failed: {e}") from e
        plays = self._plays
        return sorted(plays, key=lambda p: p.id, reverse=True)[:n]

    def top_n_by_state_json_desc(self, state_json: str, n: int) -> List[Play]:
        """
        The n most recent plays recorded for exactly this canonical state.

        Raises:
            HistoryUnavailableError: If the backend cannot be read
        """
        if self._use_firestore:
            try:
                from google.cloud import firestore
                docs = (
                    self._db.collection(self._plays_collection)
                    .where("state_json", "==", state_json)
                    .order_by("id", direction=firestore.Query.DESCENDING)
                    .limit(n)
                    .stream(timeout=10)
                )
                return [Play.from_json(doc.to_dict()) for doc in docs]
            except Exception as e:
                raise HistoryUnavailableError(f"Firestore read failed: {e}") from e
        matching = [p for p in self._plays if p.state_json == state_json]
        return sorted(matching, key=lambda p: p.id, reverse=True)[:n]
