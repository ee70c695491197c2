"""
Firestore access for the play history.

Credentials are looked up in this order:
1. FIREBASE_CREDENTIALS_JSON (service account JSON in an env var)
2. GOOGLE_APPLICATION_CREDENTIALS (path to a key file)
3. firebase-key.json in the project root, the working directory or ~/.config
"""

import json
import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

import firebase_admin
from firebase_admin import credentials, firestore

logger = logging.getLogger(__name__)

KEY_FILENAME = "firebase-key.json"

# Collection names
MATCHES_COLLECTION = "matches"
PLAYS_COLLECTION = "plays"


def key_file_candidates() -> List[Path]:
    """Places a firebase-key.json may live, most specific first."""
    return [
        Path(__file__).parent / KEY_FILENAME,
        Path.cwd() / KEY_FILENAME,
        Path.home() / ".config" / KEY_FILENAME,
    ]


def _find_key_file() -> Optional[Path]:
    env_path = os.environ.get("GOOGLE_APPLICATION_CREDENTIALS")
    if env_path and Path(env_path).exists():
        return Path(env_path)
    for path in key_file_candidates():
        if path.exists():
            return path
    return None


def firestore_configured() -> bool:
    """
    Whether history should go to Firestore rather than a local file.

    True when FIREBASE_ENABLED is set to a truthy value or a key file is
    present.
    """
    if os.environ.get("FIREBASE_ENABLED", "").lower() in ("1", "true", "yes"):
        return True
    return _find_key_file() is not None


def _load_credentials() -> credentials.Certificate:
    creds_json = os.environ.get("FIREBASE_CREDENTIALS_JSON")
    if creds_json:
        try:
            return credentials.Certificate(json.loads(creds_json))
        except json.JSONDecodeError as e:
            logger.warning(f"FIREBASE_CREDENTIALS_JSON is not valid JSON: {e}")

    key_file = _find_key_file()
    if key_file is not None:
        logger.info(f"Using Firebase key file {key_file}")
        return credentials.Certificate(str(key_file))

    raise FileNotFoundError(
        "Firebase credentials not found. Set FIREBASE_CREDENTIALS_JSON, "
        f"GOOGLE_APPLICATION_CREDENTIALS, or place {KEY_FILENAME} in the project root."
    )


@lru_cache(maxsize=1)
def get_firestore_client():
    """Firestore client shared by the whole process."""
    if not firebase_admin._apps:
        firebase_admin.initialize_app(_load_credentials())
    return firestore.client()
