# Game state, history and match management
from .models import Direction, PlayResult, Snapshot, Play, Match, DeciderConfig, AdvisorConfig
from .encoding import SerialisationError, encode
from .play_store import HistoryUnavailableError, PlayStore
from .match_recorder import MatchNotFoundError, MatchRecorder

__all__ = [
    "AdvisorConfig",
    "DeciderConfig",
    "Direction",
    "HistoryUnavailableError",
    "Match",
    "MatchNotFoundError",
    "MatchRecorder",
    "Play",
    "PlayResult",
    "PlayStore",
    "SerialisationError",
    "Snapshot",
    "encode",
]
