# Learning from recorded play outcomes
from .aggregator import DirectionStats, LearningStats, learning_scores
from .state_cache import StateCache

__all__ = ["DirectionStats", "LearningStats", "StateCache", "learning_scores"]
