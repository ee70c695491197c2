# Local move engines
from .base_engine import BaseEngine
from .fallback_engine import FallbackEngine
from .random_engine import RandomEngine

__all__ = ["BaseEngine", "FallbackEngine", "RandomEngine"]
