"""
Progression engine.

Experience, level-up thresholds and feed cooldown for tokens.
"""

from .rules import (
    apply_feed,
    build_progress_payload,
    exp_needed_for_next_level,
    max_level_for,
    normalize_rarity,
)
from .service import ProgressionService

__all__ = [
    "ProgressionService",
    "apply_feed",
    "build_progress_payload",
    "exp_needed_for_next_level",
    "max_level_for",
    "normalize_rarity",
]
