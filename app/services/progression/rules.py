"""
Progression rules.

Pure leveling arithmetic: exp thresholds, max level per rarity and the
level-up loop applied on feed.
"""

from typing import Any

from app.config.constants import (
    DEFAULT_RARITY,
    EXP_BASE_REQUIREMENT,
    EXP_STEP_PER_LEVEL,
    MAX_LEVEL_BY_RARITY,
    UNKNOWN_RARITY_MAX_LEVEL,
)


def normalize_rarity(rarity: str | None) -> str:
    """Uppercase rarity name, COMMON when missing."""
    return (rarity or DEFAULT_RARITY).strip().upper() or DEFAULT_RARITY


def max_level_for(rarity: str | None) -> int:
    """Level cap of a rarity; unknown rarities cap at 1."""
    return MAX_LEVEL_BY_RARITY.get(normalize_rarity(rarity), UNKNOWN_RARITY_MAX_LEVEL)


def exp_needed_for_next_level(level: int) -> int:
    """
    Exp required to go from level to level + 1.

    Examples:
        >>> exp_needed_for_next_level(1)
        100
        >>> exp_needed_for_next_level(3)
        180
    """
    if level <= 0:
        return EXP_BASE_REQUIREMENT
    return EXP_BASE_REQUIREMENT + (level - 1) * EXP_STEP_PER_LEVEL


def apply_feed(level: int, exp: int, rarity: str | None, gain: int) -> tuple[int, int]:
    """
    Add feed exp and level up as far as it reaches.

    At max level exp is locked to 0.

    Args:
        level: Current level
        exp: Current exp towards next level
        rarity: Token rarity
        gain: Exp granted by one feed

    Returns:
        Tuple of (level, exp)
    """
    max_level = max_level_for(rarity)
    exp += gain

    while True:
        if level >= max_level:
            exp = 0
            break

        needed = exp_needed_for_next_level(level)
        if exp >= needed:
            exp -= needed
            level += 1
            continue
        break

    return level, exp


def build_progress_payload(
    level: int | None,
    exp: int | None,
    rarity: str | None,
) -> dict[str, Any]:
    """
    Progress view of a token.

    Args:
        level: Stored level, None for a never-fed token
        exp: Stored exp, None for a never-fed token
        rarity: Token rarity

    Returns:
        Dict with level, exp, expNeededNext, isMax
    """
    level = level if level is not None else 1
    exp = exp if exp is not None else 0

    is_max = level >= max_level_for(rarity)
    return {
        "level": level,
        "exp": exp,
        "expNeededNext": 0 if is_max else exp_needed_for_next_level(level),
        "isMax": is_max,
    }
