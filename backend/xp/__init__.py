"""Contributor XP: tier progression and trick award rules."""
from .levels import (
    XPLevel,
    XPProgress,
    XPConfigError,
    XP_LEVELS,
    calculate_xp_progress,
    validate_levels,
)
from .trick_xp import calculate_trick_creation_xp, calculate_trick_edit_xp

__all__ = [
    "XPLevel",
    "XPProgress",
    "XPConfigError",
    "XP_LEVELS",
    "calculate_xp_progress",
    "validate_levels",
    "calculate_trick_creation_xp",
    "calculate_trick_edit_xp",
]
