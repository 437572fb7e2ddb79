"""
XP Levels - Contributor tiers and progression.

Maps a user's lifetime XP to a named tier and how far through that tier
they are. The tier table is static and validated when this module loads.
"""

from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Optional, Sequence


class XPConfigError(ValueError):
    """Raised when a tier table is malformed."""


@dataclass(frozen=True)
class XPLevel:
    """A named tier gated by a cumulative XP threshold."""
    level: int
    name: str
    threshold: int
    unlocks: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class XPProgress:
    """Where a total sits in the tier table."""
    current_level: XPLevel
    next_level: Optional[XPLevel]
    progress_pct: float
    xp_to_next: int
    total_xp: int

    @property
    def is_max_level(self) -> bool:
        return self.next_level is None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "current_level": self.current_level.to_dict(),
            "next_level": self.next_level.to_dict() if self.next_level else None,
            "progress_pct": self.progress_pct,
            "xp_to_next": self.xp_to_next,
            "total_xp": self.total_xp,
        }


def validate_levels(levels: Sequence[XPLevel]) -> tuple:
    """
    Check a tier table and return it as an immutable tuple.

    Raises:
        XPConfigError: empty table, first threshold not 0, or tier numbers /
            thresholds not strictly increasing
    """
    if not levels:
        raise XPConfigError("XP level table must contain at least one level")

    if levels[0].threshold != 0:
        raise XPConfigError(f"First level threshold must be 0, got {levels[0].threshold}")

    for prev, cur in zip(levels, levels[1:]):
        if cur.level <= prev.level:
            raise XPConfigError(f"Level numbers must increase: {prev.level} then {cur.level}")
        if cur.threshold <= prev.threshold:
            raise XPConfigError(
                f"Thresholds must increase: level {prev.level}={prev.threshold}, "
                f"level {cur.level}={cur.threshold}"
            )

    return tuple(levels)


XP_LEVELS = validate_levels([
    XPLevel(1, "Newcomer", 0, ["Access to basic features"]),
    XPLevel(2, "Contributor", 500, ["Dark mode"]),
    XPLevel(3, "Moderator", 1500, ["Moderator status and tools", "Skill-tree builder"]),
    XPLevel(4, "Expert", 3000, ["Request features", "Beta features access"]),
    XPLevel(5, "Legend", 5000, ["Early access to Flipside", "Special recognition"]),
])


def calculate_xp_progress(total_xp: int, levels: Sequence[XPLevel] = XP_LEVELS) -> XPProgress:
    """Calculate tier and in-tier progress for an XP total.

    Args:
        total_xp: Lifetime XP (non-negative)
        levels: Validated tier table, ordered by level

    Returns:
        XPProgress. At the top tier progress is 100 and xp_to_next is 0.
    """
    if total_xp < 0:
        raise ValueError(f"total_xp must be non-negative, got {total_xp}")

    current = next(lvl for lvl in reversed(levels) if total_xp >= lvl.threshold)
    next_level = next((lvl for lvl in levels if lvl.level == current.level + 1), None)

    progress_pct = 100.0
    xp_to_next = 0
    if next_level is not None:
        span = next_level.threshold - current.threshold
        progress_pct = min(100.0, max(0.0, (total_xp - current.threshold) / span * 100))
        xp_to_next = max(0, next_level.threshold - total_xp)

    return XPProgress(
        current_level=current,
        next_level=next_level,
        progress_pct=progress_pct,
        xp_to_next=xp_to_next,
        total_xp=total_xp,
    )


def get_level(level_number: int, levels: Sequence[XPLevel] = XP_LEVELS) -> Optional[XPLevel]:
    """Look up a tier by its number."""
    for lvl in levels:
        if lvl.level == level_number:
            return lvl
    return None


def unlocked_features(total_xp: int, levels: Sequence[XPLevel] = XP_LEVELS) -> List[str]:
    """All unlocks earned up to and including the current tier."""
    current = calculate_xp_progress(total_xp, levels).current_level
    unlocks: List[str] = []
    for lvl in levels:
        if lvl.level > current.level:
            break
        unlocks.extend(lvl.unlocks)
    return unlocks
