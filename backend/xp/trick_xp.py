"""
Trick XP - XP awarded for contributing tricks.

Creating a trick earns 50-200 XP depending on how complete it is.
Editing a trick earns 5-150 XP depending on the scope of the change.
"""

import json
from typing import Any, Dict, Optional

CREATION_BASE_XP = 50
CREATION_MAX_XP = 200
EDIT_BASE_XP = 5
EDIT_MAX_XP = 150


def calculate_trick_creation_xp(trick: Dict[str, Any]) -> int:
    """Calculate XP for creating a new trick.

    Args:
        trick: Trick fields as submitted

    Returns:
        XP between CREATION_BASE_XP and CREATION_MAX_XP
    """
    bonus = 0

    # Content completeness
    if len(trick.get("description") or "") > 50:
        bonus += 20
    if trick.get("step_by_step_guide"):
        bonus += 30
    if len(trick.get("tips_and_tricks") or "") > 30:
        bonus += 15
    if len(trick.get("common_mistakes") or "") > 30:
        bonus += 15
    if len(trick.get("safety_notes") or "") > 20:
        bonus += 10

    # Media
    if trick.get("video_urls"):
        bonus += 25
    if trick.get("image_urls"):
        bonus += 15

    # Metadata
    if len(trick.get("tags") or []) >= 3:
        bonus += 10
    if trick.get("prerequisite_ids"):
        bonus += 15
    if trick.get("source_urls"):
        bonus += 10

    if (trick.get("difficulty_level") or 0) >= 8:
        bonus += 10
    if trick.get("is_combo"):
        bonus += 20

    return min(CREATION_BASE_XP + bonus, CREATION_MAX_XP)


def calculate_trick_edit_xp(old: Dict[str, Any], new: Dict[str, Any]) -> int:
    """Calculate XP for editing an existing trick.

    Args:
        old: Trick fields before the edit
        new: Trick fields after the edit

    Returns:
        XP between EDIT_BASE_XP and EDIT_MAX_XP
    """
    bonus = 0

    # Content
    if has_significant_text_change(old.get("description"), new.get("description")):
        bonus += 15
    if has_significant_guide_change(old.get("step_by_step_guide"), new.get("step_by_step_guide")):
        bonus += 25
    if has_significant_text_change(old.get("tips_and_tricks"), new.get("tips_and_tricks")):
        bonus += 12
    if has_significant_text_change(old.get("common_mistakes"), new.get("common_mistakes")):
        bonus += 12
    if has_significant_text_change(old.get("safety_notes"), new.get("safety_notes")):
        bonus += 10

    # Media
    if has_array_change(old.get("video_urls"), new.get("video_urls")):
        bonus += 20
    if has_array_change(old.get("image_urls"), new.get("image_urls")):
        bonus += 15

    # Metadata
    if has_array_change(old.get("tags"), new.get("tags")):
        bonus += 8
    if has_array_change(old.get("prerequisite_ids"), new.get("prerequisite_ids")):
        bonus += 10
    if has_array_change(old.get("source_urls"), new.get("source_urls")):
        bonus += 8

    # Structure
    if old.get("difficulty_level") != new.get("difficulty_level"):
        bonus += 10
    if bool(old.get("is_combo")) != bool(new.get("is_combo")):
        bonus += 15
    if new.get("is_combo") and has_array_change(old.get("components") or [], new.get("components") or []):
        bonus += 20

    if not old.get("is_published") and new.get("is_published"):
        bonus += 15

    return min(EDIT_BASE_XP + bonus, EDIT_MAX_XP)


def has_significant_text_change(old_text: Optional[str], new_text: Optional[str]) -> bool:
    """A 50+ character or 20% length change. Removing text never counts."""
    if not old_text and not new_text:
        return False
    if not old_text:
        return len(new_text) > 10
    if not new_text:
        return False

    length_diff = abs(len(new_text) - len(old_text))
    percent_change = length_diff / max(len(old_text), 1)

    return length_diff >= 50 or percent_change >= 0.2


def has_significant_guide_change(old_guide: Any, new_guide: Any) -> bool:
    """Step count moved by 2+, or any step's content length moved by 30+."""
    if not old_guide and not new_guide:
        return False
    if not old_guide:
        return len(new_guide) > 0
    if not new_guide:
        return False

    old_steps = _as_steps(old_guide)
    new_steps = _as_steps(new_guide)

    if abs(len(old_steps) - len(new_steps)) >= 2:
        return True

    for key, old_step in old_steps.items():
        old_len = len(json.dumps(old_step or ""))
        new_len = len(json.dumps(new_steps.get(key) or ""))
        if abs(old_len - new_len) >= 30:
            return True

    return False


def has_array_change(old_list: Any, new_list: Any) -> bool:
    """Any difference in list contents. Removing the list never counts."""
    if not old_list and not new_list:
        return False
    if not old_list:
        return len(new_list) > 0
    if not new_list:
        return False

    if len(old_list) != len(new_list):
        return True

    old_items = {json.dumps(item, sort_keys=True) for item in old_list}
    new_items = {json.dumps(item, sort_keys=True) for item in new_list}
    return old_items != new_items


def _as_steps(guide: Any) -> Dict[Any, Any]:
    # Guides arrive either as a list of steps or a mapping of step keys
    if isinstance(guide, dict):
        return guide
    return dict(enumerate(guide))
