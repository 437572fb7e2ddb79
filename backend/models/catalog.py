"""
Catalog API Models

Pydantic request/response models for the trick catalog, user progress and XP.
"""

from enum import Enum
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field


class UserRole(str, Enum):
    USER = "user"
    MODERATOR = "moderator"
    ADMINISTRATOR = "administrator"


# ============================================================
# Catalog
# ============================================================

class MasterCategoryRef(BaseModel):
    name: str
    slug: str
    color: Optional[str] = None


class SubcategoryRef(BaseModel):
    name: str
    slug: str
    master_category: MasterCategoryRef


class TrickBase(BaseModel):
    """Editable trick fields."""
    description: Optional[str] = None
    difficulty_level: Optional[int] = Field(None, ge=1, le=10)
    step_by_step_guide: List[Dict[str, Any]] = Field(default_factory=list)
    tips_and_tricks: Optional[str] = None
    common_mistakes: Optional[str] = None
    safety_notes: Optional[str] = None
    video_urls: List[str] = Field(default_factory=list)
    image_urls: List[str] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    source_urls: List[str] = Field(default_factory=list)
    prerequisite_ids: List[str] = Field(default_factory=list)
    components: List[Dict[str, Any]] = Field(default_factory=list)
    is_published: bool = True
    is_combo: bool = False
    inventor_name: Optional[str] = None


class TrickCreate(TrickBase):
    """Request to create a trick."""
    subcategory_id: str
    name: str = Field(..., min_length=1, max_length=200)
    slug: str = Field(..., min_length=1, max_length=200, pattern=r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
    created_by: Optional[str] = None


class TrickUpdate(BaseModel):
    """Request to update a trick. Only fields that are sent are changed."""
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    difficulty_level: Optional[int] = Field(None, ge=1, le=10)
    step_by_step_guide: Optional[List[Dict[str, Any]]] = None
    tips_and_tricks: Optional[str] = None
    common_mistakes: Optional[str] = None
    safety_notes: Optional[str] = None
    video_urls: Optional[List[str]] = None
    image_urls: Optional[List[str]] = None
    tags: Optional[List[str]] = None
    source_urls: Optional[List[str]] = None
    prerequisite_ids: Optional[List[str]] = None
    components: Optional[List[Dict[str, Any]]] = None
    is_published: Optional[bool] = None
    is_combo: Optional[bool] = None
    inventor_name: Optional[str] = None
    edited_by: Optional[str] = None


class TrickResponse(TrickBase):
    """A denormalized trick."""
    id: str
    subcategory_id: str
    name: str
    slug: str
    view_count: int = 0
    created_by: Optional[str] = None
    created_at: str
    updated_at: str
    subcategory: SubcategoryRef


class TrickListResponse(BaseModel):
    tricks: List[TrickResponse]
    total: int


class TrickWriteResponse(BaseModel):
    trick: TrickResponse
    xp_awarded: int = 0


class CategoryResponse(BaseModel):
    id: str
    name: str
    slug: str
    description: Optional[str] = None
    color: Optional[str] = None
    sort_order: int = 0
    is_active: bool = True
    trick_count: int = 0


class NavigationTrick(BaseModel):
    id: str
    name: str
    slug: str
    difficulty_level: Optional[int] = None


class NavigationSubcategory(BaseModel):
    id: str
    name: str
    slug: str
    sort_order: int = 0
    tricks: List[NavigationTrick] = Field(default_factory=list)


class NavigationCategory(BaseModel):
    """A browsing tree node: category with its subcategories and tricks."""
    id: str
    name: str
    slug: str
    color: Optional[str] = None
    sort_order: int = 0
    subcategories: List[NavigationSubcategory] = Field(default_factory=list)


# ============================================================
# User progress
# ============================================================

class ToggleCanDoRequest(BaseModel):
    user_id: str = Field(..., min_length=1)
    trick_id: Optional[str] = None
    can_do: bool


class ToggleCanDoResponse(BaseModel):
    success: bool = True
    can_do: bool
    can_do_count: int


class ViewCountResponse(BaseModel):
    success: bool = True
    view_count: int


# ============================================================
# XP
# ============================================================

class XPLevelResponse(BaseModel):
    level: int
    name: str
    threshold: int
    unlocks: List[str]


class XPProgressResponse(BaseModel):
    current_level: XPLevelResponse
    next_level: Optional[XPLevelResponse] = None
    progress_pct: float
    xp_to_next: int
    total_xp: int


class XPAwardRequest(BaseModel):
    amount: int = Field(..., gt=0)
    reason: str = "general"
    email: Optional[str] = None


class UserXPResponse(BaseModel):
    user_id: str
    role: UserRole = UserRole.USER
    xp: int
    progress: XPProgressResponse
