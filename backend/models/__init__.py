"""API models for the Trickipedia catalog backend."""

from .catalog import (
    UserRole,
    TrickCreate,
    TrickUpdate,
    TrickResponse,
    TrickListResponse,
    TrickWriteResponse,
    CategoryResponse,
    NavigationCategory,
    ToggleCanDoRequest,
    ToggleCanDoResponse,
    ViewCountResponse,
    XPLevelResponse,
    XPProgressResponse,
    XPAwardRequest,
    UserXPResponse,
)

__all__ = [
    "UserRole",
    "TrickCreate",
    "TrickUpdate",
    "TrickResponse",
    "TrickListResponse",
    "TrickWriteResponse",
    "CategoryResponse",
    "NavigationCategory",
    "ToggleCanDoRequest",
    "ToggleCanDoResponse",
    "ViewCountResponse",
    "XPLevelResponse",
    "XPProgressResponse",
    "XPAwardRequest",
    "UserXPResponse",
]
