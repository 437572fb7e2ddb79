"""XP API - tier table, progress lookups and user XP awards."""
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query

from backend.catalog.store import CatalogStore, get_store
from backend.models import (
    XPAwardRequest,
    XPLevelResponse,
    XPProgressResponse,
    UserXPResponse,
)
from .levels import XP_LEVELS, calculate_xp_progress

router = APIRouter(prefix="/api", tags=["XP"])


def _user_xp(user: dict) -> dict:
    return {
        "user_id": user["id"],
        "role": user["role"],
        "xp": user["xp"],
        "progress": calculate_xp_progress(user["xp"]).to_dict(),
    }


@router.get("/xp/levels", response_model=List[XPLevelResponse])
async def get_xp_levels():
    return [lvl.to_dict() for lvl in XP_LEVELS]


@router.get("/xp/progress", response_model=XPProgressResponse)
async def get_xp_progress(xp: int = Query(..., ge=0)):
    """Tier and in-tier progress for an arbitrary XP total."""
    return calculate_xp_progress(xp).to_dict()


@router.get("/users/{user_id}/xp", response_model=UserXPResponse)
async def get_user_xp(user_id: str, store: CatalogStore = Depends(get_store)):
    user = store.get_user(user_id)
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")
    return _user_xp(user)


@router.post("/users/{user_id}/xp", response_model=UserXPResponse)
async def award_user_xp(
    user_id: str,
    request: XPAwardRequest,
    store: CatalogStore = Depends(get_store),
):
    """Add XP to a user, creating the profile on first award."""
    store.award_xp(user_id, request.amount, reason=request.reason, email=request.email)
    return _user_xp(store.get_user(user_id))
