"""
Catalog API - FastAPI routes for tricks, categories and user progress.

The two bulk endpoints (/api/tricks/all, /api/categories/all) back the
offline clients' daily sync and are served from the response cache.
"""
import logging
import sqlite3
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from backend.cache import CacheManager, get_cache
from backend.xp import calculate_trick_creation_xp, calculate_trick_edit_xp

from backend.models import (
    TrickCreate,
    TrickUpdate,
    TrickListResponse,
    TrickWriteResponse,
    CategoryResponse,
    NavigationCategory,
    ToggleCanDoRequest,
    ToggleCanDoResponse,
    ViewCountResponse,
)
from .store import CatalogStore, get_store

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Catalog"])

TRICKS_ALL_KEY = CacheManager.make_key("tricks", "all")
CATEGORIES_ALL_KEY = CacheManager.make_key("categories", "all")


def _invalidate_bulk(cache: CacheManager):
    """Drop the bulk responses after a write that changes them."""
    cache.invalidate(TRICKS_ALL_KEY, CATEGORIES_ALL_KEY)


# ==================== Bulk (offline sync) ====================

@router.get("/tricks/all")
async def get_all_tricks(
    store: CatalogStore = Depends(get_store),
    cache: CacheManager = Depends(get_cache),
):
    """Every published trick, denormalized with its subcategory and category."""
    return cache.get_or_load(TRICKS_ALL_KEY, store.list_all_tricks)


@router.get("/categories/all")
async def get_all_categories(
    store: CatalogStore = Depends(get_store),
    cache: CacheManager = Depends(get_cache),
):
    """Every active master category with its published trick count."""
    return cache.get_or_load(CATEGORIES_ALL_KEY, store.list_categories)


# ==================== Categories ====================

@router.get("/categories/{slug}", response_model=CategoryResponse)
async def get_category(slug: str, store: CatalogStore = Depends(get_store)):
    category = store.get_category_by_slug(slug)
    if category is None:
        raise HTTPException(status_code=404, detail="Category not found")
    return category


@router.get("/navigation", response_model=List[NavigationCategory])
async def get_navigation(store: CatalogStore = Depends(get_store)):
    """Active categories and subcategories with their published tricks."""
    return store.get_navigation()


# ==================== Tricks ====================

@router.get("/tricks", response_model=TrickListResponse)
async def list_tricks(
    category: Optional[str] = None,
    subcategory: Optional[str] = None,
    difficulty: Optional[int] = Query(default=None, ge=1, le=10),
    search: Optional[str] = None,
    inventor_name: Optional[str] = None,
    limit: int = Query(default=20, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    store: CatalogStore = Depends(get_store),
):
    """Filtered, paginated published tricks."""
    tricks, total = store.query_tricks(
        category=category,
        subcategory=subcategory,
        difficulty=difficulty,
        search=search,
        inventor_name=inventor_name,
        limit=limit,
        offset=offset,
    )
    return {"tricks": tricks, "total": total}


@router.post("/tricks", response_model=TrickWriteResponse, status_code=201)
async def create_trick(
    request: TrickCreate,
    store: CatalogStore = Depends(get_store),
    cache: CacheManager = Depends(get_cache),
):
    """Create a trick and award creation XP to its author."""
    data = request.model_dump()
    try:
        trick = store.create_trick(data)
    except sqlite3.IntegrityError as e:
        logger.warning(f"Rejected trick {request.slug}: {e}")
        raise HTTPException(status_code=409, detail="Unknown subcategory or duplicate slug")

    _invalidate_bulk(cache)

    xp_awarded = 0
    if request.created_by:
        xp_awarded = calculate_trick_creation_xp(data)
        store.award_xp(request.created_by, xp_awarded, reason="trick_created")

    return {"trick": trick, "xp_awarded": xp_awarded}


@router.put("/tricks/{trick_id}", response_model=TrickWriteResponse)
async def update_trick(
    trick_id: str,
    request: TrickUpdate,
    store: CatalogStore = Depends(get_store),
    cache: CacheManager = Depends(get_cache),
):
    """Update a trick and award edit XP to the editor."""
    changes = request.model_dump(exclude_unset=True)
    edited_by = changes.pop("edited_by", None)

    try:
        result = store.update_trick(trick_id, changes)
    except sqlite3.IntegrityError as e:
        logger.warning(f"Rejected update of trick {trick_id}: {e}")
        raise HTTPException(status_code=409, detail="Update conflicts with catalog constraints")
    if result is None:
        raise HTTPException(status_code=404, detail="Trick not found")
    old, new = result

    _invalidate_bulk(cache)

    xp_awarded = 0
    if edited_by:
        xp_awarded = calculate_trick_edit_xp(old, new)
        store.award_xp(edited_by, xp_awarded, reason="trick_edited")

    return {"trick": new, "xp_awarded": xp_awarded}


@router.post("/tricks/{trick_id}/increment-views", response_model=ViewCountResponse)
async def increment_views(trick_id: str, store: CatalogStore = Depends(get_store)):
    view_count = store.increment_views(trick_id)
    if view_count is None:
        raise HTTPException(status_code=404, detail="Trick not found")
    return {"success": True, "view_count": view_count}


# ==================== User progress ====================

@router.post("/tricks/toggle-can-do", response_model=ToggleCanDoResponse)
async def toggle_can_do(request: ToggleCanDoRequest, store: CatalogStore = Depends(get_store)):
    """Mark or unmark a trick as one the user can do."""
    if not request.trick_id:
        raise HTTPException(status_code=400, detail="trick_id is required")

    try:
        count = store.set_can_do(request.user_id, request.trick_id, request.can_do)
    except sqlite3.IntegrityError:
        raise HTTPException(status_code=404, detail="Trick not found")

    return {"success": True, "can_do": request.can_do, "can_do_count": count}


@router.get("/users/{user_id}/tricks")
async def get_user_tricks(user_id: str, store: CatalogStore = Depends(get_store)):
    """Tricks the user has marked as landed."""
    return store.get_user_tricks(user_id)
