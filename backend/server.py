"""
Trickipedia - FastAPI Backend Server

Serves the trick catalog to web and offline clients:
- Catalog: categories, subcategories and tricks (SQLite)
- Bulk endpoints for the offline clients' daily sync (response-cached)
- User progress: "can do" tracking and view counts
- Contributor XP: tier table, progress and trick awards
"""

import logging
import time
from fastapi import Depends, FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware

from backend.config import get_settings
from backend.cache import CacheManager, get_cache
from backend.catalog import get_store
from backend.catalog.api import router as catalog_router
from backend.xp.api import router as xp_router

VERSION = "1.0.0"

settings = get_settings()

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="Trickipedia API",
    description="Trick catalog, user progress and contributor XP for action sports",
    version=VERSION
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(catalog_router)
app.include_router(xp_router)


@app.get("/favicon.ico")
async def favicon():
    """Handle favicon requests to prevent 404 errors."""
    return Response(status_code=204)


# ==================== Timing Middleware ====================

@app.middleware("http")
async def add_timing_header(request: Request, call_next):
    start_time = time.time()
    response = await call_next(request)
    duration_ms = int((time.time() - start_time) * 1000)
    response.headers["X-Duration-Ms"] = str(duration_ms)
    return response


# ==================== Startup ====================

@app.on_event("startup")
async def startup_event():
    """Open the catalog database and report the cache backend."""
    store = get_store()
    cache = get_cache()
    logger.info(f"Catalog database at {store.db_path}")
    logger.info(f"Response cache backend: {'redis' if cache.is_redis_available else 'memory'}")


# ==================== Health Check ====================

@app.get("/health")
async def health_check(cache: CacheManager = Depends(get_cache)):
    """Liveness probe; offline clients use it to detect connectivity."""
    cache.cleanup_expired()
    return {
        "status": "ok",
        "version": VERSION,
        "cache": cache.stats(),
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
