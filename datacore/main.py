"""
datacore - admin HTTP surface

Exposes health, version, cache maintenance and window preview endpoints for the
cache stack the application builds at startup.
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Query, Request

from config.settings import settings
from datacore import __version__
from datacore.errors import WindowParameterError
from datacore.manager import CacheManager
from datacore.window import WindowParams, calculate_window, normalize_params

APP_NAME = "datacore"

logging.basicConfig(level=getattr(logging, settings.log_level.upper(), logging.INFO))
logger = logging.getLogger("datacore.main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    manager = CacheManager.from_settings(settings)
    manager.start()
    app.state.cache_manager = manager
    logger.info(
        f"Cache stack ready (persistent={manager.persistent}, "
        f"sweep every {settings.cache_sweep_interval_seconds}s)"
    )
    try:
        yield
    finally:
        await manager.stop()


app = FastAPI(
    title=APP_NAME,
    description="Data caching, request deduplication and virtual windowing engine",
    version=__version__,
    lifespan=lifespan,
)


def _manager(request: Request) -> CacheManager:
    return request.app.state.cache_manager


@app.get("/health")
def health_check():
    """Health check endpoint."""
    return {"status": "ok"}


@app.get("/version")
def version_info():
    """Version information endpoint."""
    return {
        "name": APP_NAME,
        "version": __version__,
        "full": f"{APP_NAME} {__version__}",
    }


@app.get("/cache/stats")
def cache_stats(request: Request):
    """Get cache statistics."""
    return _manager(request).get_stats()


@app.post("/cache/cleanup")
def cache_cleanup(request: Request):
    """Sweep expired entries now instead of waiting for the next interval."""
    return {"removed": _manager(request).cleanup()}


@app.delete("/cache")
def cache_clear(request: Request):
    """Clear all cached data."""
    return {"cleared": _manager(request).clear()}


@app.delete("/cache/{key:path}")
def cache_invalidate(key: str, request: Request):
    """Invalidate one cache key."""
    if not _manager(request).invalidate(key):
        raise HTTPException(status_code=404, detail=f"Key not cached: {key}")
    return {"invalidated": key}


# =============================================================================
# WINDOWING
# =============================================================================

@app.get("/window")
def window_preview(
    scroll_offset: float = Query(0.0, description="Scroll position in pixels"),
    viewport_size: float = Query(..., description="Visible container size in pixels"),
    item_size: float = Query(..., description="Fixed item size in pixels"),
    total_items: int = Query(..., description="Number of items in the list"),
    overscan: int = Query(default=settings.window_overscan, description="Extra items rendered on each side"),
):
    """Compute the render window for a list; useful for checking layout math."""
    params = WindowParams(
        scroll_offset=scroll_offset,
        viewport_size=viewport_size,
        item_size=item_size,
        total_items=total_items,
        overscan=overscan,
    )
    try:
        normalize_params(params, strict=True)
    except WindowParameterError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return calculate_window(params).to_dict()
