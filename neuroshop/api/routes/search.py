"""API routes for product search and cache administration."""

from datetime import datetime
from typing import Any, Optional

import structlog
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from neuroshop import __version__
from neuroshop.errors import InvalidQueryError
from neuroshop.orchestrator import SearchOrchestrator
from neuroshop.state.models import AggregationResponse

router = APIRouter(prefix="/api", tags=["search"])
logger = structlog.get_logger()

_orchestrator: Optional[SearchOrchestrator] = None


def get_orchestrator() -> SearchOrchestrator:
    """Dependency returning the process-wide orchestrator."""
    global _orchestrator
    if _orchestrator is None:
        _orchestrator = SearchOrchestrator.from_settings()
    return _orchestrator


class SearchRequest(BaseModel):
    """Request body for a product search."""
    # Typed loosely so a non-string query is reported as a 400, not a 422
    query: Any = None


class CacheClearResponse(BaseModel):
    """Entries removed per cache."""
    cleared: dict[str, int]
    timestamp: datetime


@router.post("/search")
async def search_products(
    request: SearchRequest,
    orchestrator: SearchOrchestrator = Depends(get_orchestrator),
) -> AggregationResponse:
    """Search products across all platforms selected for the query's category."""
    try:
        return await orchestrator.search(request.query)
    except InvalidQueryError as e:
        raise HTTPException(status_code=400, detail=e.to_dict())


@router.get("/stats")
async def get_search_stats(
    orchestrator: SearchOrchestrator = Depends(get_orchestrator),
) -> dict:
    """Cache statistics for the search and LLM caches."""
    return {
        "caches": orchestrator.cache_stats(),
        "providers": sorted(orchestrator.providers),
        "timestamp": datetime.now().isoformat(),
    }


@router.post("/cache/clear")
async def clear_cache(
    orchestrator: SearchOrchestrator = Depends(get_orchestrator),
) -> CacheClearResponse:
    """Clear all response and LLM caches."""
    cleared = await orchestrator.clear_caches()
    logger.info("Caches cleared via API", cleared=cleared)
    return CacheClearResponse(cleared=cleared, timestamp=datetime.now())


@router.get("/info")
async def api_info() -> dict:
    """API name, version and endpoints."""
    return {
        "name": "NeuroShop API",
        "version": __version__,
        "description": "Price comparison across multiple platforms with caching",
        "endpoints": {
            "POST /api/search": "Search products across multiple platforms",
            "GET /api/stats": "Get cache statistics",
            "POST /api/cache/clear": "Clear response cache",
            "GET /api/info": "Get API information",
            "GET /health": "Health check",
        },
        "timestamp": datetime.now().isoformat(),
    }
