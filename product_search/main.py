"""FastAPI application wiring the search service."""
from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from functools import lru_cache
from time import perf_counter
from typing import Optional

from elasticsearch import ApiError, TransportError
from fastapi import Depends, FastAPI, Query, Request
from fastapi.responses import JSONResponse

from .cache import get_cache
from .config import settings
from .es_catalog import ElasticsearchCatalog
from .es_client import get_client
from .importer import import_if_empty, load_catalog, reindex_data
from .indexing import ensure_index
from .models import CatalogStats, ErrorResponse, ReindexResponse, SearchResponse
from .search_service import InvalidQueryError, SearchService
from .store import CatalogStore, CatalogUnavailableError, InMemoryCatalog

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_LEVEL = logging.getLevelName(settings.log_level.upper())

# Force a predictable logging setup even when run under uvicorn, so parsing
# and timing statements are visible. ``force=True`` replaces uvicorn's default
# handlers.
logging.basicConfig(level=LOG_LEVEL, format=LOG_FORMAT, force=True)
for name in ("uvicorn", "uvicorn.error", "uvicorn.access", "elastic_transport"):
    logging.getLogger(name).setLevel(LOG_LEVEL)

logger = logging.getLogger(__name__)
logger.info("Logging configured at %s backend=%s", settings.log_level.upper(), settings.catalog_backend)

app = FastAPI(title="Product Search Service")


@lru_cache(maxsize=1)
def get_store() -> CatalogStore:
    if settings.uses_elasticsearch:
        return ElasticsearchCatalog(get_client(), settings.es_index)
    return InMemoryCatalog(load_catalog(settings.catalog_path))


@lru_cache(maxsize=1)
def get_search_service() -> SearchService:
    cache = get_cache() if settings.cache_enabled else None
    return SearchService(get_store(), cache=cache)


@app.exception_handler(InvalidQueryError)
async def invalid_query_handler(request: Request, exc: InvalidQueryError) -> JSONResponse:
    return JSONResponse(status_code=400, content=ErrorResponse(message=str(exc)).model_dump())


@app.exception_handler(CatalogUnavailableError)
async def catalog_unavailable_handler(request: Request, exc: CatalogUnavailableError) -> JSONResponse:
    logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=503, content=ErrorResponse(message="Catalog temporarily unavailable").model_dump())


@app.on_event("startup")
async def startup_event() -> None:
    if not settings.uses_elasticsearch:
        return
    es = get_client()
    await ensure_index(es)
    if settings.load_on_startup:
        imported = await import_if_empty(es)
        if imported:
            logger.info("Imported %s products on startup", imported)


@app.get("/health")
async def health(store: CatalogStore = Depends(get_store)) -> dict:
    payload = {"backend": settings.catalog_backend}
    if settings.uses_elasticsearch:
        try:
            status = await asyncio.to_thread(get_client().cluster.health)
        except (ApiError, TransportError) as exc:
            raise CatalogUnavailableError(f"cluster health failed: {exc}") from exc
        payload["elasticsearch"] = status.get("status")
        payload["index"] = settings.es_index
    payload["products"] = await asyncio.to_thread(store.count)
    return payload


@app.get(
    "/api/v1/search/product",
    response_model=SearchResponse,
    response_model_exclude_none=True,
    responses={400: {"model": ErrorResponse}, 503: {"model": ErrorResponse}},
)
async def search(
    query: Optional[str] = Query(None, description="Search query"),
    q: Optional[str] = Query(None, description="Alias of query"),
    page: int = 1,
    limit: int = 20,
    category: Optional[str] = None,
    debug: bool = False,
    service: SearchService = Depends(get_search_service),
) -> SearchResponse:
    started = perf_counter()
    payload = await service.search(query or q, page=page, limit=limit, category=category, debug=debug)
    latency_ms = (perf_counter() - started) * 1000
    return SearchResponse(latencyMs=round(latency_ms, 2), **payload)


@app.get("/api/v1/catalog/stats", response_model=CatalogStats)
async def catalog_stats(store: CatalogStore = Depends(get_store)) -> CatalogStats:
    total = await asyncio.to_thread(store.count)
    return CatalogStats(totalProducts=total, timestamp=datetime.now(timezone.utc).isoformat())


@app.post("/api/v1/catalog/reindex", response_model=ReindexResponse)
async def reindex() -> ReindexResponse:
    """Rebuild the catalog from ``CATALOG_PATH`` and drop cached services and pages."""
    if settings.uses_elasticsearch:
        indexed = await reindex_data(get_client())
    else:
        get_store.cache_clear()
        indexed = await asyncio.to_thread(get_store().count)
    get_search_service.cache_clear()
    if settings.cache_enabled:
        dropped = await asyncio.to_thread(get_cache().clear)
        logger.info("Dropped %s cached search pages", dropped)
    logger.info("Reindexed %s products backend=%s", indexed, settings.catalog_backend)
    return ReindexResponse(indexed=indexed)
