"""FastAPI application wiring the search service."""
from __future__ import annotations

import logging
from functools import lru_cache

from fastapi import Depends, FastAPI, HTTPException, Query

from .cache import RedisCache
from .candidates import CandidateFetchFailed
from .config import settings
from .models import InvalidateResponse, SearchResponse
from .query import SearchMode
from .search_service import SearchEngine, create_engine

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_LEVEL = logging.getLevelName(settings.log_level.upper())

# uvicorn installs its own handlers; force one format for every logger.
logging.basicConfig(level=LOG_LEVEL, format=LOG_FORMAT, force=True)
for name in ("uvicorn", "uvicorn.error", "uvicorn.access", "elastic_transport"):
    logging.getLogger(name).setLevel(LOG_LEVEL)

logger = logging.getLogger(__name__)
logger.info("Logging configured at %s", settings.log_level.upper())

app = FastAPI(title="Catalog Search Service")


@lru_cache(maxsize=1)
def get_engine() -> SearchEngine:
    logger.info("Creating search engine with %s backend", settings.store_backend)
    return create_engine(settings)


@app.on_event("shutdown")
async def shutdown_event() -> None:
    if get_engine.cache_info().currsize:
        await get_engine().aclose()


def _fetch_error(exc: CandidateFetchFailed) -> HTTPException:
    status = exc.status_code if exc.status_code and exc.status_code >= 400 else 502
    return HTTPException(status_code=status, detail=f"Erro na busca: HTTP {status}")


async def _run_search(engine: SearchEngine, q: str, limit: int, mode: SearchMode) -> SearchResponse:
    try:
        return await engine.search(q, limit, mode)
    except CandidateFetchFailed as exc:
        logger.warning("search failed q=%r: %s", q, exc)
        raise _fetch_error(exc) from exc


@app.get("/health")
async def health(engine: SearchEngine = Depends(get_engine)) -> dict:
    return {
        "backend": settings.store_backend,
        "cache": "redis" if isinstance(engine.cache, RedisCache) else "memory",
    }


@app.get(
    "/produtos/autocomplete",
    response_model=SearchResponse,
    response_model_exclude_none=True,
)
async def autocomplete(
    q: str = Query("", description="Search query"),
    limit: int = Query(settings.default_limit, description="Maximum results, clamped to [1, 20]"),
    engine: SearchEngine = Depends(get_engine),
) -> SearchResponse:
    return await _run_search(engine, q, limit, SearchMode.AUTOCOMPLETE)


@app.get("/search", response_model=SearchResponse, response_model_exclude_none=True)
async def search(
    q: str = Query("", description="Search query"),
    limit: int = Query(settings.default_limit, description="Maximum results, clamped to [1, 20]"),
    mode: SearchMode = Query(SearchMode.CATALOG),
    engine: SearchEngine = Depends(get_engine),
) -> SearchResponse:
    return await _run_search(engine, q, limit, mode)


@app.post("/cache/invalidate", response_model=InvalidateResponse)
async def invalidate(engine: SearchEngine = Depends(get_engine)) -> InvalidateResponse:
    engine.invalidate()
    return InvalidateResponse()
