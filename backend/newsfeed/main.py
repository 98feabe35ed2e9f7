"""
Main FastAPI application and routing layer.
"""
from __future__ import annotations

import logging
from typing import List, Literal, Optional, Union

from fastapi import Depends, FastAPI, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from newsfeed.config import CORS_ALLOW_ORIGINS, DEFAULT_PAGE_SIZE, LOG_FORMAT, LOG_LEVEL, MAX_PAGE_SIZE
from newsfeed.core.pagination import filter_records, paginate, partition
from newsfeed.schemas import Category, Record, SourceStatus
from newsfeed.services.headlines import HeadlineService, RefreshResult, no_data_record
from newsfeed.settings import settings
from newsfeed.utils import now_utc

logging.basicConfig(level=LOG_LEVEL, format=LOG_FORMAT)
logger = logging.getLogger(__name__)

CategoryFilter = Literal["all", Category]

WARNING_HEADER = "X-Headlines-Warning"

_service = HeadlineService()


def get_service() -> HeadlineService:
    return _service


def serialize_records(records: List[Record]) -> List[dict]:
    return [record.to_json() for record in records]


def build_headlines_payload(
    records: List[Record],
    status: Optional[SourceStatus],
    separate: bool,
    paginated: bool,
    news_page: int,
    social_page: int,
    page_size: int,
    warnings: Optional[List[str]] = None,
) -> Union[dict, list]:
    """
    Shape the response for the requested layout.

    Args:
        records: Records after category filtering
        status: Source status block, None when unavailable
        separate: Split into news and social groups
        paginated: Return page objects instead of raw lists
        news_page: Page for the news group (or the whole set when not separated)
        social_page: Page for the social group
        page_size: Items per page
        warnings: Problems to report alongside the data

    Returns:
        Flat list of records, or a dict for separated/paginated layouts
    """
    if separate:
        groups = partition(records)
        if paginated:
            payload: dict = {
                "news": paginate(groups["news"], news_page, page_size).to_json(),
                "social": paginate(groups["social"], social_page, page_size).to_json(),
            }
        else:
            payload = {
                "news": serialize_records(groups["news"]),
                "social": serialize_records(groups["social"]),
            }
    elif paginated:
        payload = paginate(records, news_page, page_size).to_json()
    else:
        return serialize_records(records)

    if paginated and status is not None:
        payload["sourceStatus"] = status.to_json()
    if warnings:
        payload["warnings"] = list(warnings)
    return payload


# Initialize FastAPI app
app = FastAPI(
    title="Headline Feed API",
    version="0.1.0",
    description="Aggregated, deduplicated market headlines from news feeds, news APIs and social sources",
)


@app.on_event("startup")
async def log_configured_sources():
    """Log which keyed sources will be fetched."""
    keys = {
        "finnhub": settings.FINNHUB_API_KEY,
        "newsapi": settings.NEWSAPI_API_KEY,
        "alphavantage": settings.ALPHAVANTAGE_API_KEY,
        "marketaux": settings.MARKETAUX_API_KEY,
    }
    enabled = [name for name, key in keys.items() if key]
    logger.info("Keyed sources enabled: %s", ", ".join(enabled) or "none")


# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ALLOW_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "ok",
        "as_of": now_utc().isoformat(),
        "service": "headline-feed-api"
    }


@app.get("/sources")
async def get_source_status(service: HeadlineService = Depends(get_service)):
    """Refresh bookkeeping for every source type."""
    result = await service.current()
    return result.status.to_json()


@app.get("/headlines")
async def get_headlines(
    live: bool = Query(False, description="Run a refresh cycle for due sources first"),
    force: bool = Query(False, description="Run a refresh cycle for every source"),
    separate: bool = Query(False, description="Split into news and social groups"),
    paginated: bool = Query(False, description="Return page objects and source status"),
    news_page: int = Query(1, ge=1, alias="newsPage"),
    social_page: int = Query(1, ge=1, alias="socialPage"),
    page_size: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE, alias="pageSize"),
    category: Optional[CategoryFilter] = Query(None, description="Category filter, 'all' for none"),
    service: HeadlineService = Depends(get_service),
):
    """
    Return the aggregated headlines.

    Any failure inside the pipeline still produces a well-formed response
    carrying a sentinel "no data" record.
    """
    try:
        result: RefreshResult
        if live or force:
            result = await service.refresh(force=force)
        else:
            result = await service.current()

        if result.records:
            records = filter_records(result.records, category=category)
        else:
            records = result.records_or_sentinel()
        payload = build_headlines_payload(
            records,
            result.status,
            separate,
            paginated,
            news_page,
            social_page,
            page_size,
            result.warnings,
        )
        headers = None
        if result.warnings:
            # header values must be latin-1
            headers = {WARNING_HEADER: "; ".join(result.warnings).encode("ascii", "replace").decode("ascii")}
        return JSONResponse(content=payload, headers=headers)

    except Exception as e:
        logger.exception("Error in headlines endpoint")
        sentinel = no_data_record(f"Headline pipeline error: {type(e).__name__}")
        payload = build_headlines_payload(
            [sentinel], None, separate, paginated, news_page, social_page, page_size
        )
        return JSONResponse(content=payload, headers={WARNING_HEADER: "pipeline error"})


if __name__ == "__main__":
    # For development
    import uvicorn
    uvicorn.run("newsfeed.main:app", host="0.0.0.0", port=settings.PORT, reload=True)
