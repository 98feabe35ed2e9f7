"""
Concurrent fetch coordinator: fans out to every due source adapter and
collects whatever finished in time.
"""
from __future__ import annotations

import asyncio
import logging
import time
from typing import Dict, List, Optional

import httpx

from newsfeed.config import MAX_RECENT_ERRORS, SOURCE_TIMEOUT_MS
from newsfeed.core.scheduler import refresh_interval_for
from newsfeed.models import FetchReport, SourceMetadata, SourceOutcome
from newsfeed.schemas import Record
from newsfeed.settings import Settings, settings as default_settings
from newsfeed.sources.alphavantage import AlphaVantageAdapter
from newsfeed.sources.common import SourceAdapter, sanitize_error
from newsfeed.sources.feeds import FeedAdapter
from newsfeed.sources.finnhub import FinnhubAdapter
from newsfeed.sources.marketaux import MarketauxAdapter
from newsfeed.sources.newsdata import NewsDataAdapter
from newsfeed.sources.reddit import RedditAdapter
from newsfeed.utils import now_ms

logger = logging.getLogger(__name__)

AdapterRegistry = Dict[str, List[SourceAdapter]]


def build_adapters(
    settings: Optional[Settings] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> AdapterRegistry:
    """
    Create the adapters for every source type.

    Args:
        settings: API keys and user agent (defaults to the process settings)
        client: Optional shared HTTP client, mainly for tests

    Returns:
        Mapping of source type to the adapters fetched for it
    """
    settings = settings or default_settings
    return {
        "rss": [FeedAdapter(client=client)],
        "finnhub": [FinnhubAdapter(settings.FINNHUB_API_KEY, client=client)],
        "newsapi": [
            NewsDataAdapter(settings.NEWSAPI_API_KEY, client=client),
            AlphaVantageAdapter(settings.ALPHAVANTAGE_API_KEY, client=client),
        ],
        "marketaux": [MarketauxAdapter(settings.MARKETAUX_API_KEY, client=client)],
        "social": [RedditAdapter(user_agent=settings.REDDIT_USER_AGENT, client=client)],
    }


async def _run_unit(source_type: str, adapter: SourceAdapter, timeout_ms: int) -> SourceOutcome:
    """Run one adapter under a deadline. Always returns, never raises."""
    started = time.perf_counter()

    def elapsed() -> int:
        return int((time.perf_counter() - started) * 1000)

    try:
        result = await asyncio.wait_for(adapter.fetch(), timeout=timeout_ms / 1000)
    except asyncio.TimeoutError:
        logger.warning("%s (%s) abandoned after %dms", adapter.display_name, source_type, timeout_ms)
        return SourceOutcome(
            source_type=source_type,
            adapter=adapter.name,
            status="timeout",
            errors=[f"{adapter.display_name}: timed out after {timeout_ms}ms"],
            elapsed_ms=elapsed(),
        )
    except Exception as e:
        logger.exception("%s (%s) failed", adapter.display_name, source_type)
        return SourceOutcome(
            source_type=source_type,
            adapter=adapter.name,
            status="error",
            errors=[f"{adapter.display_name}: {sanitize_error(e)}"],
            elapsed_ms=elapsed(),
        )

    status = "error" if result.errors and not result.records else "ok"
    return SourceOutcome(
        source_type=source_type,
        adapter=adapter.name,
        status=status,
        records=list(result.records),
        errors=list(result.errors),
        elapsed_ms=elapsed(),
    )


async def run(
    due_source_types: List[str],
    metadata: Dict[str, SourceMetadata],
    per_source_timeout_ms: Optional[int] = None,
    adapters: Optional[AdapterRegistry] = None,
    now: Optional[int] = None,
) -> FetchReport:
    """
    Fetch every due source type concurrently.

    All adapters run at once and the call waits for each to finish, fail or
    time out; one failure never cancels the others. The metadata passed in is
    not modified: the report carries an updated copy.

    Args:
        due_source_types: Source types to fetch this cycle
        metadata: Current per-type metadata
        per_source_timeout_ms: Deadline for each adapter's whole fetch
        adapters: Source type to adapters mapping (defaults to ``build_adapters()``)
        now: Refresh time recorded on the metadata (defaults to completion time)

    Returns:
        FetchReport with the union of fetched records, per-adapter outcomes
        and the updated metadata
    """
    timeout_ms = per_source_timeout_ms or SOURCE_TIMEOUT_MS
    registry = adapters if adapters is not None else build_adapters()
    started = time.perf_counter()

    units = [
        (source_type, adapter)
        for source_type in due_source_types
        for adapter in registry.get(source_type, [])
    ]
    outcomes: List[SourceOutcome] = list(
        await asyncio.gather(*(_run_unit(st, adapter, timeout_ms) for st, adapter in units))
    )

    records: List[Record] = []
    errors_by_type: Dict[str, List[str]] = {source_type: [] for source_type in due_source_types}
    for outcome in outcomes:
        records.extend(outcome.records)
        errors_by_type[outcome.source_type].extend(outcome.errors)

    finished_at = now_ms() if now is None else now
    updated = dict(metadata)
    for source_type in due_source_types:
        current = metadata.get(source_type) or SourceMetadata(
            refresh_interval_minutes=refresh_interval_for(source_type)
        )
        updated[source_type] = current.recorded_fetch(
            finished_at, errors_by_type[source_type], MAX_RECENT_ERRORS
        )

    error_count = sum(len(errors) for errors in errors_by_type.values())
    logger.info(
        "Fetched %d records from %s in %dms (%d errors)",
        len(records),
        ",".join(due_source_types) or "no sources",
        int((time.perf_counter() - started) * 1000),
        error_count,
    )
    return FetchReport(records=records, outcomes=outcomes, metadata=updated)
