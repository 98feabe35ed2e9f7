"""
RSS feed fetcher for the financial news feed list.
"""
from __future__ import annotations

import asyncio
from typing import List, Optional, Sequence, Tuple

import feedparser
import httpx

from newsfeed.config import FEED_SOURCES, FEED_TIMEOUT_MS, ITEMS_PER_FEED
from newsfeed.errors import AdapterError
from newsfeed.models import AdapterResult
from newsfeed.schemas import Record
from newsfeed.sources.common import SourceAdapter, clean_text, guarded_call


class FeedAdapter(SourceAdapter):
    """Fetches headlines from a list of RSS feeds, all feeds in parallel."""

    name = "rss-feeds"
    source_type = "rss"
    display_name = "RSS"
    timeout_ms = FEED_TIMEOUT_MS

    def __init__(
        self,
        feeds: Optional[Sequence[Tuple[str, str, str]]] = None,
        client: Optional[httpx.AsyncClient] = None,
        items_per_feed: int = ITEMS_PER_FEED,
    ):
        super().__init__(client)
        self.feeds = list(feeds if feeds is not None else FEED_SOURCES)
        self.items_per_feed = items_per_feed

    async def _load_feed(self, client: httpx.AsyncClient, url: str) -> feedparser.FeedParserDict:
        response = await client.get(url)
        response.raise_for_status()
        # feedparser is synchronous
        feed = await asyncio.to_thread(feedparser.parse, response.content)
        if feed.bozo and not feed.entries:
            raise AdapterError(url, f"malformed feed ({feed.get('bozo_exception')})")
        return feed

    def _normalize_entries(
        self,
        feed: feedparser.FeedParserDict,
        source_name: str,
        category_hint: str,
        fetched_at: int,
    ) -> List[Record]:
        records: List[Record] = []
        for index, entry in enumerate(feed.entries[: self.items_per_feed]):
            title = clean_text(entry.get("title"))
            if not title:
                continue
            records.append(
                self.build_record(
                    source_name=source_name,
                    headline=title,
                    fetched_at=fetched_at,
                    index=index,
                    published=entry.get("published") or entry.get("updated"),
                    url=clean_text(entry.get("link")),
                    summary=entry.get("summary"),
                    category_hint=category_hint,
                )
            )
        return records

    async def _load_records(
        self,
        client: httpx.AsyncClient,
        url: str,
        source_name: str,
        category_hint: str,
        fetched_at: int,
    ) -> List[Record]:
        """Fetch one feed and normalize its entries; any failure belongs to this feed alone."""
        feed = await self._load_feed(client, url)
        return self._normalize_entries(feed, source_name, category_hint, fetched_at)

    async def _fetch_one(
        self,
        client: httpx.AsyncClient,
        source: Tuple[str, str, str],
        timeout_ms: int,
        fetched_at: int,
    ) -> Tuple[List[Record], Optional[str]]:
        source_name, url, category_hint = source
        records, error = await guarded_call(
            source_name, self._load_records(client, url, source_name, category_hint, fetched_at), timeout_ms
        )
        return records or [], error

    async def _fetch(self, client: httpx.AsyncClient, timeout_ms: int, fetched_at: int) -> AdapterResult:
        results = await asyncio.gather(
            *(self._fetch_one(client, source, timeout_ms, fetched_at) for source in self.feeds)
        )

        result = AdapterResult()
        for records, error in results:
            result.records.extend(records)
            if error:
                result.errors.append(error)
        return result
