"""
NewsData.io business headlines fetcher.
"""
from __future__ import annotations

from typing import List

import httpx

from newsfeed.config import NEWSDATA_MAX_ITEMS, NEWSDATA_QUERY
from newsfeed.models import AdapterResult
from newsfeed.schemas import Record
from newsfeed.sources.common import KeyedSourceAdapter, clean_text


class NewsDataAdapter(KeyedSourceAdapter):
    """Fetches business headlines matching a finance query."""

    BASE_URL = "https://newsdata.io/api/1/news"

    name = "newsapi"
    source_type = "newsapi"
    display_name = "NewsAPI"

    async def _fetch(self, client: httpx.AsyncClient, timeout_ms: int, fetched_at: int) -> AdapterResult:
        params = {
            "apikey": self.api_key,
            "q": NEWSDATA_QUERY,
            "category": "business",
            "language": "en",
            "size": 6,
        }
        data, error = await self._call(client, self.BASE_URL, params, timeout_ms)
        if error:
            return AdapterResult(errors=[error])

        results = data.get("results") if isinstance(data, dict) else None
        if not isinstance(results, list):
            return AdapterResult(errors=[f"{self.display_name}: response has no results"])

        records: List[Record] = []
        for index, item in enumerate(results[:NEWSDATA_MAX_ITEMS]):
            title = clean_text(item.get("title"))
            if not title:
                continue
            records.append(
                self.build_record(
                    source_name=self.display_name,
                    headline=title,
                    fetched_at=fetched_at,
                    index=index,
                    published=item.get("pubDate"),
                    url=item.get("link"),
                    summary=item.get("description"),
                )
            )
        return AdapterResult(records=records)
