"""
Finnhub general market news fetcher.
"""
from __future__ import annotations

from typing import List

import httpx

from newsfeed.config import FINNHUB_MAX_ITEMS
from newsfeed.models import AdapterResult
from newsfeed.schemas import Record
from newsfeed.sources.common import KeyedSourceAdapter, clean_text


class FinnhubAdapter(KeyedSourceAdapter):
    """Fetches general market news from the Finnhub REST API."""

    BASE_URL = "https://finnhub.io/api/v1/news"

    name = "finnhub"
    source_type = "finnhub"
    display_name = "Finnhub"

    async def _fetch(self, client: httpx.AsyncClient, timeout_ms: int, fetched_at: int) -> AdapterResult:
        params = {"category": "general", "token": self.api_key}
        data, error = await self._call(client, self.BASE_URL, params, timeout_ms)
        if error:
            return AdapterResult(errors=[error])
        if not isinstance(data, list):
            return AdapterResult(errors=[f"{self.display_name}: unexpected payload"])

        records: List[Record] = []
        for index, item in enumerate(data[:FINNHUB_MAX_ITEMS]):
            headline = clean_text(item.get("headline"))
            if not headline:
                continue
            related = [t.strip() for t in (item.get("related") or "").split(",") if t.strip()]
            records.append(
                self.build_record(
                    source_name=self.display_name,
                    headline=headline,
                    fetched_at=fetched_at,
                    index=index,
                    published=item.get("datetime"),
                    url=item.get("url"),
                    summary=item.get("summary"),
                    tickers=related,
                )
            )
        return AdapterResult(records=records)
