"""
MarketAux entity-filtered news fetcher.
"""
from __future__ import annotations

from typing import List

import httpx

from newsfeed.config import MARKETAUX_MAX_ITEMS, MARKETAUX_SYMBOLS
from newsfeed.models import AdapterResult
from newsfeed.schemas import Record
from newsfeed.sources.common import KeyedSourceAdapter, clean_text


class MarketauxAdapter(KeyedSourceAdapter):
    """Fetches news about a fixed watchlist of index ETFs and mega caps."""

    BASE_URL = "https://api.marketaux.com/v1/news/all"

    name = "marketaux"
    source_type = "marketaux"
    display_name = "MARKETAUX PRO"

    async def _fetch(self, client: httpx.AsyncClient, timeout_ms: int, fetched_at: int) -> AdapterResult:
        params = {
            "api_token": self.api_key,
            "symbols": MARKETAUX_SYMBOLS,
            "filter_entities": "true",
            "language": "en",
            "limit": 8,
        }
        data, error = await self._call(client, self.BASE_URL, params, timeout_ms)
        if error:
            return AdapterResult(errors=[error])

        articles = data.get("data") if isinstance(data, dict) else None
        if not isinstance(articles, list):
            return AdapterResult(errors=[f"{self.display_name}: response has no data"])

        records: List[Record] = []
        for index, item in enumerate(articles[:MARKETAUX_MAX_ITEMS]):
            title = clean_text(item.get("title"))
            if not title:
                continue
            symbols = [
                entity.get("symbol")
                for entity in item.get("entities") or []
                if isinstance(entity, dict) and entity.get("symbol")
            ]
            records.append(
                self.build_record(
                    source_name=self.display_name,
                    headline=title,
                    fetched_at=fetched_at,
                    index=index,
                    published=item.get("published_at"),
                    url=item.get("url"),
                    summary=item.get("description"),
                    tickers=list(dict.fromkeys(symbols)),
                )
            )
        return AdapterResult(records=records)
