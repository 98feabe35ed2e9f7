"""
Alpha Vantage NEWS_SENTIMENT fetcher.

Alpha Vantage scores each article's overall sentiment in [-1, 1]; it is
rescaled to the 0-10 ``sentimentScore`` used by the rest of the feed.
"""
from __future__ import annotations

from typing import Any, List, Optional

import httpx

from newsfeed.config import ALPHAVANTAGE_MAX_ITEMS, ALPHAVANTAGE_TIMEOUT_MS, ALPHAVANTAGE_TOPICS
from newsfeed.models import AdapterResult
from newsfeed.schemas import Record
from newsfeed.sources.common import KeyedSourceAdapter, clean_text


def to_sentiment_score(raw: Any) -> Optional[float]:
    """Map a [-1, 1] sentiment value to the 0-10 scale (neutral 0.0 gives 5.0), None if absent."""
    if raw is None or raw == "":
        return None
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return None
    return float(round((value + 1) * 5))


class AlphaVantageAdapter(KeyedSourceAdapter):
    BASE_URL = "https://www.alphavantage.co/query"

    name = "alphavantage"
    source_type = "newsapi"
    display_name = "ALPHA VANTAGE"
    timeout_ms = ALPHAVANTAGE_TIMEOUT_MS

    async def _fetch(self, client: httpx.AsyncClient, timeout_ms: int, fetched_at: int) -> AdapterResult:
        params = {
            "function": "NEWS_SENTIMENT",
            "apikey": self.api_key,
            "topics": ALPHAVANTAGE_TOPICS,
            "limit": 8,
        }
        data, error = await self._call(client, self.BASE_URL, params, timeout_ms)
        if error:
            return AdapterResult(errors=[error])
        if not isinstance(data, dict):
            return AdapterResult(errors=[f"{self.display_name}: unexpected payload"])

        feed = data.get("feed")
        if not isinstance(feed, list):
            # Rate limiting comes back as a 200 with a "Note" or "Information" message
            message = data.get("Note") or data.get("Information") or "response has no feed"
            return AdapterResult(errors=[f"{self.display_name}: {message}"])

        records: List[Record] = []
        for index, item in enumerate(feed[:ALPHAVANTAGE_MAX_ITEMS]):
            title = clean_text(item.get("title"))
            if not title:
                continue
            tickers = [
                entry.get("ticker")
                for entry in item.get("ticker_sentiment") or []
                if isinstance(entry, dict) and entry.get("ticker")
            ]
            records.append(
                self.build_record(
                    source_name=self.display_name,
                    headline=title,
                    fetched_at=fetched_at,
                    index=index,
                    published=item.get("time_published"),
                    url=item.get("url"),
                    summary=item.get("summary"),
                    sentiment_score=to_sentiment_score(item.get("overall_sentiment_score")),
                    tickers=tickers,
                )
            )
        return AdapterResult(records=records)
