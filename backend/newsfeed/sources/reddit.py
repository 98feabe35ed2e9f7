"""
File: newsfeed/sources/reddit.py
Reddit subreddit JSON fetcher (unauthenticated) for the social feed.
"""

from __future__ import annotations

import asyncio
from typing import List, Optional, Sequence, Tuple

import httpx

from newsfeed.config import REDDIT_ITEMS_PER_SUBREDDIT, SOCIAL_SUBREDDITS, SOCIAL_TIMEOUT_MS
from newsfeed.models import AdapterResult
from newsfeed.schemas import Record
from newsfeed.sources.common import SourceAdapter, extract_cashtags, guarded_call
from newsfeed.utils import normalize_text


class RedditAdapter(SourceAdapter):
    name = "reddit"
    source_type = "social"
    display_name = "Reddit"
    kind = "social"
    timeout_ms = SOCIAL_TIMEOUT_MS

    def __init__(
        self,
        subreddits: Optional[Sequence[str]] = None,
        user_agent: str = "headline-feed/0.1",
        client: Optional[httpx.AsyncClient] = None,
    ):
        super().__init__(client)
        self.subreddits = list(subreddits if subreddits is not None else SOCIAL_SUBREDDITS)
        self.user_agent = user_agent

    async def _load_posts(self, client: httpx.AsyncClient, subreddit: str) -> list:
        url = f"https://www.reddit.com/r/{subreddit}/new.json"
        r = await client.get(url, params={"limit": 10}, headers={"User-Agent": self.user_agent})
        r.raise_for_status()
        data = r.json()
        return [child.get("data", {}) for child in data.get("data", {}).get("children", [])]

    async def _load_records(self, client: httpx.AsyncClient, subreddit: str, fetched_at: int) -> List[Record]:
        source_name = f"r/{subreddit}"
        posts = await self._load_posts(client, subreddit)

        # pinned mod posts are not news
        posts = [p for p in posts if not p.get("stickied")]

        records: List[Record] = []
        for index, p in enumerate(posts[:REDDIT_ITEMS_PER_SUBREDDIT]):
            title = normalize_text(p.get("title", ""))
            if not title:
                continue
            selftext = normalize_text(p.get("selftext", ""))
            permalink = p.get("permalink", "")
            link = f"https://www.reddit.com{permalink}" if permalink else p.get("url", "")

            records.append(
                self.build_record(
                    source_name=source_name,
                    headline=title,
                    fetched_at=fetched_at,
                    index=index,
                    published=p.get("created_utc"),
                    url=link,
                    summary=selftext,
                    tickers=extract_cashtags(f"{title} {selftext}"),
                )
            )
        return records

    async def _fetch_one(
        self, client: httpx.AsyncClient, subreddit: str, timeout_ms: int, fetched_at: int
    ) -> Tuple[List[Record], Optional[str]]:
        # a malformed post costs only its own subreddit
        records, error = await guarded_call(
            f"r/{subreddit}", self._load_records(client, subreddit, fetched_at), timeout_ms
        )
        return records or [], error

    async def _fetch(self, client: httpx.AsyncClient, timeout_ms: int, fetched_at: int) -> AdapterResult:
        results = await asyncio.gather(
            *(self._fetch_one(client, sub, timeout_ms, fetched_at) for sub in self.subreddits)
        )

        result = AdapterResult()
        for records, error in results:
            result.records.extend(records)
            if error:
                result.errors.append(error)
        return result
