"""
Common utilities and the base class for source adapters.
"""
from __future__ import annotations

import asyncio
import logging
import re
from contextlib import asynccontextmanager
from datetime import timezone
from typing import Any, AsyncIterator, Awaitable, Dict, List, Optional, Tuple, TypeVar

import httpx
from dateutil import parser as dateparser

from newsfeed.config import API_TIMEOUT_MS, HTTP_HEADERS
from newsfeed.core.categorizer import classify
from newsfeed.models import AdapterResult
from newsfeed.schemas import Kind, Record
from newsfeed.utils import make_record_id, normalize_text, now_ms

logger = logging.getLogger(__name__)

T = TypeVar("T")

_SECRET_PARAMS = re.compile(r"(apikey|api_token|token)=[^&\s'\"]+", flags=re.IGNORECASE)
_TAGS = re.compile(r"<[^>]+>")
_CASHTAG = re.compile(r"\$([A-Z]{1,5})\b")

SUMMARY_MAX_CHARS = 400


def sanitize_error(error: BaseException) -> str:
    """Render an exception as text with API keys in URLs masked."""
    return _SECRET_PARAMS.sub(r"\1=***", str(error) or type(error).__name__)


def clean_text(text: Optional[str]) -> str:
    """
    Clean and normalize text content.

    Args:
        text: Raw text string or None

    Returns:
        Text with HTML tags removed and whitespace collapsed
    """
    if not text:
        return ""
    return normalize_text(_TAGS.sub(" ", text))


def clean_summary(text: Optional[str]) -> Optional[str]:
    summary = clean_text(text)
    return summary[:SUMMARY_MAX_CHARS] if summary else None


def parse_timestamp_ms(value: Any, default: int) -> int:
    """
    Convert an origin-reported time to epoch milliseconds.

    Args:
        value: Epoch seconds/ms, a date string in any common format, or None
        default: Value used when the time is missing or unparseable

    Returns:
        Epoch milliseconds
    """
    if value is None or value == "":
        return default

    if isinstance(value, (int, float)) and not isinstance(value, bool):
        # Values above 1e12 are already milliseconds
        return int(value) if value > 1e12 else int(value * 1000)

    try:
        parsed = dateparser.parse(str(value))
    except (ValueError, OverflowError):
        return default

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return int(parsed.astimezone(timezone.utc).timestamp() * 1000)


def extract_cashtags(text: str) -> List[str]:
    """Ticker symbols written as cashtags (``$TSLA``), de-duplicated in order."""
    return list(dict.fromkeys(_CASHTAG.findall(text or "")))


async def guarded_call(label: str, call: Awaitable[T], timeout_ms: int) -> Tuple[Optional[T], Optional[str]]:
    """
    Race a call against a timer and convert any failure into an error string.

    A timer win cancels the call; whatever it would have returned is dropped.

    Args:
        label: Name used as the error prefix (e.g. "Finnhub")
        call: Awaitable performing the retrieval
        timeout_ms: Deadline in milliseconds

    Returns:
        ``(result, None)`` on success, ``(None, error)`` on failure
    """
    try:
        return await asyncio.wait_for(call, timeout=timeout_ms / 1000), None
    except asyncio.TimeoutError:
        return None, f"{label}: timed out after {timeout_ms}ms"
    except httpx.HTTPStatusError as e:
        return None, f"{label}: HTTP {e.response.status_code}"
    except Exception as e:
        return None, f"{label}: {sanitize_error(e)}"


class SourceAdapter:
    """Retrieves and normalizes records from one family of external sources.

    Subclasses implement ``_fetch``. ``fetch`` never raises: anything that
    escapes ``_fetch`` becomes an error string on the result.
    """

    name: str = "adapter"            # originAdapter value on produced records
    source_type: str = "rss"          # scheduling key
    display_name: str = "Source"      # Record.source
    kind: Kind = "news"
    timeout_ms: int = API_TIMEOUT_MS

    def __init__(self, client: Optional[httpx.AsyncClient] = None):
        self._client = client

    @property
    def enabled(self) -> bool:
        return True

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._client is not None:
            yield self._client
            return
        async with httpx.AsyncClient(headers=HTTP_HEADERS, follow_redirects=True) as client:
            yield client

    async def fetch(self, timeout_ms: Optional[int] = None) -> AdapterResult:
        """
        Fetch and normalize the latest items.

        Args:
            timeout_ms: Per-call deadline, defaults to the adapter's own

        Returns:
            AdapterResult with normalized records and error strings
        """
        if not self.enabled:
            logger.debug("%s skipped: not configured", self.display_name)
            return AdapterResult()

        timeout_ms = timeout_ms or self.timeout_ms
        fetched_at = now_ms()
        try:
            async with self._session() as client:
                result = await self._fetch(client, timeout_ms, fetched_at)
        except Exception as e:
            logger.warning("%s failed: %s", self.display_name, sanitize_error(e))
            return AdapterResult(errors=[f"{self.display_name}: {sanitize_error(e)}"])

        if result.errors:
            logger.info("%s: %d items, %d errors", self.display_name, len(result.records), len(result.errors))
        else:
            logger.info("%s: %d items", self.display_name, len(result.records))
        return result

    async def _fetch(self, client: httpx.AsyncClient, timeout_ms: int, fetched_at: int) -> AdapterResult:
        raise NotImplementedError

    async def _get_json(self, client: httpx.AsyncClient, url: str, params: Optional[Dict[str, Any]] = None) -> Any:
        response = await client.get(url, params=params)
        response.raise_for_status()
        return response.json()

    def build_record(
        self,
        *,
        source_name: str,
        headline: str,
        fetched_at: int,
        index: int,
        published: Any = None,
        url: Optional[str] = None,
        summary: Optional[str] = None,
        sentiment_score: Optional[float] = None,
        tickers: Optional[List[str]] = None,
        category_hint: Optional[str] = None,
    ) -> Record:
        """Normalize one raw item into a Record."""
        category = classify(headline)
        if category == "general" and category_hint:
            category = category_hint

        return Record(
            id=make_record_id(source_name, fetched_at, index),
            headline=headline,
            source=source_name,
            timestamp=parse_timestamp_ms(published, fetched_at),
            url=url or None,
            summary=clean_summary(summary),
            sentiment_score=sentiment_score,
            tickers=tickers or None,
            kind=self.kind,
            origin_adapter=self.name,
            category=category,
        )


class KeyedSourceAdapter(SourceAdapter):
    """Adapter for an API that needs a key. Without a key it is skipped."""

    def __init__(self, api_key: str = "", client: Optional[httpx.AsyncClient] = None):
        super().__init__(client)
        self.api_key = api_key

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    async def _call(self, client: httpx.AsyncClient, url: str, params: Dict[str, Any], timeout_ms: int) -> Tuple[Any, Optional[str]]:
        return await guarded_call(self.display_name, self._get_json(client, url, params), timeout_ms)
