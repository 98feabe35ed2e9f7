"""
Refresh scheduling: decides which source types are due for a fetch.
"""
from __future__ import annotations

from typing import Dict, List, Optional

from newsfeed.config import FALLBACK_REFRESH_INTERVAL, REFRESH_INTERVALS, SOURCE_TYPES
from newsfeed.models import SourceMetadata
from newsfeed.utils import now_ms


def refresh_interval_for(source_type: str) -> int:
    """Configured refresh interval in minutes, with the fallback for unknown types."""
    return REFRESH_INTERVALS.get(source_type, FALLBACK_REFRESH_INTERVAL)


def default_metadata() -> Dict[str, SourceMetadata]:
    """Fresh metadata for every configured source type (never refreshed)."""
    return {
        source_type: SourceMetadata(refresh_interval_minutes=refresh_interval_for(source_type))
        for source_type in SOURCE_TYPES
    }


def is_due(
    source_type: str,
    metadata: Optional[SourceMetadata],
    force: bool = False,
    now: Optional[int] = None,
) -> bool:
    """
    Check whether a source type should be fetched.

    Args:
        source_type: Source type key (e.g. "rss", "finnhub")
        metadata: The type's current metadata, None if never seen; its
            ``refresh_interval_minutes`` sets the interval
        force: Ignore the interval and always fetch
        now: Current epoch ms (defaults to the wall clock)

    Returns:
        True when forced or when at least one interval has passed since the
        last refresh
    """
    if force:
        return True
    if metadata is None:
        return True

    now = now_ms() if now is None else now
    interval_ms = metadata.refresh_interval_minutes * 60 * 1000
    return now - metadata.last_refresh_at >= interval_ms


def due_source_types(
    metadata: Dict[str, SourceMetadata],
    force: bool = False,
    now: Optional[int] = None,
) -> List[str]:
    """All configured source types that are due, in configuration order."""
    now = now_ms() if now is None else now
    return [
        source_type
        for source_type in SOURCE_TYPES
        if is_due(source_type, metadata.get(source_type), force, now)
    ]
