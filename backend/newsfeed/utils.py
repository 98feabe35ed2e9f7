"""
Shared utility functions for the headline pipeline.
"""
from __future__ import annotations

import re
import time
from datetime import datetime, timezone


def now_utc() -> datetime:
    """
    Get current UTC datetime with timezone information.

    Returns:
        Current UTC datetime
    """
    return datetime.now(timezone.utc)


def now_ms() -> int:
    """Current time as integer milliseconds since the epoch."""
    return int(time.time() * 1000)


def normalize_text(text: str | None) -> str:
    """
    Normalize whitespace in text content.

    Args:
        text: Input text string (can be None)

    Returns:
        Normalized text with single spaces and trimmed edges
    """
    if not text:
        return ""
    return re.sub(r"\s+", " ", text).strip()


def slugify(name: str) -> str:
    """Lower-case a display name and join its words with underscores."""
    return re.sub(r"\s+", "_", name.strip().lower())


def make_record_id(source_name: str, fetched_at: int, index: int) -> str:
    """
    Build a record id from the origin's name, the fetch time and the item index.

    Args:
        source_name: Display name of the origin (e.g. "CNBC MARKETS")
        fetched_at: Fetch time in epoch milliseconds
        index: Position of the item within that origin's result

    Returns:
        Id such as ``cnbc_markets_1700000000000_0``
    """
    return f"{slugify(source_name)}_{fetched_at}_{index}"
