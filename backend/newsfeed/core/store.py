"""
Merge & retention store.

``merge`` folds freshly fetched records into the existing set: expired
records are dropped, duplicates are rejected, survivors are sorted newest
first and capped. ``HeadlineStore`` persists the result as two JSON files.

Dedup compares every candidate against every accumulated record, which is
O(existing * new). That is fine for a store capped at a few hundred records
and a few dozen new items per cycle; it is not meant to scale past that.
"""
from __future__ import annotations

import json
import logging
import os
import tempfile
from typing import Any, Dict, Iterable, List, Optional

from pydantic import ValidationError

from newsfeed.config import (
    DATA_DIR,
    HEADLINES_FILENAME,
    MAX_STORE_SIZE,
    METADATA_FILENAME,
    RETENTION_WINDOW_MS,
    SIMILARITY_THRESHOLD,
)
from newsfeed.core.categorizer import classify
from newsfeed.core.scheduler import default_metadata, refresh_interval_for
from newsfeed.core.similarity import similarity
from newsfeed.errors import StoreWriteError
from newsfeed.models import SourceMetadata, StoreState
from newsfeed.schemas import Record
from newsfeed.utils import normalize_text, now_ms

logger = logging.getLogger(__name__)


def _headline_key(headline: str) -> str:
    return normalize_text(headline).lower()


def is_duplicate(
    candidate: Record,
    existing: Iterable[Record],
    threshold: float = SIMILARITY_THRESHOLD,
) -> bool:
    """
    Check a candidate against already-admitted records.

    Rules, cheapest first: same id, exact headline ignoring case and whitespace,
    identical non-empty URL, then headline similarity above ``threshold``.

    Args:
        candidate: Newly fetched record
        existing: Records already in the result set
        threshold: Similarity above which headlines count as the same story

    Returns:
        True if any existing record matches
    """
    key = _headline_key(candidate.headline)
    for record in existing:
        if record.id == candidate.id:
            return True
        if _headline_key(record.headline) == key:
            return True
        if candidate.url and record.url and candidate.url == record.url:
            return True
        if similarity(record.headline, candidate.headline) > threshold:
            return True
    return False


def apply_retention(records: Iterable[Record], now: int, window_ms: int = RETENTION_WINDOW_MS) -> List[Record]:
    """Keep only records strictly newer than ``now - window_ms``."""
    cutoff = now - window_ms
    return [record for record in records if record.timestamp > cutoff]


def merge(
    existing: List[Record],
    new: List[Record],
    now: Optional[int] = None,
    max_size: int = MAX_STORE_SIZE,
    window_ms: int = RETENTION_WINDOW_MS,
    threshold: float = SIMILARITY_THRESHOLD,
) -> List[Record]:
    """
    Merge newly fetched records into the existing set.

    Near-duplicates keep the record admitted first; a later candidate never
    replaces it. Re-merging the same batch is a no-op.

    Args:
        existing: Records currently in the store
        new: Records from the latest fetch cycle
        now: Merge time in epoch ms (defaults to the wall clock)
        max_size: Maximum number of records kept
        window_ms: Retention window in milliseconds
        threshold: Similarity threshold for near-duplicates

    Returns:
        New list sorted by timestamp descending, at most ``max_size`` long
    """
    now = now_ms() if now is None else now

    result = apply_retention(existing, now, window_ms)
    for candidate in apply_retention(new, now, window_ms):
        if not is_duplicate(candidate, result, threshold):
            result.append(candidate)

    result.sort(key=lambda record: record.timestamp, reverse=True)
    return result[:max_size]


def backfill_record(raw: Dict[str, Any]) -> Dict[str, Any]:
    """
    Fill fields that older persisted records may lack.

    Args:
        raw: Record as read from disk (camelCase keys)

    Returns:
        Copy with ``kind``, ``originAdapter`` and ``category`` populated
    """
    data = dict(raw)
    source = str(data.get("source") or "")
    is_social = source.startswith("@") or source.startswith("r/")

    if not data.get("kind"):
        data["kind"] = "social" if is_social else "news"
    if not data.get("originAdapter"):
        if source == "Finnhub":
            data["originAdapter"] = "finnhub"
        elif is_social:
            data["originAdapter"] = "social-rss"
        elif source in ("Live Mock Data", "System Message"):
            data["originAdapter"] = "mock"
        else:
            data["originAdapter"] = "rss-feeds"
    if not data.get("category"):
        data["category"] = classify(str(data.get("headline") or ""))
    return data


def _atomic_write_json(path: str, payload: Any) -> None:
    dest_dir = os.path.dirname(path) or "."
    os.makedirs(dest_dir, exist_ok=True)
    fd, tmp = tempfile.mkstemp(dir=dest_dir, suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(payload, f, ensure_ascii=False, indent=2)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp, path)
    except BaseException:
        try:
            os.unlink(tmp)
        except OSError:
            pass
        raise


class HeadlineStore:
    """Durable record set plus per-source metadata, kept as JSON files."""

    def __init__(self, data_dir: str = DATA_DIR):
        self.data_dir = data_dir
        self.headlines_path = os.path.join(data_dir, HEADLINES_FILENAME)
        self.metadata_path = os.path.join(data_dir, METADATA_FILENAME)

    def _read_json(self, path: str) -> Any:
        """Read a JSON file, returning None when it is missing or unreadable."""
        try:
            with open(path, "r", encoding="utf-8") as f:
                return json.load(f)
        except FileNotFoundError:
            return None
        except (OSError, ValueError) as e:
            logger.warning("Could not read %s, treating as empty: %s", path, e)
            return None

    def load_records(self) -> List[Record]:
        raw = self._read_json(self.headlines_path)
        if not isinstance(raw, list):
            return []

        records: List[Record] = []
        for entry in raw:
            if not isinstance(entry, dict):
                continue
            try:
                records.append(Record.model_validate(backfill_record(entry)))
            except ValidationError as e:
                logger.warning("Skipping malformed stored record %s: %s", entry.get("id"), e)
        return records

    def load_metadata(self) -> Dict[str, SourceMetadata]:
        metadata = default_metadata()
        raw = self._read_json(self.metadata_path)
        if not isinstance(raw, dict):
            return metadata

        sources = raw.get("sources")
        if not isinstance(sources, dict):
            return metadata
        for source_type, entry in sources.items():
            if not isinstance(entry, dict):
                continue
            try:
                metadata[source_type] = SourceMetadata.from_json(entry, refresh_interval_for(source_type))
            except (TypeError, ValueError) as e:
                logger.warning("Ignoring malformed metadata for %s: %s", source_type, e)
        return metadata

    def load(self) -> StoreState:
        """Read persisted state. Missing or unreadable files give an empty store."""
        return StoreState(records=self.load_records(), metadata=self.load_metadata())

    def save(self, state: StoreState) -> None:
        """
        Persist records and metadata.

        Raises:
            StoreWriteError: If either file cannot be written
        """
        targets = (
            (self.headlines_path, [record.to_json() for record in state.records]),
            (
                self.metadata_path,
                {"sources": {name: meta.to_json() for name, meta in state.metadata.items()}},
            ),
        )
        for path, payload in targets:
            try:
                _atomic_write_json(path, payload)
            except OSError as e:
                raise StoreWriteError(path, str(e)) from e
