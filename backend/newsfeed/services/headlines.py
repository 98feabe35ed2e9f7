"""
Aggregation service: runs refresh cycles against the store and applies the
caller-facing policies (sentinel record, source status).
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from newsfeed.config import SOURCE_TIMEOUT_MS
from newsfeed.core.scheduler import due_source_types
from newsfeed.core.store import HeadlineStore, apply_retention, merge
from newsfeed.errors import StoreWriteError
from newsfeed.models import SourceMetadata, SourceOutcome, StoreState
from newsfeed.schemas import Record, SourceStatus
from newsfeed.sources import collector
from newsfeed.utils import now_ms

logger = logging.getLogger(__name__)

NO_DATA_HEADLINE = "[NO DATA] No headlines available yet - refresh to try again"


def no_data_record(reason: str, now: Optional[int] = None) -> Record:
    """
    Build the sentinel record returned when there is nothing to show.

    Args:
        reason: Explanation placed in the record's summary
        now: Timestamp for the record (defaults to the wall clock)

    Returns:
        Record from the "System Message" source, marked as mock data
    """
    now = now_ms() if now is None else now
    return Record(
        id=f"no_data_{now}",
        headline=NO_DATA_HEADLINE,
        source="System Message",
        timestamp=now,
        summary=reason,
        kind="news",
        origin_adapter="mock",
        category="general",
    )


def build_source_status(metadata: Dict[str, SourceMetadata]) -> SourceStatus:
    return SourceStatus(
        last_refresh={name: meta.last_refresh_at for name, meta in metadata.items()},
        refresh_intervals={name: meta.refresh_interval_minutes for name, meta in metadata.items()},
        errors={name: list(meta.recent_errors) for name, meta in metadata.items()},
        total_fetches=sum(meta.total_fetch_count for meta in metadata.values()),
    )


@dataclass
class RefreshResult:
    records: List[Record]
    metadata: Dict[str, SourceMetadata]
    outcomes: List[SourceOutcome] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def status(self) -> SourceStatus:
        return build_source_status(self.metadata)

    def records_or_sentinel(self, now: Optional[int] = None) -> List[Record]:
        """The records, or a single sentinel record when there are none."""
        if self.records:
            return self.records
        return [no_data_record("No headlines have been fetched in the last 24 hours.", now)]


class HeadlineService:
    """Owns the store's read-modify-write cycle.

    Refresh cycles are serialized with a lock so two requests never merge
    into the same store at once.
    """

    def __init__(
        self,
        store: Optional[HeadlineStore] = None,
        adapters: Optional[collector.AdapterRegistry] = None,
        per_source_timeout_ms: int = SOURCE_TIMEOUT_MS,
    ):
        self.store = store or HeadlineStore()
        self.adapters = adapters
        self.per_source_timeout_ms = per_source_timeout_ms
        self._lock = asyncio.Lock()

    async def _persist(self, state: StoreState) -> List[str]:
        try:
            await asyncio.to_thread(self.store.save, state)
        except StoreWriteError as e:
            logger.error("Store write failed, serving unsaved result: %s", e)
            return [str(e)]
        return []

    async def refresh(self, force: bool = False, now: Optional[int] = None) -> RefreshResult:
        """
        Run one fetch-and-merge cycle.

        Only due source types are fetched unless ``force`` is set. The merge
        and retention pass runs even when nothing is due.

        Args:
            force: Fetch every source type regardless of its interval
            now: Cycle time in epoch ms (defaults to the wall clock)

        Returns:
            RefreshResult with the merged records, updated metadata, the
            per-adapter outcomes and any persistence warnings
        """
        async with self._lock:
            state = await asyncio.to_thread(self.store.load)
            now = now_ms() if now is None else now

            due = due_source_types(state.metadata, force, now)
            if due:
                logger.info("%s refresh for: %s", "Forced" if force else "Scheduled", ", ".join(due))
                report = await collector.run(
                    due,
                    state.metadata,
                    per_source_timeout_ms=self.per_source_timeout_ms,
                    adapters=self.adapters,
                    now=now,
                )
                fetched, metadata, outcomes = report.records, report.metadata, report.outcomes
            else:
                logger.debug("No source due for refresh")
                fetched, metadata, outcomes = [], state.metadata, []

            merged = merge(state.records, fetched, now)
            retained = len(apply_retention(state.records, now))
            logger.info(
                "Merged %d fetched headlines: %d unique added, %d total",
                len(fetched),
                max(0, len(merged) - retained),
                len(merged),
            )

            warnings = await self._persist(StoreState(records=merged, metadata=metadata))
            return RefreshResult(records=merged, metadata=metadata, outcomes=outcomes, warnings=warnings)

    async def current(self, now: Optional[int] = None) -> RefreshResult:
        """Read the store without fetching; expired records are filtered out."""
        async with self._lock:
            state = await asyncio.to_thread(self.store.load)
        now = now_ms() if now is None else now
        return RefreshResult(records=apply_retention(state.records, now), metadata=state.metadata)
