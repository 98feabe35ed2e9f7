"""
File: newsfeed/models.py
Internal data structures passed between scheduler, coordinator and store.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Literal

from newsfeed.schemas import Record


JsonDict = Dict[str, Any]
OutcomeStatus = Literal["ok", "timeout", "error"]


@dataclass
class SourceMetadata:
    """Refresh bookkeeping for one source type.

    Values are treated as immutable by everything except the store; the
    coordinator returns updated copies via ``recorded_fetch``.
    """

    refresh_interval_minutes: int
    last_refresh_at: int = 0  # epoch ms, 0 = never
    recent_errors: List[str] = field(default_factory=list)
    total_fetch_count: int = 0

    def recorded_fetch(self, at: int, errors: List[str], max_errors: int) -> "SourceMetadata":
        combined = [*self.recent_errors, *errors]
        return replace(
            self,
            last_refresh_at=at,
            recent_errors=combined[-max_errors:] if max_errors > 0 else [],
            total_fetch_count=self.total_fetch_count + 1,
        )

    def to_json(self) -> JsonDict:
        return {
            "lastRefreshAt": self.last_refresh_at,
            "refreshIntervalMinutes": self.refresh_interval_minutes,
            "recentErrors": list(self.recent_errors),
            "totalFetchCount": self.total_fetch_count,
        }

    @classmethod
    def from_json(cls, data: JsonDict, refresh_interval_minutes: int) -> "SourceMetadata":
        # The interval is configuration, never read back from disk.
        return cls(
            refresh_interval_minutes=refresh_interval_minutes,
            last_refresh_at=int(data.get("lastRefreshAt", 0) or 0),
            recent_errors=[str(e) for e in data.get("recentErrors", []) or []],
            total_fetch_count=int(data.get("totalFetchCount", 0) or 0),
        )


@dataclass
class AdapterResult:
    """What a single adapter fetch produced. Adapters never raise."""

    records: List[Record] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)


@dataclass
class SourceOutcome:
    """Tagged result of one adapter's concurrent unit of work."""

    source_type: str
    adapter: str
    status: OutcomeStatus
    records: List[Record] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    elapsed_ms: int = 0

    @property
    def ok(self) -> bool:
        return self.status == "ok"


@dataclass
class FetchReport:
    records: List[Record]
    outcomes: List[SourceOutcome]
    metadata: Dict[str, SourceMetadata]


@dataclass
class StoreState:
    records: List[Record]
    metadata: Dict[str, SourceMetadata]


__all__ = [
    "AdapterResult",
    "FetchReport",
    "JsonDict",
    "SourceMetadata",
    "SourceOutcome",
    "StoreState",
]
