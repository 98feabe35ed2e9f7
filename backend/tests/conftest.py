from __future__ import annotations

import asyncio
import itertools
from typing import Iterable, Optional

import pytest

from newsfeed.models import AdapterResult
from newsfeed.schemas import Record

NOW = 1_700_000_000_000
MINUTE = 60_000
HOUR = 60 * MINUTE

_ids = itertools.count()


class FakeAdapter:
    """Stands in for a source adapter; counts calls and can stall or blow up."""

    def __init__(
        self,
        name: str,
        records: Iterable[Record] = (),
        errors: Iterable[str] = (),
        delay: float = 0.0,
        raises: Optional[Exception] = None,
    ):
        self.name = name
        self.display_name = name
        self.records = list(records)
        self.errors = list(errors)
        self.delay = delay
        self.raises = raises
        self.calls = 0

    async def fetch(self, timeout_ms: Optional[int] = None) -> AdapterResult:
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.raises is not None:
            raise self.raises
        return AdapterResult(records=list(self.records), errors=list(self.errors))


@pytest.fixture
def make_record():
    def _make(
        headline: str,
        timestamp: int = NOW,
        url: Optional[str] = None,
        kind: str = "news",
        category: str = "general",
        source: str = "Test Source",
        record_id: Optional[str] = None,
        **extra,
    ) -> Record:
        return Record(
            id=record_id or f"test_{next(_ids)}",
            headline=headline,
            source=source,
            timestamp=timestamp,
            url=url,
            kind=kind,
            origin_adapter="test",
            category=category,
            **extra,
        )

    return _make


@pytest.fixture
def fake_adapter():
    return FakeAdapter
