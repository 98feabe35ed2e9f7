from conftest import NOW

from newsfeed.core.scheduler import default_metadata
from newsfeed.models import SourceMetadata
from newsfeed.settings import Settings
from newsfeed.sources import collector
from newsfeed.sources.alphavantage import AlphaVantageAdapter
from newsfeed.sources.newsdata import NewsDataAdapter


async def test_partial_failure_keeps_finished_sources(make_record, fake_adapter):
    adapters = {
        "rss": [fake_adapter("rss", records=[make_record("rss story")])],
        "finnhub": [fake_adapter("finnhub", records=[make_record("late story")], delay=5)],
        "newsapi": [fake_adapter("newsapi", records=[make_record("api story")])],
        "marketaux": [fake_adapter("marketaux", delay=5)],
    }

    report = await collector.run(
        ["rss", "finnhub", "newsapi", "marketaux"],
        default_metadata(),
        per_source_timeout_ms=100,
        adapters=adapters,
        now=NOW,
    )

    assert sorted(r.headline for r in report.records) == ["api story", "rss story"]
    statuses = {o.source_type: o.status for o in report.outcomes}
    assert statuses == {"rss": "ok", "finnhub": "timeout", "newsapi": "ok", "marketaux": "timeout"}

    errors = [e for o in report.outcomes for e in o.errors]
    assert errors == ["finnhub: timed out after 100ms", "marketaux: timed out after 100ms"]

    for source_type in ("rss", "finnhub", "newsapi", "marketaux"):
        meta = report.metadata[source_type]
        assert meta.last_refresh_at == NOW
        assert meta.total_fetch_count == 1
    assert report.metadata["finnhub"].recent_errors == ["finnhub: timed out after 100ms"]
    assert report.metadata["rss"].recent_errors == []


async def test_input_metadata_is_not_modified(make_record, fake_adapter):
    metadata = default_metadata()
    adapters = {"rss": [fake_adapter("rss", records=[make_record("rss story")], errors=["CNBC: HTTP 500"])]}

    report = await collector.run(["rss"], metadata, adapters=adapters, now=NOW)

    assert metadata["rss"].last_refresh_at == 0
    assert metadata["rss"].recent_errors == []
    assert report.metadata["rss"].recent_errors == ["CNBC: HTTP 500"]
    assert report.metadata is not metadata


async def test_only_due_source_types_run(fake_adapter):
    rss = fake_adapter("rss")
    social = fake_adapter("social")
    metadata = default_metadata()

    report = await collector.run(["rss"], metadata, adapters={"rss": [rss], "social": [social]}, now=NOW)

    assert rss.calls == 1
    assert social.calls == 0
    assert report.metadata["social"] == metadata["social"]


async def test_raising_adapter_is_contained(fake_adapter):
    adapters = {"rss": [fake_adapter("rss", raises=RuntimeError("kaput"))]}

    report = await collector.run(["rss"], default_metadata(), adapters=adapters, now=NOW)

    assert report.records == []
    assert report.outcomes[0].status == "error"
    assert report.metadata["rss"].recent_errors == ["rss: kaput"]


async def test_errors_without_records_mark_outcome_failed(fake_adapter):
    adapters = {"rss": [fake_adapter("rss", errors=["CNBC: HTTP 500"])]}
    report = await collector.run(["rss"], default_metadata(), adapters=adapters, now=NOW)
    assert not report.outcomes[0].ok


async def test_recent_errors_are_bounded(fake_adapter):
    metadata = {"rss": SourceMetadata(15, recent_errors=[f"old {i}" for i in range(10)], total_fetch_count=4)}
    adapters = {"rss": [fake_adapter("rss", errors=["new error"])]}

    report = await collector.run(["rss"], metadata, adapters=adapters, now=NOW)

    meta = report.metadata["rss"]
    assert len(meta.recent_errors) == 10
    assert meta.recent_errors[0] == "old 1"
    assert meta.recent_errors[-1] == "new error"
    assert meta.total_fetch_count == 5


async def test_source_type_without_adapters_still_records_a_fetch():
    report = await collector.run(["social"], default_metadata(), adapters={}, now=NOW)
    assert report.records == []
    assert report.outcomes == []
    assert report.metadata["social"].last_refresh_at == NOW


def test_build_adapters_registry():
    registry = collector.build_adapters(Settings(NEWSAPI_API_KEY="k", ALPHAVANTAGE_API_KEY=""))
    assert list(registry) == ["rss", "finnhub", "newsapi", "marketaux", "social"]
    newsapi = registry["newsapi"]
    assert [type(a) for a in newsapi] == [NewsDataAdapter, AlphaVantageAdapter]
    assert newsapi[0].enabled
    assert not newsapi[1].enabled
    assert {a.source_type for a in newsapi} == {"newsapi"}
