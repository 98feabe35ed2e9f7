import pytest
from conftest import MINUTE
from fastapi.testclient import TestClient

from newsfeed.core.store import HeadlineStore
from newsfeed.main import WARNING_HEADER, app, get_service
from newsfeed.schemas import CATEGORIES
from newsfeed.services.headlines import NO_DATA_HEADLINE, HeadlineService
from newsfeed.utils import now_ms


@pytest.fixture
def adapters(make_record, fake_adapter):
    now = now_ms()
    news = [
        make_record("Bitcoin tops record", timestamp=now - MINUTE, category="crypto"),
        make_record("Dow closes higher", timestamp=now - 2 * MINUTE, category="markets"),
        make_record("Nvidia unveils chip", timestamp=now - 3 * MINUTE, category="tech"),
    ]
    social = [
        make_record("$TSLA squeeze incoming", timestamp=now - 4 * MINUTE, kind="social", category="markets"),
    ]
    return {
        "rss": [fake_adapter("rss", records=news)],
        "social": [fake_adapter("social", records=social)],
    }


@pytest.fixture
def service(tmp_path, adapters):
    return HeadlineService(store=HeadlineStore(str(tmp_path)), adapters=adapters)


@pytest.fixture
def client(service):
    app.dependency_overrides[get_service] = lambda: service
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_empty_store_returns_sentinel(client, adapters):
    response = client.get("/headlines")
    assert response.status_code == 200
    body = response.json()
    assert len(body) == 1
    assert body[0]["headline"] == NO_DATA_HEADLINE
    assert body[0]["originAdapter"] == "mock"
    assert adapters["rss"][0].calls == 0


def test_sentinel_survives_category_filter(client):
    body = client.get("/headlines", params={"category": "crypto"}).json()
    assert body[0]["headline"] == NO_DATA_HEADLINE


def test_forced_refresh_returns_flat_list(client):
    body = client.get("/headlines", params={"force": "true"}).json()
    assert [r["headline"] for r in body] == [
        "Bitcoin tops record",
        "Dow closes higher",
        "Nvidia unveils chip",
        "$TSLA squeeze incoming",
    ]
    assert set(body[0]) >= {"id", "headline", "source", "timestamp", "kind", "originAdapter", "category"}


def test_stored_records_served_without_refresh(client, adapters):
    client.get("/headlines", params={"live": "true"})
    body = client.get("/headlines").json()
    assert len(body) == 4
    assert adapters["rss"][0].calls == 1


def test_category_filter(client):
    body = client.get("/headlines", params={"force": "true", "category": "markets"}).json()
    assert [r["headline"] for r in body] == ["Dow closes higher", "$TSLA squeeze incoming"]

    body = client.get("/headlines", params={"category": "all"}).json()
    assert len(body) == 4


def test_separate_lists(client):
    body = client.get("/headlines", params={"force": "true", "separate": "true"}).json()
    assert [r["headline"] for r in body["news"]] == [
        "Bitcoin tops record",
        "Dow closes higher",
        "Nvidia unveils chip",
    ]
    assert [r["headline"] for r in body["social"]] == ["$TSLA squeeze incoming"]
    assert "sourceStatus" not in body


def test_separate_paginated_with_source_status(client):
    params = {"force": "true", "separate": "true", "paginated": "true", "pageSize": 2, "newsPage": 2}
    body = client.get("/headlines", params=params).json()

    news = body["news"]
    assert [r["headline"] for r in news["items"]] == ["Nvidia unveils chip"]
    assert news["total"] == 3
    assert news["totalPages"] == 2
    assert news["hasPrevPage"] and not news["hasNextPage"]
    assert body["social"]["page"] == 1
    assert body["social"]["total"] == 1

    status = body["sourceStatus"]
    assert status["refreshIntervals"]["rss"] == 15
    assert status["totalFetches"] == 5
    assert status["errors"]["rss"] == []


def test_paginated_flat(client):
    body = client.get("/headlines", params={"force": "true", "paginated": "true", "pageSize": 3}).json()
    assert body["total"] == 4
    assert body["pageSize"] == 3
    assert len(body["items"]) == 3
    assert "sourceStatus" in body


@pytest.mark.parametrize(
    "params",
    [{"pageSize": 0}, {"pageSize": 101}, {"newsPage": 0}, {"category": "sports"}],
)
def test_invalid_query_rejected(client, params):
    assert client.get("/headlines", params=params).status_code == 422


@pytest.mark.parametrize("category", ("all",) + CATEGORIES)
def test_every_record_category_is_a_valid_filter(client, category):
    assert client.get("/headlines", params={"category": category}).status_code == 200


def test_sources_endpoint(client):
    client.get("/headlines", params={"force": "true"})
    body = client.get("/sources").json()
    assert body["totalFetches"] == 5
    assert body["lastRefresh"]["rss"] > 0


def test_write_failure_reported_in_header(tmp_path, adapters):
    blocker = tmp_path / "blocker"
    blocker.write_text("")
    service = HeadlineService(store=HeadlineStore(str(blocker / "data")), adapters=adapters)
    app.dependency_overrides[get_service] = lambda: service
    try:
        response = TestClient(app).get("/headlines", params={"force": "true", "paginated": "true"})
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 200
    assert response.headers[WARNING_HEADER].startswith("Failed to write")
    body = response.json()
    assert body["total"] == 4
    assert body["warnings"][0].startswith("Failed to write")


class _BrokenService:
    async def refresh(self, force=False, now=None):
        raise RuntimeError("disk on fire")

    async def current(self, now=None):
        raise RuntimeError("disk on fire")


@pytest.mark.parametrize("params", [{}, {"force": "true", "separate": "true", "paginated": "true"}])
def test_pipeline_error_still_returns_sentinel(params):
    app.dependency_overrides[get_service] = lambda: _BrokenService()
    try:
        response = TestClient(app).get("/headlines", params=params)
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 200
    assert response.headers[WARNING_HEADER] == "pipeline error"
    body = response.json()
    if params:
        assert body["news"]["items"][0]["headline"] == NO_DATA_HEADLINE
        assert body["social"]["items"] == []
        assert "sourceStatus" not in body
    else:
        assert body[0]["headline"] == NO_DATA_HEADLINE
        assert body[0]["summary"] == "Headline pipeline error: RuntimeError"
