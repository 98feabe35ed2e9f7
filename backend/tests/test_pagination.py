import pytest
from conftest import MINUTE, NOW

from newsfeed.core.pagination import filter_records, paginate, partition


@pytest.fixture
def records(make_record):
    return [make_record(f"story {i}", timestamp=NOW - i * MINUTE) for i in range(25)]


def test_last_partial_page(records):
    page = paginate(records, page=3, page_size=10)
    assert len(page.items) == 5
    assert page.items[0] is records[20]
    assert page.total == 25
    assert page.total_pages == 3
    assert not page.has_next_page
    assert page.has_prev_page


def test_first_page(records):
    page = paginate(records, page=1, page_size=10)
    assert page.items == records[:10]
    assert page.has_next_page
    assert not page.has_prev_page


def test_page_past_the_end_is_empty(records):
    page = paginate(records, page=4, page_size=10)
    assert page.items == []
    assert page.total == 25
    assert page.total_pages == 3
    assert not page.has_next_page
    assert page.has_prev_page


def test_empty_list():
    page = paginate([], page=1, page_size=10)
    assert page.items == []
    assert page.total_pages == 0
    assert not page.has_next_page
    assert not page.has_prev_page


@pytest.mark.parametrize("page, page_size", [(0, 10), (-1, 10), (1, 0)])
def test_invalid_arguments(records, page, page_size):
    with pytest.raises(ValueError):
        paginate(records, page=page, page_size=page_size)


def test_page_json_uses_camel_case(records):
    data = paginate(records, page=2, page_size=10).to_json()
    assert set(data) == {"items", "total", "page", "pageSize", "totalPages", "hasNextPage", "hasPrevPage"}
    assert data["items"][0]["originAdapter"] == "test"


def test_filter_and_partition(make_record):
    records = [
        make_record("btc news", kind="news", category="crypto"),
        make_record("stocks chatter", kind="social", category="markets"),
        make_record("crypto chatter", kind="social", category="crypto"),
    ]

    assert filter_records(records, category="crypto") == [records[0], records[2]]
    assert filter_records(records, kind="social", category="crypto") == [records[2]]
    assert filter_records(records, category="all") == records
    assert filter_records(records) == records

    groups = partition(records)
    assert groups["news"] == [records[0]]
    assert groups["social"] == records[1:]
