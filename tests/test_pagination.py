"""Pagination math and the response envelope."""

import pytest

from betaintel.listing.pagination import ListMeta, ListResponse, last_page, paginate


@pytest.mark.parametrize(
    "total,limit,expected",
    [(25, 10, 3), (0, 10, 1), (10, 10, 1), (11, 10, 2), (1, 1, 1), (1000, 7, 143)],
)
def test_last_page(total, limit, expected):
    assert last_page(total, limit) == expected


def test_offset_for_page():
    window = paginate(total=25, page=3, limit=10)
    assert (window.offset, window.limit, window.last_page) == (20, 10, 3)


def test_page_past_the_end_is_not_an_error():
    window = paginate(total=25, page=9, limit=10)
    assert window.offset == 80
    assert window.last_page == 3


def test_meta_merges_echoed_filters():
    meta = ListMeta(total=3, page=1, limit=10, last_page=1, sort_by="created_at", extra={"profession_id": 2})
    data = meta.to_dict()
    assert data["profession_id"] == 2
    assert "extra" not in data


def test_body_uses_resource_items_key():
    response = ListResponse(items=[{"id": 1}], meta=ListMeta(total=1))
    body = response.to_body("users")
    assert body["users"] == [{"id": 1}]
    assert body["meta"]["total"] == 1
    assert "error" not in body


def test_failure_body_carries_error():
    response = ListResponse(status_code=500, error="boom")
    assert not response.ok
    assert response.to_body("data") == {
        "data": [],
        "meta": ListMeta().to_dict(),
        "error": "boom",
    }
