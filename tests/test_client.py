"""HTTP listing client against the ASGI app, and the CLI helpers."""

import argparse

import httpx
import pytest

from betaintel.listing.client import HTTPListingClient, ListingPage, StaticTokenSession
from betaintel.listing.exceptions import ListingTransportError
from betaintel.listing.export import BulkExportOrchestrator, ExportStrategy
from betaintel.scripts.export_listing import parse_params


def make_client(app, token=None):
    transport = httpx.ASGITransport(app=app)
    http = httpx.AsyncClient(transport=transport, base_url="http://test")
    return HTTPListingClient("http://test/api/v1", session=StaticTokenSession(token), client=http)


def test_page_parsing_accepts_every_items_key():
    assert ListingPage.from_body({"users": [{"a": 1}], "meta": {"total": 7}}).total == 7
    assert ListingPage.from_body({"events": [{"a": 1}]}).items == [{"a": 1}]
    assert ListingPage.from_body({"data": [], "total": "3"}).total == 3


async def test_fetch_page_with_token(app, auth_headers):
    token = auth_headers["Authorization"].split()[1]
    client = make_client(app, token)

    page = await client.fetch_page("events", {"limit": "5"})

    assert len(page.items) == 5
    assert page.total == 25
    assert page.meta["last_page"] == 5


async def test_unauthorized_page_raises_transport_error(app):
    client = make_client(app)

    with pytest.raises(ListingTransportError) as exc_info:
        await client.fetch_page("events", {})

    assert exc_info.value.status_code == 401


async def test_connection_failure_raises_transport_error():
    client = HTTPListingClient("http://127.0.0.1:9", timeout=0.5)
    with pytest.raises(ListingTransportError):
        await client.fetch_page("professions", {})


async def test_orchestrator_over_http(app):
    client = make_client(app)
    orchestrator = BulkExportOrchestrator(client, "professions", page_size=10, request_delay=0)

    result = await orchestrator.export_all({"sortBy": "profession_id", "sortDirection": "asc"})

    assert result.ok
    assert result.strategy is ExportStrategy.DIRECT
    assert result.row_count == 25
    assert result.csv.splitlines()[1].startswith('"1","Profissão 1"')


def test_parse_params():
    assert parse_params(["from=2024-03-01", "profession_id=3", "from=2024-03-02"]) == {
        "from": "2024-03-02",
        "profession_id": "3",
    }
    assert parse_params(["advanced_filters=[{\"value\": \"a=b\"}]"])["advanced_filters"] == '[{"value": "a=b"}]'


def test_parse_params_rejects_bare_keys():
    with pytest.raises(argparse.ArgumentTypeError):
        parse_params(["profession_id"])
