"""Server-side CSV export endpoint."""

import csv
import io

from betaintel.api.deps import get_listing_backend
from betaintel.listing.backends import InMemoryListingBackend


class OvercountingBackend(InMemoryListingBackend):
    """Reports more matching rows than it can return."""

    async def fetch(self, resource, predicate, sort, offset, limit):
        rows, total = await super().fetch(resource, predicate, sort, offset, limit)
        return rows, total + 5


def read_csv(response):
    return list(csv.reader(io.StringIO(response.text)))


def test_export_all_events(client, auth_headers):
    response = client.get("/api/v1/exports/events", headers=auth_headers)

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert "events_export_" in response.headers["content-disposition"]
    assert "X-Export-Partial" not in response.headers
    rows = read_csv(response)
    assert rows[0][:2] == ["Data/Hora", "Evento"]
    assert len(rows) == 26
    # default sort is newest first; 2024-03-02 12:00 UTC is 09:00 in Sao Paulo
    assert rows[1][0] == "02/03/2024 09:00:00"


def test_export_respects_filters_and_columns(client, auth_headers):
    response = client.get(
        "/api/v1/exports/events",
        params={"from": "2024-03-01", "to": "2024-03-01", "columns": "event_name,user.fullname"},
        headers=auth_headers,
    )
    rows = read_csv(response)
    assert rows[0] == ["Evento", "Nome"]
    assert len(rows) == 16


def test_export_requires_session_for_protected_resource(client):
    assert client.get("/api/v1/exports/surveys").status_code == 401


def test_unknown_resource(client, auth_headers):
    assert client.get("/api/v1/exports/payments", headers=auth_headers).status_code == 404


def test_empty_export_is_not_found(client):
    response = client.get(
        "/api/v1/exports/professions",
        params={"advanced_filters": '[{"field": "profession_name", "operator": "equals", "value": "nada"}]'},
    )
    assert response.status_code == 404


def test_short_export_is_flagged_partial(app, client, records):
    app.dependency_overrides[get_listing_backend] = lambda: OvercountingBackend(records)

    response = client.get("/api/v1/exports/professions")

    assert response.status_code == 200
    assert response.headers["X-Export-Partial"] == "true"
    assert response.headers["X-Export-Rows"] == "25"
    assert len(read_csv(response)) == 26
