"""Shared fixtures: sample records, an in-memory backend and an app wired to it."""

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from betaintel.api.deps import get_listing_backend
from betaintel.api.v1.auth import create_access_token
from betaintel.config import Settings
from betaintel.listing.backends import InMemoryListingBackend
from betaintel.listing.service import ListingService
from betaintel.main import create_app

UTC = timezone.utc


def make_events(count: int = 25) -> list[dict]:
    """Hourly events from 2024-03-01 12:00 UTC (09:00 in Sao Paulo)."""
    events = []
    for i in range(count):
        events.append(
            {
                "event_id": f"evt-{i:03d}",
                "event_name": "PageView" if i % 2 == 0 else "Lead",
                "event_type": "page" if i % 2 == 0 else "conversion",
                "event_source": "web",
                "event_time": datetime(2024, 3, 1, 12, tzinfo=UTC) + timedelta(hours=i),
                "session_id": f"ses-{i:03d}",
                "user_id": f"usr-{i % 5}",
                "profession_id": 1 if i % 2 == 0 else 2,
                "funnel_id": 10 + (i % 3),
                "user": {"fullname": f"User {i % 5}", "email": f"user{i % 5}@example.com"},
                "profession": {"profession_name": "Medicina" if i % 2 == 0 else "Direito"},
                "session": {"utm_source": "facebook", "utm_medium": "cpc", "country": "BR"},
            }
        )
    events[0]["utm_source"] = "google"
    return events


def make_professions(count: int = 25) -> list[dict]:
    return [
        {
            "profession_id": i + 1,
            "profession_name": f"Profissão {i + 1}",
            "meta_pixel": f"pixel-{i + 1}",
            "meta_token": None,
            "created_at": datetime(2024, 1, 1, tzinfo=UTC) + timedelta(days=i),
        }
        for i in range(count)
    ]


def make_leads() -> list[dict]:
    return [
        {
            "user_id": "usr-0",
            "fullname": "Ana Souza",
            "email": "ana@example.com",
            "phone": "+55 11 99999-0000",
            "is_client": True,
            "initial_utm_source": "google",
            "created_at": datetime(2024, 2, 1, tzinfo=UTC),
        },
        {
            "user_id": "usr-1",
            "fullname": "Bruno Lima",
            "email": "bruno@example.com",
            "phone": None,
            "is_client": False,
            "initial_utm_source": "facebook",
            "created_at": datetime(2024, 2, 2, tzinfo=UTC),
        },
        {
            "user_id": "usr-2",
            "fullname": "Carla Dias",
            "email": "carla@example.com",
            "phone": None,
            "is_client": False,
            "initial_utm_source": None,
            "created_at": datetime(2024, 2, 3, tzinfo=UTC),
        },
    ]


def make_anonymous() -> list[dict]:
    return [
        {"user_id": "anon-1", "initial_device_type": "mobile", "created_at": datetime(2024, 2, 5, tzinfo=UTC)},
        {"user_id": "anon-2", "initial_device_type": "desktop", "created_at": datetime(2024, 2, 6, tzinfo=UTC)},
    ]


def make_surveys() -> list[dict]:
    return [
        {
            "survey_id": "srv-1",
            "survey_name": "Pesquisa Medicina",
            "profession_id": 1,
            "funnel_id": 10,
            "profession_name": "Medicina",
            "funnel_name": "Funil A",
            "total_leads": 40,
            "response_rate": 50.0,
            "sales_conversion": 10.0,
            "created_at": datetime(2024, 2, 10, tzinfo=UTC),
        },
        {
            "survey_id": "srv-2",
            "survey_name": "Pesquisa Direito",
            "profession_id": 2,
            "funnel_id": 11,
            "profession_name": "Direito",
            "funnel_name": "Funil B",
            "total_leads": 10,
            "response_rate": 80.0,
            "sales_conversion": 25.0,
            "created_at": datetime(2024, 2, 11, tzinfo=UTC),
        },
    ]


class BrokenBackend:
    """Backend whose storage is unreachable."""

    async def fetch(self, resource, predicate, sort, offset, limit):
        raise RuntimeError("connection refused")


@pytest.fixture
def records():
    return {
        "events": make_events(),
        "leads": make_leads(),
        "anonymous": make_anonymous(),
        "professions": make_professions(),
        "surveys": make_surveys(),
    }


@pytest.fixture
def backend(records):
    return InMemoryListingBackend(records)


@pytest.fixture
def settings():
    return Settings(export_max_rows=50000, default_page_size=10, export_request_delay=0)


@pytest.fixture
def service(backend, settings):
    return ListingService(backend, settings)


@pytest.fixture
def app(backend):
    app = create_app()
    app.dependency_overrides[get_listing_backend] = lambda: backend
    return app


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def auth_headers():
    return {"Authorization": f"Bearer {create_access_token('tester')}"}


@pytest.fixture
def broken_backend():
    return BrokenBackend()
