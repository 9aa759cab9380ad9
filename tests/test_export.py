"""Bulk export orchestration: direct fetch, pagination fallback and cleanup."""

import asyncio

import pytest

from betaintel.listing.client import ListingPage
from betaintel.listing.exceptions import ExportInProgressError, ListingTransportError
from betaintel.listing.export import BulkExportOrchestrator, ExportState, ExportStrategy, export_filename


def make_rows(count):
    return [{"event_id": f"evt-{i:05d}", "event_name": "Lead"} for i in range(count)]


class FakeSource:
    """Listing source that serves ``rows`` and records every request."""

    def __init__(self, rows, direct_limit=None, fail_direct=False, fail_page=None, report_total=None):
        self.rows = rows
        self.direct_limit = direct_limit
        self.fail_direct = fail_direct
        self.fail_page = fail_page
        self.report_total = report_total
        self.calls = []

    @property
    def page_calls(self):
        return [c for c in self.calls if "export" not in c and c.get("limit") != "1"]

    async def fetch_page(self, resource, params):
        self.calls.append(dict(params))
        total = self.report_total if self.report_total is not None else len(self.rows)
        if params.get("export") == "true":
            if self.fail_direct:
                raise ListingTransportError("gateway timeout", status_code=504)
            items = self.rows if self.direct_limit is None else self.rows[: self.direct_limit]
            return ListingPage(items=list(items), total=total)
        page = int(params.get("page", "1"))
        limit = int(params.get("limit", "10"))
        if page == self.fail_page:
            raise ListingTransportError("backend unavailable", status_code=500)
        start = (page - 1) * limit
        return ListingPage(items=self.rows[start : start + limit], total=total)


def make_orchestrator(source, **kwargs):
    kwargs.setdefault("page_size", 1000)
    kwargs.setdefault("request_delay", 0)
    return BulkExportOrchestrator(source, "events", **kwargs)


async def test_direct_fetch_success():
    source = FakeSource(make_rows(30))
    progress = []
    orchestrator = make_orchestrator(source, on_progress=progress.append)

    result = await orchestrator.export_all({"profession_id": "3", "page": "4"})

    assert result.state is ExportState.COMPLETE
    assert result.strategy is ExportStrategy.DIRECT
    assert result.row_count == 30
    assert len(result.csv.splitlines()) == 31
    assert source.calls[0] == {"profession_id": "3", "page": "1", "limit": "1"}
    assert source.calls[1] == {"profession_id": "3", "export": "true"}
    assert progress[0] == 0 and progress[-1] == 100
    assert orchestrator.loading is False
    assert orchestrator.progress == 0


async def test_under_return_switches_to_ordered_pagination():
    rows = make_rows(2500)
    source = FakeSource(rows, direct_limit=500)
    progress = []
    orchestrator = make_orchestrator(source, on_progress=progress.append)

    result = await orchestrator.export_all({}, expected_total=2500)

    assert result.state is ExportState.COMPLETE
    assert result.strategy is ExportStrategy.PAGINATED
    assert [c["page"] for c in source.page_calls] == ["1", "2", "3"]
    assert all(c["limit"] == "1000" for c in source.page_calls)
    assert result.row_count == 2500
    assert orchestrator.job.accumulated == rows
    assert progress == sorted(progress)
    assert 50 in progress and progress[-1] == 100


async def test_direct_transport_error_is_recoverable():
    source = FakeSource(make_rows(1200), fail_direct=True)
    orchestrator = make_orchestrator(source)

    result = await orchestrator.export_all({})

    assert result.ok
    assert result.strategy is ExportStrategy.PAGINATED
    assert len(source.page_calls) == 2


async def test_partial_result_declined_by_default():
    source = FakeSource(make_rows(2500), report_total=3000)
    orchestrator = make_orchestrator(source)

    result = await orchestrator.export_all({})

    assert result.state is ExportState.ABORTED
    assert result.csv is None
    assert result.row_count == 2500
    assert orchestrator.loading is False


async def test_partial_result_accepted_by_async_confirmation():
    asked = []

    async def confirm(received, expected):
        asked.append((received, expected))
        return True

    source = FakeSource(make_rows(2500), report_total=3000)
    orchestrator = make_orchestrator(source, confirm_partial=confirm)

    result = await orchestrator.export_all({})

    assert result.ok
    assert result.partial
    assert asked == [(2500, 3000)]


async def test_fatal_error_during_pagination_fails_and_cleans_up():
    source = FakeSource(make_rows(2500), fail_direct=True, fail_page=2)
    orchestrator = make_orchestrator(source)

    result = await orchestrator.export_all({})

    assert result.state is ExportState.FAILED
    assert "backend unavailable" in result.error
    assert orchestrator.loading is False
    assert orchestrator.progress == 0


async def test_nothing_to_export_is_aborted():
    result = await make_orchestrator(FakeSource([])).export_all({})
    assert result.state is ExportState.ABORTED
    assert result.row_count == 0


async def test_cancel_stops_at_next_page():
    source = FakeSource(make_rows(3000), fail_direct=True)
    orchestrator = make_orchestrator(source)

    def on_progress(value):
        if 1 < value <= 50:
            orchestrator.cancel()

    orchestrator.on_progress = on_progress
    result = await orchestrator.export_all({})

    assert result.state is ExportState.CANCELLED
    assert len(source.page_calls) == 1
    assert orchestrator.loading is False


async def test_cancel_when_idle_is_a_no_op():
    assert make_orchestrator(FakeSource([])).cancel() is False


async def test_second_export_while_running_is_rejected():
    gate = asyncio.Event()

    class SlowSource(FakeSource):
        async def fetch_page(self, resource, params):
            await gate.wait()
            return await super().fetch_page(resource, params)

    orchestrator = make_orchestrator(SlowSource(make_rows(5)))
    first = asyncio.create_task(orchestrator.export_all({}, expected_total=5))
    await asyncio.sleep(0)

    with pytest.raises(ExportInProgressError):
        await orchestrator.export_all({})

    gate.set()
    result = await first
    assert result.ok


def test_export_filename():
    name = export_filename("events", "America/Sao_Paulo")
    assert name.startswith("events_export_")
    assert name.endswith(".csv")
    assert len(name) == len("events_export_dd-mm-YYYY.csv")
