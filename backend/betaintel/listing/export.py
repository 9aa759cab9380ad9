"""Bulk export: assemble every row of a filtered listing into one CSV.

The orchestrator first asks for the whole set in one request
(``export=true``). If that request fails or comes back short, it restarts
from empty and walks the listing page by page, one request at a time and
in page order. The assembled rows are then rendered in batches, yielding
to the event loop between batches.

Progress runs 0-100. With the paginated strategy the first half tracks
fetching and the second half rendering; a successful direct fetch spends
the whole range on rendering.
"""

import asyncio
import inspect
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Mapping, Sequence

import structlog

from betaintel.listing.client import ListingPage, ListingSource
from betaintel.listing.csv_export import Column, batch_size_for, columns_for, header_line, render_rows
from betaintel.listing.dates import get_timezone, local_today
from betaintel.listing.exceptions import (
    ExportCancelledError,
    ExportInProgressError,
    ListingTransportError,
)

logger = structlog.get_logger()

# request keys owned by the orchestrator, never taken from the snapshot
_CONTROL_PARAMS = ("page", "limit", "export")

ProgressCallback = Callable[[int], Any]
ConfirmCallback = Callable[[int, int], "bool | Awaitable[bool]"]


class ExportStrategy(str, Enum):
    DIRECT = "direct"
    PAGINATED = "paginated"


class ExportState(str, Enum):
    IDLE = "idle"
    DIRECT_FETCH = "direct_fetch"
    PAGINATED = "paginated"
    PROCESSING = "processing"
    COMPLETE = "complete"
    FAILED = "failed"
    ABORTED = "aborted"
    CANCELLED = "cancelled"


@dataclass
class ExportJob:
    """Mutable state of one export run."""

    resource: str
    filter_snapshot: dict[str, str]
    strategy: ExportStrategy = ExportStrategy.DIRECT
    state: ExportState = ExportState.IDLE
    expected_total: int = 0
    accumulated: list[dict[str, Any]] = field(default_factory=list)
    pages_fetched: int = 0
    progress: int = 0
    partial: bool = False
    error: str | None = None


@dataclass
class ExportResult:
    resource: str
    state: ExportState
    strategy: ExportStrategy
    expected_total: int
    row_count: int
    csv: str | None = None
    partial: bool = False
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.state is ExportState.COMPLETE


def export_filename(resource: str, timezone_name: str) -> str:
    """``{resource}_export_{dd-mm-YYYY}.csv`` using the local calendar date."""
    today = local_today(get_timezone(timezone_name))
    return f"{resource}_export_{today:%d-%m-%Y}.csv"


class BulkExportOrchestrator:
    """Drives one export at a time for a single resource."""

    def __init__(
        self,
        source: ListingSource,
        resource: str,
        columns: Sequence[Column] | None = None,
        page_size: int = 1000,
        request_delay: float = 0.1,
        timezone_name: str = "America/Sao_Paulo",
        confirm_partial: ConfirmCallback | None = None,
        on_progress: ProgressCallback | None = None,
    ):
        self.source = source
        self.resource = resource
        self.columns = list(columns) if columns else columns_for(resource)
        self.page_size = max(1, page_size)
        self.request_delay = request_delay
        self.tz = get_timezone(timezone_name)
        self.confirm_partial = confirm_partial
        self.on_progress = on_progress

        self.job: ExportJob | None = None
        self.loading = False
        self.progress = 0
        self._cancel_requested = False

    def cancel(self) -> bool:
        """Stop the running export at its next page or batch boundary."""
        if not self.loading:
            return False
        logger.info("export_cancel_requested", resource=self.resource)
        self._cancel_requested = True
        return True

    async def export_all(
        self,
        filters: Mapping[str, str],
        expected_total: int | None = None,
    ) -> ExportResult:
        """Run an export with a frozen copy of ``filters``.

        Raises ``ExportInProgressError`` if an export is already running;
        every other outcome is reported through the returned result.
        """
        if self.loading:
            logger.warning("export_already_running", resource=self.resource)
            raise ExportInProgressError(self.resource)

        snapshot = {key: str(value) for key, value in filters.items() if key not in _CONTROL_PARAMS}
        job = ExportJob(resource=self.resource, filter_snapshot=snapshot)
        self.job = job
        self.loading = True
        self._cancel_requested = False
        self._set_progress(job, 0)
        logger.info("export_started", resource=self.resource, filters=snapshot)

        try:
            if expected_total is None:
                expected_total = await self._probe_total(snapshot)
            job.expected_total = expected_total
            if expected_total <= 0:
                return self._abort(job, "No records to export")

            await self._accumulate(job)
            if not job.accumulated:
                return self._abort(job, "No records were returned")

            received = len(job.accumulated)
            if received < expected_total:
                logger.warning(
                    "export_partial",
                    resource=self.resource,
                    received=received,
                    expected=expected_total,
                )
                if not await self._confirm(received, expected_total):
                    return self._abort(job, f"Partial export declined ({received} of {expected_total})")
                job.partial = True

            output = await self._process(job)
            job.state = ExportState.COMPLETE
            logger.info(
                "export_completed",
                resource=self.resource,
                rows=received,
                strategy=job.strategy.value,
                pages=job.pages_fetched,
            )
            return self._result(job, output)
        except ExportCancelledError as e:
            job.state = ExportState.CANCELLED
            job.error = e.message
            logger.info("export_cancelled", resource=self.resource, rows=len(job.accumulated))
            return self._result(job)
        except Exception as e:
            job.state = ExportState.FAILED
            job.error = str(e)
            logger.exception("export_failed", resource=self.resource)
            return self._result(job)
        finally:
            self.loading = False
            self.progress = 0
            self._cancel_requested = False

    # ------------------------------------------------------------------

    async def _probe_total(self, snapshot: Mapping[str, str]) -> int:
        page = await self.source.fetch_page(self.resource, {**snapshot, "page": "1", "limit": "1"})
        return page.total

    async def _accumulate(self, job: ExportJob) -> None:
        job.state = ExportState.DIRECT_FETCH
        job.strategy = ExportStrategy.DIRECT
        page: ListingPage | None = None
        try:
            page = await self.source.fetch_page(self.resource, {**job.filter_snapshot, "export": "true"})
        except ListingTransportError as e:
            logger.warning("export_direct_fetch_failed", resource=self.resource, error=e.message)
        self._check_cancelled()

        if page is not None and len(page.items) >= job.expected_total:
            job.accumulated = list(page.items)
            return

        logger.info(
            "export_switching_to_pagination",
            resource=self.resource,
            returned=len(page.items) if page is not None else None,
            expected=job.expected_total,
        )
        await self._fetch_pages(job)

    async def _fetch_pages(self, job: ExportJob) -> None:
        job.state = ExportState.PAGINATED
        job.strategy = ExportStrategy.PAGINATED
        job.accumulated = []
        pages = max(1, math.ceil(job.expected_total / self.page_size))
        self._set_progress(job, 1)

        for number in range(1, pages + 1):
            self._check_cancelled()
            if number > 1 and self.request_delay > 0:
                await asyncio.sleep(self.request_delay)
            page = await self.source.fetch_page(
                self.resource,
                {**job.filter_snapshot, "page": str(number), "limit": str(self.page_size)},
            )
            job.accumulated.extend(page.items)
            job.pages_fetched += 1
            self._set_progress(job, round(number / pages * 50))
            logger.debug("export_page_fetched", resource=self.resource, page=number, pages=pages)
            if not page.items:
                break

    async def _process(self, job: ExportJob) -> str:
        job.state = ExportState.PROCESSING
        start = 50 if job.strategy is ExportStrategy.PAGINATED else 0
        records = job.accumulated
        size = batch_size_for(len(records))
        batches = max(1, math.ceil(len(records) / size))

        parts = [header_line(self.columns)]
        for index in range(batches):
            self._check_cancelled()
            chunk = records[index * size : (index + 1) * size]
            parts.append(render_rows(chunk, self.columns, self.tz))
            self._set_progress(job, start + round((index + 1) / batches * (100 - start)))
            await asyncio.sleep(0)
        return "".join(parts)

    async def _confirm(self, received: int, expected: int) -> bool:
        if self.confirm_partial is None:
            return False
        answer = self.confirm_partial(received, expected)
        if inspect.isawaitable(answer):
            answer = await answer
        return bool(answer)

    def _check_cancelled(self) -> None:
        if self._cancel_requested:
            raise ExportCancelledError(self.resource)

    def _set_progress(self, job: ExportJob, value: int) -> None:
        job.progress = value
        self.progress = value
        if self.on_progress is not None:
            self.on_progress(value)

    def _abort(self, job: ExportJob, reason: str) -> ExportResult:
        job.state = ExportState.ABORTED
        job.error = reason
        logger.info("export_aborted", resource=self.resource, reason=reason)
        return self._result(job)

    def _result(self, job: ExportJob, output: str | None = None) -> ExportResult:
        return ExportResult(
            resource=job.resource,
            state=job.state,
            strategy=job.strategy,
            expected_total=job.expected_total,
            row_count=len(job.accumulated),
            csv=output,
            partial=job.partial,
            error=job.error,
        )
