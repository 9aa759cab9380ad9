"""Headless listing view: the client-side state behind one data table."""

import asyncio
from typing import Mapping

import structlog

from betaintel.config import Settings, get_settings
from betaintel.listing.client import ListingPage, ListingSource
from betaintel.listing.csv_export import columns_for
from betaintel.listing.export import BulkExportOrchestrator, ConfirmCallback, ExportResult
from betaintel.listing.exceptions import ListingTransportError
from betaintel.listing.resources import get_resource
from betaintel.view.bus import ViewEvent, ViewEventBus
from betaintel.view.config import ViewConfig, ViewConfigStore

logger = structlog.get_logger()

# query keys that are view state rather than filters
NAVIGATION_PARAMS = ("page", "limit", "sortBy", "sortDirection")


class ListingView:
    """Owns the query, the last page and the loading/export state of a table.

    Only one refetch or export runs at a time; a request made while either
    is in flight is dropped. The loading flag is force-cleared by a safety
    timer after ``settings.loading_timeout`` seconds.
    """

    def __init__(
        self,
        name: str,
        resource: str,
        source: ListingSource,
        bus: ViewEventBus | None = None,
        store: ViewConfigStore | None = None,
        settings: Settings | None = None,
        confirm_partial: ConfirmCallback | None = None,
    ):
        self.settings = settings or get_settings()
        self.name = name
        self.resource = get_resource(resource).name
        self.source = source
        self.bus = bus or ViewEventBus()
        self.store = store

        self.config = ViewConfig()
        self.params: dict[str, str] = {}
        self.page: ListingPage | None = None
        self.error: str | None = None
        self.loading = False
        self.is_open = False

        self.exporter = BulkExportOrchestrator(
            source,
            self.resource,
            page_size=self.settings.export_page_size,
            request_delay=self.settings.export_request_delay,
            timezone_name=self.settings.display_timezone,
            confirm_partial=confirm_partial,
        )

        self._refetching = False
        self._safety_timer: asyncio.TimerHandle | None = None
        self._unsubscribers: list = []

    @property
    def exporting(self) -> bool:
        return self.exporter.loading

    @property
    def export_progress(self) -> int:
        return self.exporter.progress

    @property
    def filters(self) -> dict[str, str]:
        return {key: value for key, value in self.params.items() if key not in NAVIGATION_PARAMS}

    # lifecycle -----------------------------------------------------------

    async def open(self) -> ListingPage | None:
        if self.store is not None:
            self.config = self.store.load(self.name)
            self.params.update(self.config.filters)
        self._unsubscribers = [
            self.bus.subscribe(ViewEvent.REFETCH_REQUESTED, self._on_refetch_requested),
            self.bus.subscribe(ViewEvent.FILTERS_CLEARED, self._on_filters_cleared),
        ]
        self.is_open = True
        logger.debug("view_opened", view=self.name, resource=self.resource)
        return await self.refetch()

    async def close(self) -> None:
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers = []
        self.exporter.cancel()
        self._clear_loading()
        if self.store is not None:
            self.config.filters = self.filters
            self.store.save(self.name, self.config)
        self.is_open = False
        logger.debug("view_closed", view=self.name)

    # query state ---------------------------------------------------------

    async def set_page(self, page: int) -> ListingPage | None:
        self.params["page"] = str(max(1, page))
        return await self.refetch()

    async def set_page_size(self, limit: int) -> ListingPage | None:
        self.params["limit"] = str(max(1, limit))
        self.params["page"] = "1"
        return await self.refetch()

    async def set_sort(self, field: str, direction: str = "desc") -> ListingPage | None:
        self.params["sortBy"] = field
        self.params["sortDirection"] = direction
        self.params["page"] = "1"
        return await self.refetch()

    async def apply_filters(self, filters: Mapping[str, str | None]) -> ListingPage | None:
        """Merge ``filters`` into the query; blank values remove the key."""
        for key, value in filters.items():
            if value is None or str(value).strip() == "":
                self.params.pop(key, None)
            else:
                self.params[key] = str(value)
        self.params["page"] = "1"
        return await self.refetch()

    async def clear_filters(self) -> ListingPage | None:
        self.params = {key: value for key, value in self.params.items() if key in NAVIGATION_PARAMS}
        self.params["page"] = "1"
        return await self.refetch()

    def update_columns(
        self,
        order: list[str] | None = None,
        visible: list[str] | None = None,
        widths: Mapping[str, int] | None = None,
    ) -> ViewConfig:
        if order is not None:
            self.config.column_order = list(order)
        if visible is not None:
            self.config.visible_columns = list(visible)
        if widths is not None:
            self.config.column_widths.update(widths)
        return self.config

    # fetching ------------------------------------------------------------

    async def refetch(self) -> ListingPage | None:
        """Fetch the current page; returns ``None`` while a fetch or export is running."""
        if self._refetching or self.exporting:
            logger.debug("refetch_ignored", view=self.name, exporting=self.exporting)
            return None

        self._refetching = True
        self._set_loading()
        try:
            self.page = await self.source.fetch_page(self.resource, self.params)
            self.error = None
        except ListingTransportError as e:
            logger.warning("view_fetch_failed", view=self.name, error=e.message, status=e.status_code)
            self.error = e.message
            self.page = ListingPage(items=[], total=0)
        finally:
            self._refetching = False
            self._clear_loading()
        return self.page

    async def export_all(self) -> ExportResult | None:
        """Export every row matching the current filters.

        Returns ``None`` while another export or a refetch is in flight.
        """
        if self._refetching or self.exporting:
            logger.info("export_ignored", view=self.name, refetching=self._refetching)
            return None
        self.exporter.columns = columns_for(self.resource, self.config.ordered_visible_columns())
        expected = self.page.total if self.page is not None and self.error is None else None
        return await self.exporter.export_all(self.params, expected_total=expected)

    def cancel_export(self) -> bool:
        return self.exporter.cancel()

    # loading flag --------------------------------------------------------

    def _set_loading(self) -> None:
        self._cancel_safety_timer()
        self.loading = True
        loop = asyncio.get_running_loop()
        self._safety_timer = loop.call_later(self.settings.loading_timeout, self._on_loading_timeout)

    def _on_loading_timeout(self) -> None:
        logger.warning("loading_timeout", view=self.name, timeout=self.settings.loading_timeout)
        self._safety_timer = None
        self.loading = False

    def _clear_loading(self) -> None:
        self._cancel_safety_timer()
        self.loading = False

    def _cancel_safety_timer(self) -> None:
        if self._safety_timer is not None:
            self._safety_timer.cancel()
            self._safety_timer = None

    # bus handlers --------------------------------------------------------

    async def _on_refetch_requested(self, event: ViewEvent, payload: Mapping) -> None:
        await self.refetch()

    async def _on_filters_cleared(self, event: ViewEvent, payload: Mapping) -> None:
        await self.clear_filters()
