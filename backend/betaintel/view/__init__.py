"""Headless listing views."""

from betaintel.view.bus import ViewEvent, ViewEventBus
from betaintel.view.config import ViewConfig, ViewConfigStore
from betaintel.view.listing_view import ListingView

__all__ = ["ListingView", "ViewConfig", "ViewConfigStore", "ViewEvent", "ViewEventBus"]
