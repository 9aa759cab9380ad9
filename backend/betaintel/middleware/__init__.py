"""Middleware package."""

from betaintel.middleware.logging import LoggingMiddleware
from betaintel.middleware.request_id import RequestIDMiddleware

__all__ = ["LoggingMiddleware", "RequestIDMiddleware"]
