"""Database package."""

from betaintel.db.base import Base
from betaintel.db.session import get_db_session

__all__ = ["Base", "get_db_session"]
