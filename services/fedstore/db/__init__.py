"""fedstore database module."""

from .models import Base
from .session import close_db, get_db, get_db_health, init_db

__all__ = ["Base", "close_db", "get_db", "get_db_health", "init_db"]
