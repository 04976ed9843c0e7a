"""Database module for the weather portal.

This module provides:
- SQLAlchemy async database connection
- User directory and favorites models
"""

from weather_portal.database.connection import (
    get_db,
    get_db_session,
    get_session_factory,
    init_db,
    close_db,
    create_tables,
)
from weather_portal.database.models import (
    Base,
    Favorite,
    User,
)

__all__ = [
    # Connection
    "get_db",
    "get_db_session",
    "get_session_factory",
    "init_db",
    "close_db",
    "create_tables",
    # Models
    "Base",
    "Favorite",
    "User",
]
