"""Database module for SQLite persistence.

Provides:
- Database connection management
- Schema initialization
- Repository modules, one per entity family
"""

from eduportal.db.database import NotFoundError, get_db, get_db_path, init_db, new_id

__all__ = ["NotFoundError", "get_db", "get_db_path", "init_db", "new_id"]
