"""Database layer: SQLAlchemy models and session."""

from server.db.models import Base, ContainerRow, PassageRow, VersionRow
from server.db.session import get_db, init_db

__all__ = [
    "Base",
    "ContainerRow",
    "PassageRow",
    "VersionRow",
    "get_db",
    "init_db",
]
