"""Database layer: models, connection management and the entity repository."""

from orderflow.db.connection import close_db, get_db, get_engine, get_session, init_db
from orderflow.db.repository import EntityRepository

__all__ = ["EntityRepository", "close_db", "get_db", "get_engine", "get_session", "init_db"]
