"""Database module."""
from database.db import get_connection, init_db, reset_db
from database.store import RatingStore

__all__ = ['get_connection', 'init_db', 'reset_db', 'RatingStore']
