"""
src/db: database access object and SQLModel tables.

Usage:
    from src.db import Database
    from src.db.models import Paper, User, ...
"""

from src.db.engine import Database

__all__ = ["Database"]
