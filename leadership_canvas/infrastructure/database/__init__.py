"""
Relational persistence with SQLAlchemy.

Implements the storage ports from core.canvas.ports.
"""

from .client import Database, create_db_engine
from .tables import Base

__all__ = ["Base", "Database", "create_db_engine"]
