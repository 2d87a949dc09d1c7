"""Database layer for TownBench: SQLAlchemy 2.0 async."""

from __future__ import annotations

from townbench.db.base import Base
from townbench.db.engine import DatabaseManager

__all__ = ["Base", "DatabaseManager"]
