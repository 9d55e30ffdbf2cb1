"""
Database Module
"""
from .connection import (
    check_database_health,
    close_database,
    get_db,
    get_db_dependency,
    get_engine,
    init_database,
)
from .models import Base, TABLE_MODELS
from .repository import read_snapshot, save_snapshot, sync_calendar

__all__ = [
    "check_database_health",
    "close_database",
    "get_db",
    "get_db_dependency",
    "get_engine",
    "init_database",
    "Base",
    "TABLE_MODELS",
    "read_snapshot",
    "save_snapshot",
    "sync_calendar",
]
