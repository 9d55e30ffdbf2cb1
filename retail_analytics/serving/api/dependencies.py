"""
API Dependencies

Request-scoped access to the retail snapshot (stored or raw zone) and
analytics settings.
"""

from typing import Any, Dict, List

import polars as pl
from fastapi import Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from retail_analytics.config import Settings, get_settings
from retail_analytics.config.settings import AnalyticsSettings
from retail_analytics.data.snapshot import RetailSnapshot
from retail_analytics.database.connection import get_db_dependency
from retail_analytics.database.repository import read_snapshot
from retail_analytics.exceptions import ExtractLoadError
from retail_analytics.ingestion import BatchLoader


async def get_snapshot(db: AsyncSession = Depends(get_db_dependency)) -> RetailSnapshot:
    """Current snapshot, read fresh from the database for every request"""
    return await read_snapshot(db)


def get_raw_snapshot(settings: Settings = Depends(get_settings)) -> RetailSnapshot:
    """
    Extracts currently in the raw zone, loaded and normalized but not
    validated. Answers 404 when an extract is missing or unreadable.
    """
    try:
        snapshot, _ = BatchLoader().load_snapshot(settings.data_lake.raw_path)
    except ExtractLoadError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return snapshot


def get_analytics_settings() -> AnalyticsSettings:
    return get_settings().analytics


def to_records(df: pl.DataFrame) -> List[Dict[str, Any]]:
    """Rows as JSON-ready dicts (nulls become None)"""
    return df.to_dicts()
