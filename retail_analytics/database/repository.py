"""
Snapshot Repository

Moves a RetailSnapshot between polars frames and the relational schema.
Loads are bulk inserts that skip rows whose primary key already exists,
so re-loading the same extracts is a no-op.
"""

from typing import Any, Dict, List, Optional

import polars as pl
import structlog
from sqlalchemy import select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from retail_analytics.data.snapshot import RetailSnapshot, conform
from retail_analytics.database.models import TABLE_MODELS
from retail_analytics.transformation.calendar import upsert_calendar

logger = structlog.get_logger(__name__)

# Parent tables first so foreign keys resolve
LOAD_ORDER = ["products", "stores", "calendar", "inventory", "sales"]

SQLITE_MAX_VARIABLES = 999


def _insert_for(session: AsyncSession, model: Any):
    dialect = session.get_bind().dialect.name
    if dialect == "postgresql":
        return postgresql.insert(model)
    if dialect == "sqlite":
        return sqlite.insert(model)
    raise NotImplementedError(f"Bulk insert not supported for dialect '{dialect}'")


async def execute_batch_insert(
    session: AsyncSession,
    table: str,
    records: List[Dict[str, Any]],
    chunk_size: int = 1000,
) -> int:
    """
    Insert records in chunks, ignoring primary key conflicts.

    Returns:
        Number of records submitted
    """
    if not records:
        return 0

    model = TABLE_MODELS[table]
    if session.get_bind().dialect.name == "sqlite":
        chunk_size = min(chunk_size, SQLITE_MAX_VARIABLES // len(records[0]))

    for i in range(0, len(records), chunk_size):
        chunk = records[i:i + chunk_size]
        stmt = _insert_for(session, model).values(chunk).on_conflict_do_nothing()
        await session.execute(stmt)

    logger.info("Batch inserted", table=table, records=len(records))
    return len(records)


async def save_snapshot(session: AsyncSession, snapshot: RetailSnapshot) -> Dict[str, int]:
    """
    Persist every table of the snapshot.

    Rows must already satisfy the schema constraints (non-null keys,
    resolvable foreign keys); validate the snapshot first.
    """
    tables = snapshot.tables()
    submitted = {}

    for table in LOAD_ORDER:
        if table not in tables:
            continue
        submitted[table] = await execute_batch_insert(session, table, tables[table].to_dicts())

    await session.flush()
    return submitted


async def read_table(session: AsyncSession, table: str) -> pl.DataFrame:
    """Read one table into a frame with the canonical schema"""
    model_table = TABLE_MODELS[table].__table__
    result = await session.execute(select(model_table))
    columns = list(result.keys())
    rows = [tuple(row) for row in result.all()]

    df = pl.DataFrame(rows, schema=columns, orient="row")
    return conform(df, table)


async def read_snapshot(session: AsyncSession) -> RetailSnapshot:
    """
    Load the full snapshot from the database.

    The calendar is left unset when the calendar table is empty.
    """
    frames = {table: await read_table(session, table) for table in LOAD_ORDER}
    calendar: Optional[pl.DataFrame] = frames.pop("calendar")
    if calendar.is_empty():
        calendar = None

    snapshot = RetailSnapshot(calendar=calendar, **frames)
    logger.debug("Snapshot read from database", **snapshot.row_counts)
    return snapshot


async def sync_calendar(session: AsyncSession, derived: pl.DataFrame) -> pl.DataFrame:
    """
    Insert the derived calendar rows whose date is not stored yet.

    Existing rows are left untouched. Returns the inserted rows.
    """
    existing = await read_table(session, "calendar")
    merged = upsert_calendar(existing, derived)
    new_rows = merged.join(existing.select("date"), on="date", how="anti")
    logger.info("Calendar synced", stored_days=existing.height, new_days=new_rows.height)

    await execute_batch_insert(session, "calendar", new_rows.to_dicts())
    return new_rows
