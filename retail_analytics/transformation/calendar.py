"""
Calendar Derivation

Builds the date dimension from the observed range of sale dates.
Every attribute is a pure function of the date, so regenerating the
calendar for an unchanged range yields identical rows.
"""

from datetime import date
from typing import Optional, Tuple

import polars as pl
import structlog

from retail_analytics.data.snapshot import CALENDAR_SCHEMA, empty_frame, require_columns

logger = structlog.get_logger(__name__)


def sales_date_range(sales: pl.DataFrame) -> Optional[Tuple[date, date]]:
    """
    Min and max sale date, or None when there are no dated sales.
    """
    require_columns(sales, "sales", ["date"])
    dates = sales["date"].drop_nulls()
    if dates.is_empty():
        return None
    return dates.min(), dates.max()


def derive_calendar(start: date, end: date) -> pl.DataFrame:
    """
    One row per day in the inclusive range [start, end].

    Attributes:
    - day_of_week: English weekday name (independent of process locale)
    - weekday_number: ISO weekday, Monday = 1 ... Sunday = 7
    - month, month_name, year
    - is_weekend: ISO weekday 6 or 7
    """
    if start > end:
        raise ValueError(f"Calendar start {start} is after end {end}")

    calendar = pl.DataFrame(
        {"date": pl.date_range(start, end, interval="1d", eager=True)}
    ).with_columns([
        pl.col("date").dt.strftime("%A").alias("day_of_week"),
        pl.col("date").dt.weekday().alias("weekday_number"),
        pl.col("date").dt.month().alias("month"),
        pl.col("date").dt.strftime("%B").alias("month_name"),
        pl.col("date").dt.year().alias("year"),
    ]).with_columns(
        pl.col("weekday_number").is_in([6, 7]).alias("is_weekend")
    )

    return calendar.select([pl.col(name).cast(dtype) for name, dtype in CALENDAR_SCHEMA.items()])


def upsert_calendar(existing: Optional[pl.DataFrame], derived: pl.DataFrame) -> pl.DataFrame:
    """
    Merge `derived` into `existing` keyed by date.

    Dates already present keep their row (insert-or-ignore), so repeated
    upserts never duplicate a date.
    """
    if existing is None or existing.is_empty():
        return derived.unique(subset=["date"], keep="first", maintain_order=True).sort("date")

    new_rows = derived.join(existing.select("date"), on="date", how="anti")
    merged = pl.concat([existing.select(derived.columns), new_rows], how="vertical")

    logger.info(
        "Calendar upserted",
        existing_days=existing.height,
        inserted_days=new_rows.height,
    )
    return merged.sort("date")


def calendar_from_sales(
    sales: pl.DataFrame,
    existing: Optional[pl.DataFrame] = None,
) -> pl.DataFrame:
    """
    Derive the calendar for the current sales date range and upsert it
    into `existing`.
    """
    date_range = sales_date_range(sales)
    if date_range is None:
        logger.warning("No dated sales, calendar left unchanged")
        return existing if existing is not None else empty_frame("calendar")

    start, end = date_range
    derived = derive_calendar(start, end)
    logger.info("Calendar derived", start=str(start), end=str(end), days=derived.height)
    return upsert_calendar(existing, derived)
