"""
Retail Snapshot

Canonical column layout of the four source entities and the derived
calendar, plus the container the analytics functions operate on.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

import polars as pl

from retail_analytics.exceptions import SchemaMismatchError


# =============================================================================
# SCHEMAS
# =============================================================================

PRODUCTS_SCHEMA: Dict[str, pl.DataType] = {
    "product_id": pl.Int64,
    "product_name": pl.Utf8,
    "product_category": pl.Utf8,
    "product_cost": pl.Float64,
    "product_price": pl.Float64,
}

STORES_SCHEMA: Dict[str, pl.DataType] = {
    "store_id": pl.Int64,
    "store_name": pl.Utf8,
    "store_city": pl.Utf8,
    "store_location": pl.Utf8,
    "store_open_date": pl.Date,
}

INVENTORY_SCHEMA: Dict[str, pl.DataType] = {
    "store_id": pl.Int64,
    "product_id": pl.Int64,
    "stock_on_hand": pl.Int64,
}

SALES_SCHEMA: Dict[str, pl.DataType] = {
    "sale_id": pl.Int64,
    "date": pl.Date,
    "store_id": pl.Int64,
    "product_id": pl.Int64,
    "units": pl.Int64,
}

CALENDAR_SCHEMA: Dict[str, pl.DataType] = {
    "date": pl.Date,
    "day_of_week": pl.Utf8,
    "weekday_number": pl.Int8,
    "month": pl.Int8,
    "month_name": pl.Utf8,
    "year": pl.Int32,
    "is_weekend": pl.Boolean,
}

TABLE_SCHEMAS: Dict[str, Dict[str, pl.DataType]] = {
    "products": PRODUCTS_SCHEMA,
    "stores": STORES_SCHEMA,
    "inventory": INVENTORY_SCHEMA,
    "sales": SALES_SCHEMA,
    "calendar": CALENDAR_SCHEMA,
}

PRIMARY_KEYS: Dict[str, List[str]] = {
    "products": ["product_id"],
    "stores": ["store_id"],
    "inventory": ["store_id", "product_id"],
    "sales": ["sale_id"],
    "calendar": ["date"],
}


def require_columns(df: pl.DataFrame, table: str, columns: Iterable[str]) -> None:
    """Raise SchemaMismatchError if any of `columns` is absent from `df`"""
    missing = [c for c in columns if c not in df.columns]
    if missing:
        raise SchemaMismatchError(table, missing)


def empty_frame(table: str) -> pl.DataFrame:
    """Zero-row frame with the canonical schema of `table`"""
    return pl.DataFrame(schema=TABLE_SCHEMAS[table])


def conform(df: pl.DataFrame, table: str) -> pl.DataFrame:
    """Select and cast the canonical columns of `table`, in canonical order."""
    schema = TABLE_SCHEMAS[table]
    require_columns(df, table, schema.keys())
    return df.select([pl.col(name).cast(dtype) for name, dtype in schema.items()])


# =============================================================================
# SNAPSHOT
# =============================================================================

@dataclass
class RetailSnapshot:
    """
    One batch of loaded source data.

    All entities are loaded together and never mutated incrementally;
    the calendar is derived from the sales and may be absent until then.
    """
    products: pl.DataFrame = field(default_factory=lambda: empty_frame("products"))
    stores: pl.DataFrame = field(default_factory=lambda: empty_frame("stores"))
    inventory: pl.DataFrame = field(default_factory=lambda: empty_frame("inventory"))
    sales: pl.DataFrame = field(default_factory=lambda: empty_frame("sales"))
    calendar: Optional[pl.DataFrame] = None

    def tables(self) -> Dict[str, pl.DataFrame]:
        """Loaded tables by name, calendar included when present"""
        tables = {
            "products": self.products,
            "stores": self.stores,
            "inventory": self.inventory,
            "sales": self.sales,
        }
        if self.calendar is not None:
            tables["calendar"] = self.calendar
        return tables

    @property
    def row_counts(self) -> Dict[str, int]:
        return {name: df.height for name, df in self.tables().items()}
