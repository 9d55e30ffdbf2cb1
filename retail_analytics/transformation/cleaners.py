"""
Data Cleaning Module

Format normalization for the raw retail extracts.
Handles:
- Header normalization (Product_ID -> product_id)
- Whitespace trimming
- Currency parsing ("$9.99 " -> 9.99)
- Date parsing across common formats
- Type conformance to the canonical schemas

Cleaning never drops, deduplicates or fills rows: data-quality defects
are left in place for the validators to report.
"""

from dataclasses import dataclass
from typing import Callable, Dict, List, Optional
import re

import polars as pl
import structlog

from retail_analytics.data.snapshot import TABLE_SCHEMAS, conform

logger = structlog.get_logger(__name__)

DATE_FORMATS = [
    "%Y-%m-%d",
    "%m/%d/%Y",
    "%d-%m-%Y",
    "%Y/%m/%d",
]


@dataclass
class CleaningStats:
    """Statistics from cleaning operations"""
    total_rows: int
    columns_renamed: int
    values_unparseable: int


class DataCleaner:
    """
    Normalizes raw extract frames into the canonical retail schemas.

    Example:
        cleaner = DataCleaner()
        products = cleaner.clean_products(raw_products)
    """

    def __init__(self):
        self._table_cleaners: Dict[str, Callable[[pl.DataFrame], pl.DataFrame]] = {
            "products": self.clean_products,
            "stores": self.clean_stores,
            "inventory": self.clean_inventory,
            "sales": self.clean_sales,
        }

    @staticmethod
    def _normalize_header(name: str) -> str:
        name = name.strip().lower()
        return re.sub(r"[^a-z0-9]+", "_", name).strip("_")

    def _normalize_columns(self, df: pl.DataFrame) -> pl.DataFrame:
        """Lower-case and snake-case all column names"""
        return df.rename({col: self._normalize_header(col) for col in df.columns})

    def _trim_strings(self, df: pl.DataFrame, columns: Optional[List[str]] = None) -> pl.DataFrame:
        """Trim whitespace from string columns"""
        string_cols = columns or [
            col for col, dtype in zip(df.columns, df.dtypes)
            if dtype == pl.Utf8
        ]

        for col in string_cols:
            if col in df.columns:
                df = df.with_columns(
                    pl.col(col).str.strip_chars().alias(col)
                )

        return df

    def _normalize_currency(
        self,
        df: pl.DataFrame,
        amount_columns: List[str]
    ) -> pl.DataFrame:
        """Remove currency symbols and separators, convert to a 2 dp amount"""
        for col in amount_columns:
            if col in df.columns and df[col].dtype == pl.Utf8:
                df = df.with_columns(
                    pl.col(col)
                    .str.replace_all(r"[$€£¥,]", "")
                    .str.strip_chars()
                    .cast(pl.Float64, strict=False)
                    .round(2)
                    .alias(col)
                )

        return df

    def _standardize_dates(
        self,
        df: pl.DataFrame,
        date_columns: List[str],
    ) -> pl.DataFrame:
        """Parse string dates, trying each known format in turn"""
        for col in date_columns:
            if col not in df.columns:
                continue
            dtype = df[col].dtype
            if dtype == pl.Utf8:
                df = df.with_columns(
                    pl.coalesce([
                        pl.col(col).str.strptime(pl.Date, fmt, strict=False)
                        for fmt in DATE_FORMATS
                    ]).alias(col)
                )
            elif dtype == pl.Datetime:
                df = df.with_columns(pl.col(col).dt.date().alias(col))

        return df

    def _cast_integers(self, df: pl.DataFrame, columns: List[str]) -> pl.DataFrame:
        """Cast integer-valued columns, leaving unparseable values null"""
        for col in columns:
            if col in df.columns and df[col].dtype != pl.Int64:
                source = pl.col(col)
                if df[col].dtype == pl.Utf8:
                    source = source.str.strip_chars()
                df = df.with_columns(source.cast(pl.Int64, strict=False).alias(col))
        return df

    def _prepare(self, df: pl.DataFrame, table: str) -> pl.DataFrame:
        df = self._normalize_columns(df)
        df = self._trim_strings(df)

        schema = TABLE_SCHEMAS[table]
        df = self._cast_integers(df, [c for c, t in schema.items() if t == pl.Int64])
        df = self._standardize_dates(df, [c for c, t in schema.items() if t == pl.Date])
        return df

    def clean_products(self, df: pl.DataFrame) -> pl.DataFrame:
        """Apply product-specific cleaning transformations"""
        df = self._prepare(df, "products")
        df = self._normalize_currency(df, ["product_cost", "product_price"])
        return conform(df, "products")

    def clean_stores(self, df: pl.DataFrame) -> pl.DataFrame:
        """Apply store-specific cleaning transformations"""
        df = self._prepare(df, "stores")
        return conform(df, "stores")

    def clean_inventory(self, df: pl.DataFrame) -> pl.DataFrame:
        """Apply inventory-specific cleaning transformations"""
        df = self._prepare(df, "inventory")
        return conform(df, "inventory")

    def clean_sales(self, df: pl.DataFrame) -> pl.DataFrame:
        """Apply sales-specific cleaning transformations"""
        df = self._prepare(df, "sales")
        return conform(df, "sales")

    def clean(self, df: pl.DataFrame, table: str) -> pl.DataFrame:
        """Dispatch to the cleaner for `table`"""
        cleaner = self._table_cleaners.get(table)
        if cleaner is None:
            raise ValueError(f"Unknown table: {table}")
        return cleaner(df)

    def stats(self, raw: pl.DataFrame, cleaned: pl.DataFrame) -> CleaningStats:
        """
        Compare a raw frame with its cleaned form.

        Nulls are counted over the canonical columns only, so any null the
        cleaned frame gains is a value that failed to parse.
        """
        renamed = sum(1 for c in raw.columns if self._normalize_header(c) != c)
        raw_nulls = sum(
            raw[c].null_count() for c in raw.columns
            if self._normalize_header(c) in cleaned.columns
        )
        cleaned_nulls = sum(cleaned[c].null_count() for c in cleaned.columns)
        return CleaningStats(
            total_rows=cleaned.height,
            columns_renamed=renamed,
            values_unparseable=max(cleaned_nulls - raw_nulls, 0),
        )


def clean_dataframe(df: pl.DataFrame, table: str) -> pl.DataFrame:
    """
    Convenience function to clean a raw extract.

    Args:
        df: Raw extract as read from CSV
        table: "products", "stores", "inventory" or "sales"

    Returns:
        Frame in the canonical schema of `table`
    """
    return DataCleaner().clean(df, table)
