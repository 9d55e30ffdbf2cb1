"""
Reporting View

Denormalized per-sale projection consumed by the dashboard. The view is
recomputed from the snapshot on every call and never cached.
"""

from typing import Optional

import polars as pl
import structlog

from retail_analytics.analytics.aggregations import margin_expr
from retail_analytics.data.snapshot import RetailSnapshot, require_columns

logger = structlog.get_logger(__name__)

VIEW_COLUMNS = [
    "sale_id",
    "date",
    "store_id",
    "store_name",
    "store_city",
    "store_location",
    "product_id",
    "product_name",
    "product_category",
    "product_cost",
    "product_price",
    "units",
    "stock_on_hand",
    "total_revenue",
    "total_profit",
    "profit_margin_percent",
]


def retail_analysis_view(snapshot: RetailSnapshot) -> pl.DataFrame:
    """
    One enriched row per sale with a known product and store.

    Inventory is optional: sales of a (store, product) pair without an
    inventory snapshot carry a null stock_on_hand. Revenue, profit and
    margin are computed per row; the margin is null when the row's
    revenue is zero. Rows are ordered by date, then sale_id.
    """
    sales, products, stores, inventory = (
        snapshot.sales, snapshot.products, snapshot.stores, snapshot.inventory
    )
    require_columns(stores, "stores", ["store_id", "store_name", "store_city", "store_location"])
    require_columns(inventory, "inventory", ["store_id", "product_id", "stock_on_hand"])

    view = (
        sales
        .join(products, on="product_id", how="inner")
        .join(stores.drop("store_open_date", strict=False), on="store_id", how="inner")
        .join(
            inventory.select(["store_id", "product_id", "stock_on_hand"]),
            on=["store_id", "product_id"],
            how="left",
        )
        .with_columns([
            (pl.col("units") * pl.col("product_price")).alias("total_revenue"),
            (pl.col("units") * (pl.col("product_price") - pl.col("product_cost"))).alias("total_profit"),
        ])
        .with_columns(
            margin_expr("total_profit", "total_revenue").alias("profit_margin_percent")
        )
        .with_columns([
            pl.col(c).round(2) for c in ["total_revenue", "total_profit", "profit_margin_percent"]
        ])
        .sort(["date", "sale_id"])
        .select(VIEW_COLUMNS)
    )

    logger.debug("Reporting view computed", rows=view.height, sales=sales.height)
    return view


def paginate(view: pl.DataFrame, page: int = 1, page_size: int = 100) -> pl.DataFrame:
    """Slice one page (1-based) out of an ordered view"""
    if page < 1 or page_size < 1:
        raise ValueError("page and page_size must be positive")
    return view.slice((page - 1) * page_size, page_size)


def filter_view(
    view: pl.DataFrame,
    store_id: Optional[int] = None,
    product_category: Optional[str] = None,
) -> pl.DataFrame:
    """Restrict the view to one store and/or one category"""
    if store_id is not None:
        view = view.filter(pl.col("store_id") == store_id)
    if product_category is not None:
        view = view.filter(pl.col("product_category") == product_category)
    return view
