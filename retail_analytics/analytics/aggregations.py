"""
Sales Aggregation Module

Analytical rollups over a retail snapshot:
- Revenue / cost / profit / margin rollups for any grouping
- Top products globally and per store
- ABC (Pareto) classification by units sold
- Stock-to-sales ratio and stockout risk
- Yearly performance per store
- Company-wide KPIs

Every function is a pure transformation from a RetailSnapshot to a
polars DataFrame (or a dict for single-row summaries). Measures are
accumulated at full precision and rounded only in the returned frame.
A zero denominator yields null for that row, never zero and never an
exception, with the single exception of ABC classification over zero
total units.
"""

from typing import Any, Dict, List, Optional, Sequence

import polars as pl
import structlog

from retail_analytics.data.snapshot import RetailSnapshot, require_columns
from retail_analytics.exceptions import ClassificationUndefinedError

logger = structlog.get_logger(__name__)

MONEY_COLUMNS = ["total_revenue", "total_cost", "total_profit"]
SALE_ORDER = "_sale_order"


# =============================================================================
# JOINS
# =============================================================================

def _sales_with_products(snapshot: RetailSnapshot) -> pl.DataFrame:
    """Sales inner-joined with their product; orphan sales are logged and excluded"""
    sales, products = snapshot.sales, snapshot.products
    require_columns(sales, "sales", ["sale_id", "date", "store_id", "product_id", "units"])
    require_columns(products, "products", ["product_id", "product_name", "product_category",
                                           "product_cost", "product_price"])

    # Row order after a join is not guaranteed; restore sale order for stable tie-breaks
    joined = (
        sales.with_row_index(SALE_ORDER)
        .join(products, on="product_id", how="inner")
        .sort(SALE_ORDER)
    )
    excluded = sales.height - joined.height
    if excluded:
        logger.warning("Sales without a matching product excluded from aggregation", rows=excluded)
    return joined


def _needs_stores(snapshot: RetailSnapshot, by: Sequence[str]) -> bool:
    """True when a grouping names any store column"""
    return any(column in snapshot.stores.columns for column in by)


def _enriched_sales(snapshot: RetailSnapshot, with_stores: bool = True) -> pl.DataFrame:
    """
    Sales joined with their product, and with their store when
    `with_stores` is set, plus per-line revenue and cost and the sale year.

    A sale whose store is unknown still counts toward product level
    totals; only store level groupings drop it.
    """
    with_products = _sales_with_products(snapshot)
    joined = with_products

    if with_stores:
        stores = snapshot.stores
        require_columns(stores, "stores", ["store_id", "store_name", "store_city"])
        joined = with_products.join(stores, on="store_id", how="inner").sort(SALE_ORDER)
        excluded = with_products.height - joined.height
        if excluded:
            logger.warning("Sales without a matching store excluded from aggregation", rows=excluded)

    return joined.with_columns([
        (pl.col("units") * pl.col("product_price")).alias("line_revenue"),
        (pl.col("units") * pl.col("product_cost")).alias("line_cost"),
        pl.col("date").dt.year().alias("year"),
    ])


# =============================================================================
# MEASURES
# =============================================================================

def _rollup_aggregations() -> List[pl.Expr]:
    return [
        pl.col("units").sum().alias("total_units"),
        pl.col("line_revenue").sum().alias("total_revenue"),
        pl.col("line_cost").sum().alias("total_cost"),
    ]


def margin_expr(profit: str, revenue: str) -> pl.Expr:
    """profit / revenue * 100, null where revenue is zero or null"""
    return (
        pl.when(pl.col(revenue) != 0)
        .then(pl.col(profit) / pl.col(revenue) * 100)
        .otherwise(None)
    )


def _derive_profit_and_margin(df: pl.DataFrame) -> pl.DataFrame:
    return df.with_columns(
        (pl.col("total_revenue") - pl.col("total_cost")).alias("total_profit")
    ).with_columns(
        margin_expr("total_profit", "total_revenue").alias("margin_pct")
    )


def _present(df: pl.DataFrame, columns: Sequence[str] = (*MONEY_COLUMNS, "margin_pct")) -> pl.DataFrame:
    """Round monetary and percentage outputs to 2 decimal places"""
    return df.with_columns([pl.col(c).round(2) for c in columns if c in df.columns])


def rollup(
    snapshot: RetailSnapshot,
    by: Sequence[str],
    sort_by: Optional[Sequence[str]] = None,
    descending: bool = True,
    extra_aggregations: Optional[List[pl.Expr]] = None,
) -> pl.DataFrame:
    """
    Revenue, cost, profit and margin for every group of `by`.

    `by` may name any column of the enriched sales (product, store and
    sale attributes plus `year`). The output carries total_units,
    total_revenue, total_cost, total_profit and margin_pct.
    Stores are joined only when `by` names a store column, so a sale of
    an unknown store still counts toward product level groups.

    Args:
        snapshot: Loaded retail data
        by: Grouping columns
        sort_by: Output ordering (defaults to `by`, ascending)
        descending: Sort direction when `sort_by` is given
        extra_aggregations: Additional per-group expressions
    """
    enriched = _enriched_sales(snapshot, with_stores=_needs_stores(snapshot, by))
    aggregations = _rollup_aggregations() + (extra_aggregations or [])

    grouped = enriched.group_by(list(by), maintain_order=True).agg(aggregations)
    grouped = _derive_profit_and_margin(grouped)

    if sort_by:
        grouped = grouped.sort(list(sort_by), descending=descending, nulls_last=True, maintain_order=True)
    else:
        grouped = grouped.sort(list(by), maintain_order=True)

    return _present(grouped)


# =============================================================================
# PROFITABILITY REPORTS
# =============================================================================

def product_profitability(snapshot: RetailSnapshot) -> pl.DataFrame:
    """Company-wide profitability per product, most profitable first"""
    return rollup(snapshot, ["product_id", "product_name"], sort_by=["total_profit"])


def store_performance(snapshot: RetailSnapshot) -> pl.DataFrame:
    """Performance overview per store, most profitable first"""
    return rollup(snapshot, ["store_id", "store_name", "store_city"], sort_by=["total_profit"])


def city_performance(snapshot: RetailSnapshot) -> pl.DataFrame:
    """City-level summary with the number of stores selling there, by revenue"""
    return rollup(
        snapshot,
        ["store_city"],
        sort_by=["total_revenue"],
        extra_aggregations=[pl.col("store_id").n_unique().alias("number_of_stores")],
    )


def category_performance(snapshot: RetailSnapshot) -> pl.DataFrame:
    """Product category summary with the number of products sold, by profit"""
    return rollup(
        snapshot,
        ["product_category"],
        sort_by=["total_profit"],
        extra_aggregations=[pl.col("product_id").n_unique().alias("num_products")],
    )


def yearly_store_performance(snapshot: RetailSnapshot) -> pl.DataFrame:
    """
    Yearly performance per store.

    `product_names` holds the distinct product names sold in the
    (store, year) bucket. It is a display label: its order is not
    defined and must not be read as a ranking.
    """
    return rollup(
        snapshot,
        ["store_id", "store_name", "year"],
        sort_by=["total_revenue", "total_profit", "total_units"],
        extra_aggregations=[pl.col("product_name").unique().alias("product_names")],
    )


def company_kpis(snapshot: RetailSnapshot) -> Dict[str, Any]:
    """Company-wide totals across all sales with a known product"""
    enriched = _enriched_sales(snapshot, with_stores=False)
    totals = enriched.select([
        pl.col("store_id").n_unique().alias("total_stores"),
        pl.col("product_id").n_unique().alias("total_products"),
        *_rollup_aggregations(),
    ])
    totals = _present(_derive_profit_and_margin(totals))
    return totals.row(0, named=True)


# =============================================================================
# RANKING
# =============================================================================

def top_products(snapshot: RetailSnapshot, limit: int = 20) -> pl.DataFrame:
    """
    Best-selling (product, store) pairs by units, across all stores.

    Ties keep the order in which the pairs first appear in the sales.
    """
    enriched = _enriched_sales(snapshot)
    ranked = (
        enriched.group_by(["product_id", "product_name", "store_id", "store_name"], maintain_order=True)
        .agg(pl.col("units").sum().alias("total_units"))
        .sort("total_units", descending=True, nulls_last=True, maintain_order=True)
        .head(limit)
    )
    return ranked.with_columns(
        pl.int_range(1, pl.len() + 1, dtype=pl.UInt32).alias("rank")
    )


def top_products_per_store(snapshot: RetailSnapshot, limit: int = 10) -> pl.DataFrame:
    """
    The `limit` best-selling products of each store by units.

    Ranks start at 1 and are contiguous within a store; tied products
    are ranked in first-appearance order rather than sharing a rank.
    """
    with_products = _sales_with_products(snapshot)
    per_store = with_products.group_by(
        ["store_id", "product_id", "product_name"], maintain_order=True
    ).agg(pl.col("units").sum().alias("total_units"))

    # Stable sort keeps first-appearance order among tied products
    ranked = per_store.sort(
        ["store_id", "total_units"],
        descending=[False, True],
        nulls_last=True,
        maintain_order=True,
    ).with_columns(
        pl.int_range(1, pl.len() + 1, dtype=pl.UInt32).over("store_id").alias("rank_in_store")
    )

    return ranked.filter(pl.col("rank_in_store") <= limit)


# =============================================================================
# ABC CLASSIFICATION
# =============================================================================

def abc_classification(
    snapshot: RetailSnapshot,
    a_threshold: float = 50.0,
    b_threshold: float = 80.0,
) -> pl.DataFrame:
    """
    Pareto banding of products by cumulative share of units sold.

    Products are ordered by units sold (descending, ties by product_id)
    and accumulated row by row. A product is band A while the running
    share is <= a_threshold, B while <= b_threshold, otherwise C.

    Raises:
        ClassificationUndefinedError: total units sold is zero
    """
    units = (
        _sales_with_products(snapshot)
        .group_by(["product_id", "product_name"], maintain_order=True)
        .agg(pl.col("units").sum().alias("units_sold"))
    )

    total_units = units["units_sold"].sum() or 0
    if total_units <= 0:
        raise ClassificationUndefinedError(total_units)

    classified = (
        units.sort(["units_sold", "product_id"], descending=[True, False], nulls_last=True)
        .with_columns(pl.col("units_sold").cum_sum().alias("running_units"))
        .with_columns((pl.col("running_units") * 100.0 / total_units).alias("running_pct"))
        .with_columns(
            pl.when(pl.col("running_pct") <= a_threshold).then(pl.lit("A"))
            .when(pl.col("running_pct") <= b_threshold).then(pl.lit("B"))
            .otherwise(pl.lit("C"))
            .alias("abc_class")
        )
    )

    logger.info(
        "ABC classification computed",
        products=classified.height,
        total_units=total_units,
        band_counts=dict(classified["abc_class"].value_counts().iter_rows()),
    )
    return classified.with_columns(pl.col("running_pct").round(2))


# =============================================================================
# INVENTORY
# =============================================================================

def stock_to_sales_ratio(snapshot: RetailSnapshot) -> pl.DataFrame:
    """
    Stock on hand over units sold for every (store, product) inventory row.

    The ratio is null when nothing was sold. Rows are ordered by ratio
    ascending (highest stockout risk first) with null ratios last, then
    by units sold descending.
    """
    inventory, stores, products, sales = (
        snapshot.inventory, snapshot.stores, snapshot.products, snapshot.sales
    )
    require_columns(inventory, "inventory", ["store_id", "product_id", "stock_on_hand"])

    sales_summary = sales.group_by(["store_id", "product_id"]).agg(
        pl.col("units").sum().alias("total_units_sold")
    )

    report = (
        inventory
        .join(stores.select(["store_id", "store_name"]), on="store_id", how="inner")
        .join(products.select(["product_id", "product_name"]), on="product_id", how="inner")
        .join(sales_summary, on=["store_id", "product_id"], how="left")
        .with_columns(pl.col("total_units_sold").fill_null(0))
        .with_columns(
            pl.when(pl.col("total_units_sold") != 0)
            .then(pl.col("stock_on_hand") / pl.col("total_units_sold"))
            .otherwise(None)
            .alias("stock_to_sales_ratio")
        )
        .sort(
            ["stock_to_sales_ratio", "total_units_sold", "store_id", "product_id"],
            descending=[False, True, False, False],
            nulls_last=True,
        )
    )

    return report.select([
        "store_id", "store_name", "product_id", "product_name",
        "stock_on_hand", "total_units_sold",
        pl.col("stock_to_sales_ratio").round(2),
    ])


def stockout_risk(snapshot: RetailSnapshot, limit: int = 20) -> pl.DataFrame:
    """
    Products whose average stock is lowest relative to units sold.

    Only products with units sold > 0 are ranked. Products without any
    inventory row count as zero average stock.
    """
    inventory = snapshot.inventory
    require_columns(inventory, "inventory", ["product_id", "stock_on_hand"])

    units = _sales_with_products(snapshot).group_by(
        ["product_id", "product_name"], maintain_order=True
    ).agg(pl.col("units").sum().cast(pl.Float64).alias("total_units_sold"))

    avg_stock = inventory.group_by("product_id").agg(
        pl.col("stock_on_hand").mean().alias("avg_stock")
    )

    report = (
        units.join(avg_stock, on="product_id", how="left")
        .with_columns(pl.col("avg_stock").fill_null(0.0))
        .filter(pl.col("total_units_sold") > 0)
        .with_columns(
            (pl.col("avg_stock") / pl.col("total_units_sold")).alias("stock_to_sales_ratio")
        )
        .sort(["stock_to_sales_ratio", "product_id"])
        .head(limit)
    )

    return report.select([
        "product_id", "product_name",
        pl.col("avg_stock").round(2),
        pl.col("total_units_sold").round(2),
        pl.col("stock_to_sales_ratio").round(4),
    ])


# =============================================================================
# SANITY
# =============================================================================

def date_range_summary(snapshot: RetailSnapshot) -> Dict[str, Any]:
    """Min and max dates of the sales and of the calendar"""
    summary = {
        "sales_min_date": snapshot.sales["date"].min(),
        "sales_max_date": snapshot.sales["date"].max(),
        "calendar_min_date": None,
        "calendar_max_date": None,
    }
    if snapshot.calendar is not None and not snapshot.calendar.is_empty():
        summary["calendar_min_date"] = snapshot.calendar["date"].min()
        summary["calendar_max_date"] = snapshot.calendar["date"].max()
    return summary
