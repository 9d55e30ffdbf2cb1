"""
Analytics API Endpoints

REST API over the sales aggregations: KPIs, rankings, profitability
rollups, ABC classification and yearly store performance.
"""

from datetime import date
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel
import structlog

from retail_analytics.analytics import (
    abc_classification,
    category_performance,
    city_performance,
    company_kpis,
    date_range_summary,
    product_profitability,
    store_performance,
    top_products,
    top_products_per_store,
    yearly_store_performance,
)
from retail_analytics.config.settings import AnalyticsSettings
from retail_analytics.data.snapshot import RetailSnapshot
from retail_analytics.exceptions import ClassificationUndefinedError
from retail_analytics.serving.api.dependencies import (
    get_analytics_settings,
    get_snapshot,
    to_records,
)

router = APIRouter()
logger = structlog.get_logger(__name__)


class CompanyKPIs(BaseModel):
    """Company-wide totals"""
    total_stores: int
    total_products: int
    total_units: Optional[int]
    total_revenue: Optional[float]
    total_cost: Optional[float]
    total_profit: Optional[float]
    margin_pct: Optional[float]


class DateRange(BaseModel):
    """Sales and calendar coverage"""
    sales_min_date: Optional[date]
    sales_max_date: Optional[date]
    calendar_min_date: Optional[date]
    calendar_max_date: Optional[date]


class ABCClassification(BaseModel):
    """ABC bands with per-band product counts"""
    total_units: int
    band_counts: Dict[str, int]
    products: List[Dict[str, Any]]


@router.get("/kpis", response_model=CompanyKPIs)
async def get_company_kpis(snapshot: RetailSnapshot = Depends(get_snapshot)) -> CompanyKPIs:
    """Company-wide stores, products, units, revenue, cost, profit and margin"""
    return CompanyKPIs(**company_kpis(snapshot))


@router.get("/date-range", response_model=DateRange)
async def get_date_range(snapshot: RetailSnapshot = Depends(get_snapshot)) -> DateRange:
    return DateRange(**date_range_summary(snapshot))


@router.get("/top-products")
async def get_top_products(
    limit: Optional[int] = Query(None, ge=1, le=1000),
    snapshot: RetailSnapshot = Depends(get_snapshot),
    config: AnalyticsSettings = Depends(get_analytics_settings),
) -> List[Dict[str, Any]]:
    """Best-selling (product, store) pairs by units across all stores"""
    return to_records(top_products(snapshot, limit=limit or config.top_products_limit))


@router.get("/top-products/by-store")
async def get_top_products_by_store(
    limit: Optional[int] = Query(None, ge=1, le=1000),
    store_id: Optional[int] = None,
    snapshot: RetailSnapshot = Depends(get_snapshot),
    config: AnalyticsSettings = Depends(get_analytics_settings),
) -> List[Dict[str, Any]]:
    """Best-selling products of each store, ranked within the store"""
    ranked = top_products_per_store(snapshot, limit=limit or config.top_per_store_limit)
    if store_id is not None:
        ranked = ranked.filter(ranked["store_id"] == store_id)
    return to_records(ranked)


@router.get("/profitability/products")
async def get_product_profitability(
    snapshot: RetailSnapshot = Depends(get_snapshot),
) -> List[Dict[str, Any]]:
    return to_records(product_profitability(snapshot))


@router.get("/profitability/stores")
async def get_store_profitability(
    snapshot: RetailSnapshot = Depends(get_snapshot),
) -> List[Dict[str, Any]]:
    return to_records(store_performance(snapshot))


@router.get("/profitability/cities")
async def get_city_profitability(
    snapshot: RetailSnapshot = Depends(get_snapshot),
) -> List[Dict[str, Any]]:
    return to_records(city_performance(snapshot))


@router.get("/profitability/categories")
async def get_category_profitability(
    snapshot: RetailSnapshot = Depends(get_snapshot),
) -> List[Dict[str, Any]]:
    return to_records(category_performance(snapshot))


@router.get("/abc", response_model=ABCClassification)
async def get_abc_classification(
    snapshot: RetailSnapshot = Depends(get_snapshot),
    config: AnalyticsSettings = Depends(get_analytics_settings),
) -> ABCClassification:
    """
    ABC classification of products by cumulative share of units sold.

    Answers 422 when no units have been sold.
    """
    try:
        classified = abc_classification(
            snapshot,
            a_threshold=config.abc_a_threshold,
            b_threshold=config.abc_b_threshold,
        )
    except ClassificationUndefinedError as e:
        logger.warning("ABC classification requested with no units sold")
        raise HTTPException(status_code=422, detail=str(e))

    band_counts = {band: 0 for band in ("A", "B", "C")}
    for band, count in classified["abc_class"].value_counts().iter_rows():
        band_counts[band] = count

    return ABCClassification(
        total_units=int(classified["units_sold"].sum()),
        band_counts=band_counts,
        products=to_records(classified),
    )


@router.get("/yearly")
async def get_yearly_store_performance(
    year: Optional[int] = None,
    snapshot: RetailSnapshot = Depends(get_snapshot),
) -> List[Dict[str, Any]]:
    """Per-store, per-year rollup with the distinct products sold"""
    report = yearly_store_performance(snapshot)
    if year is not None:
        report = report.filter(report["year"] == year)
    return to_records(report)
