"""
Inventory API Endpoints
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query

from retail_analytics.analytics import stock_to_sales_ratio, stockout_risk
from retail_analytics.config.settings import AnalyticsSettings
from retail_analytics.data.snapshot import RetailSnapshot
from retail_analytics.serving.api.dependencies import (
    get_analytics_settings,
    get_snapshot,
    to_records,
)

router = APIRouter()


@router.get("/stock-to-sales")
async def get_stock_to_sales_ratio(
    store_id: Optional[int] = None,
    snapshot: RetailSnapshot = Depends(get_snapshot),
) -> List[Dict[str, Any]]:
    """
    Stock on hand over units sold per (store, product), most at risk first.

    Pairs with no units sold carry a null ratio and come last.
    """
    report = stock_to_sales_ratio(snapshot)
    if store_id is not None:
        report = report.filter(report["store_id"] == store_id)
    return to_records(report)


@router.get("/stockout-risk")
async def get_stockout_risk(
    limit: Optional[int] = Query(None, ge=1, le=1000),
    snapshot: RetailSnapshot = Depends(get_snapshot),
    config: AnalyticsSettings = Depends(get_analytics_settings),
) -> List[Dict[str, Any]]:
    """Products with the lowest average stock relative to units sold"""
    return to_records(stockout_risk(snapshot, limit=limit or config.stockout_limit))
