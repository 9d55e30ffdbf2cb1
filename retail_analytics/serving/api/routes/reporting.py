"""
Reporting API Endpoints

Paginated access to the denormalized retail analysis view.
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from retail_analytics.analytics.reporting import filter_view, paginate, retail_analysis_view
from retail_analytics.data.snapshot import RetailSnapshot
from retail_analytics.serving.api.dependencies import get_snapshot, to_records

router = APIRouter()


class RetailAnalysisPage(BaseModel):
    """One page of the retail analysis view"""
    items: List[Dict[str, Any]]
    total: int
    page: int
    page_size: int
    total_pages: int


@router.get("/retail-analysis", response_model=RetailAnalysisPage)
async def get_retail_analysis(
    page: int = Query(1, ge=1),
    page_size: int = Query(100, ge=1, le=1000),
    store_id: Optional[int] = None,
    product_category: Optional[str] = None,
    snapshot: RetailSnapshot = Depends(get_snapshot),
) -> RetailAnalysisPage:
    """
    One enriched row per sale, ordered by date then sale id.
    """
    view = filter_view(
        retail_analysis_view(snapshot),
        store_id=store_id,
        product_category=product_category,
    )
    total = view.height

    return RetailAnalysisPage(
        items=to_records(paginate(view, page=page, page_size=page_size)),
        total=total,
        page=page,
        page_size=page_size,
        total_pages=(total + page_size - 1) // page_size,
    )
