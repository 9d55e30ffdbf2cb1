"""
Analytics Module
"""
from .aggregations import (
    abc_classification,
    category_performance,
    city_performance,
    company_kpis,
    date_range_summary,
    product_profitability,
    rollup,
    stock_to_sales_ratio,
    stockout_risk,
    store_performance,
    top_products,
    top_products_per_store,
    yearly_store_performance,
)
from .reporting import retail_analysis_view

__all__ = [
    "abc_classification",
    "category_performance",
    "city_performance",
    "company_kpis",
    "date_range_summary",
    "product_profitability",
    "rollup",
    "stock_to_sales_ratio",
    "stockout_risk",
    "store_performance",
    "top_products",
    "top_products_per_store",
    "yearly_store_performance",
    "retail_analysis_view",
]
