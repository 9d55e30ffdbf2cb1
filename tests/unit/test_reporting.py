"""
Unit Tests - Reporting View
"""
from datetime import date

import pytest

from retail_analytics.analytics.reporting import (
    VIEW_COLUMNS,
    filter_view,
    paginate,
    retail_analysis_view,
)


class TestRetailAnalysisView:
    """Tests for the denormalized per-sale view"""

    def test_columns_and_order(self, sample_snapshot):
        view = retail_analysis_view(sample_snapshot)

        assert view.columns == VIEW_COLUMNS
        assert view["sale_id"].to_list() == [1, 2, 3, 4, 5]

    def test_row_measures(self, sample_snapshot):
        first = retail_analysis_view(sample_snapshot).row(0, named=True)

        assert first["date"] == date(2022, 1, 1)
        assert first["store_city"] == "Guadalajara"
        assert first["total_revenue"] == 30.0
        assert first["total_profit"] == 15.0
        assert first["profit_margin_percent"] == 50.0
        assert first["stock_on_hand"] == 0

    def test_zero_revenue_margin_is_null(self, sample_snapshot):
        view = retail_analysis_view(sample_snapshot)
        free = view.filter(view["product_id"] == 3).row(0, named=True)

        assert free["total_revenue"] == 0.0
        assert free["profit_margin_percent"] is None

    def test_missing_inventory_gives_null_stock(self, sample_snapshot):
        view = retail_analysis_view(sample_snapshot)

        # (store 2, product 3) has no inventory row
        assert view.filter(view["sale_id"] == 5)["stock_on_hand"].to_list() == [None]

    def test_orphan_sales_not_in_view(self, defective_snapshot):
        view = retail_analysis_view(defective_snapshot)

        assert 99 not in view["product_id"].to_list()
        assert 7 not in view["sale_id"].to_list()


class TestPagination:

    def test_paginate(self, sample_snapshot):
        view = retail_analysis_view(sample_snapshot)

        assert paginate(view, page=1, page_size=2)["sale_id"].to_list() == [1, 2]
        assert paginate(view, page=3, page_size=2)["sale_id"].to_list() == [5]
        assert paginate(view, page=4, page_size=2).is_empty()

    def test_invalid_page(self, sample_snapshot):
        view = retail_analysis_view(sample_snapshot)

        with pytest.raises(ValueError):
            paginate(view, page=0)

    def test_filter_view(self, sample_snapshot):
        view = retail_analysis_view(sample_snapshot)

        assert filter_view(view, store_id=2)["sale_id"].to_list() == [4, 5]
        assert filter_view(view, product_category="Toys")["sale_id"].to_list() == [1, 2, 5]
        assert filter_view(view, store_id=2, product_category="Toys")["sale_id"].to_list() == [5]
