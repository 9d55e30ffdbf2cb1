"""
Unit Tests - Data Transformation
"""
from datetime import date

import pytest
import polars as pl

from retail_analytics.exceptions import SchemaMismatchError
from retail_analytics.transformation.cleaners import DataCleaner, clean_dataframe
from retail_analytics.transformation.calendar import (
    calendar_from_sales,
    derive_calendar,
    sales_date_range,
    upsert_calendar,
)


class TestDataCleaner:
    """Tests for DataCleaner"""

    def test_normalize_columns(self):
        """Test header normalization"""
        cleaner = DataCleaner()
        df = pl.DataFrame({"Product_ID": [1], "Stock On Hand": [2], " Store-City ": ["x"]})

        result = cleaner._normalize_columns(df)

        assert result.columns == ["product_id", "stock_on_hand", "store_city"]

    def test_trim_strings(self):
        """Test string trimming"""
        cleaner = DataCleaner()
        df = pl.DataFrame({
            "store_city": ["  Puebla  ", "Toluca", "  Merida"],
        })

        result = cleaner._trim_strings(df)

        assert result["store_city"].to_list() == ["Puebla", "Toluca", "Merida"]

    def test_normalize_currency(self):
        """Test currency strings become floats"""
        cleaner = DataCleaner()
        df = pl.DataFrame({"product_price": ["$9.99 ", "$1,299.00", "free"]})

        result = cleaner._normalize_currency(df, ["product_price"])

        assert result["product_price"].to_list() == [9.99, 1299.0, None]

    def test_currency_rounded_to_cents(self):
        """Test amounts are fixed to 2 decimal places"""
        cleaner = DataCleaner()
        df = pl.DataFrame({"product_cost": ["$4.999", "$0.123", "12.3456"]})

        result = cleaner._normalize_currency(df, ["product_cost"])

        assert result["product_cost"].to_list() == [5.0, 0.12, 12.35]

    def test_standardize_dates(self):
        """Test dates in several formats parse to the same type"""
        cleaner = DataCleaner()
        df = pl.DataFrame({"date": ["2022-01-05", "01/06/2022", "2022/01/07", "not a date"]})

        result = cleaner._standardize_dates(df, ["date"])

        assert result["date"].dtype == pl.Date
        assert result["date"].to_list() == [
            date(2022, 1, 5), date(2022, 1, 6), date(2022, 1, 7), None,
        ]

    def test_clean_products(self):
        """Test product-specific cleaning"""
        raw = pl.DataFrame({
            "Product_ID": ["1", "2"],
            "Product_Name": [" Dino Egg ", "Jenga"],
            "Product_Category": ["Toys", "Games"],
            "Product_Cost": ["$5.00 ", "$3.00 "],
            "Product_Price": ["$10.00 ", "$6.00 "],
        })

        result = DataCleaner().clean_products(raw)

        assert result.schema["product_id"] == pl.Int64
        assert result["product_name"].to_list() == ["Dino Egg", "Jenga"]
        assert result["product_price"].to_list() == [10.0, 6.0]

    def test_cleaning_keeps_defects(self):
        """Duplicates and unparseable values stay in place for validation"""
        raw = pl.DataFrame({
            "Sale_ID": ["1", "1", "2"],
            "Date": ["2022-01-01", "2022-01-01", "2022-01-02"],
            "Store_ID": ["1", "1", "1"],
            "Product_ID": ["1", "1", "x"],
            "Units": ["1", "1", "2"],
        })

        result = DataCleaner().clean_sales(raw)

        assert result.height == 3
        assert result["product_id"].to_list() == [1, 1, None]

    def test_missing_column_raises(self):
        """Test extracts lacking a canonical column are rejected"""
        raw = pl.DataFrame({"Store_ID": ["1"], "Product_ID": ["1"]})

        with pytest.raises(SchemaMismatchError) as exc_info:
            DataCleaner().clean_inventory(raw)

        assert exc_info.value.missing_columns == ["stock_on_hand"]

    def test_stats(self):
        """Test cleaning statistics"""
        cleaner = DataCleaner()
        raw = pl.DataFrame({
            "Store_ID": ["1", "2"],
            "Product_ID": ["1", "2"],
            "Stock_On_Hand": ["5", "lots"],
        })

        cleaned = cleaner.clean_inventory(raw)
        stats = cleaner.stats(raw, cleaned)

        assert stats.total_rows == 2
        assert stats.columns_renamed == 3
        assert stats.values_unparseable == 1

    def test_stats_ignore_extra_columns(self):
        """Test nulls in columns outside the canonical schema are not counted"""
        cleaner = DataCleaner()
        raw = pl.DataFrame({
            "Store_ID": ["1", "2"],
            "Product_ID": ["1", "2"],
            "Stock_On_Hand": ["lots", "3"],
            "Comment": [None, None],
        })

        stats = cleaner.stats(raw, cleaner.clean_inventory(raw))

        assert stats.values_unparseable == 1


class TestCleanDataframe:
    """Tests for clean_dataframe convenience function"""

    def test_clean_stores(self):
        raw = pl.DataFrame({
            "Store_ID": ["1"],
            "Store_Name": ["Maven Toys Puebla 1"],
            "Store_City": ["Puebla"],
            "Store_Location": ["Downtown"],
            "Store_Open_Date": ["2010-05-01"],
        })

        result = clean_dataframe(raw, "stores")

        assert result["store_open_date"].to_list() == [date(2010, 5, 1)]

    def test_unknown_table(self):
        with pytest.raises(ValueError):
            clean_dataframe(pl.DataFrame({"a": [1]}), "orders")


class TestCalendar:
    """Tests for calendar derivation"""

    def test_derive_calendar_attributes(self):
        """2022-01-01 is a Saturday"""
        calendar = derive_calendar(date(2022, 1, 1), date(2022, 1, 3))

        first = calendar.row(0, named=True)
        assert first["day_of_week"] == "Saturday"
        assert first["weekday_number"] == 6
        assert first["month"] == 1
        assert first["month_name"] == "January"
        assert first["year"] == 2022
        assert first["is_weekend"] is True

        monday = calendar.row(2, named=True)
        assert monday["day_of_week"] == "Monday"
        assert monday["weekday_number"] == 1
        assert monday["is_weekend"] is False

    def test_calendar_is_complete(self, sample_snapshot):
        """One row for every day between the first and last sale"""
        calendar = calendar_from_sales(sample_snapshot.sales)

        start, end = sales_date_range(sample_snapshot.sales)
        expected = pl.date_range(start, end, interval="1d", eager=True).to_list()

        assert calendar["date"].to_list() == expected
        assert calendar["date"].n_unique() == calendar.height

    def test_single_day_range(self):
        calendar = derive_calendar(date(2022, 2, 28), date(2022, 2, 28))

        assert calendar.height == 1

    def test_inverted_range_raises(self):
        with pytest.raises(ValueError):
            derive_calendar(date(2022, 2, 1), date(2022, 1, 1))

    def test_rederivation_is_idempotent(self, sample_snapshot):
        """Re-running on an unchanged range adds nothing and changes nothing"""
        first = calendar_from_sales(sample_snapshot.sales)
        second = calendar_from_sales(sample_snapshot.sales, existing=first)

        assert second.equals(first)

    def test_upsert_adds_only_new_dates(self):
        existing = derive_calendar(date(2022, 1, 1), date(2022, 1, 10))
        derived = derive_calendar(date(2022, 1, 5), date(2022, 1, 15))

        merged = upsert_calendar(existing, derived)

        assert merged.height == 15
        assert merged["date"].is_unique().all()
        assert merged["date"].min() == date(2022, 1, 1)
        assert merged["date"].max() == date(2022, 1, 15)

    def test_no_sales_leaves_calendar_empty(self, snapshot_factory):
        snapshot = snapshot_factory(products=[], stores=[], sales=[])

        assert sales_date_range(snapshot.sales) is None
        assert calendar_from_sales(snapshot.sales).is_empty()
