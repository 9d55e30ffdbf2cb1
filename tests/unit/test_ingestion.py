"""
Unit Tests - Batch Ingestion
"""
from datetime import date

import pytest
import polars as pl

from retail_analytics.data.generators import RetailDataGenerator
from retail_analytics.data.snapshot import TABLE_SCHEMAS
from retail_analytics.exceptions import ExtractLoadError
from retail_analytics.ingestion import BatchFileConfig, BatchLoader, LoadStatus


class TestBatchLoader:
    """Tests for BatchLoader"""

    def test_load_single_extract(self, raw_extracts_dir):
        loader = BatchLoader()
        df, result = loader.load(
            BatchFileConfig(file_path=raw_extracts_dir / "products.csv", target_table="products")
        )

        assert result.status == LoadStatus.COMPLETED
        assert result.rows_loaded == 2
        assert result.values_unparseable == 0
        assert result.columns_renamed == 5
        assert result.file_hash is not None
        assert dict(df.schema) == TABLE_SCHEMAS["products"]
        assert df["product_cost"].to_list() == [5.0, 2.0]

    def test_load_snapshot(self, raw_extracts_dir):
        snapshot, results = BatchLoader().load_snapshot(raw_extracts_dir)

        assert set(results) == {"products", "stores", "inventory", "sales"}
        assert snapshot.row_counts == {"products": 2, "stores": 2, "inventory": 2, "sales": 3}
        assert snapshot.calendar is None
        assert snapshot.stores["store_city"].to_list() == ["Guadalajara", "Monterrey"]
        assert snapshot.stores["store_open_date"].to_list() == [date(2010, 1, 1), date(2012, 6, 15)]

    def test_unparseable_values_flagged(self, tmp_path):
        path = tmp_path / "inventory.csv"
        path.write_text("Store_ID,Product_ID,Stock_On_Hand\n1,1,5\n1,2,lots\n")

        df, result = BatchLoader().load(BatchFileConfig(file_path=path, target_table="inventory"))

        assert result.status == LoadStatus.COMPLETED_WITH_WARNINGS
        assert result.values_unparseable == 1
        assert df.height == 2
        assert df["stock_on_hand"].to_list() == [5, None]

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(ExtractLoadError) as exc_info:
            BatchLoader().load(BatchFileConfig(file_path=tmp_path / "nope.csv", target_table="sales"))

        assert "file not found" in str(exc_info.value)

    def test_missing_column_raises(self, tmp_path):
        path = tmp_path / "sales.csv"
        path.write_text("Sale_ID,Date,Store_ID,Product_ID\n1,2022-01-01,1,1\n")

        with pytest.raises(ExtractLoadError) as exc_info:
            BatchLoader().load(BatchFileConfig(file_path=path, target_table="sales"))

        assert "units" in str(exc_info.value)

    def test_generated_extracts_round_trip(self, tmp_path):
        generator = RetailDataGenerator(seed=7)
        extracts = generator.generate_all(n_products=10, n_stores=3, n_sales=200, days=30)
        generator.write_extracts(extracts, str(tmp_path))

        snapshot, _ = BatchLoader().load_snapshot(tmp_path)

        assert snapshot.sales.height == 200
        assert snapshot.products["product_price"].null_count() == 0
        assert (snapshot.products["product_cost"] <= snapshot.products["product_price"]).all()
        assert snapshot.sales["date"].min() >= date(2022, 1, 1)
        assert snapshot.sales["date"].max() < date(2022, 1, 31)


class TestRetailDataGenerator:

    def test_reproducible(self):
        first = RetailDataGenerator(seed=1).generate_all(n_products=5, n_stores=2, n_sales=50)
        second = RetailDataGenerator(seed=1).generate_all(n_products=5, n_stores=2, n_sales=50)

        for name in first:
            assert first[name].equals(second[name])

    def test_raw_layout(self):
        products = RetailDataGenerator().generate_products(3)

        assert products.columns[0] == "Product_ID"
        assert all(v.startswith("$") for v in products["Product_Price"].to_list())
