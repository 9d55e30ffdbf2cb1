"""
Unit Tests - Data Quality
"""
import pytest
import polars as pl

from retail_analytics.quality.validators import (
    DataValidator,
    ValidationSeverity,
    ValidationStatus,
    create_inventory_validator,
    create_products_validator,
    validate_snapshot,
)


class TestDataValidator:
    """Tests for DataValidator"""

    def test_not_null_check_passes(self):
        """Test not null check with valid data"""
        df = pl.DataFrame({"id": [1, 2, 3], "name": ["a", "b", "c"]})

        validator = DataValidator("items")
        validator.add_not_null_check(["id"])

        result = validator.validate(df)

        assert result.status == ValidationStatus.PASSED
        assert result.passed_checks == 1

    def test_not_null_check_fails(self):
        """Test not null check with null values"""
        df = pl.DataFrame({"id": [1, None, 3], "name": ["a", "b", None]})

        validator = DataValidator("items")
        validator.add_not_null_check(["id", "name"])

        result = validator.validate(df)

        assert result.status == ValidationStatus.FAILED
        assert result.failed_checks == 1
        check = result.checks[0]
        assert check.rule == "null_mandatory_field"
        assert check.failed_rows == 2
        assert check.details["null_counts"] == {"id": 1, "name": 1}

    def test_unique_check_passes(self):
        """Test unique check with unique values"""
        df = pl.DataFrame({"id": [1, 2, 3]})

        validator = DataValidator("items")
        validator.add_unique_check(["id"])

        result = validator.validate(df)

        assert result.status == ValidationStatus.PASSED

    def test_unique_check_reports_every_duplicate_row(self):
        """Test unique check with duplicates"""
        df = pl.DataFrame({"id": [1, 2, 1], "value": ["a", "b", "c"]})

        validator = DataValidator("items")
        validator.add_unique_check(["id"])

        result = validator.validate(df)

        assert result.status == ValidationStatus.FAILED
        check = result.checks[0]
        assert check.rule == "duplicate_key"
        assert check.offending_rows["value"].to_list() == ["a", "c"]

    def test_composite_unique_check(self):
        """Only the full (store, product) key must be unique"""
        df = pl.DataFrame({"store_id": [1, 1, 2, 1], "product_id": [1, 2, 1, 1]})

        validator = DataValidator("inventory")
        validator.add_unique_check(["store_id", "product_id"])

        result = validator.validate(df)

        assert result.checks[0].failed_rows == 2
        assert result.checks[0].details["duplicate_keys"] == 1

    def test_range_check(self):
        """Test range check"""
        df = pl.DataFrame({"price": [10.0, 50.0, -5.0, 200.0]})

        validator = DataValidator("items")
        validator.add_range_check("price", min_value=0, max_value=100)

        result = validator.validate(df)

        assert result.status == ValidationStatus.FAILED
        # Two values outside range: -5 and 200
        check = result.checks[0]
        assert check.failed_rows == 2

    def test_warning_gives_partial_status(self):
        df = pl.DataFrame({"units": [1, -1]})

        validator = DataValidator("sales")
        validator.add_non_negative_check("units", severity=ValidationSeverity.WARNING)

        result = validator.validate(df)

        assert result.status == ValidationStatus.PARTIAL
        assert result.warning_count == 1

    def test_strict_mode_fails_on_warning(self):
        df = pl.DataFrame({"units": [1, -1]})

        validator = DataValidator("sales", strict_mode=True)
        validator.add_non_negative_check("units", severity=ValidationSeverity.WARNING)

        assert validator.validate(df).status == ValidationStatus.FAILED

    def test_referential_integrity_check(self):
        """Orphan foreign keys are reported, null keys are left to the null check"""
        products = pl.DataFrame({"product_id": [1, 2]})
        sales = pl.DataFrame({"sale_id": [1, 2, 3, 4], "product_id": [1, 3, None, 3]})

        validator = DataValidator("sales")
        validator.add_referential_integrity_check("product_id", products, "product_id", "products")

        result = validator.validate(sales)

        check = result.checks[0]
        assert check.rule == "orphan_foreign_key"
        assert check.offending_rows["sale_id"].to_list() == [2, 4]

    def test_missing_column_fails_check(self):
        validator = DataValidator("items")
        validator.add_not_null_check(["missing"])

        result = validator.validate(pl.DataFrame({"id": [1]}))

        assert result.status == ValidationStatus.FAILED
        assert "missing" in result.checks[0].message

    def test_validation_does_not_modify_data(self, defective_snapshot):
        before = defective_snapshot.sales.clone()

        validate_snapshot(defective_snapshot)

        assert defective_snapshot.sales.equals(before)

    def test_check_to_dict(self):
        df = pl.DataFrame({"id": [None, None, None]})

        result = DataValidator("items").add_not_null_check(["id"]).validate(df)
        summary = result.checks[0].to_dict(max_rows=2)

        assert summary["severity"] == "error"
        assert summary["failed_rows"] == 3
        assert len(summary["offending_rows"]) == 2


class TestSnapshotValidation:
    """Tests for the pre-built retail validators"""

    def test_clean_snapshot_passes(self, sample_snapshot):
        results = validate_snapshot(sample_snapshot)

        assert set(results) == {"products", "stores", "sales", "inventory"}
        assert all(r.status == ValidationStatus.PASSED for r in results.values())

    def test_defective_snapshot(self, defective_snapshot):
        results = validate_snapshot(defective_snapshot)
        sales = {c.rule + ":" + c.name: c for c in results["sales"].failures()}

        assert results["sales"].status == ValidationStatus.FAILED
        assert sales["null_mandatory_field:sales_not_null"].failed_rows == 1
        assert sales["duplicate_key:sales_unique_sale_id"].failed_rows == 2
        assert sales["orphan_foreign_key:sales_product_id_references_products"].failed_rows == 1
        assert sales["orphan_foreign_key:sales_store_id_references_stores"].failed_rows == 1

        assert results["inventory"].status == ValidationStatus.FAILED
        assert results["products"].status == ValidationStatus.PASSED

    def test_products_validator_flags_negative_price(self, snapshot_factory):
        snapshot = snapshot_factory(
            products=[(1, "Kite", "Toys", 2.0, -1.0)],
            stores=[],
            sales=[],
        )

        result = create_products_validator().validate(snapshot.products)

        assert result.status == ValidationStatus.FAILED
        assert result.failures()[0].name == "products_range_product_price"

    def test_negative_stock_is_warning(self, sample_snapshot):
        inventory = pl.DataFrame(
            {"store_id": [1], "product_id": [1], "stock_on_hand": [-3]},
            schema=sample_snapshot.inventory.schema,
        )

        result = create_inventory_validator(
            sample_snapshot.products, sample_snapshot.stores
        ).validate(inventory)

        assert result.status == ValidationStatus.PARTIAL
