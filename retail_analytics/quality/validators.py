"""
Data Validation Module

Rule-based data quality checks over a loaded retail snapshot.
Implements validation patterns inspired by Great Expectations.

Checks:
- Mandatory-field nullness
- Duplicate primary keys (single and composite)
- Referential integrity (orphaned foreign keys)
- Value ranges (non-negative prices, costs, units)

Every check is read-only and returns the offending rows; nothing is
repaired, dropped or filled.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

import polars as pl
import structlog

from retail_analytics.data.snapshot import PRIMARY_KEYS, RetailSnapshot

logger = structlog.get_logger(__name__)


class ValidationSeverity(str, Enum):
    """Severity levels for validation failures"""
    ERROR = "error"  # Data defect to fix at the source
    WARNING = "warning"  # Suspicious but representable
    INFO = "info"


class ValidationStatus(str, Enum):
    """Overall validation status"""
    PASSED = "passed"
    FAILED = "failed"
    PARTIAL = "partial"


@dataclass
class ValidationCheck:
    """Single validation check result"""
    name: str
    rule: str
    passed: bool
    severity: ValidationSeverity
    message: str
    details: Optional[Dict[str, Any]] = None
    failed_rows: int = 0
    total_rows: int = 0
    offending_rows: Optional[pl.DataFrame] = None

    def to_dict(self, max_rows: int = 50) -> Dict[str, Any]:
        """JSON-friendly summary including up to `max_rows` offending rows"""
        rows = []
        if self.offending_rows is not None:
            rows = self.offending_rows.head(max_rows).to_dicts()
        return {
            "name": self.name,
            "rule": self.rule,
            "passed": self.passed,
            "severity": self.severity.value,
            "message": self.message,
            "failed_rows": self.failed_rows,
            "total_rows": self.total_rows,
            "offending_rows": rows,
        }


@dataclass
class ValidationResult:
    """Complete validation suite result"""
    status: ValidationStatus
    total_checks: int
    passed_checks: int
    failed_checks: int
    warning_count: int
    table: Optional[str] = None
    checks: List[ValidationCheck] = field(default_factory=list)
    started_at: datetime = field(default_factory=datetime.utcnow)
    completed_at: Optional[datetime] = None

    @property
    def success_rate(self) -> float:
        """Percentage of passed checks"""
        if self.total_checks == 0:
            return 100.0
        return (self.passed_checks / self.total_checks) * 100

    def failures(self) -> List[ValidationCheck]:
        return [c for c in self.checks if not c.passed]


class DataValidator:
    """
    Data validator for one retail table.

    Example:
        validator = DataValidator("products")
        validator.add_not_null_check(["product_name", "product_price"])
        validator.add_unique_check(["product_id"])
        result = validator.validate(products_df)
    """

    def __init__(self, table: str, strict_mode: bool = False):
        self.table = table
        self.strict_mode = strict_mode  # Fail on any warning
        self._checks: List[Callable[[pl.DataFrame], ValidationCheck]] = []

    def _missing_columns(
        self,
        df: pl.DataFrame,
        columns: List[str],
        name: str,
        rule: str,
        severity: ValidationSeverity,
    ) -> Optional[ValidationCheck]:
        missing = [c for c in columns if c not in df.columns]
        if not missing:
            return None
        return ValidationCheck(
            name=name,
            rule=rule,
            passed=False,
            severity=severity,
            message=f"Columns not found: {', '.join(missing)}",
            total_rows=len(df),
        )

    def add_not_null_check(
        self,
        columns: List[str],
        severity: ValidationSeverity = ValidationSeverity.ERROR,
    ) -> "DataValidator":
        """Flag rows where any of `columns` is null"""
        name = f"{self.table}_not_null"
        rule = "null_mandatory_field"

        def check(df: pl.DataFrame) -> ValidationCheck:
            missing = self._missing_columns(df, columns, name, rule, severity)
            if missing:
                return missing

            offending = df.filter(pl.any_horizontal([pl.col(c).is_null() for c in columns]))
            failed = offending.height
            passed = failed == 0

            return ValidationCheck(
                name=name,
                rule=rule,
                passed=passed,
                severity=severity,
                message=(
                    f"{failed} rows with null mandatory fields" if not passed
                    else "No null mandatory fields"
                ),
                details={
                    "columns": columns,
                    "null_counts": {c: df[c].null_count() for c in columns},
                },
                failed_rows=failed,
                total_rows=len(df),
                offending_rows=offending,
            )

        self._checks.append(check)
        return self

    def add_unique_check(
        self,
        columns: List[str],
        severity: ValidationSeverity = ValidationSeverity.ERROR,
    ) -> "DataValidator":
        """Flag every row whose key (possibly composite) is shared with another row"""
        name = f"{self.table}_unique_{'_'.join(columns)}"
        rule = "duplicate_key"

        def check(df: pl.DataFrame) -> ValidationCheck:
            missing = self._missing_columns(df, columns, name, rule, severity)
            if missing:
                return missing

            offending = df.filter(pl.struct(columns).is_duplicated())
            duplicate_keys = offending.select(columns).unique().height
            passed = offending.height == 0

            return ValidationCheck(
                name=name,
                rule=rule,
                passed=passed,
                severity=severity,
                message=(
                    f"{duplicate_keys} duplicated keys across {offending.height} rows" if not passed
                    else f"Key ({', '.join(columns)}) is unique"
                ),
                details={"key": columns, "duplicate_keys": duplicate_keys},
                failed_rows=offending.height,
                total_rows=len(df),
                offending_rows=offending,
            )

        self._checks.append(check)
        return self

    def add_range_check(
        self,
        column: str,
        min_value: Optional[float] = None,
        max_value: Optional[float] = None,
        severity: ValidationSeverity = ValidationSeverity.ERROR,
    ) -> "DataValidator":
        """Flag values outside [min_value, max_value]"""
        name = f"{self.table}_range_{column}"
        rule = "out_of_range"

        def check(df: pl.DataFrame) -> ValidationCheck:
            missing = self._missing_columns(df, [column], name, rule, severity)
            if missing:
                return missing

            conditions = []
            if min_value is not None:
                conditions.append(pl.col(column) < min_value)
            if max_value is not None:
                conditions.append(pl.col(column) > max_value)

            if not conditions:
                return ValidationCheck(
                    name=name,
                    rule=rule,
                    passed=True,
                    severity=severity,
                    message="No range specified",
                )

            offending = df.filter(pl.any_horizontal(conditions))
            passed = offending.height == 0

            return ValidationCheck(
                name=name,
                rule=rule,
                passed=passed,
                severity=severity,
                message=(
                    f"Column '{column}' has {offending.height} values outside range [{min_value}, {max_value}]"
                    if not passed else "All values in range"
                ),
                details={"min": min_value, "max": max_value},
                failed_rows=offending.height,
                total_rows=len(df),
                offending_rows=offending,
            )

        self._checks.append(check)
        return self

    def add_non_negative_check(
        self,
        column: str,
        severity: ValidationSeverity = ValidationSeverity.ERROR,
    ) -> "DataValidator":
        """Add check for values >= 0"""
        return self.add_range_check(column, min_value=0, severity=severity)

    def add_referential_integrity_check(
        self,
        column: str,
        reference_df: pl.DataFrame,
        reference_column: str,
        reference_table: str,
        severity: ValidationSeverity = ValidationSeverity.ERROR,
    ) -> "DataValidator":
        """Flag rows whose non-null `column` has no match in the reference table"""
        name = f"{self.table}_{column}_references_{reference_table}"
        rule = "orphan_foreign_key"

        def check(df: pl.DataFrame) -> ValidationCheck:
            missing = self._missing_columns(df, [column], name, rule, severity)
            if missing:
                return missing

            parents = reference_df.select(
                pl.col(reference_column).alias(column)
            ).drop_nulls().unique()
            offending = (
                df.filter(pl.col(column).is_not_null())
                .join(parents, on=column, how="anti")
            )
            passed = offending.height == 0

            return ValidationCheck(
                name=name,
                rule=rule,
                passed=passed,
                severity=severity,
                message=(
                    f"{offending.height} rows reference missing {reference_table}" if not passed
                    else "Referential integrity maintained"
                ),
                details={"reference_table": reference_table, "orphan_count": offending.height},
                failed_rows=offending.height,
                total_rows=len(df),
                offending_rows=offending,
            )

        self._checks.append(check)
        return self

    def validate(self, df: pl.DataFrame) -> ValidationResult:
        """
        Run all validation checks on DataFrame.

        Args:
            df: DataFrame to validate

        Returns:
            ValidationResult with all check results
        """
        started_at = datetime.utcnow()
        results = []

        logger.info(
            "Running validation checks",
            table=self.table,
            checks=len(self._checks),
            rows=len(df),
        )

        for check_func in self._checks:
            result = check_func(df)
            results.append(result)

            if not result.passed:
                logger.warning(
                    f"Validation failed: {result.name}",
                    rule=result.rule,
                    message=result.message,
                    severity=result.severity.value,
                )

        completed_at = datetime.utcnow()

        passed_checks = sum(1 for r in results if r.passed)
        failed_checks = sum(1 for r in results if not r.passed and r.severity == ValidationSeverity.ERROR)
        warning_count = sum(1 for r in results if not r.passed and r.severity == ValidationSeverity.WARNING)

        if failed_checks > 0:
            status = ValidationStatus.FAILED
        elif warning_count > 0 and self.strict_mode:
            status = ValidationStatus.FAILED
        elif warning_count > 0:
            status = ValidationStatus.PARTIAL
        else:
            status = ValidationStatus.PASSED

        validation_result = ValidationResult(
            status=status,
            total_checks=len(results),
            passed_checks=passed_checks,
            failed_checks=failed_checks,
            warning_count=warning_count,
            table=self.table,
            checks=results,
            started_at=started_at,
            completed_at=completed_at,
        )

        logger.info(
            f"Validation complete: {status.value}",
            table=self.table,
            passed=passed_checks,
            failed=failed_checks,
            warnings=warning_count,
        )

        return validation_result


# Pre-built validators for the retail tables
def create_products_validator() -> DataValidator:
    """Create pre-configured validator for products data"""
    return (
        DataValidator("products")
        .add_not_null_check(["product_id", "product_name", "product_cost", "product_price"])
        .add_unique_check(PRIMARY_KEYS["products"])
        .add_non_negative_check("product_cost")
        .add_non_negative_check("product_price")
    )


def create_stores_validator() -> DataValidator:
    """Create pre-configured validator for stores data"""
    return (
        DataValidator("stores")
        .add_not_null_check(["store_id", "store_name", "store_city"])
        .add_unique_check(PRIMARY_KEYS["stores"])
    )


def create_sales_validator(products: pl.DataFrame, stores: pl.DataFrame) -> DataValidator:
    """Create pre-configured validator for sales data"""
    return (
        DataValidator("sales")
        .add_not_null_check(["sale_id", "date", "store_id", "product_id", "units"])
        .add_unique_check(PRIMARY_KEYS["sales"])
        .add_referential_integrity_check("product_id", products, "product_id", "products")
        .add_referential_integrity_check("store_id", stores, "store_id", "stores")
        .add_non_negative_check("units", severity=ValidationSeverity.WARNING)
    )


def create_inventory_validator(products: pl.DataFrame, stores: pl.DataFrame) -> DataValidator:
    """Create pre-configured validator for inventory data"""
    return (
        DataValidator("inventory")
        .add_not_null_check(["store_id", "product_id", "stock_on_hand"])
        .add_unique_check(PRIMARY_KEYS["inventory"])
        .add_referential_integrity_check("product_id", products, "product_id", "products")
        .add_referential_integrity_check("store_id", stores, "store_id", "stores")
        .add_non_negative_check("stock_on_hand", severity=ValidationSeverity.WARNING)
    )


def validate_snapshot(snapshot: RetailSnapshot) -> Dict[str, ValidationResult]:
    """
    Run every pre-built validator against a snapshot.

    Returns:
        Validation result per table name
    """
    validators = {
        "products": create_products_validator(),
        "stores": create_stores_validator(),
        "sales": create_sales_validator(snapshot.products, snapshot.stores),
        "inventory": create_inventory_validator(snapshot.products, snapshot.stores),
    }
    tables = snapshot.tables()
    return {name: validator.validate(tables[name]) for name, validator in validators.items()}
