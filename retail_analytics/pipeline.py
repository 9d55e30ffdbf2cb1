"""
Analytics Pipeline

End-to-end batch run over one set of extracts:
1. Load and normalize the four extracts
2. Validate the snapshot (defects are reported, never repaired)
3. Derive the calendar from the sales date range
4. Compute every report and write it to the curated zone

A report that cannot be computed is recorded as failed; the remaining
reports still run.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple, Union

import polars as pl
import structlog

from retail_analytics.analytics import (
    abc_classification,
    category_performance,
    city_performance,
    company_kpis,
    date_range_summary,
    product_profitability,
    retail_analysis_view,
    stock_to_sales_ratio,
    stockout_risk,
    store_performance,
    top_products,
    top_products_per_store,
    yearly_store_performance,
)
from retail_analytics.config import Settings, get_settings
from retail_analytics.config.settings import AnalyticsSettings
from retail_analytics.data.snapshot import RetailSnapshot
from retail_analytics.exceptions import RetailAnalyticsError
from retail_analytics.ingestion import BatchLoader, LoadResult
from retail_analytics.quality.validators import ValidationResult, ValidationStatus, validate_snapshot
from retail_analytics.transformation.calendar import calendar_from_sales

logger = structlog.get_logger(__name__)

ReportFunc = Callable[[RetailSnapshot, AnalyticsSettings], pl.DataFrame]


def _single_row(summary: dict) -> pl.DataFrame:
    return pl.DataFrame([summary])


REPORTS: Dict[str, ReportFunc] = {
    "company_kpis": lambda s, cfg: _single_row(company_kpis(s)),
    "date_range": lambda s, cfg: _single_row(date_range_summary(s)),
    "product_profitability": lambda s, cfg: product_profitability(s),
    "store_performance": lambda s, cfg: store_performance(s),
    "city_performance": lambda s, cfg: city_performance(s),
    "category_performance": lambda s, cfg: category_performance(s),
    "yearly_store_performance": lambda s, cfg: yearly_store_performance(s),
    "top_products": lambda s, cfg: top_products(s, limit=cfg.top_products_limit),
    "top_products_per_store": lambda s, cfg: top_products_per_store(s, limit=cfg.top_per_store_limit),
    "abc_classification": lambda s, cfg: abc_classification(
        s, a_threshold=cfg.abc_a_threshold, b_threshold=cfg.abc_b_threshold
    ),
    "stock_to_sales_ratio": lambda s, cfg: stock_to_sales_ratio(s),
    "stockout_risk": lambda s, cfg: stockout_risk(s, limit=cfg.stockout_limit),
    "retail_analysis": lambda s, cfg: retail_analysis_view(s),
}


class ReportStatus(str, Enum):
    """Outcome of one report"""
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class ReportOutcome:
    """Result of computing (and optionally writing) one report"""
    name: str
    status: ReportStatus
    rows: int = 0
    output_path: Optional[str] = None
    error: Optional[str] = None
    duration_seconds: float = 0.0


@dataclass
class PipelineResult:
    """Summary of one pipeline run"""
    started_at: datetime
    completed_at: Optional[datetime] = None
    row_counts: Dict[str, int] = field(default_factory=dict)
    loads: Dict[str, LoadResult] = field(default_factory=dict)
    validation: Dict[str, ValidationResult] = field(default_factory=dict)
    reports: Dict[str, ReportOutcome] = field(default_factory=dict)
    frames: Dict[str, pl.DataFrame] = field(default_factory=dict, repr=False)

    @property
    def failed_reports(self) -> List[str]:
        return [name for name, r in self.reports.items() if r.status == ReportStatus.FAILED]

    @property
    def validation_passed(self) -> bool:
        """True when no table has an error-severity defect"""
        return all(r.status != ValidationStatus.FAILED for r in self.validation.values())

    def to_dict(self) -> dict:
        return {
            "started_at": self.started_at.isoformat(),
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "row_counts": self.row_counts,
            "validation": {
                table: {
                    "status": r.status.value,
                    "passed_checks": r.passed_checks,
                    "failed_checks": r.failed_checks,
                    "warnings": r.warning_count,
                }
                for table, r in self.validation.items()
            },
            "reports": {
                name: {
                    "status": r.status.value,
                    "rows": r.rows,
                    "output_path": r.output_path,
                    "error": r.error,
                }
                for name, r in self.reports.items()
            },
        }


class AnalyticsPipeline:
    """
    Batch analytics pipeline.

    Example:
        pipeline = AnalyticsPipeline()
        result = pipeline.run("data/raw")
        print(result.failed_reports)
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        loader: Optional[BatchLoader] = None,
    ):
        self.settings = settings or get_settings()
        self.loader = loader or BatchLoader()

    def load(
        self, directory: Optional[Union[str, Path]] = None
    ) -> Tuple[RetailSnapshot, Dict[str, LoadResult]]:
        """Load the extracts; returns (snapshot, load results)"""
        return self.loader.load_snapshot(directory or self.settings.data_lake.raw_path)

    def validate(self, snapshot: RetailSnapshot) -> Dict[str, ValidationResult]:
        return validate_snapshot(snapshot)

    def with_calendar(self, snapshot: RetailSnapshot) -> RetailSnapshot:
        """Snapshot with its calendar upserted from the sales date range"""
        snapshot.calendar = calendar_from_sales(snapshot.sales, snapshot.calendar)
        return snapshot

    def compute_report(self, name: str, snapshot: RetailSnapshot) -> pl.DataFrame:
        """Compute one named report"""
        if name not in REPORTS:
            raise ValueError(f"Unknown report: {name}")
        return REPORTS[name](snapshot, self.settings.analytics)

    def write_report(self, name: str, df: pl.DataFrame, output_dir: Optional[Union[str, Path]] = None) -> Path:
        """Write a report to the curated zone in the configured format"""
        target = Path(output_dir or self.settings.data_lake.curated_path)
        target.mkdir(parents=True, exist_ok=True)

        fmt = self.settings.data_lake.default_format
        path = target / f"{name}.{fmt}"
        if fmt == "parquet":
            df.write_parquet(path)
        elif fmt == "csv":
            df.write_csv(path)
        else:
            raise ValueError(f"Unsupported report format: {fmt}")
        return path

    def compute_reports(
        self,
        snapshot: RetailSnapshot,
        result: PipelineResult,
        write: bool = True,
        output_dir: Optional[Union[str, Path]] = None,
    ) -> None:
        """Compute every registered report into `result`"""
        for name in REPORTS:
            started = datetime.utcnow()
            try:
                df = self.compute_report(name, snapshot)
                output_path = str(self.write_report(name, df, output_dir)) if write else None
            except (RetailAnalyticsError, pl.exceptions.PolarsError, OSError) as e:
                logger.error("Report failed", report=name, error=str(e), error_type=type(e).__name__)
                result.reports[name] = ReportOutcome(
                    name=name,
                    status=ReportStatus.FAILED,
                    error=str(e),
                    duration_seconds=(datetime.utcnow() - started).total_seconds(),
                )
                continue

            result.frames[name] = df
            result.reports[name] = ReportOutcome(
                name=name,
                status=ReportStatus.COMPLETED,
                rows=df.height,
                output_path=output_path,
                duration_seconds=(datetime.utcnow() - started).total_seconds(),
            )
            logger.info("Report computed", report=name, rows=df.height)

    def process(
        self,
        snapshot: RetailSnapshot,
        write: bool = True,
        output_dir: Optional[Union[str, Path]] = None,
    ) -> PipelineResult:
        """Validate, derive the calendar and compute all reports for a loaded snapshot"""
        result = PipelineResult(started_at=datetime.utcnow())

        result.validation = self.validate(snapshot)
        if not result.validation_passed:
            logger.warning(
                "Snapshot has data quality defects",
                tables=[t for t, r in result.validation.items() if r.status == ValidationStatus.FAILED],
            )

        snapshot = self.with_calendar(snapshot)
        result.row_counts = snapshot.row_counts

        self.compute_reports(snapshot, result, write=write, output_dir=output_dir)

        result.completed_at = datetime.utcnow()
        logger.info(
            "Pipeline run complete",
            reports=len(result.reports),
            failed=result.failed_reports,
            duration_seconds=round((result.completed_at - result.started_at).total_seconds(), 3),
        )
        return result

    def run(
        self,
        directory: Optional[Union[str, Path]] = None,
        write: bool = True,
        output_dir: Optional[Union[str, Path]] = None,
    ) -> PipelineResult:
        """Load extracts from `directory` and process them"""
        snapshot, loads = self.load(directory)
        result = self.process(snapshot, write=write, output_dir=output_dir)
        result.loads = loads
        return result
