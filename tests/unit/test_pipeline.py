"""
Unit Tests - Analytics Pipeline
"""
from datetime import date
from pathlib import Path

import pytest
import polars as pl

from retail_analytics.config import Settings
from retail_analytics.config.settings import DataLakeSettings
from retail_analytics.pipeline import REPORTS, AnalyticsPipeline, ReportStatus


@pytest.fixture
def pipeline(tmp_path: Path) -> AnalyticsPipeline:
    settings = Settings(
        app_env="testing",
        data_lake=DataLakeSettings(
            raw_path=str(tmp_path / "raw"),
            curated_path=str(tmp_path / "curated"),
        ),
    )
    return AnalyticsPipeline(settings=settings)


class TestAnalyticsPipeline:
    """Tests for AnalyticsPipeline"""

    def test_process_computes_every_report(self, pipeline, sample_snapshot, tmp_path):
        result = pipeline.process(sample_snapshot)

        assert set(result.reports) == set(REPORTS)
        assert result.failed_reports == []
        assert result.validation_passed
        assert result.row_counts["calendar"] == 5

        for outcome in result.reports.values():
            path = Path(outcome.output_path)
            assert path.parent == tmp_path / "curated"
            assert path.suffix == ".parquet"
            assert path.exists()

        top = pl.read_parquet(tmp_path / "curated" / "top_products.parquet")
        assert top["total_units"].to_list() == [6, 5, 4, 1]

    def test_failed_report_does_not_abort_others(self, pipeline, snapshot_factory):
        snapshot = snapshot_factory(
            products=[(1, "A", "Toys", 1.0, 2.0)],
            stores=[(1, "S1", "Puebla", "Downtown", date(2010, 1, 1))],
            sales=[(1, date(2022, 1, 1), 1, 1, 0)],
            inventory=[(1, 1, 4)],
        )

        result = pipeline.process(snapshot, write=False)

        assert result.failed_reports == ["abc_classification"]
        assert "undefined" in result.reports["abc_classification"].error
        assert result.reports["stock_to_sales_ratio"].status == ReportStatus.COMPLETED
        assert result.frames["stock_to_sales_ratio"]["stock_to_sales_ratio"].to_list() == [None]

    def test_process_without_writing(self, pipeline, sample_snapshot, tmp_path):
        result = pipeline.process(sample_snapshot, write=False)

        assert all(r.output_path is None for r in result.reports.values())
        assert not (tmp_path / "curated").exists()

    def test_defects_are_reported_not_repaired(self, pipeline, defective_snapshot):
        result = pipeline.process(defective_snapshot, write=False)

        assert not result.validation_passed
        assert result.row_counts["sales"] == defective_snapshot.sales.height
        assert result.to_dict()["validation"]["sales"]["status"] == "failed"

    def test_run_from_extracts(self, pipeline, raw_extracts_dir, tmp_path):
        result = pipeline.run(raw_extracts_dir)

        assert set(result.loads) == {"products", "stores", "inventory", "sales"}
        assert result.row_counts["calendar"] == 3
        assert result.frames["company_kpis"]["total_units"].to_list() == [9]

    def test_unknown_report(self, pipeline, sample_snapshot):
        with pytest.raises(ValueError):
            pipeline.compute_report("weekly_forecast", sample_snapshot)
