"""
Prefect Workflow Orchestration - Batch Analytics

Production workflow for the retail batch run with:
- Retrying extract loads
- Data quality checks
- Calendar sync and snapshot persistence
- Report computation into the curated zone
"""

from typing import Optional

from prefect import flow, task, get_run_logger

from retail_analytics.config import get_settings
from retail_analytics.data.snapshot import RetailSnapshot
from retail_analytics.pipeline import AnalyticsPipeline

settings = get_settings()


# =============================================================================
# TASKS
# =============================================================================

@task(
    name="load_extracts",
    description="Load the four retail extracts from the raw zone",
    retries=3,
    retry_delay_seconds=60,
)
def load_extracts(source_dir: str) -> RetailSnapshot:
    """Load and normalize the raw extracts"""
    logger = get_run_logger()

    snapshot, results = AnalyticsPipeline().load(source_dir)

    logger.info(
        "Extract load complete: "
        + ", ".join(f"{table}={r.rows_loaded}" for table, r in results.items())
    )
    return snapshot


@task(
    name="validate_snapshot",
    description="Run data quality validations",
)
def validate_data(snapshot: RetailSnapshot) -> dict:
    """Validate data quality"""
    logger = get_run_logger()

    results = AnalyticsPipeline().validate(snapshot)
    summary = {}
    for table, result in results.items():
        logger.info(
            f"Validation {table} {result.status.value}: "
            f"{result.passed_checks}/{result.total_checks} checks passed"
        )
        summary[table] = {
            "passed": result.status.value == "passed",
            "status": result.status.value,
            "failed_checks": result.failed_checks,
            "warnings": result.warning_count,
            "success_rate": result.success_rate,
        }
    return summary


@task(
    name="persist_snapshot",
    description="Sync the calendar and bulk insert the snapshot",
    retries=2,
    retry_delay_seconds=30,
)
async def persist_snapshot(snapshot: RetailSnapshot) -> dict:
    """Write the snapshot to the database, skipping rows already stored"""
    logger = get_run_logger()
    from retail_analytics.database import get_db, init_database, save_snapshot, sync_calendar
    from retail_analytics.transformation.calendar import calendar_from_sales

    await init_database(create_tables=True)

    entities = RetailSnapshot(
        products=snapshot.products,
        stores=snapshot.stores,
        inventory=snapshot.inventory,
        sales=snapshot.sales,
    )
    async with get_db() as db:
        submitted = await save_snapshot(db, entities)
        new_days = await sync_calendar(db, calendar_from_sales(snapshot.sales))
        submitted["calendar"] = new_days.height

    logger.info(f"Snapshot persisted: {submitted}")
    return submitted


@task(
    name="compute_reports",
    description="Compute every report and write it to the curated zone",
)
def compute_reports(snapshot: RetailSnapshot, output_dir: Optional[str] = None) -> dict:
    """Derive the calendar and compute all reports"""
    logger = get_run_logger()

    result = AnalyticsPipeline().process(snapshot, write=True, output_dir=output_dir)
    if result.failed_reports:
        logger.warning(f"Reports failed: {', '.join(result.failed_reports)}")

    return result.to_dict()


# =============================================================================
# FLOWS
# =============================================================================

@flow(
    name="retail_batch_analytics",
    description="Batch analytics over the retail extracts",
)
async def retail_batch_analytics(
    source_dir: Optional[str] = None,
    output_dir: Optional[str] = None,
    persist: bool = False,
) -> dict:
    """
    Retail batch analytics pipeline.

    Steps:
    1. Load extracts from the raw zone
    2. Validate data quality
    3. Compute reports (calendar derived from the sales range)
    4. Optionally persist the snapshot when validation found no errors
    """
    logger = get_run_logger()

    source_dir = source_dir or settings.data_lake.raw_path
    logger.info(f"Starting retail batch analytics for {source_dir}")

    results = {"source_dir": source_dir, "steps": {}}

    snapshot = load_extracts(source_dir)
    validation = validate_data(snapshot)
    results["steps"]["validation"] = validation

    reports = compute_reports(snapshot, output_dir)
    results["steps"]["reports"] = reports["reports"]

    if persist:
        if all(v["status"] != "failed" for v in validation.values()):
            results["steps"]["persist"] = await persist_snapshot(snapshot)
        else:
            logger.warning("Snapshot not persisted: validation found errors")
            results["steps"]["persist"] = "skipped"

    failed = [name for name, r in reports["reports"].items() if r["status"] == "failed"]
    results["status"] = "partial" if failed else "success"
    return results


@flow(
    name="data_quality_check",
    description="Standalone data quality check flow",
)
def data_quality_check(source_dir: Optional[str] = None) -> dict:
    """Load the extracts and report their data quality defects"""
    snapshot = load_extracts(source_dir or settings.data_lake.raw_path)
    return validate_data(snapshot)


# =============================================================================
# DEPLOYMENT CONFIGURATION
# =============================================================================

if __name__ == "__main__":
    import asyncio
    from retail_analytics.config.logging import configure_logging

    configure_logging(service="batch")
    asyncio.run(retail_batch_analytics(persist=True))
