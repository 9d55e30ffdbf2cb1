"""
Data Quality API Endpoints

`/validation` checks the extracts waiting in the raw zone, which is where
orphan, duplicate-key and null defects show up. `/validation/stored`
checks the database copy; its primary and foreign keys are enforced and
only validated snapshots are persisted, so it normally reports clean.
"""

from typing import Any, Dict, List

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from retail_analytics.data.snapshot import RetailSnapshot
from retail_analytics.quality.validators import validate_snapshot
from retail_analytics.serving.api.dependencies import get_raw_snapshot, get_snapshot

router = APIRouter()


class TableValidation(BaseModel):
    """Validation outcome for one table"""
    table: str
    status: str
    total_checks: int
    passed_checks: int
    failed_checks: int
    warning_count: int
    success_rate: float
    failures: List[Dict[str, Any]]


def _report(snapshot: RetailSnapshot, max_rows: int) -> List[TableValidation]:
    results = validate_snapshot(snapshot)
    return [
        TableValidation(
            table=table,
            status=result.status.value,
            total_checks=result.total_checks,
            passed_checks=result.passed_checks,
            failed_checks=result.failed_checks,
            warning_count=result.warning_count,
            success_rate=round(result.success_rate, 2),
            failures=[check.to_dict(max_rows=max_rows) for check in result.failures()],
        )
        for table, result in results.items()
    ]


@router.get("/validation", response_model=List[TableValidation])
async def get_validation_report(
    max_rows: int = Query(50, ge=0, le=1000),
    snapshot: RetailSnapshot = Depends(get_raw_snapshot),
) -> List[TableValidation]:
    """
    Data quality defects per table of the raw-zone extracts, with up to
    `max_rows` offending rows per failed check.
    """
    return _report(snapshot, max_rows)


@router.get("/validation/stored", response_model=List[TableValidation])
async def get_stored_validation_report(
    max_rows: int = Query(50, ge=0, le=1000),
    snapshot: RetailSnapshot = Depends(get_snapshot),
) -> List[TableValidation]:
    """Same report over the snapshot stored in the database"""
    return _report(snapshot, max_rows)
