"""
Batch Data Loader

Batch ingestion of the four retail extracts (products, stores,
inventory, sales) from CSV files.
Supports:
- Header and format normalization via DataCleaner
- File hashing for audit
- Per-file load results
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union
import hashlib

import polars as pl
import structlog
from pydantic import BaseModel

from retail_analytics.config import get_settings
from retail_analytics.data.snapshot import RetailSnapshot
from retail_analytics.exceptions import ExtractLoadError, SchemaMismatchError
from retail_analytics.transformation.cleaners import DataCleaner

logger = structlog.get_logger(__name__)

EXTRACT_TABLES = ["products", "stores", "inventory", "sales"]


class LoadStatus(str, Enum):
    """Batch load status"""
    COMPLETED = "completed"
    COMPLETED_WITH_WARNINGS = "completed_with_warnings"  # some values could not be parsed


@dataclass
class BatchFileConfig:
    """Configuration for loading one extract"""
    file_path: Union[str, Path]
    target_table: str
    delimiter: str = ","
    encoding: str = "utf8"
    null_values: List[str] = field(default_factory=lambda: ["", "NULL", "null", "None", "NA", "N/A"])


class LoadResult(BaseModel):
    """Result of loading one extract"""
    file_path: str
    target_table: str
    status: LoadStatus
    rows_loaded: int = 0
    columns_renamed: int = 0
    values_unparseable: int = 0
    load_duration_seconds: float = 0
    started_at: datetime
    completed_at: Optional[datetime] = None
    file_hash: Optional[str] = None


class BatchLoader:
    """
    Loads raw extracts into a RetailSnapshot.

    Every column is read as text and normalized by DataCleaner, so
    currency strings and differing header styles are handled uniformly.

    Example:
        loader = BatchLoader()
        snapshot, results = loader.load_snapshot("data/raw")
    """

    def __init__(self, cleaner: Optional[DataCleaner] = None):
        self.cleaner = cleaner or DataCleaner()

    def _compute_file_hash(self, file_path: Path) -> str:
        """Compute MD5 hash of file for audit"""
        hash_md5 = hashlib.md5()
        with open(file_path, "rb") as f:
            for chunk in iter(lambda: f.read(4096), b""):
                hash_md5.update(chunk)
        return hash_md5.hexdigest()

    def _read_csv(self, config: BatchFileConfig) -> pl.DataFrame:
        """Read CSV with every column as text"""
        return pl.read_csv(
            config.file_path,
            separator=config.delimiter,
            encoding=config.encoding,
            null_values=config.null_values,
            infer_schema_length=0,
        )

    def load(self, config: BatchFileConfig) -> Tuple[pl.DataFrame, LoadResult]:
        """
        Load and normalize one extract.

        Raises:
            ExtractLoadError: file missing, unreadable, or lacking required columns
        """
        started_at = datetime.utcnow()
        file_path = Path(config.file_path)

        if not file_path.exists():
            raise ExtractLoadError("file not found", file_path=file_path)

        logger.info("Loading extract", table=config.target_table, path=str(file_path))

        try:
            raw = self._read_csv(config)
            df = self.cleaner.clean(raw, config.target_table)
        except SchemaMismatchError as e:
            raise ExtractLoadError(str(e), file_path=file_path) from e
        except (pl.exceptions.ComputeError, OSError, UnicodeDecodeError) as e:
            raise ExtractLoadError("could not parse extract", file_path=file_path, original_error=e) from e

        stats = self.cleaner.stats(raw, df)
        if stats.values_unparseable:
            logger.warning(
                "Extract values could not be parsed and were set to null",
                table=config.target_table,
                values=stats.values_unparseable,
            )

        completed_at = datetime.utcnow()
        result = LoadResult(
            file_path=str(file_path),
            target_table=config.target_table,
            status=LoadStatus.COMPLETED_WITH_WARNINGS if stats.values_unparseable else LoadStatus.COMPLETED,
            rows_loaded=df.height,
            columns_renamed=stats.columns_renamed,
            values_unparseable=stats.values_unparseable,
            load_duration_seconds=(completed_at - started_at).total_seconds(),
            started_at=started_at,
            completed_at=completed_at,
            file_hash=self._compute_file_hash(file_path),
        )

        logger.info(
            "Extract loaded",
            table=config.target_table,
            rows=df.height,
            duration_seconds=round(result.load_duration_seconds, 3),
        )
        return df, result

    def load_snapshot(
        self,
        directory: Optional[Union[str, Path]] = None,
    ) -> Tuple[RetailSnapshot, Dict[str, LoadResult]]:
        """
        Load <table>.csv for each of the four extracts from `directory`.

        Args:
            directory: Extract directory (defaults to the raw data lake path)

        Returns:
            The snapshot and a load result per table
        """
        directory = Path(directory or get_settings().data_lake.raw_path)
        frames: Dict[str, pl.DataFrame] = {}
        results: Dict[str, LoadResult] = {}

        for table in EXTRACT_TABLES:
            config = BatchFileConfig(file_path=directory / f"{table}.csv", target_table=table)
            frames[table], results[table] = self.load(config)

        snapshot = RetailSnapshot(**frames)
        logger.info("Snapshot loaded", directory=str(directory), **snapshot.row_counts)
        return snapshot, results
