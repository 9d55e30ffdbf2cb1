"""
Custom exceptions for the retail analytics pipeline.

Data-quality defects are reported as validation results, not raised. The
exceptions here cover extracts that cannot be read at all and reports whose
result is undefined as a whole.
"""

from pathlib import Path
from typing import List, Optional


class RetailAnalyticsError(Exception):
    """Base exception for all retail analytics errors."""

    pass


class ExtractLoadError(RetailAnalyticsError):
    """Exception raised when a source extract cannot be read."""

    def __init__(
        self,
        message: str,
        file_path: Optional[Path] = None,
        original_error: Optional[Exception] = None,
    ):
        self.file_path = file_path
        self.original_error = original_error

        if file_path:
            message = f"Error loading extract '{file_path}': {message}"

        if original_error:
            message = f"{message} (Original error: {original_error})"

        super().__init__(message)


class SchemaMismatchError(RetailAnalyticsError):
    """Exception raised when a frame lacks columns a computation needs."""

    def __init__(self, table: str, missing_columns: List[str]):
        self.table = table
        self.missing_columns = missing_columns
        super().__init__(
            f"Table '{table}' is missing required columns: {', '.join(missing_columns)}"
        )


class ClassificationUndefinedError(RetailAnalyticsError):
    """Raised when ABC banding is requested over zero total units."""

    def __init__(self, total_units: int = 0):
        self.total_units = total_units
        super().__init__(
            f"ABC classification is undefined when total units sold is {total_units}"
        )
