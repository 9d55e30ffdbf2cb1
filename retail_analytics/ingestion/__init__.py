"""
Data Ingestion Module
"""
from .batch_loader import BatchLoader, BatchFileConfig, LoadResult, LoadStatus

__all__ = [
    "BatchLoader",
    "BatchFileConfig",
    "LoadResult",
    "LoadStatus",
]
