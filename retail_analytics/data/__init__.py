"""
Retail Data Module
"""
from .snapshot import RetailSnapshot, TABLE_SCHEMAS, PRIMARY_KEYS
from .generators import RetailDataGenerator

__all__ = [
    "RetailSnapshot",
    "TABLE_SCHEMAS",
    "PRIMARY_KEYS",
    "RetailDataGenerator",
]
