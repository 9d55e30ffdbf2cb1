"""
Data Transformation Module
"""
from .cleaners import DataCleaner, clean_dataframe
from .calendar import calendar_from_sales, derive_calendar, upsert_calendar

__all__ = [
    "DataCleaner",
    "clean_dataframe",
    "calendar_from_sales",
    "derive_calendar",
    "upsert_calendar",
]
