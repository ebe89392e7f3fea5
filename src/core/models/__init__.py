"""
Core data models for the wastewater ingestion pipeline.

All models use Pydantic for runtime validation and type safety.
"""

from .batch_report import BatchOutcome, BatchReport
from .parsed_row import ParsedRow
from .trend_summary import TrendNotification, TrendStatus, TrendSummary
from .wastewater_sample import NaturalKey, WasteWaterSample

__all__ = [
    "ParsedRow",
    "WasteWaterSample",
    "NaturalKey",
    "BatchReport",
    "BatchOutcome",
    "TrendSummary",
    "TrendStatus",
    "TrendNotification",
]
