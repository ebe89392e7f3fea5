"""
Batch ingestion of the wastewater dataset.
"""

from .normalizer import PollClock, SampleNormalizer
from .pipeline import IngestionPipeline, IngestionResult
from .readers import HttpSource, WastewaterCSVReader, parse_rows

__all__ = [
    "IngestionPipeline",
    "IngestionResult",
    "PollClock",
    "SampleNormalizer",
    "HttpSource",
    "WastewaterCSVReader",
    "parse_rows",
]
