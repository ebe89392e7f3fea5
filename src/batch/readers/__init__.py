"""
Wastewater data source readers.
"""

from .csv_reader import COLUMN_MAP, ParseResult, WastewaterCSVReader, parse_rows
from .http_source import HttpSource

__all__ = [
    "COLUMN_MAP",
    "ParseResult",
    "WastewaterCSVReader",
    "parse_rows",
    "HttpSource",
]
