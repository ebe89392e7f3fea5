"""
PostgreSQL-backed sample store and trend queries.
"""

from .connection import DatabaseConnectionPool
from .sample_store import SampleStore
from .schema_mgmt import SAMPLES_TABLE, SchemaManager
from .trends import TrendQuery

__all__ = [
    "DatabaseConnectionPool",
    "SampleStore",
    "SchemaManager",
    "SAMPLES_TABLE",
    "TrendQuery",
]
