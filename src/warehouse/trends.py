"""
Latest-vs-previous trend lookups over stored samples.
"""

import logging
from typing import Iterable

from src.core.models import TrendSummary
from src.observability.logger import get_logger

from .connection import DatabaseConnectionPool
from .sample_store import SAMPLE_COLUMNS, sample_from_row
from .schema_mgmt import SAMPLES_TABLE

_COLUMN_LIST = ", ".join(SAMPLE_COLUMNS)
_LATEST_COLUMNS = ", ".join(f"latest.{column}" for column in SAMPLE_COLUMNS)
_PREVIOUS_COLUMNS = ", ".join(f"previous.{column} AS prev_{column}" for column in SAMPLE_COLUMNS)

# Rank matching rows newest first (natural key order breaks date ties), then
# pair rank 1 with rank 2. Previous-row columns are prefixed with prev_.
LATEST_VS_PREVIOUS = f"""
    WITH ranked AS (
        SELECT {_COLUMN_LIST},
               ROW_NUMBER() OVER (
                   ORDER BY sample_collection_date DESC,
                            site_name, county, pcr_pathogen_target, pcr_gene_target
               ) AS rn
        FROM {SAMPLES_TABLE}
        WHERE site_name = %s AND pcr_pathogen_target = %s
    )
    SELECT {_LATEST_COLUMNS},
           {_PREVIOUS_COLUMNS}
    FROM ranked AS latest
    LEFT JOIN ranked AS previous ON previous.rn = 2
    WHERE latest.rn = 1
"""


class TrendQuery:
    """
    Read-only comparison of the two most recent samples for a site/target.
    """

    def __init__(self, pool: DatabaseConnectionPool, logger: logging.Logger | None = None):
        """
        Initialize trend query.

        Args:
            pool: Database connection pool
            logger: Logger instance
        """
        self.pool = pool
        self.logger = logger or get_logger(__name__)

    def latest_vs_previous(self, location: str, pathogen_target: str) -> TrendSummary:
        """
        Find the latest sample and the one ranked just before it.

        Args:
            location: Site name (exact match)
            pathogen_target: PCR pathogen target (exact match)

        Returns:
            TrendSummary; status is "no_data" when nothing matched and
            "no_prior_data" when exactly one sample matched
        """
        rows = self.pool.execute_query(LATEST_VS_PREVIOUS, (location, pathogen_target))
        summary = TrendSummary(location=location, pcr_pathogen_target=pathogen_target)

        if rows:
            row = rows[0]
            summary.latest = sample_from_row(row)
            if row["prev_site_name"] is not None:
                summary.previous = sample_from_row(
                    {column: row[f"prev_{column}"] for column in SAMPLE_COLUMNS}
                )

        self.logger.debug(
            "Trend computed",
            extra={
                "location": location,
                "pcr_pathogen_target": pathogen_target,
                "status": summary.status,
            },
        )
        return summary

    def summarize(self, pairs: Iterable[tuple[str, str]]) -> list[TrendSummary]:
        """
        Compute trends for several (location, pathogen_target) pairs.

        Args:
            pairs: Pairs to look up, in the order results should be returned

        Returns:
            One TrendSummary per pair
        """
        return [self.latest_vs_previous(location, target) for location, target in pairs]
