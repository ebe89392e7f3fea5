"""
Schema management for the sample store.

Only initial creation is supported; every statement is idempotent.
"""

import logging

from src.observability.logger import get_logger

from .connection import DatabaseConnectionPool

SAMPLES_TABLE = "wastewater_samples"

SCHEMA_DDL = [
    f"""
    CREATE TABLE IF NOT EXISTS {SAMPLES_TABLE} (
        sample_collection_date DATE NOT NULL,
        site_name TEXT NOT NULL,
        county TEXT NOT NULL,
        pcr_pathogen_target TEXT NOT NULL,
        pcr_gene_target TEXT NOT NULL,
        normalized_pathogen_concentration DOUBLE PRECISION NOT NULL,
        date_updated TIMESTAMPTZ NOT NULL,
        poll_timestamp BIGINT NOT NULL,
        PRIMARY KEY (sample_collection_date, site_name, county, pcr_pathogen_target, pcr_gene_target)
    )
    """,
    # Recent-poll lookups
    f"""
    CREATE INDEX IF NOT EXISTS idx_{SAMPLES_TABLE}_poll_timestamp
        ON {SAMPLES_TABLE} (poll_timestamp)
    """,
    # Recently-updated lookups
    f"""
    CREATE INDEX IF NOT EXISTS idx_{SAMPLES_TABLE}_date_updated
        ON {SAMPLES_TABLE} (date_updated)
    """,
    # Trend ranking per site/target
    f"""
    CREATE INDEX IF NOT EXISTS idx_{SAMPLES_TABLE}_site_target_date
        ON {SAMPLES_TABLE} (site_name, pcr_pathogen_target, sample_collection_date DESC)
    """,
]


class SchemaManager:
    """
    Creates the sample table and its indexes.
    """

    def __init__(self, pool: DatabaseConnectionPool, logger: logging.Logger | None = None):
        """
        Initialize schema manager.

        Args:
            pool: Database connection pool
            logger: Logger instance
        """
        self.pool = pool
        self.logger = logger or get_logger(__name__)

    def ensure_schema(self) -> None:
        """
        Create the table and indexes if they do not exist, in one transaction.

        Raises:
            StorageUnavailable: If the DDL cannot be applied
        """
        with self.pool.transaction() as cur:
            for statement in SCHEMA_DDL:
                cur.execute(statement)

        self.logger.info("Sample schema ready", extra={"table": SAMPLES_TABLE})

    def table_exists(self) -> bool:
        """
        Check whether the sample table exists.

        Returns:
            True if the table is present in the current search path
        """
        result = self.pool.execute_query(
            "SELECT to_regclass(%s) IS NOT NULL AS present",
            (SAMPLES_TABLE,),
        )
        return bool(result[0]["present"])
