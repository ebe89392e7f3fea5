"""
Deduplicating writes of wastewater samples.

A sample is written at most once per natural key. The first version seen is
kept; later versions with the same key are skipped without touching the
stored row, even when their concentration or update time differ.
"""

import logging
import time
from typing import Any, Iterable

from src.core.errors import ConversionFailed, ParseError, PipelineError
from src.core.models import BatchOutcome, BatchReport, NaturalKey, WasteWaterSample
from src.core.timezones import PACIFIC
from src.observability import metrics
from src.observability.logger import get_logger

from .connection import DatabaseConnectionPool
from .schema_mgmt import SAMPLES_TABLE

SAMPLE_COLUMNS = (
    "sample_collection_date",
    "site_name",
    "county",
    "pcr_pathogen_target",
    "pcr_gene_target",
    "normalized_pathogen_concentration",
    "date_updated",
    "poll_timestamp",
)

KEY_COLUMNS = SAMPLE_COLUMNS[:5]

_COLUMN_LIST = ", ".join(SAMPLE_COLUMNS)
_KEY_LIST = ", ".join(KEY_COLUMNS)
_PLACEHOLDERS = ", ".join(["%s"] * len(SAMPLE_COLUMNS))
_KEY_MATCH = " AND ".join(f"{column} = %s" for column in KEY_COLUMNS)

INSERT_IF_ABSENT = f"""
    INSERT INTO {SAMPLES_TABLE} ({_COLUMN_LIST})
    VALUES ({_PLACEHOLDERS})
    ON CONFLICT ({_KEY_LIST}) DO NOTHING
    RETURNING 1 AS inserted
"""

SELECT_BY_KEY = f"""
    SELECT {_COLUMN_LIST}
    FROM {SAMPLES_TABLE}
    WHERE {_KEY_MATCH}
"""

# Serializes batch writers across processes for the length of one transaction
BATCH_LOCK_KEY = 0x57415354

BatchItem = WasteWaterSample | ConversionFailed | ParseError


def sample_params(sample: WasteWaterSample) -> tuple:
    """Positional parameters for INSERT_IF_ABSENT."""
    return tuple(getattr(sample, column) for column in SAMPLE_COLUMNS)


def sample_from_row(row: dict[str, Any]) -> WasteWaterSample:
    """Build a sample from a dict_row result, restoring Pacific time."""
    values = {column: row[column] for column in SAMPLE_COLUMNS}
    values["date_updated"] = values["date_updated"].astimezone(PACIFIC)
    return WasteWaterSample(**values)


class SampleStore:
    """
    Insert-if-absent persistence keyed by the sample natural key.

    All writes go through a single transaction per call, so a failed batch
    leaves no partial writes behind.
    """

    def __init__(self, pool: DatabaseConnectionPool, logger: logging.Logger | None = None):
        """
        Initialize sample store.

        Args:
            pool: Database connection pool
            logger: Logger instance
        """
        self.pool = pool
        self.logger = logger or get_logger(__name__)

    def insert_if_absent(self, sample: WasteWaterSample) -> bool:
        """
        Write a sample unless its natural key is already stored.

        Args:
            sample: Sample to persist

        Returns:
            True if a new row was written, False if the key already existed

        Raises:
            StorageUnavailable: If the write fails
        """
        with self.pool.transaction() as cur:
            cur.execute(INSERT_IF_ABSENT, sample_params(sample))
            return cur.fetchone() is not None

    def insert_batch(self, items: Iterable[BatchItem]) -> BatchReport:
        """
        Write a stream of samples in one all-or-nothing transaction.

        Conversion failures in the input are counted and skipped. A storage
        error, or a fatal error raised while producing the input, rolls back
        every write of the batch.

        Args:
            items: Samples interleaved with per-element conversion errors

        Returns:
            BatchReport with inserted / skipped_duplicate / failed_conversion / total

        Raises:
            StorageUnavailable: If the store fails; nothing from the batch is kept
            PipelineError: Fatal input errors (ClockError, MissingColumnsError)
                propagate after the rollback
        """
        report = BatchReport()
        started = time.monotonic()

        try:
            with self.pool.transaction() as cur:
                cur.execute("SELECT pg_advisory_xact_lock(%s::bigint)", (BATCH_LOCK_KEY,))
                for item in items:
                    outcome, message = self._write_item(cur, item)
                    report.record(outcome, message)
        except PipelineError as e:
            metrics.record_batch_failure()
            self.logger.error(
                "Batch rolled back",
                extra={"elements_seen": report.total, "error_type": type(e).__name__},
                exc_info=True,
            )
            raise

        metrics.batch_duration_seconds.observe(time.monotonic() - started)
        metrics.record_batch_report(report)
        self.logger.info(
            "Batch committed",
            extra={
                "inserted": report.inserted,
                "skipped_duplicate": report.skipped_duplicate,
                "failed_conversion": report.failed_conversion,
                "total": report.total,
            },
        )
        for failure in report.failures:
            self.logger.warning("Skipped unconvertible row", extra={"error": failure})

        return report

    def _write_item(self, cur, item: BatchItem) -> tuple[BatchOutcome, str | None]:
        if isinstance(item, (ConversionFailed, ParseError)):
            return "failed_conversion", str(item)

        cur.execute(INSERT_IF_ABSENT, sample_params(item))
        # RETURNING yields a row only when the insert happened
        if cur.fetchone() is not None:
            return "inserted", None
        return "skipped_duplicate", None

    def get(self, key: NaturalKey) -> WasteWaterSample | None:
        """
        Fetch the stored sample for a natural key.

        Args:
            key: (sample_collection_date, site_name, county, pcr_pathogen_target, pcr_gene_target)

        Returns:
            The stored sample, or None
        """
        rows = self.pool.execute_query(SELECT_BY_KEY, tuple(key))
        return sample_from_row(rows[0]) if rows else None

    def count(self) -> int:
        """Number of stored samples."""
        rows = self.pool.execute_query(f"SELECT COUNT(*) AS n FROM {SAMPLES_TABLE}")
        return rows[0]["n"]

    def list_locations(self) -> list[tuple[str, str]]:
        """
        Distinct (site_name, pcr_pathogen_target) pairs present in the store.

        Returns:
            Pairs sorted by site then target
        """
        rows = self.pool.execute_query(
            f"""
            SELECT DISTINCT site_name, pcr_pathogen_target
            FROM {SAMPLES_TABLE}
            ORDER BY site_name, pcr_pathogen_target
            """
        )
        return [(row["site_name"], row["pcr_pathogen_target"]) for row in rows]
