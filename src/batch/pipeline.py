"""
Ingestion pipeline orchestration.

Coordinates the flow: parse → normalize → insert batch → trends → notify

Parsing and normalization are generators feeding the store directly, so each
row is decoded, converted and written before the next one is read.
"""

import logging
from typing import BinaryIO, List, Optional

from pydantic import BaseModel, Field

from src.batch.normalizer import SampleNormalizer
from src.batch.readers import WastewaterCSVReader
from src.core.models import BatchReport, TrendSummary
from src.notify.webhook import WebhookNotifier
from src.observability.logger import get_logger, log_operation
from src.warehouse.sample_store import SampleStore
from src.warehouse.trends import TrendQuery


class IngestionResult(BaseModel):
    """
    Outcome of one full pipeline run.

    Attributes:
        report: Counts from the insert batch
        summaries: Trend summaries computed after the batch committed
        notified: Whether a notification was delivered
    """

    report: BatchReport
    summaries: List[TrendSummary] = Field(default_factory=list)
    notified: bool = False


class IngestionPipeline:
    """
    Orchestrates one ingestion run against the sample store.

    Flow:
    1. Parse rows lazily, resolving Pacific timestamps
    2. Normalize rows into samples
    3. Insert the batch in one transaction, skipping duplicates
    4. Summarize latest-vs-previous trends
    5. Post the summaries to a webhook, if configured
    """

    def __init__(
        self,
        store: SampleStore,
        reader: Optional[WastewaterCSVReader] = None,
        normalizer: Optional[SampleNormalizer] = None,
        logger: Optional[logging.Logger] = None,
    ):
        """
        Initialize ingestion pipeline.

        Args:
            store: Deduplicating sample store
            reader: CSV reader (default settings if omitted)
            normalizer: Row normalizer (wall-clock poll timestamps if omitted)
            logger: Logger instance
        """
        self.store = store
        self.logger = logger or get_logger(__name__)
        self.reader = reader or WastewaterCSVReader(logger=self.logger)
        self.normalizer = normalizer or SampleNormalizer(logger=self.logger)

    def ingest(self, stream: BinaryIO) -> BatchReport:
        """
        Parse, normalize and store one CSV stream as a single batch.

        Args:
            stream: Binary CSV stream with a header row

        Returns:
            BatchReport for the batch

        Raises:
            MissingColumnsError: If the header lacks required columns
            ClockError: If the system clock is unusable
            StorageUnavailable: If the store fails (batch rolled back)
        """
        with log_operation("Ingesting wastewater batch", logger=self.logger):
            rows = self.reader.parse(stream)
            samples = self.normalizer.normalize_all(rows)
            return self.store.insert_batch(samples)

    def run(
        self,
        stream: BinaryIO,
        trend_query: TrendQuery,
        pairs: Optional[List[tuple[str, str]]] = None,
        notifier: Optional[WebhookNotifier] = None,
    ) -> IngestionResult:
        """
        Ingest a stream, then summarize and notify.

        Args:
            stream: Binary CSV stream (downloaded or local)
            trend_query: Trend lookups over the store
            pairs: (site, pathogen target) pairs to summarize; all stored pairs if empty
            notifier: Optional webhook notifier

        Returns:
            IngestionResult with the batch report and trend summaries

        Raises:
            StorageUnavailable: If the store fails
            NotificationError: If the webhook rejects the message
        """
        report = self.ingest(stream)

        watched = pairs or self.store.list_locations()
        summaries = trend_query.summarize(watched)
        self.logger.info("Computed trend summaries", extra={"pairs": len(summaries)})

        notified = False
        if notifier is not None:
            notifier.send(summaries)
            notified = bool(summaries)

        return IngestionResult(report=report, summaries=summaries, notified=notified)
