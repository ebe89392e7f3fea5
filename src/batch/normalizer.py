"""
Conversion of parsed CSV rows into persisted sample records.
"""

import logging
import time
from typing import Callable, Iterable, Iterator

from pydantic import ValidationError

from src.core.errors import ClockError, ConversionFailed, ParseError
from src.core.models import ParsedRow, WasteWaterSample
from src.observability.logger import get_logger

NormalizeResult = WasteWaterSample | ConversionFailed


class PollClock:
    """
    Wall clock in whole Unix seconds, non-decreasing for the life of the instance.

    A host clock that steps backwards is clamped to the last value handed out.
    """

    def __init__(self, time_source: Callable[[], float] = time.time):
        """
        Initialize poll clock.

        Args:
            time_source: Returns seconds since the Unix epoch
        """
        self._time_source = time_source
        self._last = 0

    def now(self) -> int:
        """
        Current poll timestamp.

        Raises:
            ClockError: If the system clock reports a time before the Unix epoch
        """
        seconds = self._time_source()
        if seconds < 0:
            raise ClockError(f"System clock is before the Unix epoch: {seconds}")

        self._last = max(self._last, int(seconds))
        return self._last


class SampleNormalizer:
    """
    Turns ParsedRow values into WasteWaterSample records.

    The only side effect is reading the poll clock.
    """

    def __init__(self, clock: PollClock | None = None, logger: logging.Logger | None = None):
        """
        Initialize normalizer.

        Args:
            clock: Source of poll timestamps
            logger: Logger instance
        """
        self.clock = clock or PollClock()
        self.logger = logger or get_logger(__name__)

    def normalize(self, row: ParsedRow) -> WasteWaterSample:
        """
        Convert one parsed row.

        Args:
            row: Decoded CSV row

        Returns:
            WasteWaterSample stamped with the current poll timestamp

        Raises:
            ConversionFailed: If the row violates sample constraints
            ClockError: If the system clock is unusable
        """
        poll_timestamp = self.clock.now()
        try:
            return WasteWaterSample(
                sample_collection_date=row.sample_collection_date,
                site_name=row.site_name,
                county=row.county,
                pcr_pathogen_target=row.pcr_pathogen_target,
                pcr_gene_target=row.pcr_gene_target,
                normalized_pathogen_concentration=row.normalized_pathogen_concentration,
                date_updated=row.date_updated,
                poll_timestamp=poll_timestamp,
            )
        except ValidationError as e:
            fields = ", ".join(".".join(str(loc) for loc in err["loc"]) for err in e.errors())
            raise ConversionFailed(
                f"invalid sample fields: {fields}",
                line_number=row.line_number,
                cause=e,
            ) from e

    def normalize_all(
        self, results: Iterable[ParsedRow | ParseError]
    ) -> Iterator[NormalizeResult]:
        """
        Lazily normalize a parser stream.

        Parse errors and constraint violations come out as ConversionFailed
        values; ClockError is raised.

        Args:
            results: Output of WastewaterCSVReader.parse

        Yields:
            WasteWaterSample or ConversionFailed, one per input element
        """
        for result in results:
            if isinstance(result, ParseError):
                yield ConversionFailed(
                    result.message, line_number=result.line_number, cause=result
                )
                continue

            try:
                yield self.normalize(result)
            except ConversionFailed as e:
                self.logger.debug(
                    "Row failed conversion",
                    extra={"line_number": e.line_number, "error": e.message},
                )
                yield e
