"""
Streaming CSV reader for the published wastewater dataset.

Rows are decoded lazily, one at a time, so memory use does not grow with the
size of the file. Malformed rows are yielded as ParseError values instead of
being raised, leaving the skip-or-halt decision to the caller.
"""

import csv
import io
import logging
from datetime import date, datetime
from typing import BinaryIO, Iterator

from src.core.errors import MissingColumnsError, ParseError
from src.core.models import ParsedRow
from src.core.timezones import resolve_pacific
from src.observability.logger import get_logger

# Source header -> ParsedRow field
COLUMN_MAP = {
    "Sample Collection Date": "sample_collection_date",
    "Site Name": "site_name",
    "County": "county",
    "PCR Pathogen Target": "pcr_pathogen_target",
    "PCR Gene Target": "pcr_gene_target",
    "Normalized Pathogen Concentration (gene copies/person/day)": "normalized_pathogen_concentration",
    "Date/Time Updated": "date_updated",
}

COLLECTION_DATE_FORMAT = "%Y-%m-%d"

ParseResult = ParsedRow | ParseError


class WastewaterCSVReader:
    """
    Decodes the wastewater CSV into ParsedRow values.

    Columns are matched by header name, so reordering is tolerated but
    renaming is not.
    """

    def __init__(self, delimiter: str = ",", logger: logging.Logger | None = None):
        """
        Initialize CSV reader.

        Args:
            delimiter: Field delimiter
            logger: Logger for per-row diagnostics
        """
        self.delimiter = delimiter
        self.logger = logger or get_logger(__name__)

    def parse(self, stream: BinaryIO) -> Iterator[ParseResult]:
        """
        Lazily parse a byte stream.

        Args:
            stream: Readable binary stream with a header row

        Yields:
            ParsedRow for each good row, ParseError for each bad one, in input order

        Raises:
            ParseError: If the header is not valid UTF-8
            MissingColumnsError: If the header lacks a required column
        """
        # Undecodable bytes survive as lone surrogates so they taint only their own record
        text = io.TextIOWrapper(
            stream, encoding="utf-8-sig", errors="surrogateescape", newline=""
        )
        try:
            reader = csv.DictReader(text, delimiter=self.delimiter)
            self._check_header(reader.fieldnames)

            line_number = 0
            while True:
                line_number += 1
                try:
                    raw = next(reader)
                except StopIteration:
                    break
                except csv.Error as e:
                    # Structurally broken record; the reader has already advanced past it
                    yield ParseError(str(e), line_number=line_number)
                    continue

                result = self.parse_record(raw, line_number)
                if isinstance(result, ParseError):
                    self.logger.debug(
                        "Rejected CSV row",
                        extra={"line_number": line_number, "error": result.message},
                    )
                yield result
        finally:
            # Leave the caller's stream open
            text.detach()

    def parse_record(self, raw: dict, line_number: int) -> ParseResult:
        """
        Decode one CSV record (already split into header -> text).

        Args:
            raw: Mapping produced by csv.DictReader
            line_number: 1-based data row number

        Returns:
            ParsedRow, or ParseError describing the first problem found
        """
        if None in raw:
            return ParseError("too many fields", line_number=line_number)

        if any(value is not None and not _is_valid_utf8(value) for value in raw.values()):
            return ParseError("invalid UTF-8", line_number=line_number)

        values = {}
        for column, field in COLUMN_MAP.items():
            value = raw.get(column)
            if value is None:
                return ParseError("too few fields", line_number=line_number)
            values[field] = value

        try:
            values["sample_collection_date"] = _parse_date(values["sample_collection_date"])
            values["normalized_pathogen_concentration"] = float(
                values["normalized_pathogen_concentration"]
            )
            values["date_updated"] = resolve_pacific(
                values["date_updated"], line_number=line_number
            )
        except ParseError as e:
            return e
        except ValueError as e:
            return ParseError(str(e), line_number=line_number)

        return ParsedRow(line_number=line_number, **values)

    def _check_header(self, fieldnames: list[str] | None) -> None:
        if fieldnames and not all(_is_valid_utf8(name) for name in fieldnames):
            raise ParseError("header row is not valid UTF-8")
        present = set(fieldnames or [])
        missing = [column for column in COLUMN_MAP if column not in present]
        if missing:
            raise MissingColumnsError(missing)


def _parse_date(text: str) -> date:
    return datetime.strptime(text, COLLECTION_DATE_FORMAT).date()


def _is_valid_utf8(text: str) -> bool:
    try:
        text.encode("utf-8")
    except UnicodeEncodeError:
        return False
    return True


def parse_rows(stream: BinaryIO) -> Iterator[ParseResult]:
    """Parse a wastewater CSV stream with default reader settings."""
    return WastewaterCSVReader().parse(stream)
