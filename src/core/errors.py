"""
Error taxonomy for the wastewater ingestion pipeline.

Per-row data-quality errors (ParseError, ConversionFailed) are recoverable and
are tallied by the batch writer. Storage and host errors (StorageUnavailable,
ClockError) are fatal and abort the enclosing operation.
"""


class PipelineError(Exception):
    """Base class for all pipeline errors."""
    pass


class ParseError(PipelineError, ValueError):
    """
    A single input row could not be decoded.

    Attributes:
        line_number: 1-based data row number (header excluded), if known
    """

    def __init__(self, message: str, line_number: int | None = None):
        super().__init__(message)
        self.message = message
        self.line_number = line_number

    def __str__(self) -> str:
        if self.line_number is None:
            return self.message
        return f"line {self.line_number}: {self.message}"


class InvalidLocalTime(ParseError):
    """A civil timestamp that does not exist in US/Pacific (spring-forward gap)."""

    def __init__(self, text: str, line_number: int | None = None):
        super().__init__(
            f"Datetime {text} is invalid for Pacific timezone.",
            line_number=line_number,
        )
        self.text = text


class MissingColumnsError(ParseError):
    """The header row lacks one or more required columns."""

    def __init__(self, missing: list[str]):
        super().__init__(f"Missing required columns: {', '.join(missing)}")
        self.missing = missing


class ConversionFailed(PipelineError):
    """
    One input element could not become a valid sample.

    Never fatal: batch writers count it and move on.
    """

    def __init__(
        self,
        message: str,
        line_number: int | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.line_number = line_number
        self.cause = cause

    def __str__(self) -> str:
        if self.line_number is None:
            return self.message
        return f"line {self.line_number}: {self.message}"


class StorageUnavailable(PipelineError):
    """The persistent store could not be opened or written."""
    pass


class ClockError(PipelineError):
    """The system clock reports a time before the Unix epoch."""
    pass


class FetchError(PipelineError):
    """The source dataset could not be downloaded."""
    pass


class NotificationError(PipelineError):
    """A trend notification could not be delivered."""
    pass
