"""
BatchReport model summarizing one insert batch.
"""

from typing import List, Literal

from pydantic import BaseModel, Field

BatchOutcome = Literal["inserted", "skipped_duplicate", "failed_conversion"]


class BatchReport(BaseModel):
    """
    Tally of one batch written to the sample store.

    Invariant: inserted + skipped_duplicate + failed_conversion == total.

    Attributes:
        inserted: Samples written as new rows
        skipped_duplicate: Samples whose natural key already existed
        failed_conversion: Elements that never became a valid sample
        total: Elements consumed from the input
        failures: One diagnostic message per failed element
    """

    inserted: int = Field(0, ge=0)
    skipped_duplicate: int = Field(0, ge=0)
    failed_conversion: int = Field(0, ge=0)
    total: int = Field(0, ge=0)
    failures: List[str] = Field(default_factory=list)

    def record(self, outcome: BatchOutcome, message: str | None = None) -> "BatchReport":
        """
        Fold one element outcome into the report.

        Args:
            outcome: What happened to the element
            message: Diagnostic text for failed elements

        Returns:
            self, for chaining
        """
        if outcome == "inserted":
            self.inserted += 1
        elif outcome == "skipped_duplicate":
            self.skipped_duplicate += 1
        elif outcome == "failed_conversion":
            self.failed_conversion += 1
            if message:
                self.failures.append(message)
        else:
            raise ValueError(f"Unknown batch outcome: {outcome}")

        self.total += 1
        return self

    class Config:
        json_schema_extra = {
            "example": {
                "inserted": 7,
                "skipped_duplicate": 1,
                "failed_conversion": 2,
                "total": 10,
                "failures": [
                    "line 4: could not convert string to float: 'n/a'",
                    "line 9: Datetime 2024-03-10 02:30:00.000000 is invalid for Pacific timezone."
                ]
            }
        }
