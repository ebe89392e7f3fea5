"""
TrendSummary model comparing the latest and previous sample for a site/target.
"""

from datetime import date
from typing import Literal

from pydantic import BaseModel

from .wastewater_sample import WasteWaterSample

TrendStatus = Literal["no_data", "no_prior_data", "ok"]

TrendNotification = tuple[str, str, float, date, float | None, date | None]


class TrendSummary(BaseModel):
    """
    Latest-vs-previous comparison for one (location, pathogen target) pair.

    Attributes:
        location: Site name the summary was filtered on
        pcr_pathogen_target: Pathogen target the summary was filtered on
        latest: Most recent sample by collection date, if any
        previous: The sample ranked immediately before `latest`, if any
    """

    location: str
    pcr_pathogen_target: str
    latest: WasteWaterSample | None = None
    previous: WasteWaterSample | None = None

    @property
    def status(self) -> TrendStatus:
        if self.latest is None:
            return "no_data"
        if self.previous is None:
            return "no_prior_data"
        return "ok"

    @property
    def difference(self) -> float | None:
        """Signed change, latest minus previous."""
        if self.latest is None or self.previous is None:
            return None
        return (
            self.latest.normalized_pathogen_concentration
            - self.previous.normalized_pathogen_concentration
        )

    def as_notification(self) -> TrendNotification | None:
        """
        Flatten to the tuple handed to notifiers.

        Returns:
            (location, target, latest_value, latest_date, difference,
            previous_date), or None when no sample matched
        """
        if self.latest is None:
            return None

        return (
            self.location,
            self.pcr_pathogen_target,
            self.latest.normalized_pathogen_concentration,
            self.latest.sample_collection_date,
            self.difference,
            self.previous.sample_collection_date if self.previous else None,
        )
