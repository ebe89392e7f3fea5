"""
WasteWaterSample model representing a persisted wastewater measurement.
"""

from datetime import date, datetime

from pydantic import BaseModel, Field, field_validator

NaturalKey = tuple[date, str, str, str, str]


class WasteWaterSample(BaseModel):
    """
    A normalized record of a wastewater sample.

    The natural key is (sample_collection_date, site_name, county,
    pcr_pathogen_target, pcr_gene_target). It identifies one real-world
    measurement and is unique in the store.

    Attributes:
        sample_collection_date: Date the sample was collected (not when it was polled)
        site_name: Name of the site where the sample was collected
        county: County where the sample was collected
        pcr_pathogen_target: Pathogen target for the PCR test
        pcr_gene_target: Gene target for the PCR test
        normalized_pathogen_concentration: Gene copies/person/day. Each site
            uses its own normalization method, so values are not comparable
            between sites.
        date_updated: When the source data was last updated (US/Pacific)
        poll_timestamp: Unix seconds when this record was first ingested
    """

    sample_collection_date: date
    site_name: str = Field(..., min_length=1)
    county: str
    pcr_pathogen_target: str = Field(..., min_length=1)
    pcr_gene_target: str = Field(..., min_length=1)
    normalized_pathogen_concentration: float = Field(..., ge=0.0, allow_inf_nan=False)
    date_updated: datetime
    poll_timestamp: int = Field(..., ge=0)

    @field_validator("date_updated")
    @classmethod
    def check_timezone_aware(cls, v: datetime) -> datetime:
        """Reject naive timestamps; the store keeps instants, not civil times."""
        if v.tzinfo is None or v.utcoffset() is None:
            raise ValueError("date_updated must be timezone-aware")
        return v

    @property
    def natural_key(self) -> NaturalKey:
        """The five-field deduplication key."""
        return (
            self.sample_collection_date,
            self.site_name,
            self.county,
            self.pcr_pathogen_target,
            self.pcr_gene_target,
        )

    class Config:
        json_schema_extra = {
            "example": {
                "sample_collection_date": "2024-11-01",
                "site_name": "Tacoma Central",
                "county": "Pierce",
                "pcr_pathogen_target": "SARS-CoV-2",
                "pcr_gene_target": "N1",
                "normalized_pathogen_concentration": 123456.78,
                "date_updated": "2024-11-03T01:30:00-08:00",
                "poll_timestamp": 1730650000
            }
        }
