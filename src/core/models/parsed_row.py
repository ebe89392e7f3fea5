"""
ParsedRow model representing one decoded line of the source CSV (ephemeral).
"""

from datetime import date, datetime

from pydantic import BaseModel, Field


class ParsedRow(BaseModel):
    """
    One data row of the wastewater CSV after type decoding.

    Note: ParsedRow is ephemeral. It is produced by the CSV reader and
    consumed immediately by the normalizer; it is never persisted.

    Attributes:
        line_number: 1-based data row number (header excluded)
        sample_collection_date: Date the sample was collected
        site_name: Treatment plant / sampling site
        county: County of the site
        pcr_pathogen_target: Pathogen the PCR assay targets
        pcr_gene_target: Gene the PCR assay targets
        normalized_pathogen_concentration: Gene copies/person/day
        date_updated: When the publisher last refreshed the file (US/Pacific)
    """

    line_number: int = Field(..., ge=1)
    sample_collection_date: date
    site_name: str
    county: str
    pcr_pathogen_target: str
    pcr_gene_target: str
    normalized_pathogen_concentration: float
    date_updated: datetime

    class Config:
        json_schema_extra = {
            "example": {
                "line_number": 1,
                "sample_collection_date": "2024-11-01",
                "site_name": "Tacoma Central",
                "county": "Pierce",
                "pcr_pathogen_target": "SARS-CoV-2",
                "pcr_gene_target": "N1",
                "normalized_pathogen_concentration": 123456.78,
                "date_updated": "2024-11-03T01:30:00-08:00"
            }
        }
