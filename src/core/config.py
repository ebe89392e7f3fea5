"""
Runtime configuration loaded from the environment.

A `.env` file in the working directory is honoured via python-dotenv;
explicit environment variables take precedence over it.
"""

import os

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

DEFAULT_WASTEWATER_URL = (
    "https://doh.wa.gov/sites/default/files/Data/Downloadable_Wastewater.csv"
)


class PipelineSettings(BaseModel):
    """
    Settings for one ingestion run.

    Attributes:
        wastewater_url: CSV download location
        db_host: PostgreSQL host
        db_port: PostgreSQL port
        db_name: Database name
        db_user: Database user
        db_password: Database password
        fetch_timeout_seconds: Timeout for the single download attempt
        webhook_url: Notification endpoint; notifications are off when unset
        watch: (site, pathogen target) pairs to summarize; empty means all
        log_level: Logging level name
        log_format: "json" or "text"
    """

    wastewater_url: str = DEFAULT_WASTEWATER_URL
    db_host: str = "localhost"
    db_port: int = Field(5432, gt=0, le=65535)
    db_name: str = "wastewater"
    db_user: str = "pipeline"
    db_password: str | None = None
    fetch_timeout_seconds: float = Field(60.0, gt=0)
    webhook_url: str | None = None
    watch: list[tuple[str, str]] = Field(default_factory=list)
    log_level: str = "INFO"
    log_format: str = "json"

    @field_validator("log_format")
    @classmethod
    def check_log_format(cls, v: str) -> str:
        if v not in ("json", "text"):
            raise ValueError(f"log_format must be 'json' or 'text', got {v!r}")
        return v


def parse_watch_list(raw: str | None) -> list[tuple[str, str]]:
    """
    Parse "site|target;site|target" into pairs.

    Args:
        raw: Value of WASTEWATER_WATCH

    Returns:
        List of (site_name, pcr_pathogen_target) pairs

    Raises:
        ValueError: If an entry is not of the form "site|target"
    """
    if not raw:
        return []

    pairs = []
    for entry in raw.split(";"):
        if not entry.strip():
            continue
        site, sep, target = entry.partition("|")
        if not sep or not site.strip() or not target.strip():
            raise ValueError(f"Invalid WASTEWATER_WATCH entry: {entry!r}")
        pairs.append((site.strip(), target.strip()))
    return pairs


def load_settings(dotenv_path: str | None = None) -> PipelineSettings:
    """
    Build settings from environment variables.

    Args:
        dotenv_path: Optional explicit .env file

    Returns:
        PipelineSettings instance
    """
    load_dotenv(dotenv_path)

    return PipelineSettings(
        wastewater_url=os.getenv("URL_WAGOV_WASTEWATER", DEFAULT_WASTEWATER_URL),
        db_host=os.getenv("DB_HOST", "localhost"),
        db_port=int(os.getenv("DB_PORT", "5432")),
        db_name=os.getenv("DB_NAME", "wastewater"),
        db_user=os.getenv("DB_USER", "pipeline"),
        db_password=os.getenv("DB_PASSWORD"),
        fetch_timeout_seconds=float(os.getenv("FETCH_TIMEOUT_SECONDS", "60")),
        webhook_url=os.getenv("WEBHOOK_URL") or None,
        watch=parse_watch_list(os.getenv("WASTEWATER_WATCH")),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        log_format=os.getenv("LOG_FORMAT", "json"),
    )
