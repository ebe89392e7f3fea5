"""
Pytest configuration and fixtures for wastewater pipeline tests

This module provides shared fixtures for unit and integration tests.
"""
from datetime import date, datetime
from typing import Callable, Generator

import pytest

from src.core.models import WasteWaterSample
from src.core.timezones import PACIFIC


# =======================
# PYTEST CONFIGURATION
# =======================

def pytest_configure(config):
    """Configure pytest with custom markers"""
    config.addinivalue_line(
        "markers", "unit: Unit tests that don't require external services"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests that require Docker containers"
    )


# =======================
# DATABASE FIXTURES (Testcontainers)
# =======================

@pytest.fixture(scope="session")
def postgres_container() -> Generator:
    """
    Start PostgreSQL container for integration tests

    Skips dependent tests when Docker is not available.

    Yields:
        PostgresContainer instance
    """
    from testcontainers.postgres import PostgresContainer

    container = PostgresContainer(
        image="postgres:16.2-alpine",
        username="test_pipeline",
        password="test_password",
        dbname="test_wastewater",
    )
    try:
        container.start()
    except Exception as e:
        pytest.skip(f"Docker is not available: {e}")

    try:
        yield container
    finally:
        container.stop()


@pytest.fixture(scope="session")
def db_pool(postgres_container) -> Generator:
    """
    Session-wide connection pool with the sample schema applied

    Yields:
        Open DatabaseConnectionPool
    """
    from src.warehouse.connection import DatabaseConnectionPool
    from src.warehouse.schema_mgmt import SchemaManager

    pool = DatabaseConnectionPool(
        host=postgres_container.get_container_host_ip(),
        port=int(postgres_container.get_exposed_port(5432)),
        database="test_wastewater",
        user="test_pipeline",
        password="test_password",
    )
    pool.open()
    SchemaManager(pool).ensure_schema()

    yield pool

    pool.close()


@pytest.fixture(scope="function")
def clean_db(db_pool):
    """
    Provide an empty sample table for each test

    Returns:
        The open pool
    """
    db_pool.execute_command("TRUNCATE TABLE wastewater_samples")
    return db_pool


# =======================
# DATA FIXTURES
# =======================

HEADER = (
    "Sample Collection Date,Site Name,County,PCR Pathogen Target,PCR Gene Target,"
    "Normalized Pathogen Concentration (gene copies/person/day),Date/Time Updated"
)


@pytest.fixture
def csv_header() -> str:
    """Header row of the published dataset"""
    return HEADER


@pytest.fixture
def make_csv() -> Callable[..., bytes]:
    """
    Build CSV bytes from data lines

    Usage:
        make_csv("2024-11-01,Site,County,SARS-CoV-2,N1,10.5,2024-11-03 01:30:00.000000")
    """
    def _make(*lines: str, header: str = HEADER) -> bytes:
        return ("\n".join([header, *lines]) + "\n").encode("utf-8")

    return _make


@pytest.fixture
def make_sample() -> Callable[..., WasteWaterSample]:
    """
    Build a valid WasteWaterSample, overriding any field by keyword
    """
    def _make(**overrides) -> WasteWaterSample:
        values = {
            "sample_collection_date": date(2024, 11, 1),
            "site_name": "Tacoma Central",
            "county": "Pierce",
            "pcr_pathogen_target": "SARS-CoV-2",
            "pcr_gene_target": "N1",
            "normalized_pathogen_concentration": 1000.0,
            "date_updated": datetime(2024, 11, 4, 9, 15, tzinfo=PACIFIC),
            "poll_timestamp": 1730740000,
        }
        values.update(overrides)
        return WasteWaterSample(**values)

    return _make
