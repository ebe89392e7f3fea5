"""
Integration tests for the deduplicating sample store

Runs against PostgreSQL in a testcontainer.
"""

import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import date, datetime, timezone

import pytest

from src.core.errors import ConversionFailed, ParseError, StorageUnavailable
from src.warehouse.sample_store import SampleStore


@pytest.fixture
def store(clean_db) -> SampleStore:
    return SampleStore(clean_db)


@pytest.mark.integration
class TestInsertIfAbsent:
    """Tests for single-sample writes"""

    def test_first_insert_then_duplicate(self, store, make_sample):
        sample = make_sample()

        assert store.insert_if_absent(sample) is True
        assert store.insert_if_absent(sample) is False
        assert store.count() == 1

    def test_duplicate_does_not_overwrite(self, store, make_sample):
        """Later versions of a key leave the stored row untouched"""
        store.insert_if_absent(make_sample(normalized_pathogen_concentration=1000.0, poll_timestamp=100))
        store.insert_if_absent(
            make_sample(
                normalized_pathogen_concentration=2500.0,
                date_updated=datetime(2024, 11, 20, 8, 0, tzinfo=timezone.utc),
                poll_timestamp=200,
            )
        )

        stored = store.get(make_sample().natural_key)
        assert stored.normalized_pathogen_concentration == 1000.0
        assert stored.poll_timestamp == 100
        assert stored.date_updated.astimezone(timezone.utc) == datetime(
            2024, 11, 4, 17, 15, tzinfo=timezone.utc
        )

    @pytest.mark.parametrize(
        "field,value",
        [
            ("sample_collection_date", date(2024, 11, 2)),
            ("site_name", "West Point"),
            ("county", "King"),
            ("pcr_pathogen_target", "Influenza A"),
            ("pcr_gene_target", "N2"),
        ],
    )
    def test_each_key_field_distinguishes(self, store, make_sample, field, value):
        assert store.insert_if_absent(make_sample()) is True
        assert store.insert_if_absent(make_sample(**{field: value})) is True
        assert store.count() == 2

    def test_get_missing_key(self, store, make_sample):
        assert store.get(make_sample().natural_key) is None


@pytest.mark.integration
class TestInsertBatch:
    """Tests for batch writes"""

    def test_mixed_batch_counts(self, store, make_sample):
        """7 new, 1 already stored, 2 unconvertible"""
        store.insert_if_absent(make_sample(site_name="Site 3"))

        items = [make_sample(site_name=f"Site {i}") for i in range(8)]
        items.insert(2, ConversionFailed("bad value", line_number=3))
        items.insert(6, ParseError("bad date", line_number=7))

        report = store.insert_batch(items)

        assert report.inserted == 7
        assert report.skipped_duplicate == 1
        assert report.failed_conversion == 2
        assert report.total == 10
        assert report.failures == ["line 3: bad value", "line 7: bad date"]
        assert store.count() == 8

    def test_reingest_is_all_duplicates(self, store, make_sample):
        items = [make_sample(site_name=f"Site {i}") for i in range(3)]
        store.insert_batch(items)

        report = store.insert_batch(items)

        assert (report.inserted, report.skipped_duplicate, report.total) == (0, 3, 3)
        assert store.count() == 3

    def test_duplicate_within_one_batch(self, store, make_sample):
        report = store.insert_batch(
            [make_sample(), make_sample(normalized_pathogen_concentration=5.0)]
        )
        assert (report.inserted, report.skipped_duplicate) == (1, 1)
        assert store.get(make_sample().natural_key).normalized_pathogen_concentration == 1000.0

    def test_storage_failure_rolls_back_batch(self, store, make_sample):
        """A write rejected by the database discards the whole batch"""
        store.insert_if_absent(make_sample(site_name="Existing"))
        items = [make_sample(site_name=f"Site {i}") for i in range(3)]
        # Postgres text columns reject NUL bytes
        items.append(make_sample(site_name="Bad\x00Site"))
        items.append(make_sample(site_name="Never Reached"))

        with pytest.raises(StorageUnavailable):
            store.insert_batch(items)

        assert store.count() == 1
        assert store.get(make_sample(site_name="Site 0").natural_key) is None

    def test_empty_batch(self, store):
        report = store.insert_batch([])
        assert report.total == 0

    def test_overlapping_batches_insert_each_key_once(self, store, make_sample):
        """Two writers with the same samples never both claim a key"""
        keys = 25
        start = threading.Barrier(2)

        def write_batch():
            items = [make_sample(site_name=f"Site {i}") for i in range(keys)]
            start.wait(timeout=30)
            return store.insert_batch(items)

        # max_size=4, so each call holds its own connection
        with ThreadPoolExecutor(max_workers=2) as executor:
            futures = [executor.submit(write_batch) for _ in range(2)]
            reports = [future.result(timeout=60) for future in futures]

        assert sum(r.inserted for r in reports) == keys
        assert sum(r.skipped_duplicate for r in reports) == keys
        assert all(r.total == keys for r in reports)
        assert store.count() == keys


@pytest.mark.integration
class TestReads:
    """Tests for read helpers"""

    def test_round_trip_preserves_instant(self, store, make_sample):
        """Fall-back instant survives storage with its UTC offset"""
        updated = datetime.fromisoformat("2024-11-03T01:30:00-08:00")
        store.insert_if_absent(make_sample(date_updated=updated))

        stored = store.get(make_sample().natural_key)
        assert stored.date_updated.astimezone(timezone.utc) == updated.astimezone(timezone.utc)
        assert stored.date_updated.utcoffset().total_seconds() == -8 * 3600

    def test_list_locations(self, store, make_sample):
        store.insert_batch(
            [
                make_sample(site_name="West Point", pcr_pathogen_target="RSV"),
                make_sample(site_name="Tacoma Central"),
                make_sample(site_name="Tacoma Central", pcr_gene_target="N2"),
                make_sample(site_name="Tacoma Central", pcr_pathogen_target="Influenza A"),
            ]
        )

        assert store.list_locations() == [
            ("Tacoma Central", "Influenza A"),
            ("Tacoma Central", "SARS-CoV-2"),
            ("West Point", "RSV"),
        ]
