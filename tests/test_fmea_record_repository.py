"""FMEARecordRepository against the in-memory backend."""

from __future__ import annotations

import datetime as dt

import pytest

from qcheck.models.fmea_record import FMEARecordCreate, FMEARecordUpdate
from qcheck.repositories.base_repository import StoreError
from qcheck.repositories.fmea_record_repository import FMEARecordRepository


def _create(**overrides) -> FMEARecordCreate:
    data = {
        "process_name": "Welding",
        "date": dt.date(2024, 3, 1),
        "potential_failure": "Crack",
        "severity": 5,
        "occurrence": 4,
        "detection": 3,
        "user_id": "user-alice",
    }
    data.update(overrides)
    return FMEARecordCreate(**data)


class TestCreate:
    def test_rpn_is_computed(self, record_repo, fake_client):
        record = record_repo.create(_create(severity=7, occurrence=3, detection=4))
        assert record.rpn == 84
        assert fake_client.tables["fmea_records"][0]["rpn"] == 84

    def test_timestamps_are_set(self, record_repo):
        record = record_repo.create(_create())
        assert record.created_at == record.updated_at
        assert record.id

    def test_failure_raises_store_error(self, record_repo, fake_client):
        fake_client.failing.add("insert")
        with pytest.raises(StoreError) as excinfo:
            record_repo.create(_create())
        assert "insert" in excinfo.value.message

    def test_offline_raises_store_error(self, offline_db, logger):
        assert not offline_db.is_online
        repo = FMEARecordRepository(db=offline_db, logger=logger)
        with pytest.raises(StoreError):
            repo.create(_create())


class TestUpdate:
    def test_single_rating_recomputes_rpn(self, record_repo, seed_record):
        row = seed_record(severity=5, occurrence=4, detection=3)
        updated = record_repo.update(row["id"], FMEARecordUpdate(severity=8))
        assert updated.severity == 8
        assert updated.rpn == 96

    def test_text_only_keeps_rpn(self, record_repo, seed_record):
        row = seed_record(severity=5, occurrence=4, detection=3)
        updated = record_repo.update(row["id"], FMEARecordUpdate(process_name="Painting"))
        assert updated.process_name == "Painting"
        assert updated.rpn == 60

    def test_text_only_does_not_write_rpn(self, record_repo, seed_record, fake_client):
        row = seed_record()
        record_repo.update(row["id"], FMEARecordUpdate(description="note"))
        assert "rpn" not in fake_client.last_payload
        assert fake_client.last_payload["description"] == "note"

    def test_updated_at_advances(self, record_repo, seed_record):
        row = seed_record(updated_at="2020-01-01T00:00:00+00:00")
        updated = record_repo.update(row["id"], FMEARecordUpdate(detection=2))
        assert updated.updated_at > dt.datetime(2020, 1, 1, tzinfo=dt.timezone.utc)

    def test_missing_record_returns_none(self, record_repo):
        assert record_repo.update("nope", FMEARecordUpdate(severity=2)) is None

    def test_write_failure_raises(self, record_repo, seed_record, fake_client):
        row = seed_record()
        fake_client.failing.add("update")
        with pytest.raises(StoreError):
            record_repo.update(row["id"], FMEARecordUpdate(severity=2))

    def test_identity_and_creation_time_unchanged(self, record_repo, seed_record):
        row = seed_record()
        updated = record_repo.update(
            row["id"], FMEARecordUpdate(severity=9, process_name="Painting"),
        )
        assert updated.id == row["id"]
        assert updated.created_at == dt.datetime(2024, 3, 1, 9, 0, tzinfo=dt.timezone.utc)

    def test_stored_rating_out_of_range_raises(self, record_repo, seed_record, fake_client):
        row = seed_record(occurrence=11)
        with pytest.raises(StoreError):
            record_repo.update(row["id"], FMEARecordUpdate(severity=2))
        assert fake_client.tables["fmea_records"][0]["severity"] == 5

    def test_malformed_row_after_update_raises(self, record_repo, seed_record):
        row = seed_record(occurrence=11)
        with pytest.raises(StoreError):
            record_repo.update(row["id"], FMEARecordUpdate(description="note"))


class TestDelete:
    def test_existing(self, record_repo, seed_record):
        row = seed_record()
        assert record_repo.delete(row["id"]) is True
        assert record_repo.find_by_id(row["id"]) is None

    def test_nonexistent_returns_false(self, record_repo):
        assert record_repo.delete("nonexistent") is False

    def test_failure_returns_false(self, record_repo, seed_record, fake_client):
        row = seed_record()
        fake_client.failing.add("delete")
        assert record_repo.delete(row["id"]) is False


class TestReads:
    def test_find_by_id(self, record_repo, seed_record):
        row = seed_record()
        assert record_repo.find_by_id(row["id"]).process_name == "Welding"

    def test_find_by_id_missing(self, record_repo):
        assert record_repo.find_by_id("missing") is None

    def test_find_by_user_id_filters_owner(self, record_repo, seed_record):
        seed_record(user_id="user-alice")
        seed_record(user_id="user-alice")
        seed_record(user_id="user-bob")
        records = record_repo.find_by_user_id("user-alice")
        assert len(records) == 2
        assert {r.user_id for r in records} == {"user-alice"}

    def test_find_by_user_id_newest_first(self, record_repo, seed_record):
        t1 = seed_record(updated_at="2024-01-01T00:00:00+00:00")
        t3 = seed_record(updated_at="2024-03-01T00:00:00+00:00")
        t2 = seed_record(updated_at="2024-02-01T00:00:00+00:00")
        ids = [r.id for r in record_repo.find_by_user_id("user-alice")]
        assert ids == [t3["id"], t2["id"], t1["id"]]

    def test_remote_filter_is_user_id_only(self, record_repo, fake_client):
        record_repo.find_by_user_id("user-alice")
        assert fake_client.calls[-1] == ("fmea_records", "select", [("user_id", "user-alice")])

    def test_read_failure_degrades_to_empty(self, record_repo, seed_record, fake_client):
        seed_record()
        fake_client.failing.add("select")
        assert record_repo.find_by_user_id("user-alice") == []
        assert record_repo.get_all() == []
        assert record_repo.find_by_id("anything") is None

    def test_offline_reads_degrade(self, offline_db, logger):
        repo = FMEARecordRepository(db=offline_db, logger=logger)
        assert repo.find_by_user_id("user-alice") == []

    def test_malformed_row_is_skipped(self, record_repo, seed_record):
        seed_record()
        seed_record(rpn=7)
        assert len(record_repo.find_by_user_id("user-alice")) == 1

    def test_get_all_spans_owners(self, record_repo, seed_record):
        seed_record(user_id="user-alice", updated_at="2024-01-01T00:00:00+00:00")
        newest = seed_record(user_id="user-bob", updated_at="2024-05-01T00:00:00+00:00")
        records = record_repo.get_all()
        assert len(records) == 2
        assert records[0].id == newest["id"]

    def test_custom_table_name(self, db, logger, fake_client):
        assert db.is_online
        repo = FMEARecordRepository(db=db, logger=logger, table="fmea_staging")
        repo.create(_create())
        assert len(fake_client.tables["fmea_staging"]) == 1
