"""
Tests for retry/backoff, the local backup fallback and the heartbeat.
"""

import threading

import pytest
from sqlalchemy.exc import OperationalError, SQLAlchemyError

from repository import WorkDayRepository
from sync import Heartbeat, LocalBackup, RetryPolicy, StorageUnavailable, SyncedStorage, call_with_retry
from tests.conftest import make_day


class FlakyRepo:
    """Stands in for WorkDayRepository; fails the first `failures` calls of every method."""
    def __init__(self, failures=0, records=None):
        self.failures = failures
        self.calls = 0
        self.records = list(records or [])
        self.settings = {}

    def _maybe_fail(self):
        self.calls += 1
        if self.calls <= self.failures:
            raise SQLAlchemyError("database is down")

    def list_all(self):
        self._maybe_fail()
        return list(self.records)

    def replace_all(self, records):
        self._maybe_fail()
        self.records = list(records)
        return len(self.records)

    def get_settings(self):
        self._maybe_fail()
        return dict(self.settings)

    def save_settings(self, values):
        self._maybe_fail()
        self.settings.update(values)
        return dict(self.settings)


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
def backup(tmp_path):
    return LocalBackup(tmp_path / "backup.json")


class TestRetryPolicy:
    """Tests for RetryPolicy.delay_for."""

    def test_doubles_up_to_ceiling(self):
        p = RetryPolicy(max_attempts=6, initial_delay=1.0, max_delay=10.0, backoff_multiplier=2.0)
        assert [p.delay_for(i) for i in range(5)] == [1.0, 2.0, 4.0, 8.0, 10.0]


class TestCallWithRetry:
    """Tests for call_with_retry."""

    def test_succeeds_after_failures(self, sleeps):
        repo = FlakyRepo(failures=2, records=[make_day(1, "2024-01-01")])
        result = call_with_retry(repo.list_all, RetryPolicy(), sleep=sleeps.append)
        assert [r.id for r in result] == [1]
        assert repo.calls == 3
        assert sleeps == [1.0, 2.0]

    def test_gives_up(self, sleeps):
        repo = FlakyRepo(failures=10)
        with pytest.raises(StorageUnavailable):
            call_with_retry(repo.list_all, RetryPolicy(max_attempts=3), sleep=sleeps.append)
        assert repo.calls == 3
        assert sleeps == [1.0, 2.0]

    def test_non_storage_errors_propagate(self, sleeps):
        def boom():
            raise ValueError("bug")
        with pytest.raises(ValueError):
            call_with_retry(boom, sleep=sleeps.append)
        assert sleeps == []


class TestLocalBackup:
    """Tests for LocalBackup."""

    def test_records_round_trip(self, backup):
        records = [make_day(1, "2024-01-01", "08:00", "17:00"), make_day(2, "2024-01-02", saturday=True)]
        backup.save_records(records)
        assert backup.load_records() == records

    def test_settings_merge(self, backup):
        backup.save_settings({"theme": "dark"})
        backup.save_settings({"hourlyBase": 2000})
        assert backup.load_settings() == {"theme": "dark", "hourlyBase": 2000}

    def test_missing_file(self, backup):
        assert backup.load_records() == []
        assert backup.load_settings() == {}

    def test_malformed_file(self, backup):
        backup.path.write_text("not json", encoding="utf-8")
        assert backup.load_records() == []

    def test_non_list_payload(self, backup):
        backup.path.write_text('{"workDays": {"id": 1}}', encoding="utf-8")
        assert backup.load_records() == []

    def test_legacy_records_without_ids(self, backup):
        backup.path.write_text(
            '{"workDays": [{"data": "2024-01-01", "sabado": "false"}, {"data": "2024-01-02"}]}',
            encoding="utf-8",
        )
        records = backup.load_records()
        assert [r.date for r in records] == ["2024-01-01", "2024-01-02"]
        assert records[0].id != records[1].id
        assert records[0].is_saturday is False


class TestSyncedStorage:
    """Tests for SyncedStorage fallbacks."""

    def test_load_from_store(self, backup, sleeps):
        repo = FlakyRepo(records=[make_day(1, "2024-01-01")])
        storage = SyncedStorage(repo, backup, sleep=sleeps.append)
        assert [r.id for r in storage.load_records()] == [1]

    def test_load_falls_back_when_store_down(self, backup, sleeps):
        backup.save_records([make_day(9, "2024-01-09")])
        storage = SyncedStorage(FlakyRepo(failures=99), backup, sleep=sleeps.append)
        assert [r.id for r in storage.load_records()] == [9]

    def test_load_restores_backup_when_store_empty(self, backup, sleeps):
        backup.save_records([make_day(9, "2024-01-09")])
        storage = SyncedStorage(FlakyRepo(), backup, sleep=sleeps.append)
        assert [r.id for r in storage.load_records()] == [9]

    def test_non_list_payload_is_empty(self, backup, sleeps):
        repo = FlakyRepo()
        repo.list_all = lambda: {"unexpected": True}
        storage = SyncedStorage(repo, backup, sleep=sleeps.append)
        assert storage.load_records() == []

    def test_save_success(self, backup, sleeps):
        repo = FlakyRepo(failures=1)
        storage = SyncedStorage(repo, backup, sleep=sleeps.append)
        assert storage.save_records([make_day(1, "2024-01-01")]) is True
        assert [r.id for r in repo.records] == [1]
        assert backup.load_records() == []

    def test_save_failure_writes_backup(self, backup, sleeps):
        storage = SyncedStorage(FlakyRepo(failures=99), backup, sleep=sleeps.append)
        assert storage.save_records([make_day(1, "2024-01-01")]) is False
        assert [r.id for r in backup.load_records()] == [1]

    def test_settings_fallback(self, backup, sleeps):
        storage = SyncedStorage(FlakyRepo(failures=99), backup, sleep=sleeps.append)
        assert storage.save_settings({"theme": "dark"}) is False
        assert storage.load_settings() == {"theme": "dark"}

    def test_with_real_repository(self, db_url, backup, sleeps):
        storage = SyncedStorage(WorkDayRepository(db_url), backup, sleep=sleeps.append)
        records = [make_day(2, "2024-01-02"), make_day(1, "2024-01-01")]
        assert storage.save_records(records)
        assert storage.load_records() == records


class TestHeartbeat:
    """Tests for Heartbeat."""

    def test_check_reports_status(self):
        seen = []
        hb = Heartbeat(lambda: False, interval=60, on_status=seen.append)
        assert hb.check() is False
        assert hb.is_alive is False
        assert seen == [False]

    def test_probe_exception_means_disconnected(self):
        def probe():
            raise OperationalError("select 1", {}, Exception("down"))
        hb = Heartbeat(probe, interval=60)
        assert hb.check() is False

    def test_start_probes_immediately_and_stops(self):
        probed = threading.Event()

        def probe():
            probed.set()
            return True

        hb = Heartbeat(probe, interval=60)
        hb.start()
        try:
            assert probed.wait(2.0)
            assert hb.running
        finally:
            hb.stop()
        assert not hb.running

    def test_pause_and_resume(self):
        hb = Heartbeat(lambda: True, interval=60)
        hb.start()
        hb.pause()
        assert not hb.running
        hb.resume()
        assert hb.running
        hb.stop()
        assert not hb.running
