"""
Tests for WorkDayRepository against a temporary SQLite file.
"""

import pytest

from repository import WorkDayRepository, build_engine
from tests.conftest import make_day


@pytest.fixture
def repo(db_url):
    return WorkDayRepository(db_url)


class TestWorkDays:
    """Wholesale replace and listing."""

    def test_empty(self, repo):
        assert repo.list_all() == []

    def test_preserves_display_order(self, repo):
        records = [
            make_day(3, "2024-02-01", "08:00", "17:00"),
            make_day(1, "2024-01-31", "08:00", "16:00", "12:00", "13:00"),
            make_day(2, "2024-02-03", saturday=True),
        ]
        assert repo.replace_all(records) == 3
        assert repo.list_all() == records

    def test_replace_is_wholesale(self, repo):
        repo.replace_all([make_day(1, "2024-01-01"), make_day(2, "2024-01-02")])
        repo.replace_all([make_day(5, "2024-03-01")])
        assert [r.id for r in repo.list_all()] == [5]

    def test_duplicate_ids_keep_first(self, repo):
        count = repo.replace_all([
            make_day(1, "2024-01-01", "08:00", "17:00"),
            make_day(1, "2024-01-02"),
            make_day(2, "2024-01-03"),
        ])
        assert count == 2
        stored = repo.list_all()
        assert [r.id for r in stored] == [1, 2]
        assert stored[0].date == "2024-01-01"

    def test_retried_save_is_idempotent(self, repo):
        records = [make_day(1, "2024-01-01"), make_day(2, "2024-01-02")]
        repo.replace_all(records)
        repo.replace_all(records)
        assert repo.list_all() == records

    def test_millisecond_ids(self, repo):
        rid = 1_717_000_000_123
        repo.replace_all([make_day(rid, "2024-05-29")])
        assert repo.list_all()[0].id == rid

    def test_clear(self, repo):
        repo.replace_all([make_day(1, "2024-01-01")])
        assert repo.replace_all([]) == 0
        assert repo.list_all() == []


class TestSettings:
    """Settings blob storage."""

    def test_empty(self, repo):
        assert repo.get_settings() == {}

    def test_merge(self, repo):
        repo.save_settings({"theme": "dark", "standardDailyMinutes": 528})
        merged = repo.save_settings({"theme": "light"})
        assert merged == {"theme": "light", "standardDailyMinutes": 528}
        assert repo.get_settings() == merged


def test_ping(repo):
    assert repo.ping() is True


def test_unreachable_postgres_fails_fast():
    with pytest.raises(RuntimeError):
        WorkDayRepository("postgresql://user:pw@127.0.0.1:1/nodb")


class TestBuildEngine:
    """Engine options per backend."""

    def test_postgres_requires_tls_by_default(self):
        engine = build_engine("postgresql://user:pw@db.example.com:5432/horas")
        assert engine.url.query["sslmode"] == "require"

    def test_postgres_keeps_explicit_sslmode(self):
        engine = build_engine("postgresql://user:pw@localhost:5432/horas?sslmode=disable")
        assert engine.url.query["sslmode"] == "disable"

    def test_sqlite_untouched(self, db_url):
        engine = build_engine(db_url)
        assert engine.url.get_backend_name() == "sqlite"
        assert "sslmode" not in engine.url.query
