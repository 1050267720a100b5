# repository.py
from __future__ import annotations

import json
from typing import Any, Dict, Iterable, List

from sqlalchemy import BigInteger, Column, delete, text
from sqlalchemy.engine import make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import NullPool
from sqlmodel import SQLModel, Field, Session, create_engine, select

from domain import DayRecord
from logger import get_logger

log = get_logger(__name__)


class WorkDayDB(SQLModel, table=True):
    __tablename__ = "work_days"

    # millisecond timestamps overflow a 32-bit INTEGER
    id: int = Field(sa_column=Column(BigInteger, primary_key=True, autoincrement=False))
    position: int = Field(index=True)
    date: str = Field(default="", index=True)
    clock_in: str = ""
    break_out: str = ""
    break_in: str = ""
    clock_out: str = ""
    is_saturday: bool = False


class SettingDB(SQLModel, table=True):
    __tablename__ = "settings"

    key: str = Field(primary_key=True)
    value: str  # JSON-encoded


def build_engine(db_url: str, echo: bool = False):
    url = make_url(db_url)
    if url.get_backend_name() == "sqlite":
        return create_engine(url, echo=echo, connect_args={"check_same_thread": False})
    # Hosted Postgres: no local pool, bounded connect, TLS unless the URL sets sslmode
    if "sslmode" not in url.query:
        url = url.update_query_dict({"sslmode": "require"})
    return create_engine(url, echo=echo, pool_pre_ping=True, poolclass=NullPool,
                         connect_args={"connect_timeout": 10})


def _to_record(r: WorkDayDB) -> DayRecord:
    return DayRecord(
        id=r.id,
        date=r.date,
        clock_in=r.clock_in,
        break_out=r.break_out,
        break_in=r.break_in,
        clock_out=r.clock_out,
        is_saturday=r.is_saturday,
    )


class WorkDayRepository:
    """Stores the day-record collection and the settings blob. The collection is replaced wholesale."""
    def __init__(self, url: str = "sqlite:///workdays.db", echo: bool = False):
        self.url = url
        self.engine = build_engine(url, echo=echo)

        # Postgres: fail fast when unreachable
        if not url.startswith("sqlite"):
            try:
                with self.engine.connect() as conn:
                    conn.execute(text("select 1"))
            except SQLAlchemyError as e:
                raise RuntimeError(f"Could not connect to database: {e}") from e

        SQLModel.metadata.create_all(self.engine)

    def list_all(self) -> List[DayRecord]:
        with Session(self.engine) as session:
            rows = session.exec(select(WorkDayDB).order_by(WorkDayDB.position, WorkDayDB.id)).all()
            return [_to_record(r) for r in rows]

    def replace_all(self, records: Iterable[DayRecord]) -> int:
        """
        Clears and re-inserts the whole collection in a single transaction, so readers
        never see a half-cleared table. Duplicate ids keep their first occurrence,
        which makes a retried save idempotent.
        """
        seen = set()
        rows = []
        for r in records:
            if r.id in seen:
                log.debug("Skipping duplicate work day id %s", r.id)
                continue
            seen.add(r.id)
            rows.append(WorkDayDB(
                id=r.id,
                position=len(rows),
                date=r.date,
                clock_in=r.clock_in,
                break_out=r.break_out,
                break_in=r.break_in,
                clock_out=r.clock_out,
                is_saturday=r.is_saturday,
            ))

        with Session(self.engine) as session:
            try:
                session.connection().execute(delete(WorkDayDB))
                session.add_all(rows)
                session.commit()
            except SQLAlchemyError:
                session.rollback()
                log.exception("Replacing work days failed, transaction rolled back")
                raise
        log.info("Saved %d work days", len(rows))
        return len(rows)

    def get_settings(self) -> Dict[str, Any]:
        with Session(self.engine) as session:
            rows = session.exec(select(SettingDB)).all()
        out = {}
        for row in rows:
            try:
                out[row.key] = json.loads(row.value)
            except ValueError:
                log.warning("Ignoring malformed setting %r", row.key)
        return out

    def save_settings(self, values: Dict[str, Any]) -> Dict[str, Any]:
        """Merges `values` into the stored settings and returns the full blob."""
        with Session(self.engine) as session:
            for key, value in values.items():
                row = session.get(SettingDB, key)
                if row is None:
                    row = SettingDB(key=key, value=json.dumps(value))
                else:
                    row.value = json.dumps(value)
                session.add(row)
            session.commit()
        return self.get_settings()

    def ping(self) -> bool:
        try:
            with self.engine.connect() as conn:
                conn.execute(text("select 1"))
            return True
        except SQLAlchemyError as e:
            log.warning("Database ping failed: %s", e)
            return False


__all__ = ["WorkDayDB", "SettingDB", "WorkDayRepository", "build_engine"]
