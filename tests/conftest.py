"""
Shared fixtures. DATA_DIR is pointed at a temp folder before any project
module is imported, so the log file and backup never land in the repo.
"""

import os
import tempfile

os.environ.setdefault("DATA_DIR", tempfile.mkdtemp(prefix="controle-horas-"))

import pytest

from domain import CompensationPolicy, DayRecord
from services import DayHoursCalculator, PeriodAggregator


def make_day(rid, day, clock_in="", clock_out="", break_out="", break_in="", saturday=False):
    return DayRecord(id=rid, date=day, clock_in=clock_in, break_out=break_out,
                     break_in=break_in, clock_out=clock_out, is_saturday=saturday)


@pytest.fixture
def policy():
    return CompensationPolicy()


@pytest.fixture
def calculator(policy):
    return DayHoursCalculator(policy)


@pytest.fixture
def aggregator(calculator):
    return PeriodAggregator(calculator)


@pytest.fixture
def db_url(tmp_path):
    return f"sqlite:///{(tmp_path / 'workdays.db').as_posix()}"
