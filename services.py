# services.py
from __future__ import annotations

from calendar import monthrange
from datetime import date
from typing import Dict, Iterable, Tuple

from domain import (
    Balance, BalanceKind, CompensationPolicy, DayHours, DayRecord,
    PeriodComparison, PeriodSummary,
)
from utils import format_minutes, parse_iso_date, parse_time


class DayHoursCalculator:
    """Business rules for worked minutes, overtime and deficit of a single day."""
    def __init__(self, policy: CompensationPolicy | None = None):
        self.policy = policy or CompensationPolicy()

    def calculate_day_hours(self, day: DayRecord) -> DayHours:
        """
        total = clock_out - clock_in, minus the break when both break fields are set.
        Incomplete days (clock-in or clock-out unset) return zeros.
        """
        clock_in = parse_time(day.clock_in)
        break_out = parse_time(day.break_out)
        break_in = parse_time(day.break_in)
        clock_out = parse_time(day.clock_out)

        if not clock_in or not clock_out:
            return DayHours()

        total = clock_out - clock_in
        if break_out and break_in:
            total -= break_in - break_out

        diff = total - self.policy.expected_minutes(day.is_saturday)
        return DayHours(total=total, overtime=max(diff, 0), deficit=max(-diff, 0))


class PeriodAggregator:
    """Sums day results over any subset of records and values the overtime."""
    def __init__(self, calculator: DayHoursCalculator | None = None):
        self.calculator = calculator or DayHoursCalculator()

    @property
    def policy(self) -> CompensationPolicy:
        return self.calculator.policy

    @staticmethod
    def filter_by_month(records: Iterable[DayRecord], month: str) -> list[DayRecord]:
        """Keeps records whose date starts with `month` (empty keeps everything)."""
        if not month:
            return list(records)
        return [r for r in records if r.date and r.date.startswith(month)]

    def sum_hours(self, records: Iterable[DayRecord]) -> PeriodSummary:
        summary = PeriodSummary()
        for r in records:
            h = self.calculator.calculate_day_hours(r)
            summary.total += h.total
            summary.overtime += h.overtime
            summary.deficit += h.deficit
            if r.is_complete:
                summary.days_worked += 1
        if summary.days_worked:
            summary.average_minutes = summary.total / summary.days_worked
        return summary

    def overtime_value(self, overtime_minutes: int) -> float:
        """Money value of overtime; rounding is left to the caller."""
        p = self.policy
        if not p.billing_monthly_hours:
            return 0.0
        hourly_rate = p.hourly_base / p.billing_monthly_hours
        return (overtime_minutes / 60) * hourly_rate * p.overtime_multiplier

    def expected_minutes_for_month(self, year: int, month: int) -> int:
        return working_days_in_month(year, month) * self.policy.standard_daily_minutes

    def sum_by_week(self, records: Iterable[DayRecord]) -> Dict[Tuple[int, int], PeriodSummary]:
        """
        Aggregates per ISO week.
        Returns dict {(year, week): PeriodSummary}; records with a bad date are skipped.
        """
        weeks: Dict[Tuple[int, int], list[DayRecord]] = {}
        for r in records:
            d = parse_iso_date(r.date)
            if d is None:
                continue
            iso = d.isocalendar()
            weeks.setdefault((iso[0], iso[1]), []).append(r)
        return {k: self.sum_hours(v) for k, v in sorted(weeks.items())}

    def compare(self, current: Iterable[DayRecord], previous: Iterable[DayRecord]) -> PeriodComparison:
        return PeriodComparison(current=self.sum_hours(current), previous=self.sum_hours(previous))


def working_days_in_month(year: int, month: int) -> int:
    """Monday to Friday count. Naive dates only, so no timezone can shift a day."""
    _, num_days = monthrange(year, month)
    return sum(1 for day in range(1, num_days + 1) if date(year, month, day).weekday() < 5)


def classify_balance(overtime: int, deficit: int) -> Balance:
    balance = overtime - deficit
    if balance > 0:
        return Balance(BalanceKind.CREDIT, balance,
                       f"Você tem {format_minutes(balance)} de crédito", "Horas a seu favor")
    if balance < 0:
        return Balance(BalanceKind.DEBT, balance,
                       f"Você deve {format_minutes(abs(balance))}", "Horas a compensar")
    return Balance(BalanceKind.EVEN, 0, "Saldo zerado", "Em dia com suas horas")
