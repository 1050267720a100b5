# trends.py
from __future__ import annotations

from datetime import date
from typing import Iterable, Sequence

import pandas as pd

from config import today_local
from domain import DayRecord, Insight, InsightKind, MonthBucket
from services import DayHoursCalculator
from utils import format_minutes, month_key, month_label

# Heuristic thresholds
BALANCE_RATIO = 2
OVERTIME_GROWTH = 0.20


def months_back(n: int, today: date | None = None) -> list[str]:
    """The n most recent YYYY-MM keys ending at the current month, oldest first."""
    if today is None:
        today = today_local()
    y, m = today.year, today.month
    keys = []
    for _ in range(max(0, n)):
        keys.append(month_key(date(y, m, 1)))
        m -= 1
        if m == 0:
            y, m = y - 1, 12
    return list(reversed(keys))


def bucket_by_month(records: Iterable[DayRecord], months: Sequence[str],
                    calculator: DayHoursCalculator) -> list[MonthBucket]:
    """One bucket per requested month, empty months included."""
    buckets = {m: MonthBucket(month=m) for m in months}
    for r in records:
        b = buckets.get(r.month)
        if b is None:
            continue
        h = calculator.calculate_day_hours(r)
        b.total += h.total
        b.overtime += h.overtime
        b.deficit += h.deficit
        b.day_count += 1
        if r.is_complete:
            b.days_worked += 1
    return [buckets[m] for m in months]


def buckets_to_dataframe(buckets: Iterable[MonthBucket]) -> pd.DataFrame:
    rows = [{
        "Mês": b.month,
        "Rótulo": month_label(b.month),
        "Horas extras (h)": round(b.overtime / 60, 2),
        "Horas negativas (h)": round(b.deficit / 60, 2),
        "Total (h)": round(b.total / 60, 2),
        "Dias": b.day_count,
    } for b in buckets]
    return pd.DataFrame(rows)


class TrendEngine:
    """Monthly series over a trailing window plus the fixed insight heuristics."""
    def __init__(self, calculator: DayHoursCalculator | None = None):
        self.calculator = calculator or DayHoursCalculator()

    def monthly_series(self, records: Iterable[DayRecord], n: int = 6,
                       today: date | None = None) -> list[MonthBucket]:
        return bucket_by_month(records, months_back(n, today), self.calculator)

    def insights(self, buckets: Sequence[MonthBucket]) -> list[Insight]:
        with_data = [b for b in buckets if b.has_data]
        if len(with_data) < 2:
            return [Insight(InsightKind.INSUFFICIENT_DATA,
                            "Dados insuficientes: registre pelo menos dois meses para ver tendências.")]

        out: list[Insight] = []
        overtime = sum(b.overtime for b in buckets)
        deficit = sum(b.deficit for b in buckets)
        if overtime > BALANCE_RATIO * deficit:
            out.append(Insight(InsightKind.POSITIVE_BALANCE,
                               f"Saldo positivo: {format_minutes(overtime)} de horas extras "
                               f"contra {format_minutes(deficit)} negativas.",
                               float(overtime - deficit)))
        elif deficit > BALANCE_RATIO * overtime:
            out.append(Insight(InsightKind.NEGATIVE_BALANCE,
                               f"Atenção: {format_minutes(deficit)} de horas negativas "
                               f"contra {format_minutes(overtime)} extras.",
                               float(overtime - deficit)))

        if len(buckets) >= 2:
            last, prev = buckets[-1], buckets[-2]
            if prev.overtime > 0 and last.overtime > prev.overtime * (1 + OVERTIME_GROWTH):
                pct = (last.overtime - prev.overtime) / prev.overtime * 100
                out.append(Insight(InsightKind.OVERTIME_INCREASE,
                                   f"Horas extras aumentaram {pct:.0f}% em relação ao mês anterior.",
                                   round(pct, 1)))

        days = sum(b.days_worked for b in buckets)
        if days:
            average = sum(b.total for b in buckets) / days
            expected = self.calculator.policy.standard_daily_minutes
            if average > expected:
                delta = round(average - expected)
                out.append(Insight(InsightKind.ABOVE_EXPECTED,
                                   f"Sua média diária está {format_minutes(delta)} acima do esperado.",
                                   float(delta)))
        return out
