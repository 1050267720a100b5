# domain.py
from __future__ import annotations

import time
from dataclasses import dataclass, asdict
from enum import Enum
from typing import Any, Iterable, Mapping

# Keys used by older saved collections (pt-BR field names)
LEGACY_KEYS = {
    "data": "date",
    "entrada": "clockIn",
    "saidaIntervalo": "breakOut",
    "retornoIntervalo": "breakIn",
    "saidaFinal": "clockOut",
    "sabado": "isSaturday",
}

TIME_FIELDS = ("clock_in", "break_out", "break_in", "clock_out")
EDITABLE_FIELDS = ("date",) + TIME_FIELDS + ("is_saturday",)


def new_record_id() -> int:
    """Creation-time derived id (milliseconds since epoch)."""
    return int(time.time() * 1000)


@dataclass
class DayRecord:
    """One calendar day of attendance."""
    id: int
    date: str
    clock_in: str = ""
    break_out: str = ""
    break_in: str = ""
    clock_out: str = ""
    is_saturday: bool = False

    @property
    def month(self) -> str:
        return (self.date or "")[:7]

    @property
    def is_complete(self) -> bool:
        """True when both clock-in and clock-out were filled in."""
        return bool(self.clock_in) and bool(self.clock_out)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "date": self.date,
            "clockIn": self.clock_in,
            "breakOut": self.break_out,
            "breakIn": self.break_in,
            "clockOut": self.clock_out,
            "isSaturday": self.is_saturday,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], fallback_id: int | None = None) -> "DayRecord":
        d = dict(data)
        for old, new in LEGACY_KEYS.items():
            if old in d and new not in d:
                d[new] = d[old]
        rid = _coerce_id(d.get("id"))
        if rid is None:
            rid = fallback_id if fallback_id is not None else new_record_id()
        return cls(
            id=rid,
            date=str(d.get("date") or ""),
            clock_in=str(d.get("clockIn") or ""),
            break_out=str(d.get("breakOut") or ""),
            break_in=str(d.get("breakIn") or ""),
            clock_out=str(d.get("clockOut") or ""),
            is_saturday=_coerce_flag(d.get("isSaturday", False)),
        )

    @classmethod
    def from_dicts(cls, items: Iterable[Mapping[str, Any]]) -> list["DayRecord"]:
        """Deserializes a collection; records without a usable id get fresh, distinct ids."""
        items = list(items)
        known = [rid for rid in (_coerce_id(i.get("id")) for i in items) if rid is not None]
        last = max(known, default=0)
        out = []
        for item in items:
            if _coerce_id(item.get("id")) is None:
                last = max(new_record_id(), last + 1)
                out.append(cls.from_dict(item, fallback_id=last))
            else:
                out.append(cls.from_dict(item))
        return out


def _coerce_id(raw: Any) -> int | None:
    if isinstance(raw, bool):
        return None
    try:
        return int(raw)
    except (TypeError, ValueError):
        return None


def _coerce_flag(raw: Any) -> bool:
    # JSON booleans, plus the textual forms older exports wrote
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, str):
        return raw.strip().lower() in ("true", "1", "sim")
    if isinstance(raw, int):
        return raw == 1
    return False


@dataclass(frozen=True)
class CompensationPolicy:
    """Expected daily durations (minutes) and overtime pay parameters."""
    standard_daily_minutes: int = 8 * 60 + 48
    saturday_daily_minutes: int = 8 * 60
    hourly_base: float = 1625.75
    overtime_multiplier: float = 1.5
    billing_monthly_hours: float = 220.0

    def expected_minutes(self, is_saturday: bool) -> int:
        return self.saturday_daily_minutes if is_saturday else self.standard_daily_minutes

    def to_settings(self) -> dict[str, Any]:
        return {
            "standardDailyMinutes": self.standard_daily_minutes,
            "saturdayDailyMinutes": self.saturday_daily_minutes,
            "hourlyBase": self.hourly_base,
            "overtimeMultiplier": self.overtime_multiplier,
            "billingMonthlyHours": self.billing_monthly_hours,
        }

    @classmethod
    def from_settings(cls, settings: Mapping[str, Any] | None,
                      default: "CompensationPolicy | None" = None) -> "CompensationPolicy":
        """Builds a policy from a settings blob; bad or missing values keep the default."""
        base = asdict(default or cls())
        if not settings:
            return cls(**base)
        mapping = {
            "standardDailyMinutes": ("standard_daily_minutes", int),
            "saturdayDailyMinutes": ("saturday_daily_minutes", int),
            "hourlyBase": ("hourly_base", float),
            "overtimeMultiplier": ("overtime_multiplier", float),
            "billingMonthlyHours": ("billing_monthly_hours", float),
        }
        for key, (attr, conv) in mapping.items():
            if key not in settings:
                continue
            try:
                base[attr] = conv(settings[key])
            except (TypeError, ValueError):
                continue
        return cls(**base)


@dataclass(frozen=True)
class DayHours:
    total: int = 0
    overtime: int = 0
    deficit: int = 0


@dataclass
class PeriodSummary:
    """Aggregated minutes over a set of day-records."""
    total: int = 0
    overtime: int = 0
    deficit: int = 0
    days_worked: int = 0
    average_minutes: float = 0.0

    @property
    def balance(self) -> int:
        return self.overtime - self.deficit


@dataclass(frozen=True)
class PeriodComparison:
    current: PeriodSummary
    previous: PeriodSummary

    @property
    def total_delta(self) -> int:
        return self.current.total - self.previous.total

    @property
    def overtime_delta(self) -> int:
        return self.current.overtime - self.previous.overtime

    @property
    def deficit_delta(self) -> int:
        return self.current.deficit - self.previous.deficit

    @property
    def balance_delta(self) -> int:
        return self.current.balance - self.previous.balance


class BalanceKind(Enum):
    CREDIT = "credit"
    DEBT = "debt"
    EVEN = "even"


@dataclass(frozen=True)
class Balance:
    kind: BalanceKind
    minutes: int
    label: str
    hint: str


@dataclass
class MonthBucket:
    month: str
    total: int = 0
    overtime: int = 0
    deficit: int = 0
    day_count: int = 0
    days_worked: int = 0

    @property
    def has_data(self) -> bool:
        return self.day_count > 0


class InsightKind(Enum):
    INSUFFICIENT_DATA = "insufficient_data"
    POSITIVE_BALANCE = "positive_balance"
    NEGATIVE_BALANCE = "negative_balance"
    OVERTIME_INCREASE = "overtime_increase"
    ABOVE_EXPECTED = "above_expected"


@dataclass(frozen=True)
class Insight:
    kind: InsightKind
    message: str
    value: float | None = None
