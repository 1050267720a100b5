# store.py
from __future__ import annotations

from datetime import date
from typing import Any, Callable, Iterable, List

from config import today_local
from domain import EDITABLE_FIELDS, DayRecord, new_record_id


class RecordStore:
    """
    Ordered collection of day-records owned by the UI layer.

    Display order is user-mutable (move_up / move_down) and is only re-sorted by
    date after an insertion or a date edit. Every mutation calls `on_change`
    with the full list so the caller can save it wholesale.
    """
    def __init__(self, records: Iterable[DayRecord] | None = None,
                 on_change: Callable[[List[DayRecord]], Any] | None = None):
        self._records: List[DayRecord] = []
        self._last_id = 0
        self.on_change = on_change
        if records:
            self._load(records)

    # -------- reads --------
    @property
    def records(self) -> List[DayRecord]:
        return list(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def get(self, record_id: int) -> DayRecord | None:
        return next((r for r in self._records if r.id == record_id), None)

    def filtered(self, month: str = "") -> List[DayRecord]:
        if not month:
            return list(self._records)
        return [r for r in self._records if r.date and r.date.startswith(month)]

    def months(self) -> List[str]:
        """Distinct YYYY-MM keys, newest first."""
        return sorted({r.month for r in self._records if r.date}, reverse=True)

    # -------- mutations --------
    def replace_all(self, records: Iterable[DayRecord]) -> None:
        """Loads a collection (e.g. from storage). Does not notify."""
        self._records = []
        self._load(records)

    def add_day(self, day: date | None = None) -> DayRecord:
        record = DayRecord(id=self._next_id(), date=(day or today_local()).isoformat())
        self._records.append(record)
        self.sort_by_date()
        self._changed()
        return record

    def update_field(self, record_id: int, field: str, value: Any) -> bool:
        if field not in EDITABLE_FIELDS:
            raise ValueError(f"Unknown field: {field}")
        record = self.get(record_id)
        if record is None:
            return False
        if field == "is_saturday":
            value = bool(value)
        else:
            value = "" if value is None else str(value)
        setattr(record, field, value)
        if field == "date":
            self.sort_by_date()
        self._changed()
        return True

    def remove(self, record_id: int) -> bool:
        before = len(self._records)
        self._records = [r for r in self._records if r.id != record_id]
        if len(self._records) == before:
            return False
        self._changed()
        return True

    def clear(self) -> None:
        self._records = []
        self._changed()

    def move_up(self, record_id: int, month: str = "") -> bool:
        return self._move(record_id, -1, month)

    def move_down(self, record_id: int, month: str = "") -> bool:
        return self._move(record_id, 1, month)

    def sort_by_date(self) -> None:
        # stable: records sharing a date keep their relative order
        self._records.sort(key=lambda r: r.date or "")

    # -------- internals --------
    def _move(self, record_id: int, step: int, month: str) -> bool:
        """Swaps with the neighbour visible under the month filter."""
        visible = self.filtered(month)
        idx = next((i for i, r in enumerate(visible) if r.id == record_id), None)
        if idx is None:
            return False
        target = idx + step
        if target < 0 or target >= len(visible):
            return False
        a = self._index_of(record_id)
        b = self._index_of(visible[target].id)
        self._records[a], self._records[b] = self._records[b], self._records[a]
        self._changed()
        return True

    def _index_of(self, record_id: int) -> int:
        return next(i for i, r in enumerate(self._records) if r.id == record_id)

    def _next_id(self) -> int:
        rid = max(new_record_id(), self._last_id + 1)
        self._last_id = rid
        return rid

    def _load(self, records: Iterable[DayRecord]) -> None:
        seen = set()
        for r in records:
            if r.id in seen:
                continue
            seen.add(r.id)
            self._records.append(r)
            self._last_id = max(self._last_id, r.id)

    def _changed(self) -> None:
        if self.on_change is not None:
            self.on_change(self.records)
