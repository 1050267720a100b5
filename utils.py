# utils.py
from __future__ import annotations

from datetime import date, time, timedelta

MONTH_NAMES = ["Janeiro", "Fevereiro", "Março", "Abril", "Maio", "Junho", "Julho",
               "Agosto", "Setembro", "Outubro", "Novembro", "Dezembro"]

# =========================
# Time codec
# =========================
def parse_time(s: str | time | None) -> int:
    """
    "HH:MM" -> minutes since midnight.
    Empty or malformed input returns 0, same as an unset field.
    Note: "00:00" also returns 0, so a midnight clock reading reads as unset.
    """
    if isinstance(s, time):
        return s.hour * 60 + s.minute
    if not s or not isinstance(s, str):
        return 0
    parts = s.strip().split(":")
    if len(parts) != 2:
        return 0
    hh, mm = parts
    if not (hh.isascii() and hh.isdigit() and mm.isascii() and mm.isdigit()):
        return 0
    h, m = int(hh), int(mm)
    if h > 23 or m > 59:
        return 0
    return h * 60 + m

def format_minutes(minutes: int) -> str:
    """Signed H:MM, e.g. 528 -> "8:48", -65 -> "-1:05". Truncates to whole minutes."""
    minutes = int(minutes)
    if minutes == 0:
        return "0:00"
    sign = "-" if minutes < 0 else ""
    h, m = divmod(abs(minutes), 60)
    return f"{sign}{h}:{m:02d}"

# =========================
# Months / calendar
# =========================
def month_key(d: date) -> str:
    return f"{d.year:04d}-{d.month:02d}"

def yyyymm_to_tuple(yyyy_mm: str) -> tuple[int, int]:
    y, m = yyyy_mm.split("-")
    return int(y), int(m)

def month_range(yyyy_mm: str) -> tuple[date, date]:
    y, m = yyyymm_to_tuple(yyyy_mm)
    d1 = date(y, m, 1)
    d2 = (date(y+1, 1, 1) - timedelta(days=1)) if m == 12 else (date(y, m+1, 1) - timedelta(days=1))
    return d1, d2

def month_label(yyyy_mm: str) -> str:
    y, m = yyyymm_to_tuple(yyyy_mm)
    return f"{MONTH_NAMES[m-1]} de {y}"

def parse_iso_date(s: str) -> date | None:
    """Wall-clock date from "YYYY-MM-DD"; None when malformed."""
    try:
        return date.fromisoformat((s or "").strip())
    except ValueError:
        return None

# =========================
# Formatting
# =========================
def brl(x: float) -> str:
    return "R$ " + f"{x:,.2f}".replace(",", "X").replace(".", ",").replace("X", ".")
