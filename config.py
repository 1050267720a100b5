# config.py
# -----------------------------------------------
# Settings read from the environment
# -----------------------------------------------
# DATA_DIR      data folder (local backup, log file)
# DATABASE_URL  local SQLite by default; Postgres when hosted
# APP_TZ        timezone used for "today"

import os
from datetime import date, datetime
from pathlib import Path
from zoneinfo import ZoneInfo

from domain import CompensationPolicy

# =========================
# Timezone
# =========================
TZ = ZoneInfo(os.getenv("APP_TZ", "America/Sao_Paulo"))

def today_local() -> date:
    return datetime.now(TZ).date()

# =========================
# Persistence (local fallback for development)
# =========================
def _pick_data_dir() -> Path:
    candidates = []
    env = os.getenv("DATA_DIR")
    if env:
        candidates.append(Path(env))
    candidates += [Path("/data"), Path.cwd() / "data"]

    for p in candidates:
        try:
            p.mkdir(parents=True, exist_ok=True)
            t = p / ".rwtest"
            t.write_text("ok")
            t.unlink(missing_ok=True)
            return p
        except OSError:
            continue
    return Path.cwd()

DATA_DIR = _pick_data_dir()
DEFAULT_SQLITE = f"sqlite:///{(DATA_DIR / 'workdays.db').as_posix()}"
DB_URL = os.getenv("DATABASE_URL", DEFAULT_SQLITE)
BACKUP_FILE = DATA_DIR / "workdays_backup.json"
LOG_FILE = DATA_DIR / "app.log"

# =========================
# Schedule and pay
# =========================
APP_TITLE = "Controle de Horas"
DEFAULT_POLICY = CompensationPolicy(
    standard_daily_minutes=8 * 60 + 48,
    saturday_daily_minutes=8 * 60,
    hourly_base=1625.75,
    overtime_multiplier=1.5,
    billing_monthly_hours=220.0,
)
TREND_MONTHS = 6

# =========================
# Retry and heartbeat
# =========================
RETRY_MAX_ATTEMPTS = 3
RETRY_INITIAL_DELAY_S = 1.0
RETRY_MAX_DELAY_S = 10.0
RETRY_BACKOFF_MULTIPLIER = 2.0
HEARTBEAT_INTERVAL_S = 120.0
