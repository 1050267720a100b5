# sync.py
"""
Storage access with bounded retry, a local JSON backup fallback and a
cancellable connectivity heartbeat.
"""
from __future__ import annotations

import json
import threading
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, List, TypeVar

from sqlalchemy.exc import SQLAlchemyError

import config
from domain import DayRecord
from logger import get_logger
from repository import WorkDayRepository

log = get_logger(__name__)

T = TypeVar("T")

RETRYABLE = (SQLAlchemyError, OSError)


class StorageUnavailable(RuntimeError):
    """Raised when every retry attempt against the store failed."""


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = config.RETRY_MAX_ATTEMPTS
    initial_delay: float = config.RETRY_INITIAL_DELAY_S
    max_delay: float = config.RETRY_MAX_DELAY_S
    backoff_multiplier: float = config.RETRY_BACKOFF_MULTIPLIER

    def delay_for(self, attempt: int) -> float:
        """Delay after the given zero-based failed attempt."""
        return min(self.initial_delay * self.backoff_multiplier ** attempt, self.max_delay)


def call_with_retry(fn: Callable[[], T], policy: RetryPolicy | None = None,
                    sleep: Callable[[float], Any] = time.sleep, description: str = "storage call") -> T:
    policy = policy or RetryPolicy()
    for attempt in range(policy.max_attempts):
        try:
            return fn()
        except RETRYABLE as e:
            log.warning("Attempt %d of %s failed: %s", attempt + 1, description, e)
            if attempt + 1 >= policy.max_attempts:
                raise StorageUnavailable(f"{description} failed after {policy.max_attempts} attempts") from e
            delay = policy.delay_for(attempt)
            log.info("Retrying %s in %.1fs", description, delay)
            sleep(delay)
    raise StorageUnavailable(f"{description}: no attempts configured")


class LocalBackup:
    """JSON file holding the last collection and settings that could not reach the store."""
    def __init__(self, path: str | Path = config.BACKUP_FILE):
        self.path = Path(path)

    def _read(self) -> Dict[str, Any]:
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return {}
        except (OSError, ValueError) as e:
            log.error("Could not read local backup %s: %s", self.path, e)
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self, data: Dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data, ensure_ascii=False), encoding="utf-8")

    def save_records(self, records: List[DayRecord]) -> None:
        data = self._read()
        data["workDays"] = [r.to_dict() for r in records]
        self._write(data)

    def load_records(self) -> List[DayRecord]:
        raw = self._read().get("workDays")
        if not isinstance(raw, list):
            return []
        return DayRecord.from_dicts(item for item in raw if isinstance(item, dict))

    def save_settings(self, settings: Dict[str, Any]) -> None:
        data = self._read()
        data["settings"] = {**data.get("settings", {}), **settings}
        self._write(data)

    def load_settings(self) -> Dict[str, Any]:
        raw = self._read().get("settings")
        return raw if isinstance(raw, dict) else {}


class SyncedStorage:
    """Repository access used by the UI: retries, then falls back to the local backup."""
    def __init__(self, repo: WorkDayRepository, backup: LocalBackup | None = None,
                 policy: RetryPolicy | None = None, sleep: Callable[[float], Any] = time.sleep):
        self.repo = repo
        self.backup = backup or LocalBackup()
        self.policy = policy or RetryPolicy()
        self.sleep = sleep

    def _retry(self, fn: Callable[[], T], description: str) -> T:
        return call_with_retry(fn, self.policy, sleep=self.sleep, description=description)

    def load_records(self) -> List[DayRecord]:
        try:
            records = self._retry(self.repo.list_all, "load work days")
        except StorageUnavailable:
            log.error("Store unreachable, loading work days from local backup")
            return self.backup.load_records()
        if not isinstance(records, list):
            records = []
        if not records:
            restored = self.backup.load_records()
            if restored:
                log.info("Restored %d work days from local backup", len(restored))
                return restored
        return records

    def save_records(self, records: List[DayRecord]) -> bool:
        try:
            self._retry(lambda: self.repo.replace_all(records), "save work days")
            return True
        except StorageUnavailable:
            log.error("Saving work days failed, keeping a local backup")
            self.backup.save_records(records)
            return False

    def load_settings(self) -> Dict[str, Any]:
        try:
            return self._retry(self.repo.get_settings, "load settings")
        except StorageUnavailable:
            return self.backup.load_settings()

    def save_settings(self, settings: Dict[str, Any]) -> bool:
        try:
            self._retry(lambda: self.repo.save_settings(settings), "save settings")
            return True
        except StorageUnavailable:
            self.backup.save_settings(settings)
            return False


class Heartbeat:
    """
    Periodic liveness probe on a background thread.

    start() probes immediately and then every `interval` seconds; stop() cancels
    the timer. pause()/resume() follow the visibility of the UI.
    """
    def __init__(self, probe: Callable[[], bool], interval: float = config.HEARTBEAT_INTERVAL_S,
                 on_status: Callable[[bool], Any] | None = None):
        self.probe = probe
        self.interval = interval
        self.on_status = on_status
        self.is_alive = True
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def check(self) -> bool:
        try:
            alive = bool(self.probe())
        except Exception as e:  # any probe failure means disconnected
            log.warning("Heartbeat probe failed: %s", e)
            alive = False
        if alive != self.is_alive:
            log.info("Connection status: %s", "connected" if alive else "disconnected")
        self.is_alive = alive
        if self.on_status is not None:
            self.on_status(alive)
        return alive

    def _run(self) -> None:
        self.check()
        while not self._stop.wait(self.interval):
            self.check()

    def start(self) -> None:
        if self.running:
            return
        self._stop = threading.Event()
        self._thread = threading.Thread(target=self._run, name="heartbeat", daemon=True)
        self._thread.start()
        log.debug("Heartbeat started every %.0fs", self.interval)

    def stop(self, timeout: float | None = 1.0) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
        self._thread = None

    def pause(self) -> None:
        if self.running:
            self.stop()
            log.debug("Heartbeat paused")

    def resume(self) -> None:
        if not self.running:
            self.start()
            log.debug("Heartbeat resumed")
