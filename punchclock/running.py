"""Single-slot record of the running entry, kept in running-timer.json."""
from __future__ import annotations

import json
import logging
from typing import Optional

from .models import TimeEntry
from .storage import Storage, join_path

LOGGER = logging.getLogger("punchclock.running")

RUNNING_TIMER_FILE = "running-timer.json"


class RunningTimerSlot:
    def __init__(self, storage: Storage, directory: str = ""):
        self.storage = storage
        self.directory = directory

    @property
    def path(self) -> str:
        return join_path(self.directory, RUNNING_TIMER_FILE)

    def read(self) -> Optional[TimeEntry]:
        try:
            if not self.storage.exists(self.path):
                return None
            data = json.loads(self.storage.read(self.path))
            if not isinstance(data, dict) or not data.get("id"):
                LOGGER.warning("ignoring %s without an entry id", self.path)
                return None
            entry = TimeEntry.from_dict(data)
        except (OSError, ValueError, TypeError) as exc:
            LOGGER.error("failed to load running timer from %s: %s", self.path, exc)
            return None
        # the file only exists while a timer runs
        return entry.copy(is_running=True, end_time=None)

    def write(self, entry: TimeEntry) -> bool:
        if not entry.is_running:
            raise ValueError(f"entry {entry.id} is not running")
        try:
            self.storage.write(self.path, json.dumps(entry.to_dict(), indent=2, ensure_ascii=False))
        except OSError as exc:
            LOGGER.error("failed to write running timer %s: %s", entry.id, exc)
            return False
        return True

    def clear(self) -> bool:
        """Remove the record entirely; missing file is fine."""
        try:
            if self.storage.exists(self.path):
                self.storage.delete(self.path)
        except OSError as exc:
            LOGGER.error("failed to clear running timer %s: %s", self.path, exc)
            return False
        return True
