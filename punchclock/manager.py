"""
Data manager
============

Front door for the presentation layer. It owns the stores for one storage
directory, rebuilds the entry cache from disk on :meth:`DataManager.load`,
and sends short notices for operations a user triggered.
"""
from __future__ import annotations

import logging
from datetime import date
from pathlib import Path
from typing import Any, Callable, List, Optional

from . import reports
from .cache import EntryCache
from .categories import CategoryStore, color_for, normalize
from .config import Settings
from .models import (
    CategoryConfig,
    DailyReport,
    MonthlyReport,
    RangeReport,
    TimeEntry,
    format_duration,
    now_ms,
)
from .monthly import DateLike, MonthlyLogStore
from .notify import LogNotifier, Notifier
from .running import RunningTimerSlot
from .storage import Storage

LOGGER = logging.getLogger("punchclock.manager")


class DataManager:
    def __init__(self, settings: Settings, storage: Storage,
                 notifier: Optional[Notifier] = None,
                 clock: Callable[[], int] = now_ms,
                 save_settings: Optional[Callable[[], None]] = None):
        self.settings = settings
        self.storage = storage
        self.notifier = notifier or LogNotifier()
        self.clock = clock
        self.save_settings = save_settings if save_settings is not None else settings.save
        self.categories = settings.category_config()
        self._build_stores(settings.storage_directory)

    def _build_stores(self, directory: str) -> None:
        self.directory = (directory or "").strip().strip("/")
        self.category_store = CategoryStore(self.storage, self.directory)
        self.monthly = MonthlyLogStore(self.storage, self.directory)
        self.slot = RunningTimerSlot(self.storage, self.directory)
        self.cache = EntryCache(self.monthly, self.slot, clock=self.clock)

    def update_storage_directory(self, directory: str) -> None:
        """Point every store at another directory and reload from it."""
        self.settings.storage_directory = directory
        self._build_stores(directory)
        self.load()

    # --- startup ---
    def ensure_storage_directory(self) -> None:
        if self.directory:
            try:
                if not self.storage.exists(self.directory):
                    self.storage.mkdir(self.directory)
            except OSError as exc:
                LOGGER.error("cannot create storage directory %s: %s", self.directory, exc)
                self.notifier.notify("Failed to create the storage directory", error=True)
                return
        self.load_categories()

    def load(self) -> None:
        """Rebuild the cache from the monthly files and the running-timer slot."""
        self.ensure_storage_directory()
        entries: List[TimeEntry] = []
        self.monthly.failed_reads = []
        for path in self.monthly.list_files():
            loaded = self.monthly.read_file(path)
            LOGGER.debug("loaded %d entries from %s", len(loaded), path)
            entries.extend(loaded)
        running = self.slot.read()
        if running is not None:
            entries = [e for e in entries if e.id != running.id]
            entries.append(running)
        self.cache.reset(entries)
        LOGGER.info("loaded %d entries from %s", len(self.cache), self.directory or "storage root")
        if self.monthly.failed_reads:
            self.notifier.notify("Failed to load time tracking data", error=True)

        stopped = self.cache.reconcile()
        if stopped is not None:
            self.notifier.notify("Stopped a timer that was running for more than 24 hours")

    # --- categories ---
    def load_categories(self) -> CategoryConfig:
        self.categories = self.category_store.load(self.settings.category_config())
        self._sync_settings()
        return self.categories

    def save_categories(self) -> bool:
        self.categories = normalize(self.categories)
        self._sync_settings()
        return self.category_store.save(self.categories)

    def _sync_settings(self) -> None:
        self.settings.apply_categories(self.categories)
        try:
            self.save_settings()
        except OSError as exc:
            LOGGER.error("failed to save settings: %s", exc)

    def set_categories(self, names: List[str]) -> CategoryConfig:
        self.categories = CategoryConfig(
            categories=list(names),
            default_category=self.categories.default_category,
            category_colors=dict(self.categories.category_colors),
        )
        self.save_categories()
        return self.categories

    def add_category(self, name: str, color: Optional[str] = None) -> CategoryConfig:
        name = name.strip()
        if not name:
            raise ValueError("category name cannot be empty")
        if name not in self.categories.categories:
            self.categories.categories.append(name)
        if color:
            self.categories.category_colors[name] = color
        self.save_categories()
        return self.categories

    def remove_category(self, name: str) -> CategoryConfig:
        if name in self.categories.categories:
            self.categories.categories.remove(name)
            self.categories.category_colors.pop(name, None)
            self.save_categories()
        return self.categories

    def set_category_color(self, name: str, color: str) -> CategoryConfig:
        if name not in self.categories.categories:
            raise ValueError(f"unknown category: {name}")
        self.categories.category_colors[name] = color
        self.save_categories()
        return self.categories

    def set_default_category(self, name: str) -> CategoryConfig:
        if name not in self.categories.categories:
            raise ValueError(f"unknown category: {name}")
        self.categories.default_category = name
        self.save_categories()
        return self.categories

    def color_for(self, category: str) -> str:
        return color_for(self.categories, category)

    # --- entries ---
    def get_entries(self) -> List[TimeEntry]:
        return self.cache.get_all()

    def get_entry(self, entry_id: str) -> Optional[TimeEntry]:
        return self.cache.get_by_id(entry_id)

    def get_running_entry(self) -> Optional[TimeEntry]:
        return self.cache.get_running()

    def live_duration(self, entry: TimeEntry) -> int:
        return entry.live_duration(self.clock())

    def add_entry(self, entry: TimeEntry) -> TimeEntry:
        added = self.cache.add(entry)
        self._report_unsaved(added, "Failed to save time entry")
        return added

    def start_timer(self, category: Optional[str] = None, memo: str = "") -> TimeEntry:
        if self.cache.get_running() is not None:
            self.stop_timer(quiet=True)
            self.notifier.notify("Stopped previous timer")
        category = category or self.categories.default_category
        entry = self.cache.start(category, memo)
        if not self._report_unsaved(entry, "Failed to save the running timer"):
            self.notifier.notify(f"Started timer for {category}")
        return entry

    def stop_timer(self, quiet: bool = False) -> Optional[TimeEntry]:
        stopped = self.cache.stop_running()
        if stopped is None:
            if not quiet:
                self.notifier.notify("No active timer to stop")
            return None
        if not self._report_unsaved(stopped, "Failed to save the stopped timer") and not quiet:
            self.notifier.notify(f"Timer stopped ({format_duration(stopped.duration)})")
        return stopped

    def cancel_timer(self) -> Optional[TimeEntry]:
        cancelled = self.cache.cancel_running()
        if cancelled is None:
            self.notifier.notify("No active timer to cancel")
        else:
            self.notifier.notify("Timer cancelled")
        return cancelled

    def continue_entry(self, entry_id: str) -> Optional[TimeEntry]:
        """Start a new timer with the category and memo of an earlier entry."""
        source = self.cache.get_by_id(entry_id)
        if source is None:
            self.notifier.notify("Entry not found", error=True)
            return None
        if self.cache.get_running() is not None:
            self.stop_timer(quiet=True)
        entry = self.cache.start(source.category, source.memo)
        if not self._report_unsaved(entry, "Failed to save the running timer"):
            self.notifier.notify(f"Started new timer for {source.category}")
        return entry

    def update_entry(self, entry_id: str, **changes: Any) -> Optional[TimeEntry]:
        updated = self.cache.update(entry_id, **changes)
        if updated is None:
            self.notifier.notify("Entry not found", error=True)
            return None
        if not self._report_unsaved(updated, "Failed to save changes"):
            self.notifier.notify("Time entry updated")
        return updated

    def delete_entry(self, entry_id: str) -> bool:
        known = self.cache.get_by_id(entry_id) is not None
        removed = self.cache.remove(entry_id)
        if removed:
            self.notifier.notify("Entry deleted")
        elif known:
            self.notifier.notify("Failed to delete entry", error=True)
        return removed

    def _report_unsaved(self, entry: TimeEntry, message: str) -> bool:
        if entry.id in self.cache.unsaved:
            self.notifier.notify(message, error=True)
            return True
        return False

    # --- reports ---
    def get_entries_for_month(self, year: int, month: int) -> List[TimeEntry]:
        return self.monthly.read_month(year, month)

    def get_entries_for_day(self, day: date) -> List[TimeEntry]:
        return self.monthly.read_day(day)

    def get_entries_for_range(self, start: DateLike, end: DateLike) -> List[TimeEntry]:
        return self.monthly.read_range(start, end)

    def get_daily_report(self, day: date, live: bool = False) -> DailyReport:
        return reports.daily_report(self.monthly, day, self.clock() if live else None)

    def get_monthly_report(self, year: int, month: int, live: bool = False) -> MonthlyReport:
        return reports.monthly_report(self.monthly, year, month, self.clock() if live else None)

    def get_range_report(self, start: DateLike, end: DateLike, live: bool = False) -> RangeReport:
        return reports.range_report(self.monthly, start, end, self.clock() if live else None)

    def get_weekly_report(self, day: date, live: bool = False) -> RangeReport:
        first, last = reports.week_range(day, self.settings.start_day_of_week)
        return self.get_range_report(first, last, live=live)

    def export_csv(self, start: date, end: date, dest: Path) -> int:
        entries = self.get_entries_for_range(start, end)
        try:
            count = reports.export_csv(entries, dest, now=self.clock())
        except OSError as exc:
            LOGGER.error("export to %s failed: %s", dest, exc)
            self.notifier.notify(f"Export failed: {exc}", error=True)
            return 0
        self.notifier.notify(f"Saved {count} entries to {dest}")
        return count
