"""
Monthly log store
=================

Finalized entries live in ``YYYY-MM.csv`` files, one per month of their start
time. Rows are matched by the id they decode to (see :mod:`punchclock.codec`),
which makes :meth:`MonthlyLogStore.upsert` idempotent: writing the same entry
twice rewrites its row instead of adding a second one.

Every read/modify/write is best effort. A file that cannot be read counts as
empty and a failed write is logged and reported through the return value.
"""
from __future__ import annotations

import logging
from datetime import date, datetime, time as dtime
from typing import Callable, List, Optional, Tuple, Union

from .codec import HEADER, decode_rows, encode_row, row_id
from .models import TimeEntry, month_of, row_key, timestamp_from_id, to_ms
from .storage import Storage, join_path

LOGGER = logging.getLogger("punchclock.monthly")

DateLike = Union[date, datetime]


def month_file_name(year: int, month: int) -> str:
    return f"{year:04d}-{month:02d}.csv"


def months_in_range(start: DateLike, end: DateLike) -> List[Tuple[int, int]]:
    """Every (year, month) touched by the inclusive range, in order."""
    months = []
    year, month = start.year, start.month
    while (year, month) <= (end.year, end.month):
        months.append((year, month))
        month += 1
        if month > 12:
            year, month = year + 1, 1
    return months


def range_bounds(start: DateLike, end: DateLike) -> Tuple[int, int]:
    """Epoch-ms bounds; a plain date end covers that whole day."""
    if not isinstance(start, datetime):
        start = datetime.combine(start, dtime.min)
    if not isinstance(end, datetime):
        end = datetime.combine(end, dtime.max)
    return to_ms(start), to_ms(end)


def _check_month(year: int, month: int) -> None:
    if not 1 <= month <= 12:
        raise ValueError(f"month must be 1..12, got {month}")
    if not 1 <= year <= 9999:
        raise ValueError(f"year out of range: {year}")


class MonthlyLogStore:
    def __init__(self, storage: Storage, directory: str = "",
                 running: Optional[Callable[[], Optional[TimeEntry]]] = None):
        self.storage = storage
        self.directory = directory
        # set by the entry cache so month reads include the live timer
        self.running = running
        # paths that could not be listed or read since the last load
        self.failed_reads: List[str] = []

    def path_for(self, year: int, month: int) -> str:
        return join_path(self.directory, month_file_name(year, month))

    def list_files(self) -> List[str]:
        """Monthly files to load at startup; paths containing ``/_`` are ignored."""
        try:
            files = self.storage.list_files(self.directory)
        except OSError as exc:
            LOGGER.error("cannot list %s: %s", self.directory or "storage root", exc)
            self.failed_reads.append(self.directory)
            return []
        return [p for p in files if p.endswith(".csv") and "/_" not in "/" + p]

    # --- writes ---
    def append(self, entry: TimeEntry) -> bool:
        """Add entry's row; when a row with the same id exists it is rewritten."""
        return self.upsert(entry)

    def upsert(self, entry: TimeEntry) -> bool:
        path = self.path_for(*month_of(entry.start_time))
        row = encode_row(entry)
        key = row_key(entry.start_time)
        try:
            if not self.storage.exists(path):
                self.storage.create(path, f"{HEADER}\n{row}\n")
                LOGGER.debug("created %s for entry %s", path, entry.id)
                return True

            content = self.storage.read(path)
            lines = content.splitlines()
            for i in range(1, len(lines)):
                if lines[i].strip() and row_id(lines[i]) == key:
                    lines[i] = row
                    LOGGER.debug("updated row for %s in %s", entry.id, path)
                    break
            else:
                if not lines:
                    lines.append(HEADER)
                lines.append(row)
                LOGGER.debug("appended row for %s to %s", entry.id, path)
            self.storage.write(path, "\n".join(lines) + "\n")
        except OSError as exc:
            LOGGER.error("failed to write entry %s to %s: %s", entry.id, path, exc)
            return False
        return True

    def delete(self, entry_id: str) -> bool:
        """Drop the row whose derived id matches; absent file or row is a no-op."""
        stamp = timestamp_from_id(entry_id)
        if stamp is None:
            LOGGER.warning("cannot locate month for id %r", entry_id)
            return False
        return self._delete_key(month_of(stamp), row_key(stamp))

    def delete_entry(self, entry: TimeEntry) -> bool:
        return self._delete_key(month_of(entry.start_time), row_key(entry.start_time))

    def _delete_key(self, month: Tuple[int, int], key: str) -> bool:
        path = self.path_for(*month)
        try:
            if not self.storage.exists(path):
                return False
            lines = self.storage.read(path).splitlines()
            if not lines:
                return False
            rows = [line for line in lines[1:] if line.strip()]
            kept = [line for line in rows if row_id(line) != key]
            if len(kept) == len(rows):
                return False
            self.storage.write(path, "\n".join([lines[0]] + kept) + "\n")
        except OSError as exc:
            LOGGER.error("failed to delete %s from %s: %s", key, path, exc)
            return False
        LOGGER.debug("removed row %s from %s", key, path)
        return True

    # --- reads ---
    def read_file(self, path: str) -> List[TimeEntry]:
        try:
            if not self.storage.exists(path):
                return []
            content = self.storage.read(path)
        except OSError as exc:
            LOGGER.error("failed to read %s: %s", path, exc)
            self.failed_reads.append(path)
            return []
        return decode_rows(content, source=path)

    def read_month(self, year: int, month: int) -> List[TimeEntry]:
        _check_month(year, month)
        entries = self.read_file(self.path_for(year, month))
        running = self.running() if self.running else None
        if running is not None and running.month == (year, month):
            entries.append(running.copy())
        return entries

    def read_day(self, day: date) -> List[TimeEntry]:
        return [e for e in self.read_month(day.year, day.month) if e.day == day]

    def read_range(self, start: DateLike, end: DateLike) -> List[TimeEntry]:
        lo, hi = range_bounds(start, end)
        entries = []
        for year, month in months_in_range(start, end):
            entries.extend(e for e in self.read_month(year, month) if lo <= e.start_time <= hi)
        entries.sort(key=lambda e: e.start_time)
        return entries

    def find(self, entry_id: str) -> Optional[TimeEntry]:
        """Re-read the month implied by entry_id and return that entry, if any."""
        stamp = timestamp_from_id(entry_id)
        if stamp is None:
            return None
        year, month = month_of(stamp)
        key = row_key(stamp)
        for entry in self.read_month(year, month):
            if entry.id == entry_id or (not entry.is_running and entry.id == key):
                return entry
        return None
