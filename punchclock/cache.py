"""
Entry cache & index
===================

In-memory list of every known entry (loaded monthly rows plus the running
entry), sorted by start time after each mutation. Durable writes are
delegated: running entries go to the :class:`RunningTimerSlot`, finalized
ones to the :class:`MonthlyLogStore`.

At most one entry is running. Starting or adding a running entry while
another runs stops the old one first.
"""
from __future__ import annotations

import logging
from typing import Any, Callable, Iterable, List, Optional, Set

from .models import (
    DAY_SECONDS,
    ENTRY_FIELDS,
    TimeEntry,
    entry_id_for,
    generate_id,
    now_ms,
    row_key,
)
from .monthly import MonthlyLogStore
from .running import RunningTimerSlot

LOGGER = logging.getLogger("punchclock.cache")


class EntryCache:
    def __init__(self, monthly: MonthlyLogStore, slot: RunningTimerSlot,
                 clock: Callable[[], int] = now_ms):
        self.monthly = monthly
        self.slot = slot
        self.clock = clock
        self._entries: List[TimeEntry] = []
        # ids whose last durable write failed
        self.unsaved: Set[str] = set()
        monthly.running = self.get_running

    # --- bookkeeping ---
    def reset(self, entries: Iterable[TimeEntry]) -> None:
        self._entries = [e.copy() for e in entries]
        self._sort()

    def _sort(self) -> None:
        self._entries.sort(key=lambda e: e.start_time)

    def _index(self, entry_id: str) -> int:
        for i, e in enumerate(self._entries):
            if e.id == entry_id:
                return i
        return -1

    def _persist(self, entry: TimeEntry) -> bool:
        if entry.is_running:
            ok = self.slot.write(entry)
        else:
            ok = self.monthly.upsert(entry)
        if ok:
            self.unsaved.discard(entry.id)
        else:
            self.unsaved.add(entry.id)
        return ok

    def _occupied(self, start_time: int, ignore: TimeEntry) -> bool:
        """True when an entry other than `ignore` already owns that second."""
        key = row_key(start_time)
        for e in self._entries:
            if e is not ignore and e.id != ignore.id and row_key(e.start_time) == key:
                return True
        return self.monthly.find(entry_id_for(start_time)) is not None

    # --- lookups ---
    def __len__(self) -> int:
        return len(self._entries)

    def get_all(self) -> List[TimeEntry]:
        return [e.copy() for e in self._entries]

    def get(self, entry_id: str) -> Optional[TimeEntry]:
        """Memory-only lookup."""
        i = self._index(entry_id)
        return self._entries[i].copy() if i >= 0 else None

    def get_by_id(self, entry_id: str) -> Optional[TimeEntry]:
        """Memory first, then the monthly file the id points at."""
        found = self.get(entry_id)
        if found is not None:
            return found
        return self.monthly.find(entry_id)

    def get_running(self) -> Optional[TimeEntry]:
        for e in self._entries:
            if e.is_running:
                return e.copy()
        return None

    # --- mutations ---
    def add(self, entry: TimeEntry) -> TimeEntry:
        entry = entry.copy()
        if entry.is_running:
            running = self.get_running()
            if running is not None and running.id != entry.id:
                LOGGER.info("stopping %s before adding running entry %s", running.id, entry.id)
                self.stop_running()
            entry.end_time = None
        if self._index(entry.id) >= 0:
            raise ValueError(f"entry {entry.id} already exists")
        self._entries.append(entry)
        self._persist(entry)
        self._sort()
        return entry.copy()

    def update(self, entry_id: str, **changes: Any) -> Optional[TimeEntry]:
        """Merge changes into an entry and write the result back.

        Returns the updated entry, or None when the id is unknown. A stopped
        entry whose start time moves is re-keyed: its old row is removed and
        its id follows the new start time. Moving it onto a second another
        entry already starts in raises ValueError.
        """
        unknown = set(changes) - (ENTRY_FIELDS - {"id"})
        if unknown:
            raise TypeError(f"unknown entry fields: {', '.join(sorted(unknown))}")

        i = self._index(entry_id)
        old = self._entries[i] if i >= 0 else self.monthly.find(entry_id)
        if old is None:
            LOGGER.warning("update of unknown entry %s ignored", entry_id)
            return None

        new = old.copy(**changes)
        if new.is_running and not old.is_running:
            raise ValueError(f"entry {entry_id} is finished; start a new timer instead")
        rekey = not new.is_running and not old.is_running \
            and row_key(new.start_time) != row_key(old.start_time)
        if rekey and self._occupied(new.start_time, old):
            raise ValueError(f"another entry already starts at {new.start.isoformat()}")

        if i < 0:
            self._entries.append(old)
            i = len(self._entries) - 1

        if new.is_running:
            new.end_time = None
            self._entries[i] = new
            self._persist(new)
        elif old.is_running:
            if new.end_time is None:
                new.end_time = self.clock()
            if "duration" not in changes:
                new.duration = old.live_duration(new.end_time)
            self._entries[i] = new
            if self._persist(new):
                self.slot.clear()
        else:
            if ("start_time" in changes or "end_time" in changes) and "duration" not in changes \
                    and new.end_time is not None:
                new.duration = max(0, (new.end_time - new.start_time) // 1000)
            if rekey:
                self.monthly.delete_entry(old)
                self.unsaved.discard(old.id)
                new.id = entry_id_for(new.start_time)
            self._entries[i] = new
            self._persist(new)

        self._sort()
        return new.copy()

    def remove(self, entry_id: str) -> bool:
        i = self._index(entry_id)
        if i >= 0:
            entry = self._entries.pop(i)
            self.unsaved.discard(entry_id)
            if entry.is_running:
                return self.slot.clear()
            return self.monthly.delete_entry(entry)
        recovered = self.monthly.find(entry_id)
        if recovered is not None:
            return self.monthly.delete_entry(recovered)
        return self.monthly.delete(entry_id)

    # --- timer lifecycle ---
    def start(self, category: str, memo: str = "") -> TimeEntry:
        if self.get_running() is not None:
            self.stop_running()
        now = self.clock()
        entry_id = entry_id_for(now)
        if self._index(entry_id) >= 0:
            entry_id = generate_id(now)
        entry = TimeEntry(id=entry_id, start_time=now, end_time=None, duration=0,
                          category=category, memo=memo, is_running=True)
        LOGGER.info("started %s (%s)", entry.id, category)
        return self.add(entry)

    def stop_running(self, now: Optional[int] = None) -> Optional[TimeEntry]:
        running = self.get_running()
        if running is None:
            return None
        now = self.clock() if now is None else now
        finished = running.copy(end_time=now, duration=running.live_duration(now), is_running=False)
        self._entries[self._index(running.id)] = finished
        if self._persist(finished):
            self.slot.clear()
        self._sort()
        LOGGER.info("stopped %s after %ss", finished.id, finished.duration)
        return finished.copy()

    def cancel_running(self) -> Optional[TimeEntry]:
        """Drop the running entry without writing it anywhere."""
        running = self.get_running()
        if running is None:
            return None
        self._entries.pop(self._index(running.id))
        self.unsaved.discard(running.id)
        self.slot.clear()
        LOGGER.info("cancelled %s", running.id)
        return running

    def reconcile(self, limit_seconds: int = DAY_SECONDS) -> Optional[TimeEntry]:
        """Force-stop a running entry older than limit_seconds (crashed session)."""
        running = self.get_running()
        if running is None:
            return None
        now = self.clock()
        if running.live_duration(now) <= limit_seconds:
            return None
        LOGGER.warning("running entry %s exceeded %ss, stopping it", running.id, limit_seconds)
        return self.stop_running(now)
