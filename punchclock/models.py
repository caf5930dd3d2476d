"""
Data model
==========

Plain dataclasses shared by every store plus the small time helpers the
stores agree on. Timestamps are epoch milliseconds in local time, durations
are whole seconds.
"""
from __future__ import annotations

import random
import re
import string
import time
from dataclasses import dataclass, field, fields, replace
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Tuple

UNCATEGORIZED = "Uncategorized"
DAY_SECONDS = 24 * 3600

# ----------------------------
# Time helpers
# ----------------------------

def now_ms() -> int:
    return int(time.time() * 1000)


def to_datetime(ms: int) -> datetime:
    return datetime.fromtimestamp(ms / 1000)


def to_ms(value: datetime) -> int:
    return int(round(value.timestamp() * 1000))


def month_of(ms: int) -> Tuple[int, int]:
    d = to_datetime(ms)
    return d.year, d.month


def live_duration(start_time: int, duration: int, now: int) -> int:
    """Stored duration plus whole seconds elapsed since start_time."""
    return int(duration) + max(0, now - start_time) // 1000


# ----------------------------
# Entry identity
# ----------------------------

_ID_SUFFIX_CHARS = string.ascii_lowercase + string.digits
_LEADING_DIGITS = re.compile(r"\d+")
_MS_DIGITS = 13


def entry_id_for(start_time: int) -> str:
    return str(start_time)


def row_key(start_time: int) -> str:
    """The id a monthly-file row with this start time yields once reloaded.

    Rows only keep HH:MM:SS, so the key drops the milliseconds.
    """
    return str(start_time - start_time % 1000)


def generate_id(now: Optional[int] = None) -> str:
    stamp = now_ms() if now is None else now
    suffix = "".join(random.choice(_ID_SUFFIX_CHARS) for _ in range(7))
    return f"{stamp}{suffix}"


def timestamp_from_id(entry_id: str) -> Optional[int]:
    """Recover the start timestamp encoded at the front of an id."""
    m = _LEADING_DIGITS.match(entry_id or "")
    if not m:
        return None
    digits = m.group(0)
    if len(entry_id) > _MS_DIGITS:
        # generated ids glue a base-36 suffix onto the 13-digit timestamp
        digits = digits[:_MS_DIGITS]
    return int(digits)


# ----------------------------
# Entities
# ----------------------------

@dataclass
class TimeEntry:
    id: str
    start_time: int
    end_time: Optional[int] = None
    duration: int = 0
    category: str = ""
    memo: str = ""
    is_running: bool = False

    @property
    def start(self) -> datetime:
        return to_datetime(self.start_time)

    @property
    def day(self) -> date:
        return self.start.date()

    @property
    def month(self) -> Tuple[int, int]:
        return month_of(self.start_time)

    def live_duration(self, now: int) -> int:
        if not self.is_running:
            return self.duration
        return live_duration(self.start_time, self.duration, now)

    def copy(self, **changes: Any) -> "TimeEntry":
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        # camelCase keeps running-timer.json readable by older builds
        return {
            "id": self.id,
            "startTime": self.start_time,
            "endTime": self.end_time,
            "duration": self.duration,
            "category": self.category,
            "memo": self.memo,
            "isRunning": self.is_running,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TimeEntry":
        def pick(camel: str, snake: str, default: Any = None) -> Any:
            if camel in data:
                return data[camel]
            return data.get(snake, default)

        start_time = pick("startTime", "start_time")
        if start_time is None:
            raise ValueError("entry has no start time")
        end_time = pick("endTime", "end_time")
        return cls(
            id=str(data.get("id") or entry_id_for(int(start_time))),
            start_time=int(start_time),
            end_time=int(end_time) if end_time is not None else None,
            duration=int(data.get("duration") or 0),
            category=str(data.get("category") or ""),
            memo=str(data.get("memo") or ""),
            is_running=bool(pick("isRunning", "is_running", False)),
        )


ENTRY_FIELDS = frozenset(f.name for f in fields(TimeEntry))


@dataclass
class CategoryConfig:
    categories: List[str] = field(default_factory=list)
    default_category: str = ""
    category_colors: Dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "categories": list(self.categories),
            "defaultCategory": self.default_category,
            "categoryColors": dict(self.category_colors),
        }


# ----------------------------
# Reports (derived, never persisted)
# ----------------------------

@dataclass
class DailyReport:
    date: str
    total_duration: int
    category_breakdown: Dict[str, int]
    entries: List[TimeEntry]


@dataclass
class MonthlyReport:
    month: str
    total_duration: int
    category_breakdown: Dict[str, int]
    entries: List[TimeEntry]


@dataclass
class RangeReport:
    start: str
    end: str
    total_duration: int
    category_breakdown: Dict[str, int]
    daily_totals: Dict[str, int]
    entries: List[TimeEntry]


# ----------------------------
# Formatting
# ----------------------------

def pretty_duration(seconds: int) -> str:
    neg = seconds < 0
    seconds = abs(int(seconds))
    h, rem = divmod(seconds, 3600)
    m, s = divmod(rem, 60)
    sign = "-" if neg else ""
    return f"{sign}{h:02d}:{m:02d}:{s:02d}"


def format_duration(seconds: int, style: str = "short") -> str:
    """Render seconds as ``short`` (1h 30m), ``long`` (1 hour 30 minutes) or ``clock`` (01:30:00)."""
    seconds = max(0, int(seconds))
    if style == "clock":
        return pretty_duration(seconds)
    h, rem = divmod(seconds, 3600)
    m, s = divmod(rem, 60)
    if style == "long":
        parts = []
        if h:
            parts.append(f"{h} hour{'s' if h != 1 else ''}")
        if m:
            parts.append(f"{m} minute{'s' if m != 1 else ''}")
        if seconds < 60:
            parts.append(f"{s} second{'s' if s != 1 else ''}")
        return " ".join(parts)
    if style != "short":
        raise ValueError(f"unknown duration style: {style!r}")
    if h == 0 and m == 0:
        return f"{s}s"
    if h == 0:
        return f"{m}m"
    return f"{h}h {m}m"
