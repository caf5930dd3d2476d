"""
Report aggregation
==================

Reports are re-read from the monthly files on every request and never
cached. :func:`summarize` only adds up the durations it is handed; callers
that want "as of now" totals pass entries through :func:`with_live_durations`
first.
"""
from __future__ import annotations

import csv
from collections import defaultdict
from datetime import date, datetime, timedelta
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

from .codec import DATE_FMT, HEADER_FIELDS, TIME_FMT, round2
from .models import (
    UNCATEGORIZED,
    DailyReport,
    MonthlyReport,
    RangeReport,
    TimeEntry,
    to_datetime,
)
from .monthly import DateLike, MonthlyLogStore


def summarize(entries: Iterable[TimeEntry], fallback: Optional[str] = None) -> Tuple[int, Dict[str, int]]:
    """Total duration and per-category sums.

    With ``fallback`` set, entries with an empty category are counted under
    that name instead of the empty string.
    """
    total = 0
    breakdown: Dict[str, int] = defaultdict(int)
    for e in entries:
        category = e.category or fallback or ""
        breakdown[category] += e.duration
        total += e.duration
    return total, dict(breakdown)


def with_live_durations(entries: Iterable[TimeEntry], now: int) -> List[TimeEntry]:
    return [e.copy(duration=e.live_duration(now)) if e.is_running else e for e in entries]


def daily_report(store: MonthlyLogStore, day: date, now: Optional[int] = None) -> DailyReport:
    entries = store.read_day(day)
    if now is not None:
        entries = with_live_durations(entries, now)
    total, breakdown = summarize(entries)
    return DailyReport(date=day.strftime(DATE_FMT), total_duration=total,
                       category_breakdown=breakdown, entries=entries)


def monthly_report(store: MonthlyLogStore, year: int, month: int, now: Optional[int] = None) -> MonthlyReport:
    entries = store.read_month(year, month)
    if now is not None:
        entries = with_live_durations(entries, now)
    total, breakdown = summarize(entries)
    return MonthlyReport(month=f"{year:04d}-{month:02d}", total_duration=total,
                         category_breakdown=breakdown, entries=entries)


def range_report(store: MonthlyLogStore, start: DateLike, end: DateLike,
                 now: Optional[int] = None) -> RangeReport:
    entries = store.read_range(start, end)
    if now is not None:
        entries = with_live_durations(entries, now)
    total, breakdown = summarize(entries, fallback=UNCATEGORIZED)

    first = start.date() if isinstance(start, datetime) else start
    last = end.date() if isinstance(end, datetime) else end
    daily = {}
    day = first
    while day <= last:
        daily[day.strftime(DATE_FMT)] = 0
        day += timedelta(days=1)
    for e in entries:
        key = e.day.strftime(DATE_FMT)
        daily[key] = daily.get(key, 0) + e.duration

    return RangeReport(start=first.strftime(DATE_FMT), end=last.strftime(DATE_FMT),
                       total_duration=total, category_breakdown=breakdown,
                       daily_totals=daily, entries=entries)


def week_range(day: date, start_day_of_week: int = 0) -> Tuple[date, date]:
    """The 7-day window holding day; start_day_of_week is 0=Sunday .. 6=Saturday."""
    if not 0 <= start_day_of_week <= 6:
        raise ValueError(f"start_day_of_week must be 0..6, got {start_day_of_week}")
    sunday_based = (day.weekday() + 1) % 7
    first = day - timedelta(days=(sunday_based - start_day_of_week) % 7)
    return first, first + timedelta(days=6)


def export_csv(entries: Iterable[TimeEntry], dest: Path, now: Optional[int] = None) -> int:
    """Write entries to dest in the monthly-file layout; returns the row count."""
    count = 0
    with Path(dest).open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(HEADER_FIELDS)
        for e in entries:
            start = to_datetime(e.start_time)
            seconds = e.live_duration(now) if now is not None else e.duration
            end = to_datetime(e.end_time).strftime(TIME_FMT) if e.end_time is not None else ""
            writer.writerow([
                start.strftime(DATE_FMT), start.strftime(TIME_FMT), end, seconds,
                round2(seconds / 60), round2(seconds / 3600), e.category, e.memo,
            ])
            count += 1
    return count
