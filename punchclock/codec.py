"""
Text-record codec
=================

One finalized entry per CSV row. Two layouts are understood:

- current (8 fields): Date, Start Time, End Time, Duration(seconds),
  Duration(minutes), Duration(hours), Category, Memo
- legacy (6 fields): Date, Start Time, End Time, Duration, Category, Memo

Rows carry no id column. The id of a decoded entry is the epoch-ms value of
its Date + Start Time, so anything that searches a file for an id has to go
through :func:`row_id`.
"""
from __future__ import annotations

import csv
import io
import logging
import math
import re
from datetime import datetime, timedelta
from typing import List, Optional, Union

from .models import TimeEntry, entry_id_for, to_datetime, to_ms

LOGGER = logging.getLogger("punchclock.codec")

HEADER_FIELDS = [
    "Date",
    "Start Time",
    "End Time",
    "Duration(seconds)",
    "Duration(minutes)",
    "Duration(hours)",
    "Category",
    "Memo",
]
HEADER = ",".join(HEADER_FIELDS)

DATE_FMT = "%Y-%m-%d"
TIME_FMT = "%H:%M:%S"

CURRENT_FIELD_COUNT = 8
MIN_FIELD_COUNT = 5

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def round2(value: float) -> Union[int, float]:
    """Two decimals, halves rounded up; whole values come back as int."""
    r = math.floor(value * 100 + 0.5) / 100
    return int(r) if r == int(r) else r


def _parse_int(text: str) -> int:
    m = _LEADING_INT.match(text or "")
    return int(m.group(1)) if m else 0


def _one_line(text: str) -> str:
    return " ".join((text or "").splitlines())


def parse_line(line: str) -> List[str]:
    """Split one row; quoted fields may hold commas and doubled quotes."""
    return next(csv.reader([line]), [])


def encode_row(entry: TimeEntry) -> str:
    if entry.is_running:
        raise ValueError(f"running entry {entry.id} cannot be written as a row")
    start = to_datetime(entry.start_time)
    end = to_datetime(entry.end_time).strftime(TIME_FMT) if entry.end_time is not None else ""
    seconds = int(entry.duration)
    buf = io.StringIO()
    writer = csv.writer(buf, quoting=csv.QUOTE_NONNUMERIC, lineterminator="")
    writer.writerow([
        start.strftime(DATE_FMT),
        start.strftime(TIME_FMT),
        end,
        seconds,
        round2(seconds / 60),
        round2(seconds / 3600),
        _one_line(entry.category),
        _one_line(entry.memo),
    ])
    return buf.getvalue()


def _parse_stamp(day: str, clock: str) -> datetime:
    return datetime.strptime(f"{day.strip()} {clock.strip()}", f"{DATE_FMT} {TIME_FMT}")


def decode_row(line: str) -> Optional[TimeEntry]:
    """Decode one row, or return None when it has too few fields.

    Unparseable dates raise ValueError; :func:`decode_rows` turns that into
    a skipped row.
    """
    parts = parse_line(line)
    if len(parts) < MIN_FIELD_COUNT:
        return None
    if len(parts) >= CURRENT_FIELD_COUNT:
        category, memo = parts[6], parts[7]
    else:
        category = parts[4]
        memo = parts[5] if len(parts) > 5 else ""

    start = _parse_stamp(parts[0], parts[1])
    end_ms = None
    if parts[2].strip():
        end = _parse_stamp(parts[0], parts[2])
        if end < start:
            # row ran past midnight
            end += timedelta(days=1)
        end_ms = to_ms(end)

    start_ms = to_ms(start)
    return TimeEntry(
        id=entry_id_for(start_ms),
        start_time=start_ms,
        end_time=end_ms,
        duration=_parse_int(parts[3]),
        category=category,
        memo=memo,
        is_running=False,
    )


def decode_rows(content: str, source: str = "<memory>") -> List[TimeEntry]:
    """Decode every data row of a monthly file, skipping bad ones."""
    entries: List[TimeEntry] = []
    skipped = 0
    for lineno, raw in enumerate(content.splitlines()[1:], start=2):
        line = raw.strip()
        if not line:
            continue
        try:
            entry = decode_row(line)
        except (ValueError, csv.Error) as exc:
            LOGGER.warning("%s:%d: skipping unreadable row: %s", source, lineno, exc)
            skipped += 1
            continue
        if entry is None:
            LOGGER.warning("%s:%d: skipping row with too few fields", source, lineno)
            skipped += 1
            continue
        entries.append(entry)
    if skipped:
        LOGGER.info("%s: decoded %d rows, skipped %d", source, len(entries), skipped)
    return entries


def row_id(line: str) -> Optional[str]:
    """Id the given row decodes to, or None if Date/Start Time are unusable."""
    try:
        parts = parse_line(line.strip())
        if len(parts) < 2:
            return None
        return entry_id_for(to_ms(_parse_stamp(parts[0], parts[1])))
    except (ValueError, csv.Error):
        return None
