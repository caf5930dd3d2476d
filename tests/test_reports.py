import csv
from datetime import date

import pytest

from punchclock import reports
from punchclock.codec import encode_row, parse_line
from punchclock.models import UNCATEGORIZED, TimeEntry

from conftest import finished, ms


def test_summarize():
    entries = [finished(1, 1800, "Work"), finished(2, 3600, "Personal"), finished(3, 200, "Work")]
    assert reports.summarize(entries) == (5600, {"Work": 2000, "Personal": 3600})


def test_summarize_fallback_category():
    entries = [finished(1, 60, ""), finished(2, 30, "Work")]
    assert reports.summarize(entries)[1] == {"": 60, "Work": 30}
    assert reports.summarize(entries, fallback=UNCATEGORIZED)[1] == {UNCATEGORIZED: 60, "Work": 30}


def test_daily_report_totals(monthly):
    monthly.append(finished(ms(2025, 1, 15, 9, 0, 0), 1800, "Work"))
    monthly.append(finished(ms(2025, 1, 15, 13, 0, 0), 3600, "Personal"))
    monthly.append(finished(ms(2025, 1, 16, 9, 0, 0), 999, "Work"))
    report = reports.daily_report(monthly, date(2025, 1, 15))
    assert report.date == "2025-01-15"
    assert report.total_duration == 5400
    assert report.category_breakdown == {"Work": 1800, "Personal": 3600}
    assert len(report.entries) == 2


def test_monthly_report(monthly):
    monthly.append(finished(ms(2025, 1, 2, 9, 0, 0), 100, "Work"))
    monthly.append(finished(ms(2025, 1, 30, 9, 0, 0), 200, "Work"))
    report = reports.monthly_report(monthly, 2025, 1)
    assert report.month == "2025-01"
    assert report.total_duration == 300
    assert report.category_breakdown == {"Work": 300}


def test_running_entry_counts_stored_duration_unless_live(monthly):
    start = ms(2025, 1, 15, 9, 0, 0)
    running = TimeEntry(id=str(start), start_time=start, is_running=True, category="Work")
    monthly.running = lambda: running
    assert reports.daily_report(monthly, date(2025, 1, 15)).total_duration == 0
    live = reports.daily_report(monthly, date(2025, 1, 15), now=start + 600_000)
    assert live.total_duration == 600
    assert live.category_breakdown == {"Work": 600}


def test_with_live_durations_leaves_stopped_entries():
    stopped = finished(0, 50)
    running = TimeEntry(id="r", start_time=0, duration=5, is_running=True)
    out = reports.with_live_durations([stopped, running], now=10_000)
    assert [e.duration for e in out] == [50, 15]
    assert running.duration == 5


def test_range_report_across_months(monthly):
    monthly.append(finished(ms(2025, 1, 31, 9, 0, 0), 600, "Work"))
    monthly.append(finished(ms(2025, 2, 1, 9, 0, 0), 300, ""))
    report = reports.range_report(monthly, date(2025, 1, 30), date(2025, 2, 2))
    assert report.total_duration == 900
    assert report.category_breakdown == {"Work": 600, UNCATEGORIZED: 300}
    assert report.daily_totals == {
        "2025-01-30": 0, "2025-01-31": 600, "2025-02-01": 300, "2025-02-02": 0}
    assert [e.start_time for e in report.entries] == sorted(e.start_time for e in report.entries)


@pytest.mark.parametrize("day, first_day, expected_start", [
    (date(2025, 1, 15), 0, date(2025, 1, 12)),  # Wednesday, weeks start Sunday
    (date(2025, 1, 15), 1, date(2025, 1, 13)),  # Monday start
    (date(2025, 1, 12), 1, date(2025, 1, 6)),   # Sunday belongs to the previous Monday week
    (date(2025, 1, 18), 6, date(2025, 1, 18)),  # Saturday start
])
def test_week_range(day, first_day, expected_start):
    start, end = reports.week_range(day, first_day)
    assert start == expected_start
    assert (end - start).days == 6


def test_week_range_rejects_bad_start_day():
    with pytest.raises(ValueError):
        reports.week_range(date(2025, 1, 15), 7)


def test_export_csv(tmp_path):
    dest = tmp_path / "out.csv"
    entries = [finished(ms(2025, 1, 15, 9, 0, 0), 5400, "Work", 'a "quoted", memo')]
    assert reports.export_csv(entries, dest) == 1
    with dest.open(newline="", encoding="utf-8") as f:
        table = list(csv.reader(f))
    assert table[0][0] == "Date"
    assert table[1] == ["2025-01-15", "09:00:00", "10:30:00", "5400", "90", "1.5", "Work", 'a "quoted", memo']


def test_export_rows_match_monthly_file_rows(tmp_path):
    dest = tmp_path / "out.csv"
    entry = finished(ms(2025, 1, 15, 9, 0, 0), 7200, "Work", "plain")
    reports.export_csv([entry], dest)
    with dest.open(newline="", encoding="utf-8") as f:
        exported = list(csv.reader(f))[1]
    assert exported == parse_line(encode_row(entry))
