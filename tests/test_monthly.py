from datetime import date

import pytest

from punchclock.codec import HEADER
from punchclock.models import TimeEntry, entry_id_for
from punchclock.monthly import months_in_range

from conftest import DATA_DIR, finished, ms


def rows(storage, path):
    return storage.read(path).splitlines()


def test_append_creates_file_with_header(monthly, storage):
    entry = finished(ms(2025, 1, 15, 9, 0, 0), 1800)
    assert monthly.append(entry)
    lines = rows(storage, f"{DATA_DIR}/2025-01.csv")
    assert lines[0] == HEADER
    assert len(lines) == 2


def test_upsert_twice_keeps_one_row(monthly, storage):
    entry = finished(ms(2025, 1, 15, 9, 0, 0), 1800, memo="first")
    monthly.upsert(entry)
    monthly.upsert(entry.copy(memo="second"))
    monthly.upsert(entry.copy(memo="second"))
    lines = rows(storage, f"{DATA_DIR}/2025-01.csv")
    assert len(lines) == 2
    assert [e.memo for e in monthly.read_month(2025, 1)] == ["second"]


def test_upsert_matches_row_when_id_has_milliseconds(monthly, storage):
    start = ms(2025, 1, 15, 9, 0, 0) + 437
    entry = finished(start, 60)
    monthly.upsert(entry)
    monthly.upsert(entry.copy(duration=120))
    assert len(rows(storage, f"{DATA_DIR}/2025-01.csv")) == 2


def test_append_to_existing_file(monthly):
    monthly.append(finished(ms(2025, 1, 15, 9, 0, 0), 60))
    monthly.append(finished(ms(2025, 1, 16, 9, 0, 0), 60))
    assert len(monthly.read_month(2025, 1)) == 2


def test_entries_go_to_their_month_file(monthly, storage):
    monthly.append(finished(ms(2025, 2, 1, 0, 0, 1), 60))
    assert storage.exists(f"{DATA_DIR}/2025-02.csv")
    assert not storage.exists(f"{DATA_DIR}/2025-01.csv")


def test_running_entries_are_rejected(monthly):
    with pytest.raises(ValueError):
        monthly.upsert(TimeEntry(id="1", start_time=ms(2025, 1, 1, 0, 0, 0), is_running=True))


def test_delete_by_id(monthly):
    keep = finished(ms(2025, 1, 15, 9, 0, 0), 60, memo="keep")
    drop = finished(ms(2025, 1, 15, 10, 0, 0), 60, memo="drop")
    monthly.append(keep)
    monthly.append(drop)
    assert monthly.delete(drop.id)
    assert [e.memo for e in monthly.read_month(2025, 1)] == ["keep"]


def test_delete_missing_file_or_row_is_noop(monthly):
    assert monthly.delete(entry_id_for(ms(2024, 6, 1, 9, 0, 0))) is False
    monthly.append(finished(ms(2025, 1, 15, 9, 0, 0), 60))
    assert monthly.delete(entry_id_for(ms(2025, 1, 20, 9, 0, 0))) is False
    assert monthly.delete("not-an-id") is False
    assert len(monthly.read_month(2025, 1)) == 1


def test_delete_keeps_unparseable_rows(monthly, storage):
    path = f"{DATA_DIR}/2025-01.csv"
    entry = finished(ms(2025, 1, 15, 9, 0, 0), 60)
    monthly.append(entry)
    storage.write(path, storage.read(path) + "hand-written note\n")
    monthly.delete(entry.id)
    assert rows(storage, path) == [HEADER, "hand-written note"]


def test_read_missing_month_is_empty(monthly):
    assert monthly.read_month(2030, 5) == []


def test_read_month_validates_month(monthly):
    with pytest.raises(ValueError):
        monthly.read_month(2025, 13)


def test_read_month_includes_running_entry(monthly):
    running = TimeEntry(id="r", start_time=ms(2025, 1, 20, 8, 0, 0), is_running=True, category="Work")
    monthly.running = lambda: running
    monthly.append(finished(ms(2025, 1, 15, 9, 0, 0), 60))
    entries = monthly.read_month(2025, 1)
    assert [e.id for e in entries][-1] == "r"
    assert monthly.read_month(2025, 2) == []


def test_read_day(monthly):
    monthly.append(finished(ms(2025, 1, 15, 9, 0, 0), 60, memo="a"))
    monthly.append(finished(ms(2025, 1, 16, 9, 0, 0), 60, memo="b"))
    assert [e.memo for e in monthly.read_day(date(2025, 1, 16))] == ["b"]


def test_range_spans_months(monthly):
    late = finished(ms(2025, 1, 31, 22, 0, 0), 60, memo="jan")
    early = finished(ms(2025, 2, 1, 7, 0, 0), 60, memo="feb")
    outside = finished(ms(2025, 2, 3, 7, 0, 0), 60, memo="out")
    for e in (early, outside, late):
        monthly.append(e)
    entries = monthly.read_range(date(2025, 1, 30), date(2025, 2, 2))
    assert [e.memo for e in entries] == ["jan", "feb"]


def test_range_end_date_covers_whole_day(monthly):
    monthly.append(finished(ms(2025, 2, 2, 23, 59, 0), 60, memo="last"))
    entries = monthly.read_range(date(2025, 2, 1), date(2025, 2, 2))
    assert [e.memo for e in entries] == ["last"]


def test_unreadable_month_does_not_abort_range(monthly, storage):
    monthly.append(finished(ms(2025, 1, 31, 9, 0, 0), 60, memo="jan"))
    monthly.append(finished(ms(2025, 2, 1, 9, 0, 0), 60, memo="feb"))
    storage.broken.add(f"{DATA_DIR}/2025-01.csv")
    entries = monthly.read_range(date(2025, 1, 1), date(2025, 2, 28))
    assert [e.memo for e in entries] == ["feb"]
    assert monthly.failed_reads == [f"{DATA_DIR}/2025-01.csv"]


def test_write_failure_returns_false(monthly, storage):
    storage.broken.add(f"{DATA_DIR}/2025-01.csv")
    assert monthly.upsert(finished(ms(2025, 1, 15, 9, 0, 0), 60)) is False


def test_months_in_range_crosses_year():
    assert months_in_range(date(2024, 11, 20), date(2025, 2, 1)) == [
        (2024, 11), (2024, 12), (2025, 1), (2025, 2)]


def test_list_files_skips_underscored_paths(monthly, storage):
    monthly.append(finished(ms(2025, 1, 15, 9, 0, 0), 60))
    storage.write(f"{DATA_DIR}/_backup/2024-12.csv", HEADER + "\n")
    storage.write(f"{DATA_DIR}/notes.txt", "x")
    assert monthly.list_files() == [f"{DATA_DIR}/2025-01.csv"]


def test_list_files_descends_into_subfolders(monthly, storage):
    monthly.append(finished(ms(2025, 1, 15, 9, 0, 0), 60))
    storage.write(f"{DATA_DIR}/2024/2024-12.csv", HEADER + "\n")
    assert monthly.list_files() == [f"{DATA_DIR}/2024/2024-12.csv", f"{DATA_DIR}/2025-01.csv"]
