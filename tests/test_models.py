import pytest

from punchclock.models import (
    TimeEntry,
    format_duration,
    generate_id,
    live_duration,
    pretty_duration,
    row_key,
    timestamp_from_id,
)


def test_live_duration_adds_whole_seconds():
    assert live_duration(1_000, 30, 3_999) == 32
    assert live_duration(1_000, 0, 500) == 0


def test_running_entry_live_duration_uses_now():
    entry = TimeEntry(id="1", start_time=0, duration=10, is_running=True)
    assert entry.live_duration(5_000) == 15
    stopped = entry.copy(is_running=False)
    assert stopped.live_duration(5_000) == 10


def test_timestamp_from_plain_id():
    assert timestamp_from_id("1736931600123") == 1736931600123


def test_timestamp_from_generated_id():
    entry_id = generate_id(1736931600123)
    assert len(entry_id) == 20
    assert timestamp_from_id(entry_id) == 1736931600123


def test_timestamp_from_garbage_id():
    assert timestamp_from_id("") is None
    assert timestamp_from_id("abc") is None


def test_row_key_drops_milliseconds():
    assert row_key(1736931600123) == "1736931600000"


def test_dict_round_trip_uses_camel_case():
    entry = TimeEntry(id="42", start_time=42, duration=3, category="Work", memo="x", is_running=True)
    data = entry.to_dict()
    assert data["startTime"] == 42 and data["isRunning"] is True
    assert TimeEntry.from_dict(data) == entry


def test_from_dict_requires_start_time():
    with pytest.raises(ValueError):
        TimeEntry.from_dict({"id": "1"})


@pytest.mark.parametrize("seconds, style, expected", [
    (12, "short", "12s"),
    (45 * 60, "short", "45m"),
    (5400, "short", "1h 30m"),
    (5400, "long", "1 hour 30 minutes"),
    (7200, "long", "2 hours"),
    (1, "long", "1 second"),
    (5400, "clock", "01:30:00"),
    (-5, "clock", "00:00:00"),
])
def test_format_duration(seconds, style, expected):
    assert format_duration(seconds, style) == expected


def test_pretty_duration_keeps_sign():
    assert pretty_duration(-61) == "-00:01:01"
