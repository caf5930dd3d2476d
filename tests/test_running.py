import json

import pytest

from punchclock.models import TimeEntry

from conftest import DATA_DIR, finished, ms


def running_entry():
    return TimeEntry(id="1736931600000", start_time=ms(2025, 1, 15, 9, 0, 0),
                     category="Work", memo="focus", is_running=True)


def test_missing_slot_reads_none(slot):
    assert slot.read() is None


def test_write_then_read(slot, storage):
    slot.write(running_entry())
    assert slot.read() == running_entry()
    data = json.loads(storage.read(f"{DATA_DIR}/running-timer.json"))
    assert data["isRunning"] is True
    assert data["startTime"] == running_entry().start_time


def test_write_rejects_stopped_entry(slot):
    with pytest.raises(ValueError):
        slot.write(finished(ms(2025, 1, 15, 9, 0, 0), 60))


def test_clear_removes_file(slot, storage):
    slot.write(running_entry())
    assert slot.clear()
    assert not storage.exists(slot.path)
    assert slot.clear()


def test_corrupt_record_reads_none(slot, storage):
    storage.write(slot.path, "{")
    assert slot.read() is None


def test_record_without_id_is_ignored(slot, storage):
    storage.write(slot.path, json.dumps({"startTime": 1}))
    assert slot.read() is None


def test_record_is_always_running(slot, storage):
    data = running_entry().to_dict()
    data.update(isRunning=False, endTime=123)
    storage.write(slot.path, json.dumps(data))
    entry = slot.read()
    assert entry.is_running is True
    assert entry.end_time is None
