from datetime import datetime

import pytest

from punchclock.config import Settings
from punchclock.manager import DataManager
from punchclock.models import TimeEntry, entry_id_for, to_ms
from punchclock.monthly import MonthlyLogStore
from punchclock.notify import RecordingNotifier
from punchclock.running import RunningTimerSlot
from punchclock.storage import FileStorage

DATA_DIR = "punch-clock-data"


def ms(*args) -> int:
    return to_ms(datetime(*args))


def finished(start, seconds, category="Work", memo=""):
    return TimeEntry(
        id=entry_id_for(start),
        start_time=start,
        end_time=start + seconds * 1000,
        duration=seconds,
        category=category,
        memo=memo,
        is_running=False,
    )


class FakeClock:
    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds * 1000


class FlakyStorage(FileStorage):
    """FileStorage that raises OSError for paths listed in ``broken``."""

    def __init__(self, root):
        super().__init__(root)
        self.broken = set()

    def _check(self, path):
        if path in self.broken:
            raise OSError(f"simulated failure on {path}")

    def read(self, path):
        self._check(path)
        return super().read(path)

    def write(self, path, content):
        self._check(path)
        super().write(path, content)

    def create(self, path, content):
        self._check(path)
        super().create(path, content)

    def delete(self, path):
        self._check(path)
        super().delete(path)


@pytest.fixture
def storage(tmp_path):
    return FlakyStorage(tmp_path)


@pytest.fixture
def clock():
    return FakeClock(ms(2025, 1, 15, 12, 0, 0))


@pytest.fixture
def monthly(storage):
    return MonthlyLogStore(storage, DATA_DIR)


@pytest.fixture
def slot(storage):
    return RunningTimerSlot(storage, DATA_DIR)


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def settings():
    return Settings(storage_directory=DATA_DIR)


@pytest.fixture
def manager(settings, storage, notifier, clock):
    dm = DataManager(settings, storage, notifier=notifier, clock=clock)
    dm.load()
    return dm
