"""Time tracking core: monthly CSV logs, a running-timer slot and reports."""
from .config import Settings
from .manager import DataManager
from .models import CategoryConfig, DailyReport, MonthlyReport, RangeReport, TimeEntry
from .storage import FileStorage, Storage

__all__ = [
    "CategoryConfig",
    "DailyReport",
    "DataManager",
    "FileStorage",
    "MonthlyReport",
    "RangeReport",
    "Settings",
    "Storage",
    "TimeEntry",
]

__version__ = "0.1.0"
