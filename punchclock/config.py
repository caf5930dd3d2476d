"""User settings, stored as settings.json in the per-user data directory."""
from __future__ import annotations

import json
import logging
import os
import sys
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Dict, List, Optional

from .models import CategoryConfig

LOGGER = logging.getLogger("punchclock.config")

APP_NAME = "PunchClock"
SETTINGS_FILE = "settings.json"
HOME_ENV = "PUNCHCLOCK_HOME"


def user_data_dir() -> Path:
    """Return a per-user data directory suitable for the platform."""
    override = os.environ.get(HOME_ENV)
    if override:
        return Path(override)
    if sys.platform.startswith("win"):
        base = os.environ.get("APPDATA") or Path.home() / "AppData" / "Roaming"
        return Path(base) / APP_NAME
    base = os.environ.get("XDG_DATA_HOME") or (Path.home() / ".local" / "share")
    return Path(base) / APP_NAME


def _default_categories() -> List[str]:
    return ["Work", "Personal", "Research", "Meeting"]


def _default_colors() -> Dict[str, str]:
    return {
        "Work": "#4a90e2",
        "Personal": "#50c878",
        "Research": "#ffa500",
        "Meeting": "#dc143c",
    }


@dataclass
class Settings:
    categories: List[str] = field(default_factory=_default_categories)
    category_colors: Dict[str, str] = field(default_factory=_default_colors)
    default_category: str = "Work"
    storage_directory: str = "punch-clock-data"
    start_day_of_week: int = 0  # 0 = Sunday ... 6 = Saturday
    date_format: str = "%Y-%m-%d"
    time_format: str = "%H:%M:%S"
    auto_save: bool = True
    path: Optional[Path] = field(default=None, repr=False, compare=False)

    @classmethod
    def load(cls, path: Path) -> "Settings":
        settings = cls(path=path)
        if not path.exists():
            return settings
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            LOGGER.error("failed to read %s, using defaults: %s", path, exc)
            return settings
        if not isinstance(data, dict):
            LOGGER.error("%s does not hold an object, using defaults", path)
            return settings
        known = {f.name for f in fields(cls)} - {"path"}
        for key, value in data.items():
            if key in known:
                setattr(settings, key, value)
        try:
            first_day = int(settings.start_day_of_week)
        except (TypeError, ValueError):
            first_day = 0
        settings.start_day_of_week = first_day if 0 <= first_day <= 6 else 0
        return settings

    def to_dict(self) -> Dict[str, object]:
        data = asdict(self)
        data.pop("path")
        return data

    def save(self) -> None:
        if self.path is None:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(".tmp")
        tmp.write_text(json.dumps(self.to_dict(), indent=2, ensure_ascii=False), encoding="utf-8")
        os.replace(tmp, self.path)

    def category_config(self) -> CategoryConfig:
        return CategoryConfig(
            categories=list(self.categories),
            default_category=self.default_category,
            category_colors=dict(self.category_colors or {}),
        )

    def apply_categories(self, config: CategoryConfig) -> None:
        self.categories = list(config.categories)
        self.default_category = config.default_category
        self.category_colors = dict(config.category_colors)
