"""Category list, default category and per-category colors in categories.json."""
from __future__ import annotations

import json
import logging
from typing import Dict, Iterable, List, Mapping, Optional

from .models import CategoryConfig
from .storage import Storage, join_path

LOGGER = logging.getLogger("punchclock.categories")

CATEGORIES_FILE = "categories.json"
FALLBACK_COLOR = "#4a90e2"
PALETTE = [
    "#4a90e2",  # blue
    "#50c878",  # green
    "#ffa500",  # orange
    "#dc143c",  # red
    "#9370db",  # purple
    "#20b2aa",  # teal
    "#ff69b4",  # pink
    "#4682b4",  # steel blue
    "#daa520",  # goldenrod
    "#8b4513",  # saddle brown
]


def unique_names(names: Iterable[str]) -> List[str]:
    seen = set()
    out = []
    for name in names:
        name = (name or "").strip()
        if name and name not in seen:
            seen.add(name)
            out.append(name)
    return out


def assign_default_colors(categories: Iterable[str], existing: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
    """Give every category a color, keeping existing ones.

    Missing colors come from PALETTE by position in the de-duplicated list,
    so the result only depends on the order of names.
    """
    existing = existing or {}
    colors = {}
    for index, name in enumerate(unique_names(categories)):
        colors[name] = existing.get(name) or PALETTE[index % len(PALETTE)]
    return colors


def normalize(config: CategoryConfig) -> CategoryConfig:
    categories = unique_names(config.categories)
    default = (config.default_category or "").strip()
    if not categories and default:
        categories = [default]
    if default not in categories:
        default = categories[0] if categories else ""
    colors = dict(config.category_colors or {})
    colors.update(assign_default_colors(categories, colors))
    return CategoryConfig(categories=categories, default_category=default, category_colors=colors)


def color_for(config: CategoryConfig, category: str) -> str:
    return config.category_colors.get(category) or FALLBACK_COLOR


class CategoryStore:
    def __init__(self, storage: Storage, directory: str = ""):
        self.storage = storage
        self.directory = directory

    @property
    def path(self) -> str:
        return join_path(self.directory, CATEGORIES_FILE)

    def load(self, defaults: CategoryConfig) -> CategoryConfig:
        """Read categories.json; seed it from defaults when it does not exist.

        Any read or parse failure falls back to defaults in memory.
        """
        try:
            if not self.storage.exists(self.path):
                config = normalize(defaults)
                LOGGER.info("creating %s with %d categories", self.path, len(config.categories))
                self.save(config)
                return config
            data = json.loads(self.storage.read(self.path))
        except (OSError, ValueError) as exc:
            LOGGER.error("failed to load %s: %s", self.path, exc)
            return normalize(defaults)
        if not isinstance(data, dict):
            LOGGER.error("%s does not hold an object, using defaults", self.path)
            return normalize(defaults)

        categories = data.get("categories")
        if not isinstance(categories, list):
            categories = defaults.categories
        colors = data.get("categoryColors")
        if not isinstance(colors, dict):
            # files written before colors existed
            colors = assign_default_colors(categories, defaults.category_colors)
        return normalize(CategoryConfig(
            categories=[str(c) for c in categories],
            default_category=str(data.get("defaultCategory") or defaults.default_category),
            category_colors={str(k): str(v) for k, v in colors.items()},
        ))

    def save(self, config: CategoryConfig) -> bool:
        content = json.dumps(config.to_dict(), indent=2, ensure_ascii=False)
        try:
            self.storage.write(self.path, content)
        except OSError as exc:
            LOGGER.error("failed to save %s: %s", self.path, exc)
            return False
        return True
