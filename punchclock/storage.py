"""Narrow file-system seam used by every store.

Paths are ``/``-separated and relative to the storage root, so the stores
never touch ``os`` or ``pathlib`` directly and tests can point them at a
temporary folder.
"""
from __future__ import annotations

import abc
import logging
from pathlib import Path
from typing import List

LOGGER = logging.getLogger("punchclock.storage")


def join_path(directory: str, name: str) -> str:
    directory = (directory or "").strip().strip("/")
    return f"{directory}/{name}" if directory else name


class Storage(abc.ABC):
    """Existence check, text read/write, create, delete and listing.

    Implementations raise ``OSError`` subclasses; callers decide whether
    a failure matters.
    """

    @abc.abstractmethod
    def exists(self, path: str) -> bool: ...

    @abc.abstractmethod
    def read(self, path: str) -> str: ...

    @abc.abstractmethod
    def write(self, path: str, content: str) -> None: ...

    @abc.abstractmethod
    def create(self, path: str, content: str) -> None:
        """Like write, but raises FileExistsError when the file is already there."""

    @abc.abstractmethod
    def delete(self, path: str) -> None: ...

    @abc.abstractmethod
    def list_files(self, folder: str) -> List[str]:
        """Every file below folder (recursive), as storage paths."""

    @abc.abstractmethod
    def mkdir(self, folder: str) -> None: ...


class FileStorage(Storage):
    def __init__(self, root: Path):
        self.root = Path(root)

    def _resolve(self, path: str) -> Path:
        target = (self.root / path).resolve()
        root = self.root.resolve()
        if target != root and root not in target.parents:
            raise PermissionError(f"{path!r} escapes storage root {self.root}")
        return target

    def exists(self, path: str) -> bool:
        return self._resolve(path).exists()

    def read(self, path: str) -> str:
        with self._resolve(path).open("r", encoding="utf-8", newline="") as f:
            return f.read()

    def write(self, path: str, content: str) -> None:
        target = self._resolve(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        with target.open("w", encoding="utf-8", newline="") as f:
            f.write(content)

    def create(self, path: str, content: str) -> None:
        target = self._resolve(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        with target.open("x", encoding="utf-8", newline="") as f:
            f.write(content)

    def delete(self, path: str) -> None:
        self._resolve(path).unlink()

    def list_files(self, folder: str) -> List[str]:
        base = self._resolve(folder)
        if not base.is_dir():
            return []
        root = self.root.resolve()
        return sorted(p.relative_to(root).as_posix() for p in base.rglob("*") if p.is_file())

    def mkdir(self, folder: str) -> None:
        self._resolve(folder).mkdir(parents=True, exist_ok=True)
        LOGGER.debug("ensured folder %s under %s", folder, self.root)
