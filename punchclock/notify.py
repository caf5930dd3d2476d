"""Sinks for short user-facing notices (started, stopped, failed ...)."""
from __future__ import annotations

import logging
import sys
from typing import List, Optional, TextIO

LOGGER = logging.getLogger("punchclock.notify")


class Notifier:
    def notify(self, message: str, error: bool = False) -> None:
        raise NotImplementedError


class LogNotifier(Notifier):
    def notify(self, message: str, error: bool = False) -> None:
        LOGGER.log(logging.ERROR if error else logging.INFO, message)


class StreamNotifier(Notifier):
    def __init__(self, stream: Optional[TextIO] = None):
        self.stream = stream

    def notify(self, message: str, error: bool = False) -> None:
        prefix = "error: " if error else ""
        print(f"{prefix}{message}", file=self.stream or sys.stderr)


class RecordingNotifier(Notifier):
    """Keeps every notice; handy for embedding and tests."""

    def __init__(self):
        self.messages: List[str] = []
        self.errors: List[str] = []

    def notify(self, message: str, error: bool = False) -> None:
        (self.errors if error else self.messages).append(message)
