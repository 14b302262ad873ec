"""Viewer-side mirror of the monitor's subtitle history.

The watcher thread is the only writer and swaps in a complete new tuple of
entries; the render loop reads whatever tuple is current.  The lock guards
only the swap, never the file read or parse.
"""
import threading
from typing import Iterable

from .entry import SubtitleEntry

MIN_DISPLAY_COUNT = 1
MAX_DISPLAY_COUNT = 50


class ViewState:
    def __init__(self, display_count: int = 10):
        self._lock = threading.Lock()
        self._entries: tuple[SubtitleEntry, ...] = ()
        self._present = False
        self._version = 0
        self._display_count = MIN_DISPLAY_COUNT
        self.display_count = display_count

    def replace(self, entries: Iterable[SubtitleEntry], present: bool = True):
        new = tuple(entries)
        with self._lock:
            self._entries = new
            self._present = present
            self._version += 1

    def mark_absent(self):
        """Record that the snapshot file is gone; the entries are kept."""
        with self._lock:
            if self._present:
                self._present = False
                self._version += 1

    def read(self) -> tuple[SubtitleEntry, ...]:
        with self._lock:
            return self._entries

    def visible(self) -> tuple[SubtitleEntry, ...]:
        """The trailing ``display_count`` entries, newest last."""
        entries = self.read()
        return entries[-self.display_count:]

    @property
    def present(self) -> bool:
        with self._lock:
            return self._present

    @property
    def version(self) -> int:
        with self._lock:
            return self._version

    @property
    def display_count(self) -> int:
        return self._display_count

    @display_count.setter
    def display_count(self, value: int):
        self._display_count = max(MIN_DISPLAY_COUNT, min(MAX_DISPLAY_COUNT, int(value)))
