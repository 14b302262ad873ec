"""Bounded subtitle history kept by the monitor.

The buffer grows by appending at the tail and drops its oldest entry once it
holds more than ``max_entries``.  Every mutation is persisted immediately so
the viewer never sees a silently stale file; a failed write is logged and the
in-memory buffer stays authoritative until the next mutation rewrites it.
"""
import logging
from collections import deque
from typing import Callable, Iterator, Optional

from .entry import SubtitleEntry
from .snapshot import WriteFailure

log = logging.getLogger("history")

Persist = Callable[[tuple[SubtitleEntry, ...]], None]


class HistoryBuffer:
    def __init__(self, max_entries: int = 50, persist: Optional[Persist] = None):
        if max_entries < 1:
            raise ValueError(f"max_entries must be >= 1, got {max_entries}")
        self._entries: deque[SubtitleEntry] = deque(maxlen=max_entries)
        self._persist = persist

    @property
    def max_entries(self) -> int:
        return self._entries.maxlen  # type: ignore[return-value]

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[SubtitleEntry]:
        return iter(self.snapshot())

    def append(self, entry: SubtitleEntry):
        """Add *entry* at the tail, evicting the head when over capacity."""
        evicted = len(self._entries) == self._entries.maxlen
        self._entries.append(entry)
        if evicted:
            log.debug("history full (%d) — evicted oldest entry", self.max_entries)
        self.persist()

    def clear(self, reason: str):
        self._entries.clear()
        self.persist()
        log.info("subtitle history cleared: %s", reason)

    def snapshot(self) -> tuple[SubtitleEntry, ...]:
        return tuple(self._entries)

    def persist(self):
        """Write the full current contents through the persist callback."""
        if self._persist is None:
            return
        try:
            self._persist(self.snapshot())
        except WriteFailure as e:
            log.error("%s — keeping %d entries in memory, will retry on next change", e, len(self))
