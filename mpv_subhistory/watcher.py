"""
Keeps a :class:`ViewState` in step with the snapshot file.

A change source reports that the file may have changed; the watcher waits
until notifications have been quiet for ``debounce`` seconds and then
re-reads the whole file.  A replace-by-rename write typically shows up as
several notifications (deleted, created, modified); they collapse into a
single read.

Read outcomes:

  valid snapshot   → ViewState.replace(entries)
  malformed        → logged, ViewState untouched, wait for the next change
  file missing     → at startup an empty history; later the last entries
                     are kept and the view is only marked absent

Sources implement ``subscribe(callback)``, ``start()`` and ``stop()``;
:class:`PollingSource` is the stat-polling implementation used by default.
"""
import logging
import os
import pathlib
import threading
from typing import Callable, Optional, Protocol

from .snapshot import MissingSnapshot, ParseFailure, SnapshotReader
from .viewstate import ViewState

log = logging.getLogger("watcher")

ChangeCallback = Callable[[str], None]
Signature = Optional[tuple[int, int, int]]


class ChangeSource(Protocol):
    def subscribe(self, callback: ChangeCallback) -> None: ...

    def start(self) -> None: ...

    def stop(self) -> None: ...


def _signature(path: pathlib.Path) -> Signature:
    try:
        st = os.stat(path)
    except FileNotFoundError:
        return None
    return st.st_ino, st.st_mtime_ns, st.st_size


class PollingSource:
    """Reports changes to *path* by comparing stat results every *interval* seconds."""

    def __init__(self, path: pathlib.Path, interval: float = 0.1):
        self.path = pathlib.Path(path)
        self.interval = interval
        self._callbacks: list[ChangeCallback] = []
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._last: Signature = None

    def subscribe(self, callback: ChangeCallback):
        self._callbacks.append(callback)

    def start(self):
        self._last = _signature(self.path)
        self._stop.clear()
        self._thread = threading.Thread(target=self._loop, daemon=True, name="snapshot-poll")
        self._thread.start()

    def stop(self):
        self._stop.set()
        if self._thread is not None:
            self._thread.join()
            self._thread = None

    def poll(self) -> Optional[str]:
        """Compare the file against the last check and notify subscribers."""
        current = _signature(self.path)
        if current == self._last:
            return None
        if current is None:
            kind = "deleted"
        elif self._last is None:
            kind = "created"
        else:
            kind = "modified"
        self._last = current
        for callback in self._callbacks:
            callback(kind)
        return kind

    def _loop(self):
        while not self._stop.wait(self.interval):
            try:
                self.poll()
            except Exception:
                log.exception("snapshot poll failed")


class ChangeWatcher:
    def __init__(
        self,
        path: pathlib.Path,
        view: ViewState,
        source: Optional[ChangeSource] = None,
        debounce: float = 0.05,
        poll_interval: float = 0.1,
    ):
        self.path = pathlib.Path(path)
        self.view = view
        self.reader = SnapshotReader(self.path)
        self.source = source if source is not None else PollingSource(self.path, poll_interval)
        self.source.subscribe(self.notify)
        self._debounce = debounce
        self._timer: Optional[threading.Timer] = None
        self._timer_lock = threading.Lock()
        self._generation = 0  # bumped per notification; superseded timers bail out
        self._refresh_lock = threading.Lock()
        self._stopped = threading.Event()

    def start(self):
        self._stopped.clear()
        self.source.start()
        self.refresh(initial=True)
        log.info("watching %s", self.path)

    def stop(self):
        """Stop watching; a refresh already in progress finishes its swap first."""
        self._stopped.set()
        with self._timer_lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
        self.source.stop()
        # Wait for an in-flight refresh.
        with self._refresh_lock:
            pass

    def notify(self, kind: str = "modified"):
        """Schedule a re-read once notifications settle for the debounce window."""
        if self._stopped.is_set():
            return
        log.debug("snapshot %s", kind)
        with self._timer_lock:
            self._generation += 1
            gen = self._generation
            if self._timer is not None:
                self._timer.cancel()
            self._timer = threading.Timer(self._debounce, self._fire, args=(gen,))
            self._timer.daemon = True
            self._timer.start()

    def _fire(self, gen: int):
        if self._stopped.is_set() or gen != self._generation:
            return
        self.refresh()

    def refresh(self, initial: bool = False) -> bool:
        """Re-read the snapshot into the view.  Returns True if the view was replaced."""
        with self._refresh_lock:
            # A timer that fired just before stop() may only get the lock now.
            if self._stopped.is_set() and not initial:
                return False
            try:
                entries = self.reader.read()
            except MissingSnapshot:
                if initial:
                    self.view.replace([], present=False)
                    log.info("no subtitle file at %s yet (is the monitor running?)", self.path)
                else:
                    self.view.mark_absent()
                    log.info("subtitle file %s removed, keeping last history", self.path)
                return False
            except ParseFailure as e:
                log.warning("%s — skipping this update", e)
                return False
            self.view.replace(entries)
            log.debug("loaded %d subtitles", len(entries))
            return True
