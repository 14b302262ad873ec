"""
Subtitle capture on the mpv side.

mpv notifies us through its JSON IPC socket; every notification is turned
into a :class:`ProducerEvent` and handed to :meth:`ProducerContext.dispatch`:

  sub-text / secondary-sub-text → SUBTITLE_CHANGED  append to history
  time-pos                      → POSITION_SAMPLED  clear on a large jump
  seek                          → SEEK_OCCURRED     clear on a large jump
  file-loaded                   → FILE_LOADED       clear, reset seek state

Dispatch is serialized by a lock, so handlers run one at a time in the order
mpv delivered the notifications and the history needs no further locking.
Handlers must stay quick: the only I/O is the bounded snapshot write.
"""
import enum
import logging
import threading
from threading import Event
from typing import Any, Callable, Optional, Protocol

from attr import dataclass
from python_mpv_jsonipc import MPV, MPVError

from .config import Config, get_config
from .entry import SubtitleEntry
from .history import HistoryBuffer
from .seek import SeekDetector
from .snapshot import SnapshotWriter

log = logging.getLogger("producer")


class EventKind(enum.Enum):
    SUBTITLE_CHANGED = "subtitle-changed"
    SEEK_OCCURRED = "seek-occurred"
    FILE_LOADED = "file-loaded"
    POSITION_SAMPLED = "position-sampled"


@dataclass(frozen=True, kw_only=True)
class ProducerEvent:
    kind: EventKind
    text: Optional[str] = None
    position: Optional[float] = None
    secondary: bool = False


class ProducerContext:
    """Owns the history, the seek detector and the snapshot writer for one session."""

    def __init__(self, config: Optional[Config] = None):
        self.config = config or get_config()
        cfg = self.config.history
        self.writer = SnapshotWriter(cfg.output_file)
        self.history = HistoryBuffer(cfg.max_entries, persist=self.writer.write)
        self.seek = SeekDetector(cfg.seek_threshold)
        self._dispatch_lock = threading.Lock()

    def start(self):
        """Publish an empty history so viewers know the monitor is running."""
        self.history.persist()
        log.info("subtitle monitor started, writing to %s", self.writer.path)

    def dispatch(self, event: ProducerEvent):
        with self._dispatch_lock:
            if event.kind is EventKind.SUBTITLE_CHANGED:
                self._on_subtitle(event)
            elif event.kind is EventKind.POSITION_SAMPLED:
                if self.seek.sample(event.position):
                    self.history.clear("seek detected")
            elif event.kind is EventKind.SEEK_OCCURRED:
                if self.seek.seek(event.position):
                    self.history.clear("seek detected")
            elif event.kind is EventKind.FILE_LOADED:
                self.history.clear("new file loaded")
                self.seek.reset()

    def _on_subtitle(self, event: ProducerEvent):
        if not event.text:
            return
        text = event.text
        if event.secondary:
            text = self.config.history.secondary_prefix + text
        self.history.append(SubtitleEntry.capture(text, event.position))
        log.info("subtitle captured: %s", text)


# ── host interface ───────────────────────────────────────────────────────────


class PlayerHost(Protocol):
    def observe_property(self, name: str, callback: Callable[[Any], None]) -> None: ...

    def register_event(self, name: str, callback: Callable[[], None]) -> None: ...

    def get_property_number(self, name: str, default: float = 0.0) -> float: ...


class MpvHost:
    """:class:`PlayerHost` backed by a python-mpv-jsonipc connection."""

    def __init__(self, mpv: MPV):
        self.mpv = mpv

    def observe_property(self, name: str, callback: Callable[[Any], None]):
        self.mpv.bind_property_observer(name, lambda _name, value: callback(value))

    def register_event(self, name: str, callback: Callable[[], None]):
        self.mpv.bind_event(name, lambda _event=None: callback())

    def get_property_number(self, name: str, default: float = 0.0) -> float:
        try:
            value = self.mpv.command("get_property", name)
        except MPVError:
            return default
        try:
            return float(value)
        except (TypeError, ValueError):
            return default


def bind(context: ProducerContext, host: PlayerHost):
    """Route host notifications into *context*."""

    def position() -> float:
        return host.get_property_number("time-pos", 0.0)

    def on_sub(secondary: bool):
        def handler(value: Any):
            if not value:
                return
            context.dispatch(ProducerEvent(
                kind=EventKind.SUBTITLE_CHANGED, text=str(value),
                position=position(), secondary=secondary,
            ))
        return handler

    def on_time_pos(value: Any):
        if value is None:
            return
        try:
            pos = float(value)
        except (TypeError, ValueError):
            return
        context.dispatch(ProducerEvent(kind=EventKind.POSITION_SAMPLED, position=pos))

    host.observe_property("sub-text", on_sub(False))
    host.observe_property("secondary-sub-text", on_sub(True))
    host.observe_property("time-pos", on_time_pos)
    host.register_event("file-loaded", lambda: context.dispatch(ProducerEvent(kind=EventKind.FILE_LOADED)))
    host.register_event("seek", lambda: context.dispatch(
        ProducerEvent(kind=EventKind.SEEK_OCCURRED, position=position())
    ))


class SubtitleMonitor:
    """Attach to a running mpv and keep the subtitle history file current."""

    def __init__(self, config: Optional[Config] = None):
        self.config = config or get_config()
        self.shutdown = Event()
        self.mpv = MPV(
            mpv_location=self.config.mpv.executable,
            start_mpv=self.config.mpv.start_mpv,
            ipc_socket=self.config.mpv.ipc_socket,
            quit_callback=self.shutdown.set,
            **self.config.mpv.start_args,
        )
        self.context = ProducerContext(self.config)
        self.context.start()
        bind(self.context, MpvHost(self.mpv))

    def block(self):
        """Block until mpv quits."""
        self.shutdown.wait()
        log.info("mpv exited, subtitle monitor stopping")
