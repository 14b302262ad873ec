"""Terminal rendering of the subtitle history, newest at the bottom."""
import sys
import threading
from threading import Event
from typing import Optional

import click

from .entry import SubtitleEntry
from .viewstate import ViewState

TITLE = "MPV Subtitle History"


def format_entry(entry: SubtitleEntry) -> str:
    return f"[{entry.start_time:.1f}s] {entry.text}"


def render(view: ViewState) -> str:
    lines = [click.style(TITLE, bold=True), ""]
    entries = view.visible()
    if not view.present:
        lines.append(click.style("No subtitle data (maybe mpv isn't running?)", fg="yellow"))
        lines.append("")
    if entries:
        lines.extend(format_entry(e) for e in entries)
    elif view.present:
        lines.append("No subtitles yet...")
    else:
        lines.append("Start mpv to see subtitles here.")
    lines.append("")
    lines.append(click.style(f"Showing last {view.display_count}  (+/- to change, q to quit)", dim=True))
    return "\n".join(lines)


def handle_key(view: ViewState, key: str) -> bool:
    """Apply a keypress; returns False when the viewer should quit."""
    if key in ("+", "="):
        view.display_count += 1
    elif key in ("-", "_"):
        view.display_count -= 1
    elif key in ("q", "Q", "\x03"):
        return False
    return True


def _read_keys(view: ViewState, stop: Event):
    while not stop.is_set():
        try:
            key = click.getchar()
        except (EOFError, KeyboardInterrupt, OSError):
            break
        if not handle_key(view, key):
            break
    stop.set()


def run(view: ViewState, refresh: float = 0.1, stop: Optional[Event] = None, keys: bool = True):
    """Redraw whenever the view or the display count changes until *stop* is set or Ctrl-C."""
    stop = stop or Event()
    if keys and sys.stdin.isatty():
        threading.Thread(target=_read_keys, args=(view, stop), daemon=True, name="keys").start()
    shown = None
    while not stop.is_set():
        state = (view.version, view.display_count)
        if state != shown:
            shown = state
            click.clear()
            click.echo(render(view))
        stop.wait(refresh)
