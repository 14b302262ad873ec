import logging
import time
from typing import Optional

import click
from python_mpv_jsonipc import MPVError

from .config import expand_path, get_config
from .producer import SubtitleMonitor
from .viewer import run
from .viewstate import ViewState
from .watcher import ChangeWatcher


def _setup_logging(loglevel: str):
    logging.basicConfig(
        level=loglevel,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@click.command()
@click.option("--loglevel", default="INFO", show_default=True)
def cli(loglevel: str):
    """
    mpv-subhistory monitor: record recent subtitles from a running MPV.

    Attaches to MPV via the IPC socket configured in mpv.conf / config.toml
    and keeps the subtitle history file up to date until MPV quits.
    """
    _setup_logging(loglevel)

    # Retry connection — MPV's IPC pipe may not be ready yet.
    log = logging.getLogger("cli")
    timeout, interval = 30.0, 0.5
    deadline = time.monotonic() + timeout
    while True:
        try:
            monitor = SubtitleMonitor()
            break
        except MPVError:
            if time.monotonic() >= deadline:
                raise click.ClickException(
                    f"Could not connect to MPV IPC pipe within {timeout:.0f}s. "
                    "Is MPV running with input-ipc-server enabled?"
                )
            log.debug("MPV IPC pipe not ready, retrying…")
            time.sleep(interval)

    monitor.block()


@click.command()
@click.option("--path", default=None, help="Subtitle history file (default from config).")
@click.option("--count", type=click.IntRange(1, 50), default=None, help="How many subtitles to show.")
@click.option("--loglevel", default="WARNING", show_default=True)
def view(path: Optional[str], count: Optional[int], loglevel: str):
    """Show the subtitle history recorded by the monitor, updating live."""
    _setup_logging(loglevel)
    cfg = get_config()

    state = ViewState(count if count is not None else cfg.viewer.display_count)
    watcher = ChangeWatcher(
        expand_path(path) if path else cfg.history.output_file,
        state,
        debounce=cfg.viewer.debounce,
        poll_interval=cfg.viewer.poll_interval,
    )
    watcher.start()
    try:
        run(state, refresh=cfg.viewer.refresh_interval)
    except KeyboardInterrupt:
        pass
    finally:
        watcher.stop()
