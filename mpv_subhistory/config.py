import logging
import os.path
import pathlib
import tempfile
import tomllib
from functools import cache
from typing import Any, Optional

import cattrs
from attr import dataclass, field


def expand_path(path: str) -> pathlib.Path:
    return pathlib.Path(os.path.expandvars(os.path.expanduser(path)))


def _default_output_file() -> pathlib.Path:
    return pathlib.Path(tempfile.gettempdir()) / "mpv-subtitles.json"


@dataclass(kw_only=True)
class HistoryConfig:
    # Interchange file shared by the monitor and the viewer
    output_file: pathlib.Path = field(factory=_default_output_file, converter=expand_path)
    # Keep only the last N subtitles
    max_entries: int = 50
    # Clear the history when playback jumps by more than this many seconds
    seek_threshold: float = 5.0
    # Prepended to text captured from the secondary subtitle track
    secondary_prefix: str = "[Secondary] "


@dataclass(kw_only=True)
class MpvConfig:
    executable: Optional[str] = None
    start_mpv: bool = False
    start_args: dict[str, Any] = field(factory=dict)
    ipc_socket: Optional[str] = "mpvsocket"


@dataclass(kw_only=True)
class ViewerConfig:
    # How many of the most recent subtitles to show
    display_count: int = 10
    # Bursts of file notifications within this window collapse into one re-read (seconds)
    debounce: float = 0.05
    # How often the interchange file is checked for changes (seconds)
    poll_interval: float = 0.1
    # How often the terminal view is redrawn (seconds)
    refresh_interval: float = 0.1


@dataclass(kw_only=True)
class Config:
    history: HistoryConfig = field(factory=HistoryConfig)
    mpv: MpvConfig = field(factory=MpvConfig)
    viewer: ViewerConfig = field(factory=ViewerConfig)


def _converter() -> cattrs.GenConverter:
    conv = cattrs.GenConverter(forbid_extra_keys=True)
    conv.register_structure_hook(pathlib.Path, lambda v, _: expand_path(v))
    return conv


def load_config_paths(*paths: pathlib.Path) -> Config:
    for p in paths:
        if not p.exists():
            continue
        logging.getLogger("config").info("using configuration from %s", p)
        raw: Any = tomllib.loads(p.read_text(encoding="utf8"))
        return _converter().structure(raw, Config)
    raise RuntimeError("could not find configuration file")


def get_config_paths() -> list[pathlib.Path]:
    return [
        expand_path(".") / "mpv-subhistory.toml",
        expand_path("~/.config/mpv-subhistory") / "config.toml",
        expand_path(__file__).parent / "config.toml",
    ]


@cache
def get_config() -> Config:
    return load_config_paths(*get_config_paths())
