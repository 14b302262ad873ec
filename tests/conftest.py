import pytest

from mpv_subhistory.config import Config, HistoryConfig
from mpv_subhistory.entry import SubtitleEntry


def make_entry(text: str = "hello", start_time: float = 1.0, captured_at: int = 1000, end_time=None):
    return SubtitleEntry(text=text, start_time=start_time, end_time=end_time, captured_at=captured_at)


@pytest.fixture
def snapshot_path(tmp_path):
    return tmp_path / "mpv-subtitles.json"


@pytest.fixture
def config(snapshot_path):
    return Config(history=HistoryConfig(output_file=snapshot_path, max_entries=5))
