"""
Tests for configuration loading.
"""

import pathlib

import pytest

from mpv_subhistory.config import Config, expand_path, get_config_paths, load_config_paths


class TestLoadConfig:
    def test_defaults(self):
        cfg = Config()
        assert cfg.history.max_entries == 50
        assert cfg.history.seek_threshold == 5.0
        assert cfg.history.output_file.name == "mpv-subtitles.json"
        assert cfg.viewer.display_count == 10

    def test_first_existing_file_wins(self, tmp_path):
        first = tmp_path / "first.toml"
        second = tmp_path / "second.toml"
        first.write_text("[history]\nmax_entries = 7\n", encoding="utf8")
        second.write_text("[history]\nmax_entries = 9\n", encoding="utf8")
        cfg = load_config_paths(tmp_path / "missing.toml", first, second)
        assert cfg.history.max_entries == 7

    def test_output_file_expanded(self, tmp_path, monkeypatch):
        monkeypatch.setenv("SUBS_DIR", str(tmp_path))
        path = tmp_path / "c.toml"
        path.write_text('[history]\noutput_file = "$SUBS_DIR/subs.json"\n', encoding="utf8")
        cfg = load_config_paths(path)
        assert cfg.history.output_file == tmp_path / "subs.json"
        assert isinstance(cfg.history.output_file, pathlib.Path)

    def test_unknown_keys_rejected(self, tmp_path):
        path = tmp_path / "c.toml"
        path.write_text("[history]\nmax_entrys = 7\n", encoding="utf8")
        with pytest.raises(Exception):
            load_config_paths(path)

    def test_no_config_file(self, tmp_path):
        with pytest.raises(RuntimeError):
            load_config_paths(tmp_path / "nope.toml")

    def test_bundled_config_loads(self):
        bundled = get_config_paths()[-1]
        assert bundled.exists()
        cfg = load_config_paths(bundled)
        assert cfg.history.secondary_prefix == "[Secondary] "
        assert cfg.mpv.ipc_socket == "mpvsocket"

    def test_expand_user(self):
        assert "~" not in str(expand_path("~/x"))
