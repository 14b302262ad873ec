"""
Tests for snapshot writing and reading.
"""

import json
import os
import stat

import pytest

from mpv_subhistory.snapshot import (
    SNAPSHOT_MODE, MissingSnapshot, ParseFailure, SnapshotReader, SnapshotWriter, WriteFailure,
)
from conftest import make_entry


@pytest.fixture
def writer(snapshot_path):
    return SnapshotWriter(snapshot_path)


@pytest.fixture
def reader(snapshot_path):
    return SnapshotReader(snapshot_path)


class TestWriter:
    def test_round_trip(self, writer, reader):
        entries = [make_entry("hello", 1.0, 1000)]
        writer.write(entries)
        assert reader.read() == entries

    def test_full_replacement(self, writer, reader):
        writer.write([make_entry("a"), make_entry("b")])
        writer.write([make_entry("c")])
        assert [e.text for e in reader.read()] == ["c"]

    def test_empty_payload(self, writer, snapshot_path):
        writer.write([])
        assert json.loads(snapshot_path.read_text(encoding="utf8")) == []

    def test_no_temp_files_left(self, writer, snapshot_path):
        for i in range(3):
            writer.write([make_entry(f"line {i}")])
        assert os.listdir(snapshot_path.parent) == [snapshot_path.name]

    def test_creates_parent_directory(self, tmp_path):
        path = tmp_path / "nested" / "subs.json"
        SnapshotWriter(path).write([])
        assert path.exists()

    def test_failure_keeps_previous_snapshot(self, writer, reader, monkeypatch):
        writer.write([make_entry("kept")])

        def boom(*_args):
            raise PermissionError("denied")

        monkeypatch.setattr("mpv_subhistory.snapshot.os.replace", boom)
        with pytest.raises(WriteFailure):
            writer.write([make_entry("lost")])
        monkeypatch.undo()
        assert [e.text for e in reader.read()] == ["kept"]
        assert len(os.listdir(writer.path.parent)) == 1

    @pytest.mark.skipif(os.name != "posix", reason="POSIX permissions")
    def test_snapshot_uses_umask_mode(self, writer, snapshot_path):
        writer.write([make_entry("a")])
        umask = os.umask(0)
        os.umask(umask)
        assert SNAPSHOT_MODE == 0o666 & ~umask
        assert stat.S_IMODE(os.stat(snapshot_path).st_mode) == SNAPSHOT_MODE

    def test_unwritable_directory(self, tmp_path):
        blocker = tmp_path / "file"
        blocker.write_text("x")
        with pytest.raises(WriteFailure):
            SnapshotWriter(blocker / "subs.json").write([])


class TestReader:
    def test_missing_file(self, reader):
        with pytest.raises(MissingSnapshot):
            reader.read()

    @pytest.mark.parametrize("payload", [
        "",
        '[{"text": "hel',
        "not json",
        '{"text": "a"}',
        '[{"text": 1, "start_time": 1.0, "timestamp": 1}]',
    ])
    def test_malformed(self, reader, snapshot_path, payload):
        snapshot_path.write_text(payload, encoding="utf8")
        with pytest.raises(ParseFailure):
            reader.read()

    def test_invalid_utf8(self, reader, snapshot_path):
        snapshot_path.write_bytes(b"[\xff\xfe]")
        with pytest.raises(ParseFailure):
            reader.read()

    def test_deeply_nested_payload(self, reader, snapshot_path):
        snapshot_path.write_text("[" * 200000 + "]" * 200000, encoding="utf8")
        with pytest.raises(ParseFailure):
            reader.read()

    def test_lua_style_empty_table(self, reader, snapshot_path):
        snapshot_path.write_text("{}", encoding="utf8")
        assert reader.read() == []
