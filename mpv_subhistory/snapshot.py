"""
Snapshot file shared between the monitor and the viewer.

The file always holds the complete history as one JSON array; every write
replaces it wholesale.  Writes go to a temporary file in the same directory
which is then renamed over the target, so a reader opening the path sees
either the previous complete snapshot or the new one, never a torn file.
"""
import logging
import os
import pathlib
import tempfile
from typing import Iterable

import cattrs

from .entry import SubtitleEntry, dumps, loads

log = logging.getLogger("snapshot")


# mkstemp creates files 0600; published snapshots get the usual umask-derived mode.
_UMASK = os.umask(0)
os.umask(_UMASK)
SNAPSHOT_MODE = 0o666 & ~_UMASK


class SnapshotError(Exception):
    """Base class for snapshot I/O problems.  None of them is fatal."""


class WriteFailure(SnapshotError):
    """The snapshot could not be written; the previous file is untouched."""


class ParseFailure(SnapshotError):
    """The snapshot exists but could not be decoded."""


class MissingSnapshot(SnapshotError):
    """No snapshot file exists (the monitor has not run yet or it was removed)."""


class SnapshotWriter:
    def __init__(self, path: pathlib.Path):
        self.path = pathlib.Path(path)

    def write(self, entries: Iterable[SubtitleEntry]):
        payload = dumps(entries)
        tmp = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp = tempfile.mkstemp(
                dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp",
            )
            with os.fdopen(fd, "w", encoding="utf8") as f:
                f.write(payload)
                f.flush()
                os.fsync(f.fileno())
            os.chmod(tmp, SNAPSHOT_MODE)
            os.replace(tmp, self.path)
            tmp = None
        except OSError as e:
            raise WriteFailure(f"failed to write subtitle file {self.path}: {e}") from e
        finally:
            if tmp is not None:
                try:
                    os.unlink(tmp)
                except OSError:
                    log.debug("could not remove temp file %s", tmp, exc_info=True)


class SnapshotReader:
    def __init__(self, path: pathlib.Path):
        self.path = pathlib.Path(path)

    def read(self) -> list[SubtitleEntry]:
        try:
            payload = self.path.read_text(encoding="utf8")
        except FileNotFoundError as e:
            raise MissingSnapshot(f"no subtitle file at {self.path}") from e
        except UnicodeDecodeError as e:
            raise ParseFailure(f"{self.path} is not valid UTF-8: {e}") from e
        except OSError as e:
            raise ParseFailure(f"could not read {self.path}: {e}") from e
        try:
            return loads(payload)
        except (ValueError, TypeError, KeyError, RecursionError, cattrs.BaseValidationError) as e:
            raise ParseFailure(f"malformed subtitle file {self.path}: {e}") from e
