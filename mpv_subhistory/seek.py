"""Seek detection over playback-position samples.

Normal playback moves ``time-pos`` forward in small steps; a jump larger than
``threshold`` seconds means the user scrubbed the timeline and the captured
history no longer describes what is on screen.
"""
import logging
import math
from typing import Optional

log = logging.getLogger("seek")


class SeekDetector:
    def __init__(self, threshold: float = 5.0):
        self.threshold = threshold
        self.last_position: float = 0.0

    def sample(self, position: Optional[float]) -> bool:
        """Feed a ``time-pos`` sample; return True when it looks like a seek.

        ``last_position == 0`` means no sample has been seen since start or the
        last file load, so the first sample never counts as a jump.
        """
        if position is None or not math.isfinite(position):
            return False
        if abs(position - self.last_position) > self.threshold and self.last_position > 0:
            return self.seek(position)
        self.last_position = position
        return False

    def seek(self, position: Optional[float]) -> bool:
        """Handle an explicit seek notification at *position*."""
        if position is None or not math.isfinite(position):
            return False
        jumped = abs(position - self.last_position) > self.threshold
        if jumped:
            log.debug("seek %.2fs → %.2fs", self.last_position, position)
        self.last_position = position
        return jumped

    def reset(self):
        self.last_position = 0.0
