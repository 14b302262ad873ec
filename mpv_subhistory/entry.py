"""Subtitle history entries and the JSON interchange codec.

On disk the history is a single JSON array, oldest first::

    [{"text": "hello", "start_time": 1.0, "end_time": null, "timestamp": 1000}]

``timestamp`` is the wall-clock capture time in unix seconds; in Python it is
exposed as :attr:`SubtitleEntry.captured_at`.
"""
import json
import math
import time
from typing import Any, Iterable, Optional

import cattrs
from attr import dataclass, field
from attr.validators import instance_of, optional
from cattrs.gen import make_dict_structure_fn, make_dict_unstructure_fn, override


def _non_empty(_inst: Any, attribute: Any, value: str):
    if not value:
        raise ValueError(f"{attribute.name} must not be empty")


def _not_bool(_inst: Any, attribute: Any, value: int):
    if isinstance(value, bool):
        raise TypeError(f"{attribute.name} must be an integer, got {value!r}")


def _non_negative(_inst: Any, attribute: Any, value: float):
    if not math.isfinite(value) or value < 0:
        raise ValueError(f"{attribute.name} must be a finite number >= 0, got {value!r}")


@dataclass(frozen=True, kw_only=True)
class SubtitleEntry:
    text: str = field(validator=[instance_of(str), _non_empty])
    start_time: float = field(converter=float, validator=_non_negative)
    end_time: Optional[float] = field(
        default=None,
        converter=lambda v: None if v is None else float(v),
        validator=optional(instance_of(float)),
    )
    captured_at: int = field(validator=[instance_of(int), _not_bool])

    @classmethod
    def capture(cls, text: str, position: Optional[float]) -> "SubtitleEntry":
        """Stamp *text* seen at playback *position* with the current time."""
        if position is None or not math.isfinite(position) or position < 0:
            position = 0.0
        return cls(text=text, start_time=position, captured_at=int(time.time()))


def _make_converter() -> cattrs.Converter:
    conv = cattrs.Converter()
    # Primitive hooks must be in place before the entry hooks are generated.
    conv.register_structure_hook(str, _structure_str)
    conv.register_structure_hook(float, _structure_float)
    conv.register_structure_hook(int, _structure_int)
    conv.register_unstructure_hook(
        SubtitleEntry,
        make_dict_unstructure_fn(
            SubtitleEntry, conv, captured_at=override(rename="timestamp"),
        ),
    )
    conv.register_structure_hook(
        SubtitleEntry,
        make_dict_structure_fn(
            SubtitleEntry, conv, captured_at=override(rename="timestamp"),
        ),
    )
    return conv


def _structure_str(value: Any, _type: Any) -> str:
    if not isinstance(value, str):
        raise TypeError(f"expected a string, got {value!r}")
    return value


def _structure_float(value: Any, _type: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeError(f"expected a number, got {value!r}")
    return float(value)


def _structure_int(value: Any, _type: Any) -> int:
    # JSON numbers may arrive as float (e.g. 1000.0) for an integer timestamp.
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeError(f"expected an integer, got {value!r}")
    if isinstance(value, float) and not value.is_integer():
        raise ValueError(f"expected an integer, got {value!r}")
    return int(value)


converter = _make_converter()


def dumps(entries: Iterable[SubtitleEntry]) -> str:
    return json.dumps(converter.unstructure(list(entries), list[SubtitleEntry]), ensure_ascii=False)


def loads(payload: str) -> list[SubtitleEntry]:
    """Decode a snapshot payload.

    Raises ``ValueError`` for invalid JSON or an unexpected top-level value and
    a ``cattrs`` validation error for malformed items.  An empty JSON object is
    accepted as an empty history: mpv's ``utils.format_json`` encodes an empty
    Lua table that way.
    """
    raw = json.loads(payload)
    if raw == {}:
        return []
    if not isinstance(raw, list):
        raise ValueError(f"expected a JSON array, got {type(raw).__name__}")
    return converter.structure(raw, list[SubtitleEntry])
