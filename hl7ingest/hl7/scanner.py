"""Segment scanner for delimited HL7 v2 messages."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Union

Delimiter = Union[int, bytes, bytearray, str]


class HL7Error(ValueError):
    """Raised when an HL7 message cannot be scanned or decoded."""


@dataclass(frozen=True)
class FieldPos:
    """Byte offsets of one field within the raw message."""

    start: int
    end: int


@dataclass
class Segment:
    """A named segment and the positions of its fields in the raw message."""

    name: str
    fields: list[FieldPos] = field(default_factory=list)
    end_idx: int = 0

    def get_field(self, data: bytes, idx: int) -> str:
        """Return the 1-based field ``idx`` as text, or "" when it is absent."""
        if not 1 <= idx <= len(self.fields):
            return ""
        pos = self.fields[idx - 1]
        return data[pos.start:pos.end].decode("utf-8", errors="replace")


def _delimiter(value: Delimiter) -> bytes:
    if isinstance(value, int):
        return bytes([value])
    if isinstance(value, str):
        value = value.encode("utf-8")
    result = bytes(value)
    if len(result) != 1:
        raise ValueError(f"delimiter must be a single byte, got {value!r}")
    return result


def fast_scan(data: bytes, seg_delim: Delimiter, fld_delim: Delimiter) -> list[Segment]:
    """Split ``data`` into segments, recording where each field lies."""
    data = bytes(data)
    seg_sep = _delimiter(seg_delim)
    fld_sep = _delimiter(fld_delim)

    segments: list[Segment] = []
    pos = 0
    while pos < len(data):
        end = data.find(seg_sep, pos)
        if end == -1:
            end = len(data)
        name, *raw_fields = data[pos:end].split(fld_sep)
        if len(name) != 3:
            raise HL7Error(f"invalid segment: {name.decode('utf-8', errors='replace')}")

        segment = Segment(name=name.decode("utf-8", errors="replace"), end_idx=end)
        offset = pos + len(name) + 1
        for raw in raw_fields:
            segment.fields.append(FieldPos(offset, offset + len(raw)))
            offset += len(raw) + 1
        segments.append(segment)
        pos = end + 1
    return segments


def get_segments(segments: list[Segment], name: str) -> list[Segment]:
    """Return the segments called ``name``, in message order."""
    return [segment for segment in segments if segment.name == name]