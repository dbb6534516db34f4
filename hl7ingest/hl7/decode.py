"""Decoding of HL7 v2 messages into tagged dataclasses."""

from __future__ import annotations

import dataclasses
import functools
import inspect
import itertools
import re
import typing
from typing import Any, Callable, TypeVar, Union

from hl7ingest.hl7.escape import replace_escapes
from hl7ingest.hl7.scanner import HL7Error, Segment, fast_scan, get_segments

T = TypeVar("T")

MESSAGE_HEADER = "MSH"
DEFAULT_SEG_DELIM = b"\r"
_TAG_KEY = "hl7"

_LIST_ANNOTATION = re.compile(r"^(?:typing\.)?(?:list|List)\[(.+)\]$")


def hl7_field(tag: str, *, default_factory: Callable[[], Any] = str) -> Any:
    """Declare a dataclass field filled from ``tag``.

    Top-level tags name a segment and field ("PID.3"); component tags are a
    1-based component number ("2").
    """
    return dataclasses.field(default_factory=default_factory, metadata={_TAG_KEY: tag})


def _lookup(cls: type, name: str) -> Any:
    module = inspect.getmodule(cls)
    namespace: dict[str, Any] = dict(vars(module)) if module is not None else {}
    head, *rest = name.split(".")
    if head == cls.__name__:
        obj: Any = cls
    elif head in namespace:
        obj = namespace[head]
    else:
        raise TypeError(f"cannot resolve field type {name!r} of {cls.__name__}")
    for part in rest:
        try:
            obj = getattr(obj, part)
        except AttributeError as exc:
            raise TypeError(f"cannot resolve field type {name!r} of {cls.__name__}") from exc
    return obj


def _resolve(cls: type, annotation: Any) -> Any:
    if not isinstance(annotation, str):
        return annotation
    text = annotation.strip()
    if text == "str":
        return str
    match = _LIST_ANNOTATION.match(text)
    if match:
        return list[_resolve(cls, match.group(1))]  # type: ignore[misc]
    return _lookup(cls, text)


@functools.lru_cache(maxsize=None)
def _type_hints(cls: type) -> dict[str, Any]:
    return {f.name: _resolve(cls, f.type) for f in dataclasses.fields(cls)}


def _require_dataclass(cls: Any) -> None:
    if not (isinstance(cls, type) and dataclasses.is_dataclass(cls)):
        raise TypeError(f"hl7: decode requires a dataclass type, got {cls!r}")


def _parse_tag(tag: str) -> tuple[str, int]:
    parts = tag.split(".")
    if len(parts) != 2:
        raise HL7Error(f"invalid tag: {tag}")
    seg_name, index = parts
    try:
        return seg_name, int(index)
    except ValueError as exc:
        raise HL7Error(f"invalid field index in tag: {tag}") from exc


def _zero(tp: Any) -> Any:
    if tp is str:
        return ""
    if typing.get_origin(tp) is list:
        return []
    if isinstance(tp, type) and dataclasses.is_dataclass(tp):
        return tp()
    raise TypeError(f"unsupported field type: {tp!r}")


def _split_components(raw: str) -> list[str]:
    if "^" in raw:
        return raw.split("^")
    if "&" in raw:
        return raw.split("&")
    return [raw]


def _convert(tp: Any, raw: str) -> Any:
    """Convert non-empty field text to a value of type ``tp``."""
    if tp is str:
        return replace_escapes(raw)
    if typing.get_origin(tp) is list:
        args = typing.get_args(tp)
        if len(args) != 1:
            raise TypeError(f"unsupported field type: {tp!r}")
        (elem_tp,) = args
        return [_convert(elem_tp, rep) if rep else _zero(elem_tp) for rep in raw.split("~")]
    if isinstance(tp, type) and dataclasses.is_dataclass(tp):
        return _convert_composite(tp, raw)
    raise TypeError(f"unsupported field type: {tp!r}")


def _convert_composite(cls: type, raw: str) -> Any:
    comps = _split_components(raw)
    hints = _type_hints(cls)
    values: dict[str, Any] = {}
    for f in dataclasses.fields(cls):
        tag = f.metadata.get(_TAG_KEY)
        if not tag:
            continue
        try:
            idx = int(tag)
        except ValueError:
            continue
        if not 1 <= idx <= len(comps):
            continue
        comp = comps[idx - 1]
        if comp:
            values[f.name] = _convert(hints[f.name], comp)
    return cls(**values)


class Decoder:
    """Decodes one raw HL7 message into dataclasses."""

    def __init__(self, data: Union[bytes, bytearray, str], seg_delim: bytes = DEFAULT_SEG_DELIM):
        if isinstance(data, str):
            data = data.encode("utf-8")
        data = bytes(data)
        if len(data) < 8:
            raise HL7Error(f"message is too short (length: {len(data)})")
        self._data = data
        self._segments: list[Segment] = fast_scan(data, seg_delim, data[3])

    def decode(self, cls: type[T]) -> T:
        """Fill ``cls`` from the first occurrence of each tagged segment."""
        _require_dataclass(cls)
        return self._decode_struct(cls, 0)

    def decode_all(self, cls: type[T]) -> list[T]:
        """Fill one ``cls`` per segment repeat until a repeat yields nothing."""
        _require_dataclass(cls)
        empty = dataclasses.astuple(cls())
        results: list[T] = []
        for rep in itertools.count():
            item = self._decode_struct(cls, rep)
            if dataclasses.astuple(item) == empty:
                return results
            results.append(item)
        return results

    def _decode_struct(self, cls: type[T], rep: int) -> T:
        hints = _type_hints(cls)
        values: dict[str, Any] = {}
        for f in dataclasses.fields(cls):
            tag = f.metadata.get(_TAG_KEY)
            if not tag or tag == "-":
                continue
            seg_name, idx = _parse_tag(tag)
            raw = self._field_value(seg_name, idx, rep)
            if raw:
                values[f.name] = _convert(hints[f.name], raw)
        return cls(**values)

    def _field_value(self, seg_name: str, idx: int, rep: int) -> str:
        if seg_name == MESSAGE_HEADER:
            if idx == 1:
                return chr(self._data[3])
            idx -= 1
        matches = get_segments(self._segments, seg_name)
        if rep >= len(matches):
            return ""
        return matches[rep].get_field(self._data, idx)


def unmarshal(data: Union[bytes, bytearray, str], cls: type[T]) -> T:
    """Decode ``data`` into a single ``cls``."""
    return Decoder(data).decode(cls)


def unmarshal_all(data: Union[bytes, bytearray, str], cls: type[T]) -> list[T]:
    """Decode ``data`` into one ``cls`` per segment repeat."""
    return Decoder(data).decode_all(cls)