"""Replacement of HL7 escape sequences in field text."""

from __future__ import annotations

import re

# Escape codes, without their surrounding backslashes, and what they stand for.
_CODES: dict[str, str] = dict(
    F="|",
    R="~",
    S="^",
    T="&",
    E="\\",
    X0A="\n",
    X0D="\r",
)
_CODES[".br"] = "\r"

_SEQUENCE = re.compile(r"\\([^\\]*)\\")


def _substitute(match: re.Match[str]) -> str:
    return _CODES.get(match.group(1), match.group(0))


def replace_escapes(s: str) -> str:
    """Replace known escape sequences; unknown ones are left as they are."""
    return _SEQUENCE.sub(_substitute, s)