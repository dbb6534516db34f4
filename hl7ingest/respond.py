"""JSON responses for the HTTP handlers."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from http import HTTPStatus
from typing import Mapping, Optional

_HTML_ESCAPES = {
    "<": "\\u003c",
    ">": "\\u003e",
    "&": "\\u0026",
    "\u2028": "\\u2028",
    "\u2029": "\\u2029",
}


@dataclass
class JSONResponse:
    """Status, headers and body ready to be written to the client."""

    status: int
    headers: dict[str, str] = field(default_factory=dict)
    body: bytes = b""

    @property
    def status_line(self) -> str:
        """Status as a WSGI status line, e.g. "201 Created"."""
        try:
            phrase = HTTPStatus(self.status).phrase
        except ValueError:
            phrase = ""
        return f"{self.status} {phrase}".rstrip()


def _encode(body: Mapping[str, str]) -> bytes:
    for key, value in body.items():
        if not isinstance(key, str) or not isinstance(value, str):
            raise TypeError(f"unsupported value in body: {key!r}: {value!r}")
    text = json.dumps(dict(body), sort_keys=True, separators=(",", ":"), ensure_ascii=False)
    for char, escape in _HTML_ESCAPES.items():
        text = text.replace(char, escape)
    return text.encode("utf-8")


def _error(message: str, code: int) -> JSONResponse:
    return JSONResponse(
        status=code,
        headers={
            "Content-Type": "text/plain; charset=utf-8",
            "X-Content-Type-Options": "nosniff",
        },
        body=(message + "\n").encode("utf-8"),
    )


def respond_json(code: int, body: Optional[Mapping[str, str]]) -> JSONResponse:
    """Build a JSON response with ``code`` carrying ``body``.

    With no body nothing is written, which the server sends as an empty 200.
    """
    if body is None:
        return JSONResponse(status=HTTPStatus.OK)
    try:
        payload = _encode(body)
    except (TypeError, ValueError) as exc:
        return _error(f"json.Marshal: {exc}", HTTPStatus.INTERNAL_SERVER_ERROR)
    return JSONResponse(
        status=code,
        headers={
            "Content-Type": "application/json",
            "Content-Length": str(len(payload)),
        },
        body=payload,
    )