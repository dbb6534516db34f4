"""HTTP service that loads HL7 messages named in Pub/Sub pushes into tables."""

from __future__ import annotations

import base64
import binascii
import json
from dataclasses import dataclass
from http import HTTPStatus
from typing import Any, Callable, Iterable, Optional, Protocol, Union

from hl7ingest.hl7.decode import unmarshal
from hl7ingest.messages import ADT, MDM, ORM, ORU
from hl7ingest.respond import JSONResponse, respond_json

DATASET = "methodist"

MESSAGE_TABLES: dict[str, tuple[type, str]] = {
    "ADT": (ADT, "adt_raw"),
    "ORM": (ORM, "orm_raw"),
    "ORU": (ORU, "oru_raw"),
    "MDM": (MDM, "mdm_raw"),
}


class MessageStore(Protocol):
    """Source of raw HL7 messages, addressed by resource path."""

    def get(self, path: str) -> str:
        """Return the base64-encoded raw message stored at ``path``."""
        ...


class RowInserter(Protocol):
    """Destination for decoded message rows."""

    def insert(self, dataset: str, table: str, row: Any) -> None:
        """Insert ``row`` into ``table`` of ``dataset``."""
        ...


def _lookup(obj: dict, key: str) -> Any:
    """Find ``key`` exactly, else case-insensitively; None when absent."""
    if key in obj:
        return obj[key]
    folded = key.casefold()
    for name, value in obj.items():
        if name.casefold() == folded:
            return value
    return None


def _expect(value: Any, kind: type, where: str) -> Any:
    if value is not None and not isinstance(value, kind):
        raise ValueError(
            f"cannot unmarshal {type(value).__name__} into {where} of type {kind.__name__}"
        )
    return value


@dataclass
class PubSubMessage:
    """A Pub/Sub push envelope naming one stored HL7 message."""

    data: bytes = b""
    msg_type: str = ""
    subscription: str = ""

    @classmethod
    def from_json(cls, raw: Union[bytes, str]) -> "PubSubMessage":
        """Parse the first JSON value of ``raw``; raises ValueError when malformed."""
        text = raw.decode("utf-8") if isinstance(raw, (bytes, bytearray)) else raw
        text = text.lstrip(" \t\r\n")
        if not text:
            raise ValueError("EOF")
        try:
            envelope, _ = json.JSONDecoder().raw_decode(text)
        except json.JSONDecodeError as exc:
            raise ValueError(str(exc)) from exc

        if envelope is None:
            return cls()
        _expect(envelope, dict, "PubSubMessage")

        subscription = _expect(_lookup(envelope, "subscription"), str, "subscription") or ""
        message = _expect(_lookup(envelope, "message"), dict, "message") or {}

        encoded = _expect(_lookup(message, "data"), str, "message.data") or ""
        try:
            data = base64.b64decode(encoded, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise ValueError(f"illegal base64 data in message.data: {exc}") from exc

        attributes = _expect(_lookup(message, "attributes"), dict, "message.attributes") or {}
        msg_type = _expect(_lookup(attributes, "msgType"), str, "message.attributes.msgType") or ""

        return cls(data=data, msg_type=msg_type, subscription=subscription)


def _error(code: int, message: str) -> JSONResponse:
    return respond_json(code, {"error": message})


class Hl7Service:
    """Fetches the message a push names, decodes it and stores it as a row."""

    def __init__(self, inserter: RowInserter, store: MessageStore):
        self.inserter = inserter
        self.store = store

    def handle_message(self, body: Union[bytes, str]) -> JSONResponse:
        """Handle one push request body and return the response to send."""
        try:
            push = PubSubMessage.from_json(body)
        except ValueError as exc:
            return _error(HTTPStatus.BAD_REQUEST, f"json.Decoder.Decode: {exc}")

        hl7_path = push.data.decode("utf-8", errors="replace")
        try:
            encoded = self.store.get(hl7_path)
        except Exception as exc:  # any store failure becomes a 500
            return _error(HTTPStatus.INTERNAL_SERVER_ERROR, f"messages.Get: {exc}")
        try:
            hl7_msg = base64.b64decode(encoded, validate=True)
        except (binascii.Error, ValueError, TypeError) as exc:
            return _error(HTTPStatus.INTERNAL_SERVER_ERROR, f"base64.DecodeString: {exc}")

        msg_type = push.msg_type
        target = MESSAGE_TABLES.get(msg_type)
        if target is None:
            return _error(HTTPStatus.BAD_REQUEST, f"unsupported message type: {msg_type}")
        cls, table = target

        try:
            row = unmarshal(hl7_msg, cls)
        except (ValueError, TypeError) as exc:
            return _error(HTTPStatus.INTERNAL_SERVER_ERROR, f"couldn't parse {msg_type}: {exc}")
        row.msg_path = hl7_path

        try:
            self.inserter.insert(DATASET, table, row)
        except Exception as exc:  # any insert failure becomes a 500
            return _error(
                HTTPStatus.INTERNAL_SERVER_ERROR,
                f"client.Inserter.Put({msg_type}): {exc}",
            )

        return respond_json(HTTPStatus.CREATED, {"success": f"inserted a new {msg_type}"})

    def __call__(
        self,
        environ: dict,
        start_response: Callable[[str, list[tuple[str, str]]], Any],
    ) -> Iterable[bytes]:
        """WSGI entry point: POST to any path handles a push."""
        if environ.get("REQUEST_METHOD", "GET").upper() != "POST":
            body = b"Method Not Allowed\n"
            response = JSONResponse(
                status=HTTPStatus.METHOD_NOT_ALLOWED,
                headers={
                    "Allow": "POST",
                    "Content-Type": "text/plain; charset=utf-8",
                    "X-Content-Type-Options": "nosniff",
                    "Content-Length": str(len(body)),
                },
                body=body,
            )
        else:
            response = self.handle_message(_read_body(environ))
        start_response(response.status_line, list(response.headers.items()))
        return [response.body]


def _read_body(environ: dict) -> bytes:
    length_text: Optional[str] = environ.get("CONTENT_LENGTH")
    try:
        length = int(length_text) if length_text else 0
    except ValueError:
        length = 0
    stream = environ.get("wsgi.input")
    if stream is None or length <= 0:
        return b""
    return stream.read(length)