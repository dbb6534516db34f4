# hl7ingest

Tools for HL7 v2 messages:

- a segment scanner and a decoder that fills dataclasses from `SEG.N` field
  tags (`hl7ingest.hl7.scanner`, `hl7ingest.hl7.decode`);
- HL7 escape-sequence replacement (`hl7ingest.hl7.escape`);
- AES-GCM helpers for protecting individual text values (`hl7ingest.crypto`);
- record types for ADT, ORM, ORU and MDM messages (`hl7ingest.messages`);
- a WSGI application that receives Pub/Sub push notifications, fetches the
  raw HL7 message they name, decodes it and hands it on as a row
  (`hl7ingest.service`, with responses built by `hl7ingest.respond`).

Install with the test extra to run the tests:

```
pip install -e ".[test]"
pytest
```

## Decoding messages

Declare a dataclass and tag each field with `hl7_field`, giving the segment
and field number it comes from. A field whose type is itself a dataclass is
split into components on `^` (or on `&` when there is no `^`); that
dataclass's fields are tagged with component numbers, starting at 1. A field
typed `list[...]` is split into repetitions on `~`. String values have HL7
escape sequences replaced. Fields that are absent or empty in the message
keep their defaults.

```python
from dataclasses import dataclass

from hl7ingest.hl7.decode import hl7_field, unmarshal, unmarshal_all


@dataclass
class Coded:
    code: str = hl7_field("1")
    description: str = hl7_field("2")


@dataclass
class Name:
    last: str = hl7_field("1")
    first: str = hl7_field("2")


@dataclass
class Patient:
    mrn: Coded = hl7_field("PID.3", default_factory=Coded)
    names: list[Name] = hl7_field("PID.5", default_factory=list)
    dob: str = hl7_field("PID.7")


raw = (
    b"MSH|^~\\&|LabSystem|Hospital|OrderingSystem|Clinic|202501140830||ORU^R01|MSG00002|P|2.3\r"
    b"PID|1||123456^^^Hospital^MR||Doe^John^A~Doe^Johnny^B||19800101|M"
)

patient = unmarshal(raw, Patient)
print(patient.dob)       # 19800101
print(patient.names[1])  # Name(last='Doe', first='Johnny')
```

`MSH.1` is the field separator itself and `MSH.2` is the encoding characters,
as the HL7 standard numbers them. The field separator is taken from the
fourth byte of the message; segments are separated by `\r`.

When a message repeats a group of segments, such as several `ORC`/`OBR`
pairs, `unmarshal_all` returns one record per repetition: the first record
reads the first `ORC` and first `OBR`, the second record the second of each,
and so on. It stops at the first repetition that leaves the record equal to
its defaults.

```python
@dataclass
class Order:
    control: str = hl7_field("ORC.1")
    placer_number: str = hl7_field("ORC.2")
    priority: str = hl7_field("OBR.5")

orders = unmarshal_all(message_bytes, Order)
```

A `Decoder` is built once from the raw message (bytes or text) and can fill
several record types through `Decoder.decode(cls)` and
`Decoder.decode_all(cls)`.

Errors:

- `HL7Error` (a `ValueError`, defined in `hl7ingest.hl7.scanner`) for a
  message shorter than 8 bytes, a segment whose name is not three
  characters, or a top-level tag that is not of the form `SEG.N`;
- `TypeError` when the target is not a dataclass type or a field has a type
  other than `str`, `list[...]` or a dataclass.

`hl7ingest.hl7.escape.replace_escapes(s)` replaces `\F\`, `\R\`, `\S\`,
`\T\`, `\E\`, `\.br\`, `\X0A\` and `\X0D\` on its own. An unrecognised
sequence is left as it is.

### Lower-level scanning

`fast_scan(data, seg_delim, fld_delim)` splits a message into `Segment`
objects; the delimiters may be given as a byte value, a one-byte `bytes` or a
one-character string. Each `Segment` has a `name`, a list of `FieldPos`
byte offsets and an `end_idx`. `Segment.get_field(data, idx)` returns field
`idx`, counted from 1, or an empty string when the field is absent.
`get_segments(segments, name)` returns every segment with a given name, in
message order.

## Message record types

`hl7ingest.messages` defines the `ADT`, `ORM`, `ORU` and `MDM` records,
built from the data types `CE`, `CN`, `CX`, `HD`, `PL`, `CMMSG` and `CMNDL`.
All four carry the sending application and facility, send time, message type,
control and version IDs, the three patient identifiers, patient class and
assigned location. `ORM`, `ORU` and `MDM` add order and request fields;
`ORU` and `MDM` also the result status and principal result interpreter.
Every record has a `msg_path` field, left empty by decoding, for the path of
the stored source message.

## Encrypting values

`hl7ingest.crypto.encrypt(plain_text, key)` seals text with AES-GCM under a
random 12-byte nonce and returns base64 of the nonce followed by the sealed
data. `decrypt(cipher_text, key)` reverses it. The key, as text or bytes,
must be 16, 24 or 32 bytes long. A key of the wrong length, a wrong key,
invalid base64 or tampered cipher text raises `CryptoError`.

## The ingest service

`hl7ingest.service.Hl7Service(inserter, store)` is a WSGI application. It
needs two collaborators that you supply:

- a `MessageStore`, whose `get(path)` returns the stored raw HL7 message as
  base64 text;
- a `RowInserter`, whose `insert(dataset, table, row)` stores a decoded
  record.

It accepts `POST` requests to any path; other methods get `405`. The body is
a Pub/Sub push envelope, parsed by `PubSubMessage.from_json`: the base64
`message.data` is the path of the stored HL7 message and the
`message.attributes.msgType` attribute names its type. The service fetches
the message, decodes it into the record named in `MESSAGE_TABLES` (`ADT`,
`ORM`, `ORU` or `MDM`), sets its `msg_path` and inserts it into dataset
`DATASET` (`"methodist"`), table `adt_raw`, `orm_raw`, `oru_raw` or `mdm_raw`.

Responses are JSON built by `hl7ingest.respond.respond_json`:

- `201` with `{"success": "inserted a new <type>"}` when the row is inserted;
- `400` with `{"error": ...}` when the body is empty or not a valid envelope,
  or when the message type is not supported (checked after the message has
  been fetched);
- `500` with `{"error": ...}` when fetching, base64-decoding, parsing or
  inserting fails.

`Hl7Service.handle_message(body)` runs the same logic outside WSGI and
returns a `JSONResponse` with `status`, `headers`, `body` and a
`status_line` such as `"201 Created"`.

Any WSGI server can host the application, for example the standard
library's:

```python
from wsgiref.simple_server import make_server

from hl7ingest.service import Hl7Service

app = Hl7Service(inserter=my_inserter, store=my_store)
make_server("0.0.0.0", 8080, app).serve_forever()
```

## What the package does not do

- It has no command that starts a server; you host `Hl7Service` yourself.
- It ships no `MessageStore` or `RowInserter` for any cloud service or
  database; you provide both.
- It does not create the destination tables; they must exist before rows
  are inserted.