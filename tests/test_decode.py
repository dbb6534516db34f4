from dataclasses import dataclass

import pytest

from hl7ingest.hl7.decode import Decoder, hl7_field, unmarshal, unmarshal_all
from hl7ingest.hl7.scanner import HL7Error

WHOLE_SHABANG = (
    b"MSH|^~\\&|LabSystem|Hospital|OrderingSystem|Clinic|202501140830||ORU^R01|MSG00002|P|2.3\r"
    b"PID|1||123456^^^Hospital^MR||Doe^John^A~Doe^Johnny^B||19800101|M|||123 Main St^^Metropolis^NY^10001\r"
    b"PV1|1|I|ICU&Room101^Hospital&BedA||||1234^Smith^John^A^^^Dr.|||Cardiology"
)

VALID_OBX = (
    b"MSH|^~\\&|LabSystem|Hospital|OrderingSystem|Clinic|202501140830||ORU^R01|MSG00002|P|2.3\r"
    b"OBX|1|FT|CXR^Chest X-ray||diagnostic\r"
    b"OBX|2|FT|CXR^Chest X-ray||more diagnostic"
)

MULTIPLE_ORDERS = (
    b"MSH|^~\\&|LabSystem|Hospital|OrderingSystem|Clinic|202501140830||ORU^R01|MSG00002|P|2.3\r"
    b"PID|1||123456^^^Hospital^MR||Doe^John^A~Doe^Johnny^B||19800101|M|||123 Main St^^Metropolis^NY^10001\r"
    b"PV1|1|I|ICU&Room101^Hospital&BedA||||1234^Smith^John^A^^^Dr.|||Cardiology\r"
    b"ORC|CN|42069|96024||CM||20250115083500||20250115083500\r"
    b"OBR|1|42069|96024|CXR^Chest X-Ray|S\r"
    b"ORC|RE|42070|07024||CM||20250115083500||20250115083500\r"
    b"OBR|2|42070|07024|UDOP^US Doppler|S"
)


@dataclass
class CE:
    code: str = hl7_field("1")
    description: str = hl7_field("2")
    assigning_authority: str = hl7_field("3")
    identifier_type_code: str = hl7_field("4")
    assigning_facility: str = hl7_field("5")


@dataclass
class PL:
    unit: str = hl7_field("1")
    room: str = hl7_field("2")


@dataclass
class ListPL:
    first_location: PL = hl7_field("1", default_factory=PL)
    second_location: PL = hl7_field("2", default_factory=PL)


@dataclass
class XPN:
    last: str = hl7_field("1")
    first: str = hl7_field("2")
    middle: str = hl7_field("3")


@dataclass
class MockPatient:
    mrn: CE = hl7_field("PID.3", default_factory=CE)
    name: list[XPN] = hl7_field("PID.5", default_factory=list)
    dob: str = hl7_field("PID.7")
    location: ListPL = hl7_field("PV1.3", default_factory=ListPL)


@dataclass
class MockObservation:
    line_no: str = hl7_field("OBX.1")
    procedure: CE = hl7_field("OBX.3", default_factory=CE)
    results: str = hl7_field("OBX.5")


@dataclass
class OrderGroup:
    control: str = hl7_field("ORC.1")
    placer_no: str = hl7_field("ORC.2")
    filler_no: str = hl7_field("ORC.3")
    procedure: CE = hl7_field("OBR.4", default_factory=CE)
    priority: str = hl7_field("OBR.5")


WANT_ORDERS = [
    OrderGroup("CN", "42069", "96024", CE(code="CXR", description="Chest X-Ray"), "S"),
    OrderGroup("RE", "42070", "07024", CE(code="UDOP", description="US Doppler"), "S"),
]


def test_unmarshal_patient():
    pid = unmarshal(WHOLE_SHABANG, MockPatient)
    want = MockPatient(
        mrn=CE(
            code="123456",
            description="",
            assigning_authority="",
            identifier_type_code="Hospital",
            assigning_facility="MR",
        ),
        name=[XPN("Doe", "John", "A"), XPN("Doe", "Johnny", "B")],
        dob="19800101",
        location=ListPL(PL("ICU", "Room101"), PL("Hospital", "BedA")),
    )
    assert pid == want


def test_unmarshal_observations():
    obs = unmarshal_all(VALID_OBX, MockObservation)
    assert len(obs) == 2
    assert obs == [
        MockObservation("1", CE(code="CXR", description="Chest X-ray"), "diagnostic"),
        MockObservation("2", CE(code="CXR", description="Chest X-ray"), "more diagnostic"),
    ]


def test_unmarshal_orders():
    orders = unmarshal_all(MULTIPLE_ORDERS, OrderGroup)
    assert len(orders) == 2
    assert orders == WANT_ORDERS


def test_new_decoder():
    dec = Decoder(MULTIPLE_ORDERS)
    orders = dec.decode_all(OrderGroup)
    assert len(orders) == 2
    assert orders == WANT_ORDERS


def test_decode_all_without_matching_segments_is_empty():
    assert unmarshal_all(WHOLE_SHABANG, MockObservation) == []


def test_decode_takes_first_repeat():
    assert unmarshal(MULTIPLE_ORDERS, OrderGroup) == WANT_ORDERS[0]


@dataclass
class CMMsg:
    name: str = hl7_field("1")
    trigger_event: str = hl7_field("2")


@dataclass
class Header:
    field_sep: str = hl7_field("MSH.1")
    encoding: str = hl7_field("MSH.2")
    sending_app: str = hl7_field("MSH.3")
    message_type: CMMsg = hl7_field("MSH.9", default_factory=CMMsg)
    control_id: str = hl7_field("MSH.10")
    version: str = hl7_field("MSH.12")
    msg_path: str = "keep"


def test_header_fields_are_shifted():
    header = unmarshal(WHOLE_SHABANG, Header)
    assert header == Header(
        field_sep="|",
        encoding="^~\\&",
        sending_app="LabSystem",
        message_type=CMMsg("ORU", "R01"),
        control_id="MSG00002",
        version="2.3",
        msg_path="keep",
    )


def test_escapes_applied_to_text_fields():
    data = b"MSH|^~\\&|Specialty \\T\\ Transplant|Hospital"
    assert unmarshal(data, Header).sending_app == "Specialty & Transplant"


def test_str_input_accepted():
    assert unmarshal(WHOLE_SHABANG.decode(), MockPatient).dob == "19800101"


def test_message_too_short():
    with pytest.raises(HL7Error, match=r"message is too short \(length: 4\)"):
        unmarshal(b"MSH|", MockPatient)


def test_invalid_segment_in_message():
    with pytest.raises(HL7Error, match="invalid segment"):
        Decoder(b"MSH|^~\\&|A\rXX|1")


@dataclass
class BadTag:
    value: str = hl7_field("PID")


@dataclass
class BadIndex:
    value: str = hl7_field("PID.x")


def test_invalid_tag():
    with pytest.raises(HL7Error, match="invalid tag: PID"):
        unmarshal(WHOLE_SHABANG, BadTag)


def test_invalid_tag_index():
    with pytest.raises(HL7Error):
        unmarshal(WHOLE_SHABANG, BadIndex)


@dataclass
class IntField:
    set_id: int = hl7_field("PID.1", default_factory=int)


def test_unsupported_field_type():
    with pytest.raises(TypeError, match="unsupported field type"):
        unmarshal(WHOLE_SHABANG, IntField)


def test_decode_requires_dataclass_type():
    with pytest.raises(TypeError):
        Decoder(WHOLE_SHABANG).decode(dict)


def test_empty_repeat_in_list_gives_default_element():
    data = b"MSH|^~\\&|A\rPID|1||||Doe^John~~Roe^Jane"
    pid = unmarshal(data, MockPatient)
    assert pid.name == [XPN("Doe", "John", ""), XPN(), XPN("Roe", "Jane", "")]