"""Row types for the supported HL7 message kinds and their composite fields."""

from __future__ import annotations

from dataclasses import dataclass, field

from hl7ingest.hl7.decode import hl7_field


@dataclass
class CE:
    """Coded element."""

    identifier: str = hl7_field("1")
    text: str = hl7_field("2")
    coding_system: str = hl7_field("3")
    alternate_identifier: str = hl7_field("4")
    alternate_text: str = hl7_field("5")
    alternate_coding_system: str = hl7_field("6")


@dataclass
class CN:
    """Composite ID number and name."""

    id_number: str = hl7_field("1")
    family_name: str = hl7_field("2")
    given_name: str = hl7_field("3")
    middle_name: str = hl7_field("4")
    suffix: str = hl7_field("5")
    prefix: str = hl7_field("6")
    degree: str = hl7_field("7")
    source_table: str = hl7_field("8")
    assigning_authority: str = hl7_field("9")


@dataclass
class CX:
    """Extended composite ID with check digit."""

    id: str = hl7_field("1")
    check_digit: str = hl7_field("2")
    check_digit_scheme: str = hl7_field("3")
    assigning_authority: str = hl7_field("4")
    identifier_type_code: str = hl7_field("5")


@dataclass
class HD:
    """Hierarchic designator."""

    namespace_id: str = hl7_field("1")
    universal_id: str = hl7_field("2")
    universal_id_type: str = hl7_field("3")


@dataclass
class PL:
    """Person location."""

    point_of_care: str = hl7_field("1")
    room: str = hl7_field("2")
    bed: str = hl7_field("3")
    facility: str = hl7_field("4")
    location_status: str = hl7_field("5")
    person_location_type: str = hl7_field("6")
    building: str = hl7_field("7")
    floor: str = hl7_field("8")
    location_description: str = hl7_field("9")


@dataclass
class CMMSG:
    """Message type: name and trigger event."""

    name: str = hl7_field("1")
    trigger_event: str = hl7_field("2")


@dataclass
class CMNDL:
    """Name with date and location."""

    op_name: CN = hl7_field("1", default_factory=CN)
    start_dt: str = hl7_field("2")
    end_dt: str = hl7_field("3")
    point_of_care: str = hl7_field("4")
    room: str = hl7_field("5")
    bed: str = hl7_field("6")
    facility: str = hl7_field("7")
    location_status: str = hl7_field("8")
    person_location_type: str = hl7_field("9")
    building: str = hl7_field("10")
    floor: str = hl7_field("11")


@dataclass
class _PatientMessage:
    sending_app: str = hl7_field("MSH.3")
    sending_facility: str = hl7_field("MSH.4")
    send_dt: str = hl7_field("MSH.7")
    message_type: CMMSG = hl7_field("MSH.9", default_factory=CMMSG)
    control_id: str = hl7_field("MSH.10")
    version_id: str = hl7_field("MSH.12")
    external_patient_id: CX = hl7_field("PID.2", default_factory=CX)
    internal_patient_id: CX = hl7_field("PID.3", default_factory=CX)
    alternate_patient_id: CX = hl7_field("PID.4", default_factory=CX)
    patient_class: str = hl7_field("PV1.2")
    assigned_patient_location: PL = hl7_field("PV1.3", default_factory=PL)


@dataclass
class ADT(_PatientMessage):
    """Admit, discharge and transfer message row."""

    servicing_facility: str = hl7_field("PV1.39")
    msg_path: str = field(default="")


@dataclass
class ORM(_PatientMessage):
    """Order message row."""

    servicing_facility: str = hl7_field("PV1.39")
    order_control: str = hl7_field("ORC.1")
    orc_placer_order_number: str = hl7_field("ORC.2")
    orc_filler_order_number: str = hl7_field("ORC.3")
    order_status: str = hl7_field("ORC.5")
    obr_placer_order_number: str = hl7_field("OBR.2")
    obr_filler_order_number: str = hl7_field("OBR.3")
    service_identifier: CE = hl7_field("OBR.4", default_factory=CE)
    priority: str = hl7_field("OBR.5")
    msg_path: str = field(default="")


@dataclass
class ORU(_PatientMessage):
    """Observation result message row."""

    order_control: str = hl7_field("ORC.1")
    orc_placer_order_number: str = hl7_field("ORC.2")
    orc_filler_order_number: str = hl7_field("ORC.3")
    order_status: str = hl7_field("ORC.5")
    obr_placer_order_number: str = hl7_field("OBR.2")
    obr_filler_order_number: str = hl7_field("OBR.3")
    service_identifier: CE = hl7_field("OBR.4", default_factory=CE)
    priority: str = hl7_field("OBR.5")
    result_status: str = hl7_field("OBR.25")
    principal_result_interpreter: CMNDL = hl7_field("OBR.32", default_factory=CMNDL)
    msg_path: str = field(default="")


@dataclass
class MDM(ORU):
    """Medical document management message row."""