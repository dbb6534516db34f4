"""HL7 v2 segment scanning, escape-sequence replacement and dataclass decoding."""