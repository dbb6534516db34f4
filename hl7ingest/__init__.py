"""Decode HL7 v2 messages into dataclasses, protect values with AES-GCM, and serve a WSGI ingest endpoint."""

__version__ = "0.1.0"