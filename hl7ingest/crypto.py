"""AES-GCM encryption of short text values, encoded as base64."""

from __future__ import annotations

import base64
import binascii
import os
from typing import Union

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

Key = Union[str, bytes, bytearray]

NONCE_SIZE = 12


class CryptoError(ValueError):
    """Raised when a value cannot be encrypted or decrypted."""


def _cipher(key: Key) -> AESGCM:
    raw = key.encode("utf-8") if isinstance(key, str) else bytes(key)
    try:
        return AESGCM(raw)
    except ValueError as exc:
        raise CryptoError(f"error creating encrypt block: {exc}") from exc


def encrypt(plain_text: str, key: Key) -> str:
    """Encrypt ``plain_text`` with AES-GCM under ``key``.

    The result is base64 of the random nonce followed by the sealed data.
    The key must be 16, 24 or 32 bytes long.
    """
    gcm = _cipher(key)
    nonce = os.urandom(NONCE_SIZE)
    sealed = gcm.encrypt(nonce, plain_text.encode("utf-8"), None)
    return base64.b64encode(nonce + sealed).decode("ascii")


def decrypt(cipher_text: str, key: Key) -> str:
    """Reverse :func:`encrypt`, checking the authentication tag."""
    gcm = _cipher(key)
    try:
        cipher_bytes = base64.b64decode(cipher_text, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise CryptoError(f"error decoding cipherText: {exc}") from exc
    if len(cipher_bytes) < NONCE_SIZE:
        raise CryptoError("gcm.Open: ciphertext is shorter than the nonce")
    nonce, sealed = cipher_bytes[:NONCE_SIZE], cipher_bytes[NONCE_SIZE:]
    try:
        plain_bytes = gcm.decrypt(nonce, sealed, None)
    except InvalidTag as exc:
        raise CryptoError("gcm.Open: message authentication failed") from exc
    try:
        return plain_bytes.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise CryptoError(f"decrypted value is not valid text: {exc}") from exc