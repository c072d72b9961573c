"""AES-256-GCM encryption of key/value payloads in the enc:v1 format."""

from __future__ import annotations

import base64
import binascii
import os
import re

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

PREFIX = "enc:v1:"
_KEY_SIZE = 32
_NONCE_SIZE = 12
_TAG_SIZE = 16
_RAW_URL_B64 = re.compile(r"[A-Za-z0-9_-]*")


class KvEncryptError(ValueError):
    """Raised when a value cannot be encrypted, decrypted or a key parsed."""


def _cipher(key: bytes) -> AESGCM:
    key = bytes(key)
    if len(key) != _KEY_SIZE:
        raise KvEncryptError(f"kvencrypt: create cipher: invalid key size {len(key)}")
    return AESGCM(key)


def _b64encode(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def _b64decode(text: str) -> bytes:
    if not _RAW_URL_B64.fullmatch(text) or len(text) % 4 == 1:
        raise KvEncryptError("kvencrypt: base64 decode: illegal base64 data")
    return base64.urlsafe_b64decode(text + "=" * (-len(text) % 4))


def encrypt(key: bytes, plaintext: str) -> str:
    """Encrypt plaintext with a 32-byte key into an "enc:v1:<base64url>" string."""
    aes = _cipher(key)
    nonce = os.urandom(_NONCE_SIZE)
    sealed = nonce + aes.encrypt(nonce, plaintext.encode("utf-8"), None)
    return PREFIX + _b64encode(sealed)


def decrypt(key: bytes, value: str) -> str:
    """Decrypt a value produced by encrypt and return the plaintext."""
    if not value.startswith(PREFIX):
        raise KvEncryptError("kvencrypt: value is not in encrypted format")
    data = _b64decode(value[len(PREFIX):])
    aes = _cipher(key)
    if len(data) < _NONCE_SIZE + _TAG_SIZE:
        raise KvEncryptError("kvencrypt: ciphertext too short")
    nonce, sealed = data[:_NONCE_SIZE], data[_NONCE_SIZE:]
    try:
        plaintext = aes.decrypt(nonce, sealed, None)
    except InvalidTag:
        raise KvEncryptError("decryption failed: invalid key or corrupted value") from None
    return plaintext.decode("utf-8", errors="replace")


def is_encrypted(value: str) -> bool:
    """Report whether value carries the encrypted-value prefix."""
    return value.startswith(PREFIX)


def parse_key(s: str) -> bytes:
    """Parse a 64-character hex string into a 32-byte key."""
    length = len(s.encode("utf-8"))
    if length != 2 * _KEY_SIZE:
        raise KvEncryptError(f"encryption key must be 64 hex characters (got {length})")
    try:
        return binascii.unhexlify(s)
    except (binascii.Error, ValueError) as exc:
        raise KvEncryptError(f"encryption key must be a valid hex string: {exc}") from None