"""
Token Store Crypto Core — Envelope encryption, decryption and encoding.

Envelope layout (before text encoding):
    [nonce 12B][tag 16B][ciphertext]

The envelope is base64url encoded without padding so it can be used as a
cookie value as-is.

Security Note:
    Never log plaintext or ciphertext values.
    Nonces are random 96-bit; collision probability negligible under normal usage.
"""
import os
import re
import base64
import binascii
import logging
from collections.abc import Mapping
from typing import Any

import orjson
from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM, ChaCha20Poly1305

from ..data import is_json_value
from ..exceptions import (
    AuthenticationFailure,
    CorruptRecord,
    InvalidRecord,
    MalformedEnvelope,
)

logger = logging.getLogger("dashboard.session")

NONCE_SIZE = 12  # 96-bit nonce
TAG_SIZE = 16  # GCM / Poly1305 tag
KEY_LENGTH = 32  # AES-256
MIN_ENVELOPE_SIZE = NONCE_SIZE + TAG_SIZE

_CIPHERS = {
    "aesgcm": AESGCM,
    "chacha20": ChaCha20Poly1305,
}

_B64URL = re.compile(r"[A-Za-z0-9_-]*")


def get_cipher(key: bytes, backend: str = "aesgcm") -> Any:
    """Build the AEAD cipher for a derived key."""
    if len(key) != KEY_LENGTH:
        raise ValueError(f"key must be {KEY_LENGTH} bytes, got {len(key)}")
    return _CIPHERS[backend](key)


# ---------------------------------------------------------------------------
# Text encoding
# ---------------------------------------------------------------------------

def b64url_encode(data: bytes) -> str:
    """Encode bytes as unpadded base64url."""
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def b64url_decode(value: str) -> bytes:
    """Decode unpadded base64url text.

    Raises:
        MalformedEnvelope: If the text is not valid base64url.
    """
    if not _B64URL.fullmatch(value) or len(value) % 4 == 1:
        raise MalformedEnvelope("envelope is not valid base64url")
    padded = value + "=" * (-len(value) % 4)
    try:
        return base64.urlsafe_b64decode(padded)
    except (binascii.Error, ValueError) as err:
        raise MalformedEnvelope("envelope is not valid base64url") from err


# ---------------------------------------------------------------------------
# Record serialization
# ---------------------------------------------------------------------------

def serialize_record(record: Mapping[str, Any]) -> bytes:
    """Serialize a session record to canonical JSON bytes (sorted keys).

    Raises:
        InvalidRecord: If the record is not a mapping of JSON values.
    """
    if not isinstance(record, Mapping):
        raise InvalidRecord(
            f"session record must be a mapping, got {type(record).__name__}"
        )
    # orjson writes NaN and Infinity as null instead of raising
    for key, value in record.items():
        if not isinstance(key, str) or not is_json_value(value):
            raise InvalidRecord(
                f"session value for {key!r} is not JSON compatible"
            )
    try:
        return orjson.dumps(dict(record), option=orjson.OPT_SORT_KEYS)
    except orjson.JSONEncodeError as err:
        raise InvalidRecord(f"session record is not JSON serializable: {err}") from err


def deserialize_record(data: bytes) -> dict[str, Any]:
    """Parse decrypted bytes back into a record.

    Raises:
        CorruptRecord: If the bytes are not a JSON object.
    """
    try:
        parsed = orjson.loads(data)
    except orjson.JSONDecodeError as err:
        raise CorruptRecord("decrypted record is not valid JSON") from err
    if not isinstance(parsed, dict):
        raise CorruptRecord(
            f"decrypted record is a JSON {type(parsed).__name__}, not an object"
        )
    return parsed


# ---------------------------------------------------------------------------
# Envelope encryption
# ---------------------------------------------------------------------------

def encrypt_record(
    record: Mapping[str, Any],
    key: bytes,
    backend: str = "aesgcm",
) -> str:
    """Encrypt a session record into a text envelope.

    Args:
        record: JSON-serializable mapping.
        key: 32-byte derived key.
        backend: AEAD cipher name.

    Returns:
        base64url(nonce + tag + ciphertext), no padding.
    """
    plaintext = serialize_record(record)
    cipher = get_cipher(key, backend)
    nonce = os.urandom(NONCE_SIZE)
    # AEAD output is ciphertext followed by the tag
    sealed = cipher.encrypt(nonce, plaintext, None)
    ct, tag = sealed[:-TAG_SIZE], sealed[-TAG_SIZE:]
    return b64url_encode(nonce + tag + ct)


def decrypt_record(
    envelope: str,
    key: bytes,
    backend: str = "aesgcm",
) -> dict[str, Any]:
    """Decrypt a text envelope back into the session record.

    Raises:
        MalformedEnvelope: Bad encoding or shorter than nonce + tag.
        AuthenticationFailure: Tag did not verify.
        CorruptRecord: Decrypted bytes are not a JSON object.
    """
    raw = b64url_decode(envelope)
    if len(raw) < MIN_ENVELOPE_SIZE:
        raise MalformedEnvelope(
            f"envelope too short: {len(raw)} bytes (minimum {MIN_ENVELOPE_SIZE})"
        )
    nonce = raw[:NONCE_SIZE]
    tag = raw[NONCE_SIZE:MIN_ENVELOPE_SIZE]
    ct = raw[MIN_ENVELOPE_SIZE:]
    cipher = get_cipher(key, backend)
    try:
        plaintext = cipher.decrypt(nonce, ct + tag, None)
    except InvalidTag as err:
        raise AuthenticationFailure("envelope authentication failed") from err
    return deserialize_record(plaintext)
