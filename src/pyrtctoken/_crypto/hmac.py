"""HMAC-SHA256 and certificate decoding.

HMAC keys are always raw bytes; the hex-encoded app certificate is decoded
before it is used as a key.
"""

from __future__ import annotations

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives import hmac as _hmac

from pyrtctoken.exceptions import RtcCryptoError, RtcInvalidInputError


def parse_hex_bytes(value: str, *, name: str) -> bytes:
    """Decode a hex string into raw bytes.

    An optional ``0x`` prefix and surrounding whitespace are ignored.

    Raises
    ------
    RtcInvalidInputError
        If *value* is empty, has an odd number of digits or is not hex.
    """
    if not isinstance(value, str):
        raise RtcInvalidInputError(f"{name} must be a hex string", field=name)
    text = value.strip()
    if text.startswith("0x") or text.startswith("0X"):
        text = text[2:]
    if not text:
        raise RtcInvalidInputError(f"{name} is empty", field=name)
    if len(text) % 2 != 0:
        raise RtcInvalidInputError(f"{name} hex length must be even (got {len(text)})", field=name)
    try:
        return bytes.fromhex(text)
    except ValueError as exc:
        raise RtcInvalidInputError(f"{name} must be hex-encoded", field=name) from exc


def parse_certificate(app_certificate: str) -> bytes:
    """Decode the app certificate into the raw HMAC key bytes."""
    return parse_hex_bytes(app_certificate, name="app_certificate")


def hmac_sha256(key: bytes, message: bytes) -> bytes:
    """Compute HMAC-SHA256 of *message* keyed by raw *key* bytes.

    Returns
    -------
    bytes
        32-byte digest.

    Raises
    ------
    RtcCryptoError
        If the HMAC primitive fails.
    """
    try:
        mac = _hmac.HMAC(key, hashes.SHA256())
        mac.update(message)
        return mac.finalize()
    except Exception as exc:
        raise RtcCryptoError(f"HMAC-SHA256 failed: {exc}") from exc
