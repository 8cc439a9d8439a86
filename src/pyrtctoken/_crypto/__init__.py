"""Cryptographic primitives for token signing."""

from __future__ import annotations

from pyrtctoken._crypto.hmac import hmac_sha256, parse_certificate, parse_hex_bytes
from pyrtctoken._crypto.signing import derive_signing_key, sign

__all__ = [
    "derive_signing_key",
    "hmac_sha256",
    "parse_certificate",
    "parse_hex_bytes",
    "sign",
]
