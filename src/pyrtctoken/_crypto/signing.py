"""Per-token signing key derivation and signing.

The signing key is bound to the certificate, the issue time and a fresh
salt through a two-round HMAC chain::

    k1          = HMAC_SHA256(key=certificate_bytes, msg=uint32_le(issue_ts))
    signing_key = HMAC_SHA256(key=k1,                msg=uint32_le(salt))
"""

from __future__ import annotations

from pyrtctoken._codec.packing import pack_uint32
from pyrtctoken._constants import SIGNATURE_SIZE
from pyrtctoken._crypto import hmac as _hmac
from pyrtctoken.exceptions import RtcCryptoError


def derive_signing_key(certificate: bytes, issue_ts: int, salt: int) -> bytes:
    """Derive the ephemeral signing key for one token.

    Parameters
    ----------
    certificate : bytes
        Raw certificate bytes (already hex-decoded).
    issue_ts : int
        Issue time in epoch seconds.
    salt : int
        Random salt of this token.

    Returns
    -------
    bytes
        32-byte signing key. Never serialized into the token.
    """
    k1 = _hmac.hmac_sha256(certificate, pack_uint32(issue_ts, name="issue_ts"))
    return _hmac.hmac_sha256(k1, pack_uint32(salt, name="salt"))


def sign(signing_key: bytes, signing_info: bytes) -> bytes:
    """Sign *signing_info* with *signing_key*, returning exactly 32 bytes."""
    signature = _hmac.hmac_sha256(signing_key, signing_info)
    if len(signature) != SIGNATURE_SIZE:
        raise RtcCryptoError(f"Signature must be {SIGNATURE_SIZE} bytes (got {len(signature)})")
    return signature
