"""Little-endian binary primitives for the token wire format.

Every multi-byte integer on the wire is little-endian and fixed width.
Strings carry a uint16 prefix holding their UTF-8 **byte** length, not
their character count.
"""

from __future__ import annotations

import struct

from pyrtctoken._constants import UINT16_MAX, UINT32_MAX
from pyrtctoken.exceptions import RtcInvalidInputError

_UINT16 = struct.Struct("<H")
_UINT32 = struct.Struct("<I")


def check_range(value: int, upper: int, name: str) -> int:
    """Return *value* if it is a non-bool int in ``0..upper``, else raise."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise RtcInvalidInputError(f"{name} must be an integer (got {type(value).__name__})", field=name)
    if not 0 <= value <= upper:
        raise RtcInvalidInputError(f"{name} must be between 0 and {upper} (got {value})", field=name)
    return value


def pack_uint16(value: int, *, name: str = "uint16") -> bytes:
    """Pack *value* as a 2-byte little-endian unsigned integer.

    Raises
    ------
    RtcInvalidInputError
        If *value* is not an integer in ``0..65535``.
    """
    return _UINT16.pack(check_range(value, UINT16_MAX, name))


def pack_uint32(value: int, *, name: str = "uint32") -> bytes:
    """Pack *value* as a 4-byte little-endian unsigned integer.

    Raises
    ------
    RtcInvalidInputError
        If *value* is not an integer in ``0..4294967295``.
    """
    return _UINT32.pack(check_range(value, UINT32_MAX, name))


def pack_string(value: str, *, name: str = "string") -> bytes:
    """Pack *value* as ``[byte_length:uint16][utf-8 bytes]``.

    Parameters
    ----------
    value : str
        Text to encode. Multi-byte characters count by their encoded size,
        so ``"a€b"`` is prefixed with 5.
    name : str
        Field name used in error messages.

    Returns
    -------
    bytes
        Length-prefixed UTF-8 encoding.
    """
    encoded = value.encode("utf-8")
    if len(encoded) > UINT16_MAX:
        raise RtcInvalidInputError(
            f"{name} is {len(encoded)} bytes; at most {UINT16_MAX} fit the length prefix",
            field=name,
        )
    return _UINT16.pack(len(encoded)) + encoded


def concat(*parts: bytes) -> bytes:
    """Concatenate byte buffers in argument order."""
    return b"".join(parts)
