"""Wire-format encoding for access tokens."""

from __future__ import annotations

from pyrtctoken._codec.deflate import encode_token, raw_deflate
from pyrtctoken._codec.packing import concat, pack_string, pack_uint16, pack_uint32

__all__ = [
    "concat",
    "encode_token",
    "pack_string",
    "pack_uint16",
    "pack_uint32",
    "raw_deflate",
]
