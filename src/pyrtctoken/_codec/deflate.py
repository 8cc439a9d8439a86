"""Raw deflate and the ``007`` + base64 wire envelope.

The provider's verifier inflates the payload without a zlib header,
trailer or Adler-32 checksum, so the compressor must be configured for the
raw variant (negative ``wbits``).
"""

from __future__ import annotations

import base64
import logging
import zlib

from pyrtctoken._constants import VERSION
from pyrtctoken.exceptions import RtcCompressionError

_logger = logging.getLogger(__name__)

# Negative window bits select raw deflate output.
_RAW_WBITS = -zlib.MAX_WBITS


def raw_deflate(data: bytes) -> bytes:
    """Compress *data* as a bare deflate stream.

    Raises
    ------
    RtcCompressionError
        If the compressor fails.
    """
    try:
        compressor = zlib.compressobj(zlib.Z_DEFAULT_COMPRESSION, zlib.DEFLATED, _RAW_WBITS)
        return compressor.compress(data) + compressor.flush()
    except (zlib.error, TypeError, ValueError) as exc:
        raise RtcCompressionError(f"Raw deflate failed: {exc}") from exc


def encode_token(content: bytes) -> str:
    """Deflate *content* and wrap it as ``VERSION`` + base64.

    Parameters
    ----------
    content : bytes
        Length-prefixed signature followed by the signing info.

    Returns
    -------
    str
        Token string starting with ``007``.
    """
    compressed = raw_deflate(content)
    _logger.debug("Token content deflated %d -> %d bytes", len(content), len(compressed))
    return VERSION + base64.b64encode(compressed).decode("ascii")
