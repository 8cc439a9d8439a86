"""Custom exception hierarchy for pyrtctoken."""

from __future__ import annotations


class RtcTokenError(Exception):
    """Base exception for all pyrtctoken errors."""


class RtcConfigError(RtcTokenError):
    """Invalid or missing configuration."""


class RtcInvalidInputError(RtcTokenError, ValueError):
    """Caller-supplied value cannot be encoded into a token.

    Raised before any cryptographic primitive runs: empty app id or
    certificate, malformed certificate hex, integers outside their wire
    width, strings longer than the provider accepts.
    """

    def __init__(self, message: str, *, field: str = "") -> None:
        self.field = field
        super().__init__(message)


class RtcCryptoError(RtcTokenError):
    """HMAC-SHA256 computation failed."""


class RtcCompressionError(RtcTokenError):
    """Raw deflate of the token content failed."""


class RtcRequestConsumedError(RtcTokenError):
    """A token request was built more than once.

    Each request carries one issue time and salt; a new token needs a new
    request.
    """
