"""Internal constants shared across the library."""

from __future__ import annotations

#: Wire-format revision expected by the provider's verifier.
VERSION = "007"

# ------------------------------------------------------------------
# Service types
# ------------------------------------------------------------------

SERVICE_TYPE_CHANNEL_JOIN = 1
SERVICE_TYPE_MESSAGING_LOGIN = 2

# ------------------------------------------------------------------
# Integer wire widths
# ------------------------------------------------------------------

UINT16_MAX = 0xFFFF
UINT32_MAX = 0xFFFFFFFF

# ------------------------------------------------------------------
# Salt range (inclusive)
# ------------------------------------------------------------------

SALT_MIN = 1
SALT_MAX = 99_999_999

# ------------------------------------------------------------------
# Field limits, in UTF-8 bytes
# ------------------------------------------------------------------

CHANNEL_NAME_MAX_BYTES = 64
ACCOUNT_MAX_BYTES = 255

#: HMAC-SHA256 digest size.
SIGNATURE_SIZE = 32

DEFAULT_TOKEN_EXPIRE = 3600
DEFAULT_PRIVILEGE_EXPIRE = 3600
