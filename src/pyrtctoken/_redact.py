"""Helpers for safe debug logging.

Token builds touch the app certificate, derived signing keys and finished
tokens. :func:`redact_for_log` masks those fields in the request summaries
that reach DEBUG logs.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

# Compared after lowercasing and dropping underscores/dashes, so
# ``app_certificate`` and ``appCertificate`` both match.
_SENSITIVE_VALUE_KEYS: frozenset[str] = frozenset(
    {
        "appcertificate",
        "certificate",
        "secret",
        "signingkey",
        "signature",
        "token",
    }
)


def _is_sensitive(key: object) -> bool:
    return str(key).lower().replace("_", "").replace("-", "") in _SENSITIVE_VALUE_KEYS


def redact_for_log(value: Any, *, max_string: int = 512) -> Any:
    """Return a copy of *value* with secrets masked and raw bytes summarized.

    Mappings are walked recursively. Byte strings become ``<bytes:Nb>`` and
    strings longer than *max_string* are truncated.
    """
    if isinstance(value, Mapping):
        return {
            str(k): "<redacted>" if _is_sensitive(k) else redact_for_log(v, max_string=max_string)
            for k, v in value.items()
        }
    if isinstance(value, (bytes, bytearray)):
        return f"<bytes:{len(value)}b>"
    if isinstance(value, str) and len(value) > max_string:
        return f"{value[:max_string]}…<truncated>"
    return value
