"""Builder configuration for pyrtctoken."""

from __future__ import annotations

import dataclasses
import os
from typing import Any

from pyrtctoken._constants import DEFAULT_PRIVILEGE_EXPIRE, DEFAULT_TOKEN_EXPIRE
from pyrtctoken.exceptions import RtcConfigError


def _env_int(env_key: str, value: str) -> int:
    try:
        return int(value.strip())
    except ValueError as exc:
        raise RtcConfigError(f"{env_key} must be an integer number of seconds (got {value!r})") from exc


@dataclasses.dataclass(frozen=True)
class TokenConfig:
    """Credentials and default lifetimes.

    Parameters
    ----------
    app_id : str
        Provider application id.
    app_certificate : str
        Hex-encoded app certificate. Keep it out of logs and client code.
    token_expire : int
        Default token lifetime in seconds.
    privilege_expire : int
        Default privilege lifetime in seconds from issue. ``0`` leaves
        privileges without a separate expiry.
    """

    app_id: str
    app_certificate: str = dataclasses.field(repr=False)
    token_expire: int = DEFAULT_TOKEN_EXPIRE
    privilege_expire: int = DEFAULT_PRIVILEGE_EXPIRE

    @classmethod
    def from_env(cls, **overrides: Any) -> TokenConfig:
        """Create configuration from environment variables.

        Reads ``RTC_APP_ID``, ``RTC_APP_CERTIFICATE`` and the optional
        ``RTC_TOKEN_EXPIRE`` / ``RTC_PRIVILEGE_EXPIRE``. Explicit keyword
        arguments override environment values.

        Raises
        ------
        RtcConfigError
            If the app id or certificate is missing, or a lifetime is not
            an integer.
        """
        env = os.environ

        _ENV_CONFIG_MAP = {
            "RTC_APP_ID": "app_id",
            "RTC_APP_CERTIFICATE": "app_certificate",
        }
        config_kwargs: dict[str, Any] = {}
        for env_key, field_name in _ENV_CONFIG_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val.strip()

        _ENV_LIFETIME_MAP = {
            "RTC_TOKEN_EXPIRE": "token_expire",
            "RTC_PRIVILEGE_EXPIRE": "privilege_expire",
        }
        for env_key, field_name in _ENV_LIFETIME_MAP.items():
            val = env.get(env_key)
            if val is not None and field_name not in overrides:
                config_kwargs[field_name] = _env_int(env_key, val)

        config_kwargs.update(overrides)

        for required in ("app_id", "app_certificate"):
            if not config_kwargs.get(required):
                raise RtcConfigError(f"{required} is not configured (set RTC_{required.upper()})")

        return cls(**config_kwargs)
