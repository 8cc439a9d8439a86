"""Token building entry points.

``build_token`` is the general operation; ``build_channel_token`` and
``build_messaging_token`` assemble the single service most callers need.
"""

from __future__ import annotations

from collections.abc import Sequence

from pydantic import ValidationError

from pyrtctoken._codec.packing import check_range
from pyrtctoken._constants import UINT32_MAX
from pyrtctoken.entropy import TokenEntropy
from pyrtctoken.exceptions import RtcInvalidInputError
from pyrtctoken.models.request import TokenRequest
from pyrtctoken.models.services import ChannelJoin, MessagingLogin, Role, Service


def _absolute_expiry(issue_ts: int, lifetime: int, *, name: str) -> int:
    """Absolute privilege expiry; a zero lifetime stays zero."""
    check_range(lifetime, UINT32_MAX, name)
    return 0 if lifetime == 0 else issue_ts + lifetime


def build_token(
    app_id: str,
    app_certificate: str,
    services: Sequence[Service],
    token_expire: int,
    *,
    entropy: TokenEntropy | None = None,
) -> str:
    """Build a signed token granting *services*.

    Parameters
    ----------
    app_id : str
        Provider application id.
    app_certificate : str
        Hex-encoded app certificate.
    services : sequence of Service
        Grants, packed in the given order.
    token_expire : int
        Token lifetime in seconds from issue.
    entropy : TokenEntropy or None
        Clock and salt source. Defaults to the system clock and CSPRNG.

    Returns
    -------
    str
        ``"007"`` followed by base64 of the raw-deflated content.

    Raises
    ------
    RtcInvalidInputError
        Malformed input; raised before any HMAC runs.
    RtcCryptoError
        HMAC failure.
    RtcCompressionError
        Raw deflate failure.
    """
    request = TokenRequest.create(app_id, app_certificate, token_expire, entropy=entropy)
    return request.build(list(services))


def build_channel_token(
    app_id: str,
    app_certificate: str,
    channel_name: str,
    account: str | int,
    role: Role | int | str,
    token_expire: int,
    privilege_expire: int,
    *,
    entropy: TokenEntropy | None = None,
) -> str:
    """Build a token to join *channel_name* as *account* with *role*.

    *account* may be a numeric uid; uid ``0`` is encoded as an empty
    account. Every privilege of the role expires ``privilege_expire``
    seconds after issue (``0`` means no separate privilege expiry).
    """
    request = TokenRequest.create(app_id, app_certificate, token_expire, entropy=entropy)
    expire_ts = _absolute_expiry(request.issue_ts, privilege_expire, name="privilege_expire")
    try:
        parsed_role = Role.parse(role)
    except ValueError as exc:
        raise RtcInvalidInputError(f"Invalid role {role!r}", field="role") from exc
    try:
        service = ChannelJoin.for_role(channel_name, account, parsed_role, expire_ts)
    except ValidationError as exc:
        raise RtcInvalidInputError(f"Invalid channel grant: {exc}") from exc
    return request.build([service])


def build_messaging_token(
    app_id: str,
    app_certificate: str,
    user_id: str | int,
    token_expire: int,
    *,
    entropy: TokenEntropy | None = None,
) -> str:
    """Build a messaging login token for *user_id*, valid *token_expire* seconds."""
    request = TokenRequest.create(app_id, app_certificate, token_expire, entropy=entropy)
    try:
        expire_ts = _absolute_expiry(request.issue_ts, token_expire, name="token_expire")
        service = MessagingLogin.for_user(user_id, expire_ts)
    except ValidationError as exc:
        raise RtcInvalidInputError(f"Invalid messaging grant: {exc}") from exc
    return request.build([service])
