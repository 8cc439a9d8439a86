"""Service grants packed into a token.

A token carries one or more services. Each variant has its own byte layout
fixed by the provider's verifier; the layouts are **not** uniform:

* channel join:    ``[type][channel_name][account][privileges]``
* messaging login: ``[type][privileges][user_id]``

``SERVICE_LAYOUTS`` records the field order per service type and
:func:`pack_service` must follow it. A new variant needs an entry there and
its own ``case`` arm.
"""

from __future__ import annotations

import enum
from typing import Any, ClassVar, Literal

from pydantic import BaseModel, ConfigDict, field_validator

from pyrtctoken._codec.packing import concat, pack_string, pack_uint16
from pyrtctoken._constants import (
    ACCOUNT_MAX_BYTES,
    CHANNEL_NAME_MAX_BYTES,
    SERVICE_TYPE_CHANNEL_JOIN,
    SERVICE_TYPE_MESSAGING_LOGIN,
)
from pyrtctoken.exceptions import RtcInvalidInputError
from pyrtctoken.models.privileges import MessagingPrivilege, Privilege, PrivilegeMap

SERVICE_LAYOUTS: dict[int, tuple[str, ...]] = {
    SERVICE_TYPE_CHANNEL_JOIN: ("service_type", "channel_name", "account", "privileges"),
    SERVICE_TYPE_MESSAGING_LOGIN: ("service_type", "privileges", "user_id"),
}


class Role(enum.IntEnum):
    """Channel role requested by the client."""

    PUBLISHER = 1
    SUBSCRIBER = 2

    @classmethod
    def parse(cls, value: Role | int | str) -> Role:
        """Coerce *value* to a role.

        Strings are matched case-insensitively; anything other than
        ``"publisher"`` resolves to :attr:`SUBSCRIBER`. Booleans are rejected.
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, bool):
            raise ValueError("role must be a Role, its name or its integer value")
        if isinstance(value, str):
            return cls.PUBLISHER if value.strip().lower() == "publisher" else cls.SUBSCRIBER
        return cls(value)

    @property
    def privileges(self) -> tuple[Privilege, ...]:
        if self is Role.PUBLISHER:
            return (
                Privilege.JOIN_CHANNEL,
                Privilege.PUBLISH_AUDIO_STREAM,
                Privilege.PUBLISH_VIDEO_STREAM,
                Privilege.PUBLISH_DATA_STREAM,
            )
        return (Privilege.JOIN_CHANNEL,)


def normalize_account(value: Any) -> Any:
    """Render a numeric uid as the account string the verifier expects.

    uid ``0`` becomes ``""``; other integers become their decimal form.
    """
    if isinstance(value, bool):
        raise ValueError("account must be a string or an integer uid")
    if isinstance(value, int):
        return "" if value == 0 else str(value)
    return value


def _check_account(value: str, name: str) -> str:
    if len(value.encode("utf-8")) > ACCOUNT_MAX_BYTES:
        raise ValueError(f"{name} must be at most {ACCOUNT_MAX_BYTES} bytes")
    return value


class _ServiceBase(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    SERVICE_TYPE: ClassVar[int]

    privileges: PrivilegeMap = PrivilegeMap()

    @property
    def service_type(self) -> int:
        return self.SERVICE_TYPE


class ChannelJoin(_ServiceBase):
    """Audio/video channel grant."""

    SERVICE_TYPE: ClassVar[int] = SERVICE_TYPE_CHANNEL_JOIN

    kind: Literal["channel_join"] = "channel_join"
    channel_name: str
    account: str = ""

    @field_validator("channel_name")
    @classmethod
    def _check_channel_name(cls, value: str) -> str:
        size = len(value.encode("utf-8"))
        if not 1 <= size <= CHANNEL_NAME_MAX_BYTES:
            raise ValueError(f"channel_name must be 1..{CHANNEL_NAME_MAX_BYTES} bytes (got {size})")
        return value

    @field_validator("account", mode="before")
    @classmethod
    def _normalize_account(cls, value: Any) -> Any:
        return normalize_account(value)

    @field_validator("account")
    @classmethod
    def _validate_account(cls, value: str) -> str:
        return _check_account(value, "account")

    @classmethod
    def for_role(
        cls,
        channel_name: str,
        account: str | int,
        role: Role | int | str,
        expire_ts: int,
    ) -> ChannelJoin:
        """Grant every privilege of *role* until *expire_ts*."""
        privileges = PrivilegeMap()
        for privilege in Role.parse(role).privileges:
            privileges = privileges.with_privilege(privilege, expire_ts)
        return cls(channel_name=channel_name, account=account, privileges=privileges)


class MessagingLogin(_ServiceBase):
    """Messaging service login grant."""

    SERVICE_TYPE: ClassVar[int] = SERVICE_TYPE_MESSAGING_LOGIN

    kind: Literal["messaging_login"] = "messaging_login"
    user_id: str = ""

    @field_validator("user_id", mode="before")
    @classmethod
    def _normalize_user_id(cls, value: Any) -> Any:
        return normalize_account(value)

    @field_validator("user_id")
    @classmethod
    def _validate_user_id(cls, value: str) -> str:
        return _check_account(value, "user_id")

    @classmethod
    def for_user(cls, user_id: str | int, expire_ts: int) -> MessagingLogin:
        """Grant login until *expire_ts*."""
        privileges = PrivilegeMap().with_privilege(MessagingPrivilege.LOGIN, expire_ts)
        return cls(user_id=user_id, privileges=privileges)


Service = ChannelJoin | MessagingLogin


def pack_service(service: Service) -> bytes:
    """Pack *service* in the byte layout of its variant."""
    match service:
        case ChannelJoin(channel_name=channel_name, account=account, privileges=privileges):
            return concat(
                pack_uint16(service.service_type, name="service_type"),
                pack_string(channel_name, name="channel_name"),
                pack_string(account, name="account"),
                privileges.pack(),
            )
        case MessagingLogin(user_id=user_id, privileges=privileges):
            return concat(
                pack_uint16(service.service_type, name="service_type"),
                privileges.pack(),
                pack_string(user_id, name="user_id"),
            )
        case _:
            raise RtcInvalidInputError(f"Unsupported service {type(service).__name__}", field="services")
