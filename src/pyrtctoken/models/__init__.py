"""Data models for token requests and service grants."""

from pyrtctoken.models.privileges import MessagingPrivilege, Privilege, PrivilegeMap
from pyrtctoken.models.request import TokenRequest
from pyrtctoken.models.services import (
    SERVICE_LAYOUTS,
    ChannelJoin,
    MessagingLogin,
    Role,
    Service,
    normalize_account,
    pack_service,
)

__all__ = [
    "SERVICE_LAYOUTS",
    "ChannelJoin",
    "MessagingLogin",
    "MessagingPrivilege",
    "Privilege",
    "PrivilegeMap",
    "Role",
    "Service",
    "TokenRequest",
    "normalize_account",
    "pack_service",
]
