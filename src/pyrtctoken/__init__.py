"""pyrtctoken - Signed access tokens for real-time channel and messaging services."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pyrtctoken")
except PackageNotFoundError:
    __version__ = "0+local"
from pyrtctoken.builder import build_channel_token, build_messaging_token, build_token
from pyrtctoken.client import TokenBuilder
from pyrtctoken.config import TokenConfig
from pyrtctoken.entropy import FixedEntropy, SystemEntropy, TokenEntropy
from pyrtctoken.exceptions import (
    RtcCompressionError,
    RtcConfigError,
    RtcCryptoError,
    RtcInvalidInputError,
    RtcRequestConsumedError,
    RtcTokenError,
)
from pyrtctoken.models import (
    ChannelJoin,
    MessagingLogin,
    MessagingPrivilege,
    Privilege,
    PrivilegeMap,
    Role,
    Service,
    TokenRequest,
)

__all__ = [
    "__version__",
    "ChannelJoin",
    "FixedEntropy",
    "MessagingLogin",
    "MessagingPrivilege",
    "Privilege",
    "PrivilegeMap",
    "Role",
    "RtcCompressionError",
    "RtcConfigError",
    "RtcCryptoError",
    "RtcInvalidInputError",
    "RtcRequestConsumedError",
    "RtcTokenError",
    "Service",
    "SystemEntropy",
    "TokenBuilder",
    "TokenConfig",
    "TokenEntropy",
    "TokenRequest",
    "build_channel_token",
    "build_messaging_token",
    "build_token",
]
