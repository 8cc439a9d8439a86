"""Config-bound token builder for embedding applications."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from pyrtctoken.builder import build_channel_token, build_messaging_token, build_token
from pyrtctoken.config import TokenConfig
from pyrtctoken.entropy import TokenEntropy
from pyrtctoken.models.services import Role, Service

_logger = logging.getLogger(__name__)


class TokenBuilder:
    """Issue tokens for one provider application.

    Holds only immutable configuration and a stateless entropy source, so
    one instance can be shared across threads and requests.

    Usage::

        builder = TokenBuilder(TokenConfig.from_env())
        token = builder.channel_token("room1", 42, role="publisher")
    """

    def __init__(self, config: TokenConfig, *, entropy: TokenEntropy | None = None) -> None:
        self._config = config
        self._entropy = entropy

    @property
    def config(self) -> TokenConfig:
        return self._config

    def build(self, services: Sequence[Service], *, token_expire: int | None = None) -> str:
        """Build a token for arbitrary *services*."""
        expire = self._config.token_expire if token_expire is None else token_expire
        return build_token(
            self._config.app_id,
            self._config.app_certificate,
            services,
            expire,
            entropy=self._entropy,
        )

    def channel_token(
        self,
        channel_name: str,
        account: str | int,
        role: Role | int | str = Role.PUBLISHER,
        *,
        token_expire: int | None = None,
        privilege_expire: int | None = None,
    ) -> str:
        """Build a channel-join token using the configured lifetimes by default."""
        _logger.debug("Issuing channel token channel=%s role=%s", channel_name, role)
        return build_channel_token(
            self._config.app_id,
            self._config.app_certificate,
            channel_name,
            account,
            role,
            self._config.token_expire if token_expire is None else token_expire,
            self._config.privilege_expire if privilege_expire is None else privilege_expire,
            entropy=self._entropy,
        )

    def messaging_token(self, user_id: str | int, *, token_expire: int | None = None) -> str:
        """Build a messaging login token."""
        _logger.debug("Issuing messaging token")
        return build_messaging_token(
            self._config.app_id,
            self._config.app_certificate,
            user_id,
            self._config.token_expire if token_expire is None else token_expire,
            entropy=self._entropy,
        )
