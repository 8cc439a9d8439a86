"""Token request: the per-build inputs and the single-pass build."""

from __future__ import annotations

import logging
import threading
from collections.abc import Sequence

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, ValidationError

from pyrtctoken._codec.deflate import encode_token
from pyrtctoken._codec.packing import check_range, concat, pack_string, pack_uint16, pack_uint32
from pyrtctoken._constants import SALT_MAX, SALT_MIN, UINT32_MAX
from pyrtctoken._crypto.hmac import parse_certificate
from pyrtctoken._crypto.signing import derive_signing_key, sign
from pyrtctoken._redact import redact_for_log
from pyrtctoken.entropy import DEFAULT_ENTROPY, TokenEntropy
from pyrtctoken.exceptions import RtcInvalidInputError, RtcRequestConsumedError
from pyrtctoken.models.services import ChannelJoin, MessagingLogin, Service, pack_service

_logger = logging.getLogger(__name__)

# Guards the consume-once check in TokenRequest.build.
_BUILD_LOCK = threading.Lock()


class TokenRequest(BaseModel):
    """Inputs of one token build.

    Parameters
    ----------
    app_id : str
        Provider application id.
    app_certificate : str
        Hex-encoded shared secret. Excluded from ``repr``.
    issue_ts : int
        Issue time in epoch seconds, captured once per request.
    expire : int
        Token lifetime in seconds from ``issue_ts``.
    salt : int
        Random salt in ``1..99_999_999``, generated once per request.

    A request is consumed by a single :meth:`build`; a new authorization
    needs a new request with a fresh ``issue_ts`` and ``salt``.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    app_id: str = Field(min_length=1)
    app_certificate: str = Field(min_length=1, repr=False)
    issue_ts: int = Field(ge=0, le=UINT32_MAX)
    expire: int = Field(ge=0, le=UINT32_MAX)
    salt: int = Field(ge=SALT_MIN, le=SALT_MAX)

    _certificate: bytes | None = PrivateAttr(default=None)
    _consumed: bool = PrivateAttr(default=False)

    @classmethod
    def create(
        cls,
        app_id: str,
        app_certificate: str,
        expire: int,
        *,
        entropy: TokenEntropy | None = None,
    ) -> TokenRequest:
        """Validate credentials and capture issue time and salt.

        Raises
        ------
        RtcInvalidInputError
            If the app id is empty, the certificate is not valid hex, or a
            value does not fit its wire width.
        """
        if not app_id:
            raise RtcInvalidInputError("app_id is required", field="app_id")
        if not app_certificate:
            raise RtcInvalidInputError("app_certificate is required", field="app_certificate")
        certificate = parse_certificate(app_certificate)
        check_range(expire, UINT32_MAX, "expire")

        source = entropy if entropy is not None else DEFAULT_ENTROPY
        try:
            request = cls(
                app_id=app_id,
                app_certificate=app_certificate,
                issue_ts=source.now(),
                expire=expire,
                salt=source.salt(),
            )
        except ValidationError as exc:
            raise RtcInvalidInputError(f"Invalid token request: {exc}") from exc
        request._certificate = certificate
        return request

    def certificate_bytes(self) -> bytes:
        """Raw certificate bytes used as the first HMAC key, decoded once."""
        if self._certificate is None:
            self._certificate = parse_certificate(self.app_certificate)
        return self._certificate

    @property
    def is_consumed(self) -> bool:
        """Whether :meth:`build` has already been called on this request."""
        return self._consumed

    def signing_info(self, services: Sequence[Service]) -> bytes:
        """Serialize every signed field, services in caller order."""
        if not services:
            raise RtcInvalidInputError("at least one service is required", field="services")
        for service in services:
            if not isinstance(service, (ChannelJoin, MessagingLogin)):
                raise RtcInvalidInputError(f"Unsupported service {type(service).__name__}", field="services")
        return concat(
            pack_string(self.app_id, name="app_id"),
            pack_uint32(self.issue_ts, name="issue_ts"),
            pack_uint32(self.expire, name="expire"),
            pack_uint32(self.salt, name="salt"),
            pack_uint16(len(services), name="service_count"),
            *(pack_service(service) for service in services),
        )

    def build(self, services: Sequence[Service]) -> str:
        """Sign, compress and encode the token.

        A request builds exactly one token; the request is consumed even
        when the build fails. All inputs are packed before any HMAC runs,
        so malformed input fails without touching the crypto layer. No
        partial token is ever returned.

        Raises
        ------
        RtcRequestConsumedError
            If this request was already built.
        """
        with _BUILD_LOCK:
            if self.is_consumed:
                raise RtcRequestConsumedError("TokenRequest was already built; create a new request for a new token")
            self._consumed = True

        certificate = self.certificate_bytes()
        signing_info = self.signing_info(services)

        signing_key = derive_signing_key(certificate, self.issue_ts, self.salt)
        signature = sign(signing_key, signing_info)
        content = concat(pack_uint16(len(signature), name="signature_length"), signature, signing_info)

        _logger.debug(
            "Token signed request=%s services=%s signing_info=%d bytes",
            redact_for_log(self.model_dump()),
            [type(service).__name__ for service in services],
            len(signing_info),
        )
        return encode_token(content)
