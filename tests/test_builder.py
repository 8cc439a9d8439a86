"""End-to-end tests for token building.

Tokens are inflated and parsed here, independently of the library, to
check the wire structure the provider's verifier expects.
"""

from __future__ import annotations

import base64
import hashlib
import hmac
import re
import struct
import zlib
from typing import Any

import pytest

from pyrtctoken import (
    ChannelJoin,
    FixedEntropy,
    MessagingLogin,
    Role,
    RtcCompressionError,
    RtcInvalidInputError,
    RtcRequestConsumedError,
    build_channel_token,
    build_messaging_token,
    build_token,
)
from pyrtctoken._codec import deflate
from pyrtctoken._crypto import hmac as crypto_hmac
from pyrtctoken.models import request as request_module
from pyrtctoken.models.request import TokenRequest

APP_ID = "A" * 32
CERT = "00" * 16
ISSUE_TS = 1_700_000_000
SALT = 12_345_678
PINNED = FixedEntropy(ISSUE_TS, SALT)

# "A" * 32 / "00" * 16, ChannelJoin("room1", "42", publisher), expire 3600,
# issue_ts 1_700_000_000, salt 12_345_678.
PINNED_CHANNEL_TOKEN = (
    "007U2Ao2HTCrnRj2N6HComh1eeE3225cP9R7sPZuzJFC3J/T77+VoHBkQBg+BicKsDHwOCXuIeBEQhZGYry83MNmRhMjFiAXIH/walMYJIZTLKASQA="
)

_BASE64 = re.compile(r"^[A-Za-z0-9+/]+={0,2}$")


def _inflate(token: str) -> bytes:
    assert token.startswith("007")
    return zlib.decompress(base64.b64decode(token[3:], validate=True), -zlib.MAX_WBITS)


def _parse(content: bytes) -> dict[str, Any]:
    offset = 0

    def take(size: int) -> bytes:
        nonlocal offset
        chunk = content[offset : offset + size]
        offset += size
        return chunk

    def u16() -> int:
        return struct.unpack("<H", take(2))[0]

    def u32() -> int:
        return struct.unpack("<I", take(4))[0]

    def string() -> str:
        return take(u16()).decode("utf-8")

    def privileges() -> list[tuple[int, int]]:
        return [(u16(), u32()) for _ in range(u16())]

    signature = take(u16())
    info_start = offset
    parsed: dict[str, Any] = {
        "signature": signature,
        "app_id": string(),
        "issue_ts": u32(),
        "expire": u32(),
        "salt": u32(),
        "services": [],
    }
    for _ in range(u16()):
        service_type = u16()
        if service_type == 1:
            parsed["services"].append((service_type, string(), string(), privileges()))
        else:
            parsed["services"].append((service_type, privileges(), string()))
    parsed["signing_info"] = content[info_start:]
    assert offset == len(content)
    return parsed


def _reference_token(
    app_id: str,
    cert_hex: str,
    issue_ts: int,
    expire: int,
    salt: int,
    service_bytes: bytes,
    service_count: int = 1,
) -> str:
    k1 = hmac.new(bytes.fromhex(cert_hex), struct.pack("<I", issue_ts), hashlib.sha256).digest()
    key = hmac.new(k1, struct.pack("<I", salt), hashlib.sha256).digest()
    app = app_id.encode()
    info = struct.pack("<H", len(app)) + app + struct.pack("<IIIH", issue_ts, expire, salt, service_count) + service_bytes
    signature = hmac.new(key, info, hashlib.sha256).digest()
    content = struct.pack("<H", len(signature)) + signature + info
    compressor = zlib.compressobj(zlib.Z_DEFAULT_COMPRESSION, zlib.DEFLATED, -zlib.MAX_WBITS)
    return "007" + base64.b64encode(compressor.compress(content) + compressor.flush()).decode()


def _channel_service_bytes(channel: str, account: str, privileges: list[tuple[int, int]]) -> bytes:
    out = struct.pack("<H", 1)
    for text in (channel, account):
        raw = text.encode()
        out += struct.pack("<H", len(raw)) + raw
    out += struct.pack("<H", len(privileges))
    for key, value in privileges:
        out += struct.pack("<HI", key, value)
    return out


# ------------------------------------------------------------------
# Format and structure
# ------------------------------------------------------------------


class TestFormat:
    def test_prefix_and_base64(self) -> None:
        token = build_channel_token(APP_ID, CERT, "room1", "42", Role.PUBLISHER, 3600, 3600)
        assert token.startswith("007")
        assert _BASE64.match(token[3:])

    def test_payload_is_raw_deflate(self) -> None:
        token = build_channel_token(APP_ID, CERT, "room1", "42", Role.PUBLISHER, 3600, 3600, entropy=PINNED)
        compressed = base64.b64decode(token[3:])
        with pytest.raises(zlib.error):
            zlib.decompress(compressed)
        assert _inflate(token)[:2] == b"\x20\x00"

    def test_round_trip_structure(self) -> None:
        services = [
            ChannelJoin.for_role("room1", "42", Role.SUBSCRIBER, ISSUE_TS + 60),
            MessagingLogin.for_user("user-7", ISSUE_TS + 120),
        ]
        token = build_token(APP_ID, CERT, services, 3600, entropy=PINNED)
        parsed = _parse(_inflate(token))

        assert len(parsed["signature"]) == 32
        assert parsed["app_id"] == APP_ID
        assert parsed["issue_ts"] == ISSUE_TS
        assert parsed["expire"] == 3600
        assert parsed["salt"] == SALT
        assert parsed["services"] == [
            (1, "room1", "42", [(1, ISSUE_TS + 60)]),
            (2, [(1, ISSUE_TS + 120)], "user-7"),
        ]

    def test_signature_covers_signing_info(self) -> None:
        token = build_token(APP_ID, CERT, [MessagingLogin.for_user("u", ISSUE_TS + 1)], 60, entropy=PINNED)
        parsed = _parse(_inflate(token))

        k1 = hmac.new(bytes.fromhex(CERT), struct.pack("<I", ISSUE_TS), hashlib.sha256).digest()
        key = hmac.new(k1, struct.pack("<I", SALT), hashlib.sha256).digest()
        assert parsed["signature"] == hmac.new(key, parsed["signing_info"], hashlib.sha256).digest()

    def test_services_keep_caller_order(self) -> None:
        first = MessagingLogin.for_user("u", ISSUE_TS)
        second = ChannelJoin.for_role("room1", "", Role.SUBSCRIBER, ISSUE_TS)
        parsed = _parse(_inflate(build_token(APP_ID, CERT, [first, second], 60, entropy=PINNED)))
        assert [service[0] for service in parsed["services"]] == [2, 1]


# ------------------------------------------------------------------
# Determinism
# ------------------------------------------------------------------


class TestDeterminism:
    def test_same_inputs_same_token(self) -> None:
        args = (APP_ID, CERT, "room1", "42", Role.PUBLISHER, 3600, 3600)
        assert build_channel_token(*args, entropy=PINNED) == build_channel_token(*args, entropy=PINNED)

    def test_salt_changes_signature(self) -> None:
        service = [ChannelJoin.for_role("room1", "42", Role.PUBLISHER, ISSUE_TS + 3600)]
        first = _parse(_inflate(build_token(APP_ID, CERT, service, 3600, entropy=PINNED)))
        second = _parse(_inflate(build_token(APP_ID, CERT, service, 3600, entropy=FixedEntropy(ISSUE_TS, SALT + 1))))
        assert first["signature"] != second["signature"]

    def test_pinned_end_to_end_literal(self) -> None:
        token = build_channel_token(APP_ID, CERT, "room1", "42", Role.PUBLISHER, 3600, 3600, entropy=PINNED)
        assert token == PINNED_CHANNEL_TOKEN

    def test_pinned_end_to_end_matches_reference(self) -> None:
        token = build_channel_token(APP_ID, CERT, "room1", "42", Role.PUBLISHER, 3600, 3600, entropy=PINNED)
        expire_ts = ISSUE_TS + 3600
        expected = _reference_token(
            APP_ID,
            CERT,
            ISSUE_TS,
            3600,
            SALT,
            _channel_service_bytes("room1", "42", [(1, expire_ts), (2, expire_ts), (3, expire_ts), (4, expire_ts)]),
        )
        assert token == expected


# ------------------------------------------------------------------
# Convenience entry points
# ------------------------------------------------------------------


class TestConvenience:
    def test_channel_privilege_expiry_is_absolute(self) -> None:
        token = build_channel_token(APP_ID, CERT, "room1", 0, "subscriber", 3600, 600, entropy=PINNED)
        parsed = _parse(_inflate(token))
        assert parsed["services"] == [(1, "room1", "", [(1, ISSUE_TS + 600)])]

    def test_zero_privilege_expire_stays_zero(self) -> None:
        token = build_channel_token(APP_ID, CERT, "room1", "42", "subscriber", 3600, 0, entropy=PINNED)
        assert _parse(_inflate(token))["services"][0][3] == [(1, 0)]

    def test_messaging_token(self) -> None:
        token = build_messaging_token(APP_ID, CERT, "user-7", 900, entropy=PINNED)
        parsed = _parse(_inflate(token))
        assert parsed["expire"] == 900
        assert parsed["services"] == [(2, [(1, ISSUE_TS + 900)], "user-7")]

    def test_invalid_role(self) -> None:
        with pytest.raises(RtcInvalidInputError, match="Invalid role"):
            build_channel_token(APP_ID, CERT, "room1", "42", 9, 3600, 3600, entropy=PINNED)

    def test_invalid_channel(self) -> None:
        with pytest.raises(RtcInvalidInputError, match="Invalid channel grant"):
            build_channel_token(APP_ID, CERT, "", "42", Role.PUBLISHER, 3600, 3600, entropy=PINNED)

    def test_bool_role_rejected(self) -> None:
        with pytest.raises(RtcInvalidInputError, match="Invalid role"):
            build_channel_token(APP_ID, CERT, "room1", "42", True, 3600, 3600, entropy=PINNED)  # type: ignore[arg-type]

    def test_privilege_overflow(self) -> None:
        with pytest.raises(RtcInvalidInputError):
            build_channel_token(APP_ID, CERT, "room1", "42", Role.PUBLISHER, 3600, 2**32, entropy=PINNED)

    @pytest.mark.parametrize("privilege_expire", ["600", 600.0, True, None, -1])
    def test_privilege_expire_must_be_int(self, privilege_expire: Any) -> None:
        with pytest.raises(RtcInvalidInputError, match="privilege_expire") as excinfo:
            build_channel_token(APP_ID, CERT, "room1", "42", Role.PUBLISHER, 3600, privilege_expire, entropy=PINNED)
        assert excinfo.value.field == "privilege_expire"

    @pytest.mark.parametrize("token_expire", ["600", 600.0, False])
    def test_token_expire_must_be_int(self, token_expire: Any) -> None:
        with pytest.raises(RtcInvalidInputError, match="expire must be an integer"):
            build_messaging_token(APP_ID, CERT, "u", token_expire, entropy=PINNED)
        with pytest.raises(RtcInvalidInputError, match="expire must be an integer"):
            build_channel_token(APP_ID, CERT, "room1", "42", Role.PUBLISHER, token_expire, 3600, entropy=PINNED)


# ------------------------------------------------------------------
# Errors
# ------------------------------------------------------------------


class TestErrors:
    @pytest.fixture
    def hmac_calls(self, monkeypatch: pytest.MonkeyPatch) -> list[tuple[bytes, bytes]]:
        calls: list[tuple[bytes, bytes]] = []
        real = crypto_hmac.hmac_sha256

        def recording(key: bytes, message: bytes) -> bytes:
            calls.append((key, message))
            return real(key, message)

        monkeypatch.setattr(crypto_hmac, "hmac_sha256", recording)
        return calls

    def test_odd_certificate_fails_before_hmac(self, hmac_calls: list[tuple[bytes, bytes]]) -> None:
        with pytest.raises(RtcInvalidInputError, match="hex length must be even"):
            build_channel_token(APP_ID, "0" * 31, "room1", "42", Role.PUBLISHER, 3600, 3600, entropy=PINNED)
        assert hmac_calls == []

    def test_bad_service_fails_before_hmac(self, hmac_calls: list[tuple[bytes, bytes]]) -> None:
        with pytest.raises(RtcInvalidInputError, match="Unsupported service"):
            build_token(APP_ID, CERT, ["not-a-service"], 3600, entropy=PINNED)  # type: ignore[list-item]
        assert hmac_calls == []

    def test_successful_build_runs_three_hmacs(self, hmac_calls: list[tuple[bytes, bytes]]) -> None:
        build_messaging_token(APP_ID, CERT, "u", 60, entropy=PINNED)
        assert len(hmac_calls) == 3
        assert hmac_calls[0][0] == bytes.fromhex(CERT)

    @pytest.mark.parametrize(("app_id", "cert"), [("", CERT), (APP_ID, "")])
    def test_missing_credentials(self, app_id: str, cert: str) -> None:
        with pytest.raises(RtcInvalidInputError, match="is required"):
            build_messaging_token(app_id, cert, "u", 60, entropy=PINNED)

    def test_non_hex_certificate(self) -> None:
        with pytest.raises(RtcInvalidInputError, match="must be hex-encoded"):
            build_messaging_token(APP_ID, "g" * 32, "u", 60, entropy=PINNED)

    def test_no_services(self) -> None:
        with pytest.raises(RtcInvalidInputError, match="at least one service"):
            build_token(APP_ID, CERT, [], 60, entropy=PINNED)

    def test_expire_must_fit_uint32(self) -> None:
        with pytest.raises(RtcInvalidInputError, match="expire must be between"):
            build_messaging_token(APP_ID, CERT, "u", 2**32, entropy=PINNED)

    def test_salt_out_of_range(self) -> None:
        with pytest.raises(RtcInvalidInputError, match="Invalid token request"):
            TokenRequest.create(APP_ID, CERT, 60, entropy=FixedEntropy(ISSUE_TS, 0))

    def test_compression_failure(self, monkeypatch: pytest.MonkeyPatch) -> None:
        def broken_compressobj(*args: object, **kwargs: object) -> None:
            raise zlib.error("out of memory")

        monkeypatch.setattr(deflate.zlib, "compressobj", broken_compressobj)
        with pytest.raises(RtcCompressionError, match="Raw deflate failed"):
            build_messaging_token(APP_ID, CERT, "u", 60, entropy=PINNED)


# ------------------------------------------------------------------
# TokenRequest lifecycle
# ------------------------------------------------------------------


class TestTokenRequest:
    def test_repr_hides_certificate(self) -> None:
        request = TokenRequest.create(APP_ID, "ab" * 16, 60, entropy=PINNED)
        assert "abab" not in repr(request)

    def test_builds_only_once(self) -> None:
        request = TokenRequest.create(APP_ID, CERT, 60, entropy=PINNED)
        assert not request.is_consumed

        token = request.build([ChannelJoin.for_role("room1", "42", Role.PUBLISHER, ISSUE_TS + 60)])
        assert token.startswith("007")
        assert request.is_consumed

        with pytest.raises(RtcRequestConsumedError, match="already built"):
            request.build([ChannelJoin.for_role("room2", "42", Role.PUBLISHER, ISSUE_TS + 60)])

    def test_failed_build_still_consumes(self) -> None:
        request = TokenRequest.create(APP_ID, CERT, 60, entropy=PINNED)
        with pytest.raises(RtcInvalidInputError, match="at least one service"):
            request.build([])
        with pytest.raises(RtcRequestConsumedError):
            request.build([MessagingLogin.for_user("u", ISSUE_TS + 60)])

    def test_certificate_decoded_once(self, monkeypatch: pytest.MonkeyPatch) -> None:
        calls: list[str] = []
        real = request_module.parse_certificate

        def counting(app_certificate: str) -> bytes:
            calls.append(app_certificate)
            return real(app_certificate)

        monkeypatch.setattr(request_module, "parse_certificate", counting)
        request = TokenRequest.create(APP_ID, CERT, 60, entropy=PINNED)
        request.build([MessagingLogin.for_user("u", ISSUE_TS + 60)])

        assert calls == [CERT]
        assert request.certificate_bytes() == bytes.fromhex(CERT)

    def test_private_state_stays_out_of_dump(self) -> None:
        request = TokenRequest.create(APP_ID, CERT, 60, entropy=PINNED)
        request.build([MessagingLogin.for_user("u", ISSUE_TS + 60)])
        assert set(request.model_dump()) == {"app_id", "app_certificate", "issue_ts", "expire", "salt"}
