#!/usr/bin/env python3
"""Mint an access token from environment credentials.

Credential sourcing:
- RTC_APP_ID
- RTC_APP_CERTIFICATE
- RTC_TOKEN_EXPIRE / RTC_PRIVILEGE_EXPIRE (optional)

Examples::

    scripts/mint_token.py channel room1 --account 42 --role publisher
    scripts/mint_token.py messaging user-7 --inspect

``--inspect`` inflates the token and prints its fields, for comparing
against the provider's debugging tools. The library itself never parses
tokens.
"""

from __future__ import annotations

import argparse
import base64
import json
import logging
import struct
import sys
import zlib
from pathlib import Path
from typing import Any

_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from pyrtctoken import FixedEntropy, RtcTokenError, TokenBuilder, TokenConfig  # noqa: E402
from pyrtctoken._constants import VERSION  # noqa: E402


class _Reader:
    def __init__(self, data: bytes) -> None:
        self._data = data
        self._offset = 0

    def uint16(self) -> int:
        (value,) = struct.unpack_from("<H", self._data, self._offset)
        self._offset += 2
        return int(value)

    def uint32(self) -> int:
        (value,) = struct.unpack_from("<I", self._data, self._offset)
        self._offset += 4
        return int(value)

    def raw(self, size: int) -> bytes:
        chunk = self._data[self._offset : self._offset + size]
        self._offset += size
        return chunk

    def string(self) -> str:
        return self.raw(self.uint16()).decode("utf-8")

    def privileges(self) -> dict[int, int]:
        return {self.uint16(): self.uint32() for _ in range(self.uint16())}


def inspect_token(token: str) -> dict[str, Any]:
    """Decode *token* into a JSON-friendly dict (signature shown as length only)."""
    if not token.startswith(VERSION):
        raise ValueError(f"token does not start with {VERSION}")
    content = zlib.decompress(base64.b64decode(token[len(VERSION) :]), -zlib.MAX_WBITS)
    reader = _Reader(content)
    signature = reader.raw(reader.uint16())
    result: dict[str, Any] = {
        "signature_length": len(signature),
        "app_id": reader.string(),
        "issue_ts": reader.uint32(),
        "expire": reader.uint32(),
        "salt": reader.uint32(),
        "services": [],
    }
    for _ in range(reader.uint16()):
        service_type = reader.uint16()
        if service_type == 1:
            service = {
                "type": service_type,
                "channel_name": reader.string(),
                "account": reader.string(),
                "privileges": reader.privileges(),
            }
        elif service_type == 2:
            service = {"type": service_type, "privileges": reader.privileges(), "user_id": reader.string()}
        else:
            raise ValueError(f"unknown service type {service_type}")
        result["services"].append(service)
    return result


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    parser.add_argument("--expire", type=int, default=None, help="Token lifetime in seconds")
    parser.add_argument("--inspect", action="store_true", help="Print the decoded token fields")
    parser.add_argument("--issue-ts", type=int, default=None, help="Pin the issue time (requires --salt)")
    parser.add_argument("--salt", type=int, default=None, help="Pin the salt (requires --issue-ts)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable DEBUG logging")
    sub = parser.add_subparsers(dest="kind", required=True)

    channel = sub.add_parser("channel", help="Channel-join token")
    channel.add_argument("channel_name")
    channel.add_argument("--account", default="", help="User account or numeric uid")
    channel.add_argument("--role", default="publisher", choices=["publisher", "subscriber"])
    channel.add_argument("--privilege-expire", type=int, default=None)

    messaging = sub.add_parser("messaging", help="Messaging login token")
    messaging.add_argument("user_id")

    args = parser.parse_args(argv)
    if (args.issue_ts is None) != (args.salt is None):
        parser.error("--issue-ts and --salt must be given together")
    return args


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    entropy = FixedEntropy(args.issue_ts, args.salt) if args.issue_ts is not None else None
    try:
        builder = TokenBuilder(TokenConfig.from_env(), entropy=entropy)
        if args.kind == "channel":
            account: str | int = int(args.account) if args.account.isdigit() else args.account
            token = builder.channel_token(
                args.channel_name,
                account,
                args.role,
                token_expire=args.expire,
                privilege_expire=args.privilege_expire,
            )
        else:
            token = builder.messaging_token(args.user_id, token_expire=args.expire)
    except RtcTokenError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    print(token)
    if args.inspect:
        print(json.dumps(inspect_token(token), indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
