"""Clock and salt sources for token building.

The only impure inputs of a build are the issue time and the salt. They sit
behind :class:`TokenEntropy` so tests and replay tooling can pin them.
"""

from __future__ import annotations

import dataclasses
import secrets
import time
from typing import Protocol

from pyrtctoken._constants import SALT_MAX, SALT_MIN


class TokenEntropy(Protocol):
    """Source of issue timestamps and salts."""

    def now(self) -> int:
        """Current time in epoch seconds."""
        ...

    def salt(self) -> int:
        """A salt in ``SALT_MIN..SALT_MAX``."""
        ...


class SystemEntropy:
    """Wall clock plus the operating system CSPRNG."""

    def now(self) -> int:
        return int(time.time())

    def salt(self) -> int:
        return SALT_MIN + secrets.randbelow(SALT_MAX - SALT_MIN + 1)


@dataclasses.dataclass(frozen=True)
class FixedEntropy:
    """Pinned issue time and salt, for deterministic output."""

    issue_ts: int
    salt_value: int

    def now(self) -> int:
        return self.issue_ts

    def salt(self) -> int:
        return self.salt_value


DEFAULT_ENTROPY: TokenEntropy = SystemEntropy()
