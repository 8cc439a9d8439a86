"""Capability ids and the privilege map.

A privilege map pairs capability ids with absolute expiry timestamps. The
map has no inherent order, but the verifier expects one canonical byte
sequence, so entries are always packed in ascending id order.
"""

from __future__ import annotations

import enum
from collections.abc import Mapping

from pydantic import BaseModel, ConfigDict, field_validator

from pyrtctoken._codec.packing import concat, pack_uint16, pack_uint32
from pyrtctoken._constants import UINT16_MAX, UINT32_MAX


class Privilege(enum.IntEnum):
    """Capabilities of a channel-join service."""

    JOIN_CHANNEL = 1
    PUBLISH_AUDIO_STREAM = 2
    PUBLISH_VIDEO_STREAM = 3
    PUBLISH_DATA_STREAM = 4


class MessagingPrivilege(enum.IntEnum):
    """Capabilities of a messaging-login service."""

    LOGIN = 1


class PrivilegeMap(BaseModel):
    """Immutable mapping of capability id to absolute expiry (epoch seconds).

    Build one with :meth:`from_mapping` or by chaining
    :meth:`with_privilege`; each call returns a new map. Sorting happens
    once, in :meth:`pack`, so insertion order never reaches the wire.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    entries: tuple[tuple[int, int], ...] = ()

    @field_validator("entries")
    @classmethod
    def _validate_entries(cls, value: tuple[tuple[int, int], ...]) -> tuple[tuple[int, int], ...]:
        seen: set[int] = set()
        for privilege, expire_ts in value:
            if not 0 <= privilege <= UINT16_MAX:
                raise ValueError(f"privilege id must fit uint16 (got {privilege})")
            if not 0 <= expire_ts <= UINT32_MAX:
                raise ValueError(f"privilege expiry must fit uint32 (got {expire_ts})")
            if privilege in seen:
                raise ValueError(f"duplicate privilege id {privilege}")
            seen.add(privilege)
        return value

    @classmethod
    def from_mapping(cls, mapping: Mapping[int, int]) -> PrivilegeMap:
        """Create a map from ``{privilege_id: expire_ts}``."""
        return cls(entries=tuple((int(k), int(v)) for k, v in mapping.items()))

    def with_privilege(self, privilege: int, expire_ts: int) -> PrivilegeMap:
        """Return a copy granting *privilege* until *expire_ts*.

        An existing entry for the same id is replaced.
        """
        key = int(privilege)
        kept = tuple(entry for entry in self.entries if entry[0] != key)
        return PrivilegeMap(entries=(*kept, (key, int(expire_ts))))

    def as_dict(self) -> dict[int, int]:
        return dict(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def items(self) -> list[tuple[int, int]]:
        """Entries in wire order (ascending id)."""
        return sorted(self.entries)

    def pack(self) -> bytes:
        """Pack as ``[count:uint16]`` then ``[id:uint16][expiry:uint32]`` ascending by id."""
        ordered = self.items()
        return concat(
            pack_uint16(len(ordered), name="privilege_count"),
            *(
                pack_uint16(privilege, name="privilege_id") + pack_uint32(expire_ts, name="privilege_expire")
                for privilege, expire_ts in ordered
            ),
        )
