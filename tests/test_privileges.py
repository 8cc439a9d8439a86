from __future__ import annotations

import struct

import pytest
from pydantic import ValidationError

from pyrtctoken.models.privileges import MessagingPrivilege, Privilege, PrivilegeMap


def test_privilege_ids() -> None:
    assert Privilege.JOIN_CHANNEL == 1
    assert Privilege.PUBLISH_AUDIO_STREAM == 2
    assert Privilege.PUBLISH_VIDEO_STREAM == 3
    assert Privilege.PUBLISH_DATA_STREAM == 4
    assert MessagingPrivilege.LOGIN == 1


def test_empty_map_packs_count_only() -> None:
    assert PrivilegeMap().pack() == b"\x00\x00"


def test_pack_layout() -> None:
    packed = PrivilegeMap.from_mapping({1: 1000}).pack()
    assert packed == struct.pack("<HHI", 1, 1, 1000)


def test_insertion_order_does_not_leak() -> None:
    t1, t2, t3 = 111, 222, 333
    first = PrivilegeMap.from_mapping({4: t1, 1: t2, 3: t3})
    second = PrivilegeMap.from_mapping({1: t2, 3: t3, 4: t1})

    assert first.pack() == second.pack()
    assert first.pack() == struct.pack("<H" + "HI" * 3, 3, 1, t2, 3, t3, 4, t1)


def test_with_privilege_is_immutable() -> None:
    base = PrivilegeMap()
    grown = base.with_privilege(Privilege.PUBLISH_AUDIO_STREAM, 10)

    assert len(base) == 0
    assert grown.as_dict() == {2: 10}


def test_with_privilege_replaces_existing_id() -> None:
    privileges = PrivilegeMap().with_privilege(1, 10).with_privilege(1, 20)
    assert privileges.as_dict() == {1: 20}
    assert len(privileges) == 1


def test_items_are_in_wire_order() -> None:
    privileges = PrivilegeMap().with_privilege(3, 30).with_privilege(1, 10)
    assert privileges.items() == [(1, 10), (3, 30)]


def test_duplicate_ids_rejected() -> None:
    with pytest.raises(ValidationError, match="duplicate privilege id"):
        PrivilegeMap(entries=((1, 10), (1, 20)))


def test_expiry_must_fit_uint32() -> None:
    with pytest.raises(ValidationError, match="uint32"):
        PrivilegeMap().with_privilege(1, 2**32)
