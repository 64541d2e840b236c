"""Declarative definitions of GATT services for a peripheral."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from blepp.uuid import UUID

__all__ = [
    "AccessOp",
    "CharacteristicFlags",
    "GATTServiceType",
    "GATTDescriptorDef",
    "GATTCharacteristicDef",
    "GATTServiceDef",
    "create_read_only_service",
    "create_read_write_service",
]

# ATT error code returned by a callback asked for an operation it cannot do.
_ATT_ERR_UNLIKELY = 0x0E


class AccessOp(enum.IntEnum):
    """What a client is doing to an attribute."""

    READ_CHR = 0
    WRITE_CHR = 1
    READ_DSC = 2
    WRITE_DSC = 3


class CharacteristicFlags(enum.IntFlag):
    """Characteristic properties and access requirements."""

    NONE = 0
    BROADCAST = 0x0001
    READ = 0x0002
    WRITE_NO_RSP = 0x0004
    WRITE = 0x0008
    NOTIFY = 0x0010
    INDICATE = 0x0020
    AUTH_SIGN_WRITE = 0x0040
    RELIABLE_WRITE = 0x0080
    AUX_WRITE = 0x0100
    READ_ENC = 0x0200
    READ_AUTHEN = 0x0400
    READ_AUTHOR = 0x0800
    WRITE_ENC = 0x1000
    WRITE_AUTHEN = 0x2000
    WRITE_AUTHOR = 0x4000


class GATTServiceType(enum.IntEnum):
    """Primary or secondary service."""

    PRIMARY = 1
    SECONDARY = 2


# Called as (conn_handle, op, offset, data). For reads the callback fills
# ``data`` in place; for writes ``data`` holds what was written. It returns
# 0 on success or an ATT error code.
AccessCallback = Callable[[int, AccessOp, int, bytearray], int]


@dataclass
class GATTDescriptorDef:
    """A descriptor attached to a characteristic."""

    uuid: UUID
    permissions: int = 0
    access_cb: Optional[AccessCallback] = None
    arg: Any = None
    handle: Optional[int] = None  # filled in at registration


@dataclass
class GATTCharacteristicDef:
    """A characteristic within a service."""

    uuid: UUID
    flags: CharacteristicFlags = CharacteristicFlags.NONE
    access_cb: Optional[AccessCallback] = None
    min_key_size: int = 0
    arg: Any = None
    descriptors: list[GATTDescriptorDef] = field(default_factory=list)
    val_handle: Optional[int] = None  # filled in at registration

    def __post_init__(self) -> None:
        self.flags = CharacteristicFlags(self.flags)


@dataclass
class GATTServiceDef:
    """A service and the characteristics it holds."""

    uuid: UUID
    type: GATTServiceType = GATTServiceType.PRIMARY
    characteristics: list[GATTCharacteristicDef] = field(default_factory=list)
    included_services: list[int] = field(default_factory=list)
    handle: Optional[int] = None  # filled in at registration

    def __post_init__(self) -> None:
        self.type = GATTServiceType(self.type)

    def add_characteristic(
        self,
        uuid: UUID,
        flags: CharacteristicFlags,
        access_cb: Optional[AccessCallback] = None,
    ) -> GATTCharacteristicDef:
        """Append a characteristic and return it."""
        chr_def = GATTCharacteristicDef(uuid, flags, access_cb)
        self.characteristics.append(chr_def)
        return chr_def

    def add_read_characteristic(
        self, uuid: UUID, access_cb: Optional[AccessCallback] = None
    ) -> GATTCharacteristicDef:
        """Append a read-only characteristic."""
        return self.add_characteristic(uuid, CharacteristicFlags.READ, access_cb)

    def add_read_write_characteristic(
        self, uuid: UUID, access_cb: Optional[AccessCallback] = None
    ) -> GATTCharacteristicDef:
        """Append a readable and writable characteristic."""
        return self.add_characteristic(
            uuid, CharacteristicFlags.READ | CharacteristicFlags.WRITE, access_cb
        )

    def add_notify_characteristic(
        self, uuid: UUID, access_cb: Optional[AccessCallback] = None
    ) -> GATTCharacteristicDef:
        """Append a readable characteristic that notifies."""
        return self.add_characteristic(
            uuid, CharacteristicFlags.READ | CharacteristicFlags.NOTIFY, access_cb
        )

    def add_indicate_characteristic(
        self, uuid: UUID, access_cb: Optional[AccessCallback] = None
    ) -> GATTCharacteristicDef:
        """Append a readable characteristic that indicates."""
        return self.add_characteristic(
            uuid, CharacteristicFlags.READ | CharacteristicFlags.INDICATE, access_cb
        )


def create_read_only_service(
    service_uuid: UUID, char_uuid: UUID, value: bytes
) -> GATTServiceDef:
    """A primary service with one characteristic that reads as ``value``."""
    fixed = bytes(value)

    def access(conn_handle: int, op: AccessOp, offset: int, data: bytearray) -> int:
        if op == AccessOp.READ_CHR:
            data[:] = fixed
            return 0
        return _ATT_ERR_UNLIKELY

    service = GATTServiceDef(service_uuid, GATTServiceType.PRIMARY)
    service.add_read_characteristic(char_uuid, access)
    return service


def create_read_write_service(
    service_uuid: UUID,
    char_uuid: UUID,
    read_fn: Callable[[], bytes],
    write_fn: Callable[[bytes], None],
) -> GATTServiceDef:
    """A primary service with one characteristic backed by two functions."""

    def access(conn_handle: int, op: AccessOp, offset: int, data: bytearray) -> int:
        if op == AccessOp.READ_CHR:
            data[:] = bytes(read_fn())
            return 0
        if op == AccessOp.WRITE_CHR:
            write_fn(bytes(data))
            return 0
        return _ATT_ERR_UNLIKELY

    service = GATTServiceDef(service_uuid, GATTServiceType.PRIMARY)
    service.add_read_write_characteristic(char_uuid, access)
    return service